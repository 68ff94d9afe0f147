"""Middlewares personalizados del puente."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from freshbridge.core.logging import get_logger

logger = get_logger("freshbridge.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Registra información básica de cada request entrante."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        level: int = logging.INFO,
        skip_prefixes: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.level = level
        self.skip_prefixes = tuple(skip_prefixes)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if self.skip_prefixes and path.startswith(self.skip_prefixes):
            return await call_next(request)

        request_id = uuid4().hex
        start = time.perf_counter()
        client_ip = request.headers.get("x-forwarded-for")
        if client_ip:
            client_ip = client_ip.split(",")[0].strip()
        elif request.client:
            client_ip = request.client.host

        if self.level <= logging.INFO:
            logger.info(
                "request.started",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "client_ip": client_ip,
                    "user_agent": request.headers.get("user-agent"),
                },
            )

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request.failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": client_ip,
                },
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["x-request-id"] = request_id

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        if level >= self.level:
            logger.log(
                level,
                "request.completed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": client_ip,
                },
            )

        return response
