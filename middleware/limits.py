"""
Request size and concurrency limiting middleware protecting the secret bridge from oversized configuration payloads and from lookup floods that would pile up outbound Conjur connections.


Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Dict, Optional

from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

_rejections: Counter = Counter()


def rejection_counts() -> Dict[str, int]:
    return dict(_rejections)


def _reject(reason: str, status_code: int, detail: str) -> JSONResponse:
    _rejections[reason] += 1
    return JSONResponse({"detail": detail, "kind": reason}, status_code=status_code)


class _TooLarge(Exception):
    pass


class RequestSizeLimitMiddleware:

    def __init__(self, app, max_bytes: int = 65_536) -> None:
        self.app = app
        self.max_bytes = int(max_bytes)

    def _declared_length(self, scope) -> Optional[int]:
        for key, value in scope.get("headers", []):
            if key.lower() == b"content-length":
                try:
                    return int(value.decode("latin-1"))
                except ValueError:
                    logger.warning("Ignoring invalid content-length header")
                    return None
        return None

    async def __call__(self, scope, receive, send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        declared = self._declared_length(scope)
        if declared is not None and declared > self.max_bytes:
            logger.warning("request_size_rejected content_length=%s max_bytes=%s", declared, self.max_bytes)
            await _reject("request_too_large", 413, "Request body too large")(scope, receive, send)
            return

        received = 0
        response_started = False

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message.get("type") == "http.request":
                received += len(message.get("body") or b"")
                if received > self.max_bytes:
                    raise _TooLarge()
            return message

        async def tracking_send(message):
            nonlocal response_started
            if message.get("type") == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except _TooLarge:
            logger.warning("request_size_rejected streamed_bytes=%s max_bytes=%s", received, self.max_bytes)
            if not response_started:
                await _reject("request_too_large", 413, "Request body too large")(scope, receive, send)


class ConcurrencyLimitMiddleware:

    def __init__(self, app, max_concurrent: int = 100, acquire_timeout: float = 1.0) -> None:
        self.app = app
        self._max_concurrent = int(max_concurrent)
        self._timeout = float(acquire_timeout)
        self._sem: Optional[asyncio.Semaphore] = None

    async def __call__(self, scope, receive, send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        # Created lazily so the semaphore binds to the running event loop.
        if self._sem is None:
            self._sem = asyncio.Semaphore(self._max_concurrent)

        try:
            await asyncio.wait_for(self._sem.acquire(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("concurrency_limit_busy max_concurrent=%s timeout=%s", self._max_concurrent, self._timeout)
            await _reject("server_busy", 503, "Server busy, please retry")(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        finally:
            self._sem.release()
