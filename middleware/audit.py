"""
Security middleware for the secret bridge, enforcing response headers that keep secret payloads out of browser and proxy caches and audit logging each internal request without its body.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)

_AUDITED_PREFIX = "/internal/"
_DOCS_PATHS = frozenset({"/docs", "/redoc", "/openapi.json"})


async def security_headers_middleware(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if request.url.path not in _DOCS_PATHS:
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Pragma", "no-cache")

    if request.url.path.startswith(_AUDITED_PREFIX):
        logger.info(
            "audit method=%s path=%s status=%s duration_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
    return response
