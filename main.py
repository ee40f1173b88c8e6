"""
Entrypoint for the Conjur secret bridge service.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager

import uvloop
from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import config
from middleware.audit import security_headers_middleware
from middleware.error_handlers import (
    general_exception_handler,
    secret_bridge_exception_handler,
    validation_exception_handler,
)
from middleware.limits import ConcurrencyLimitMiddleware, RequestSizeLimitMiddleware, rejection_counts
from routers.secrets import provider_holder, secrets_router
from services.secrets.errors import SecretBridgeError
from services.secrets.provider import build_secret_provider

asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("conjurbridge")


async def configure_on_startup() -> None:
    try:
        provider = await run_in_threadpool(build_secret_provider, config)
    except SecretBridgeError as exc:
        if config.BRIDGE_FAIL_ON_STARTUP_ERROR:
            raise
        logger.warning("Startup provider configuration failed: %s (%s)", exc.message, getattr(exc.kind, "value", exc.kind))
        return
    provider_holder.replace(provider)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if config.BRIDGE_CONFIGURE_ON_STARTUP:
        await configure_on_startup()
    yield
    provider_holder.clear()


app = FastAPI(
    title="Conjur Secret Bridge",
    description="Internal service resolving Conjur secrets for infrastructure tooling",
    version="1.0.0",
    docs_url="/docs" if config.ENABLE_API_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_API_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_API_DOCS else None,
    lifespan=lifespan,
)

app.middleware("http")(security_headers_middleware)
app.add_exception_handler(SecretBridgeError, secret_bridge_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=config.MAX_REQUEST_BYTES)
app.add_middleware(
    ConcurrencyLimitMiddleware,
    max_concurrent=config.MAX_CONCURRENT_REQUESTS,
    acquire_timeout=config.CONCURRENCY_ACQUIRE_TIMEOUT,
)


@app.middleware("http")
async def require_internal_service_token(request: Request, call_next):
    allowed_paths = {"/health", "/ready"}
    if config.ENABLE_API_DOCS:
        allowed_paths.update({"/docs", "/redoc", "/openapi.json"})
    if request.url.path in allowed_paths:
        return await call_next(request)
    expected = config.BRIDGE_EXPECTED_SERVICE_TOKEN
    if not expected:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Service token not configured"})
    provided = request.headers.get("X-Service-Token")
    if not provided or not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": "Forbidden"})
    return await call_next(request)


app.include_router(secrets_router, prefix="/internal/v1")


@app.get("/health")
async def health() -> dict:
    return {"status": "healthy", "service": "conjurbridge"}


@app.get("/ready")
async def ready():
    checks = {"provider_configured": provider_holder.configured}
    ok = all(checks.values())
    payload = {"status": "ready" if ok else "not_ready", "checks": checks, "rejections": rejection_counts()}
    if not ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)
    return payload


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT, loop="uvloop", log_level=config.LOG_LEVEL)
