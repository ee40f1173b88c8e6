"""
Exception handlers mapping secret bridge errors to HTTP responses consistently across routes. Configuration and authentication failures, per lookup fetch failures and request validation errors each get a stable status code and a JSON body with `detail` and `kind`; submitted input is never echoed back since it may carry credentials.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import logging
from typing import Any, Dict, List

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from services.secrets.errors import (
    AuthError,
    AuthErrorKind,
    ConfigLoadError,
    FetchError,
    FetchErrorKind,
    ProviderNotConfiguredError,
    SecretBridgeError,
)

logger = logging.getLogger(__name__)

_AUTH_STATUS = {
    AuthErrorKind.INVALID_CONFIG: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.REJECTED_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.NETWORK_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_FETCH_STATUS = {
    FetchErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FetchErrorKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    FetchErrorKind.TRANSIENT: status.HTTP_502_BAD_GATEWAY,
}


def _kind_value(exc: SecretBridgeError) -> str:
    kind = exc.kind
    return getattr(kind, "value", kind)


def status_for_error(exc: SecretBridgeError) -> int:
    if isinstance(exc, AuthError):
        return _AUTH_STATUS[exc.kind]
    if isinstance(exc, FetchError):
        return _FETCH_STATUS[exc.kind]
    if isinstance(exc, ConfigLoadError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ProviderNotConfiguredError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def secret_bridge_exception_handler(
    request: Request,
    exc: SecretBridgeError,
) -> JSONResponse:
    kind = _kind_value(exc)
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, kind)
    return JSONResponse(
        status_code=status_for_error(exc),
        content={"detail": exc.message, "kind": kind},
    )


def _safe_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {key: value for key, value in error.items() if key not in ("input", "ctx", "url")}
        for error in errors
    ]


def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": _safe_errors(exc.errors()), "kind": "invalid_request"},
    )


def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.exception("Unhandled exception: %s", type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
