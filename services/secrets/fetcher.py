"""
Secret fetcher performing exactly one retrieval per lookup against an authenticated client handle. The fetched payload is wrapped as a SensitiveValue alongside its SHA-256 content identifier; failures become FetchError kinds (not found, access denied, transient) that mention only the secret name and version and leave the handle usable for later lookups.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging

import httpx

from models.secrets.lookups import SecretRequest, SecretResult, SensitiveValue
from services.secrets.aws_iam import IAMFailure, IAMSigningError
from services.secrets.conjur_client import ConjurAPIError, ConjurClientError
from services.secrets.errors import FetchError, FetchErrorKind
from services.secrets.identity import digest
from services.secrets.session import ClientHandle

logger = logging.getLogger(__name__)


def _fetch_error_for_status(status_code: int) -> FetchErrorKind:
    if status_code == 404:
        return FetchErrorKind.NOT_FOUND
    if status_code in (401, 403):
        return FetchErrorKind.ACCESS_DENIED
    return FetchErrorKind.TRANSIENT


def _describe(request: SecretRequest) -> str:
    return f"secret {request.name!r} (version {request.version})"


def fetch_secret(handle: ClientHandle, request: SecretRequest) -> SecretResult:
    logger.debug("Getting secret for name=%r version=%r", request.name, request.version)

    version = None if request.is_latest else request.version
    try:
        raw = handle.client.retrieve_secret(request.name, version=version)
    except ConjurAPIError as exc:
        kind = _fetch_error_for_status(exc.status_code)
        raise FetchError(
            kind,
            f"Unable to retrieve {_describe(request)}: Conjur returned {exc.status_code}",
            name=request.name,
        ) from exc
    except IAMSigningError as exc:
        kind = FetchErrorKind.ACCESS_DENIED if exc.reason is IAMFailure.DENIED else FetchErrorKind.TRANSIENT
        raise FetchError(
            kind,
            f"Unable to refresh AWS IAM credentials for {_describe(request)}",
            name=request.name,
        ) from exc
    except ConjurClientError as exc:
        raise FetchError(
            FetchErrorKind.TRANSIENT,
            f"Unable to refresh Conjur access token for {_describe(request)}",
            name=request.name,
        ) from exc
    except httpx.TimeoutException as exc:
        raise FetchError(
            FetchErrorKind.TRANSIENT,
            f"Timed out retrieving {_describe(request)}",
            name=request.name,
        ) from exc
    except httpx.TransportError as exc:
        raise FetchError(
            FetchErrorKind.TRANSIENT,
            f"Unable to reach Conjur for {_describe(request)}",
            name=request.name,
        ) from exc
    except httpx.RequestError as exc:
        raise FetchError(
            FetchErrorKind.TRANSIENT,
            f"Conjur returned an unreadable response for {_describe(request)}",
            name=request.name,
        ) from exc

    return SecretResult(value=SensitiveValue(raw), identifier=digest(raw))
