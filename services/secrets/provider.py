"""
Provider facade tying the secret bridge together. One provider configuration event loads the effective Conjur configuration, resolves the authentication strategy and builds the client handle; the resulting SecretsProvider then serves independent secret lookups against that handle. The module also exposes the provider and data source schemas and a holder for the currently configured provider used by the HTTP service.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from models.secrets.config import ProviderSettings
from models.secrets.lookups import SecretLookupRequest, SecretLookupResponse, SecretRequest, SecretResult
from models.secrets.strategies import Ambient
from services.secrets.config_loader import SYSTEM_CONJURRC, load_ambient_credentials, load_config
from services.secrets.errors import ProviderNotConfiguredError
from services.secrets.fetcher import fetch_secret
from services.secrets.resolver import resolve_strategy
from services.secrets.session import ClientHandle, build_session

logger = logging.getLogger(__name__)

SECRET_DATA_SOURCE = "conjur_secret"


class SecretsProvider:
    def __init__(self, handle: ClientHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> ClientHandle:
        return self._handle

    @classmethod
    def configure(
        cls,
        settings: Union[ProviderSettings, Mapping[str, Any], None] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        system_conjurrc: Union[str, Path, None] = SYSTEM_CONJURRC,
        **session_options: Any,
    ) -> "SecretsProvider":
        if not isinstance(settings, ProviderSettings):
            settings = ProviderSettings.model_validate(dict(settings or {}))

        effective = load_config(settings, environ=environ, system_conjurrc=system_conjurrc)
        strategy = resolve_strategy(settings.credentials())
        ambient = load_ambient_credentials(environ) if isinstance(strategy, Ambient) else None
        handle = build_session(effective, strategy, ambient=ambient, **session_options)
        return cls(handle)

    def read_secret(self, request: Union[SecretRequest, Mapping[str, Any]]) -> SecretResult:
        if not isinstance(request, SecretRequest):
            request = SecretRequest.model_validate(dict(request))
        return fetch_secret(self._handle, request)

    def close(self) -> None:
        self._handle.close()


def lookup_payload(result: SecretResult) -> Dict[str, str]:
    return {"value": result.value.reveal(), "id": result.identifier}


def provider_schema() -> Dict[str, Any]:
    return {
        "provider": ProviderSettings.model_json_schema(),
        "data_sources": {
            SECRET_DATA_SOURCE: {
                "arguments": SecretLookupRequest.model_json_schema(),
                "attributes": SecretLookupResponse.model_json_schema(),
                "sensitive": ["value"],
            },
        },
    }


def session_options(app_config: Any) -> Dict[str, Any]:
    return {
        "timeout": app_config.CONJUR_HTTP_TIMEOUT,
        "role_session_name": app_config.AWS_ROLE_SESSION_NAME,
    }


def build_secret_provider(app_config: Any) -> SecretsProvider:
    return SecretsProvider.configure(
        app_config.provider_settings(),
        **session_options(app_config),
    )


class ProviderHolder:
    """The provider produced by the most recent successful configuration."""

    def __init__(self) -> None:
        self._provider: Optional[SecretsProvider] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self._provider is not None

    def get(self) -> SecretsProvider:
        provider = self._provider
        if provider is None:
            raise ProviderNotConfiguredError("Secret provider has not been configured")
        return provider

    def replace(self, provider: SecretsProvider) -> None:
        # The previous handle is left open; in-flight lookups may still hold it.
        with self._lock:
            self._provider = provider
        logger.info("Secret provider configured via %s", provider.handle.strategy_kind)

    def clear(self) -> None:
        with self._lock:
            self._provider = None
