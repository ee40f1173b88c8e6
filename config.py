"""
Configuration management for the secret bridge service, loading settings from environment variables with support for defaults, type conversion, and validation. This module defines a `Config` class that encapsulates the server settings, request protection limits, the inbound service token, Conjur client tuning, and the explicit provider fields (BRIDGE_PROVIDER_*) that override ambient CONJUR_* settings when the provider is configured at startup.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import logging
import os
from typing import Optional

from models.secrets.config import ProviderSettings

logger = logging.getLogger(__name__)

PROVIDER_ENV_PREFIX = "BRIDGE_PROVIDER_"


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _env_name() -> str:
    return (os.getenv("APP_ENV") or os.getenv("ENVIRONMENT") or "development").strip().lower()


def _is_production_env() -> bool:
    return _env_name() in {"prod", "production"}


class Config:
    def __init__(self) -> None:
        self.APP_ENV: str = _env_name()
        self.IS_PRODUCTION: bool = _is_production_env()

        # Server configuration
        self.HOST: str = os.getenv("HOST", "127.0.0.1")
        self.PORT: int = int(os.getenv("PORT", "4329"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
        self.ENABLE_API_DOCS: bool = _to_bool(os.getenv("ENABLE_API_DOCS"), default=not self.IS_PRODUCTION)

        # Request protection / backpressure
        self.MAX_REQUEST_BYTES: int = int(os.getenv("MAX_REQUEST_BYTES", "65536"))
        self.MAX_CONCURRENT_REQUESTS: int = int(os.getenv("MAX_CONCURRENT_REQUESTS", "100"))
        self.CONCURRENCY_ACQUIRE_TIMEOUT: float = float(os.getenv("CONCURRENCY_ACQUIRE_TIMEOUT", "1.0"))

        # Shared secret expected from callers in the X-Service-Token header
        self.BRIDGE_EXPECTED_SERVICE_TOKEN: Optional[str] = os.getenv("BRIDGE_EXPECTED_SERVICE_TOKEN")

        # Conjur client tuning
        self.CONJUR_HTTP_TIMEOUT: float = float(os.getenv("CONJUR_HTTP_TIMEOUT", "10.0"))
        self.AWS_ROLE_SESSION_NAME: str = os.getenv("AWS_ROLE_SESSION_NAME", "conjur-secret-bridge")

        # Configure the provider from BRIDGE_PROVIDER_* and CONJUR_* at startup
        self.BRIDGE_CONFIGURE_ON_STARTUP: bool = _to_bool(os.getenv("BRIDGE_CONFIGURE_ON_STARTUP"), default=False)
        self.BRIDGE_FAIL_ON_STARTUP_ERROR: bool = _to_bool(
            os.getenv("BRIDGE_FAIL_ON_STARTUP_ERROR"),
            default=self.IS_PRODUCTION,
        )

        self.validate()

    def provider_settings(self) -> ProviderSettings:
        values = {}
        for name in ProviderSettings.model_fields:
            raw = os.getenv(f"{PROVIDER_ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw
        return ProviderSettings(**values)

    def validate(self) -> None:
        if self.CONJUR_HTTP_TIMEOUT <= 0:
            raise ValueError("CONJUR_HTTP_TIMEOUT must be positive")

        if self.MAX_REQUEST_BYTES <= 0 or self.MAX_CONCURRENT_REQUESTS <= 0:
            raise ValueError("MAX_REQUEST_BYTES and MAX_CONCURRENT_REQUESTS must be positive")

        if self.CONCURRENCY_ACQUIRE_TIMEOUT <= 0:
            raise ValueError("CONCURRENCY_ACQUIRE_TIMEOUT must be positive")

        if self.IS_PRODUCTION and not self.BRIDGE_EXPECTED_SERVICE_TOKEN:
            raise ValueError("BRIDGE_EXPECTED_SERVICE_TOKEN must be configured in production")

        if not self.BRIDGE_EXPECTED_SERVICE_TOKEN:
            logger.warning("BRIDGE_EXPECTED_SERVICE_TOKEN is not set; internal endpoints will refuse every request")


config = Config()
