"""
Error taxonomy for the secret bridge. Every error carries a human readable message and a machine distinguishable kind, and none of them ever holds a secret value: configuration loading failures, authentication failures split by cause (invalid configuration, rejected credentials, network unavailable) and per lookup fetch failures (not found, access denied, transient).

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum


class AuthErrorKind(str, Enum):
    INVALID_CONFIG = "invalid_config"
    REJECTED_CREDENTIALS = "rejected_credentials"
    NETWORK_UNAVAILABLE = "network_unavailable"


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    TRANSIENT = "transient"


class SecretBridgeError(Exception):
    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigLoadError(SecretBridgeError):
    kind = "config_load"


class ProviderNotConfiguredError(SecretBridgeError):
    kind = "not_configured"


class AuthError(SecretBridgeError):
    def __init__(self, kind: AuthErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = AuthErrorKind(kind)

    def __repr__(self) -> str:
        return f"AuthError(kind={self.kind.value!r}, message={self.message!r})"


class FetchError(SecretBridgeError):
    def __init__(self, kind: FetchErrorKind, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.kind = FetchErrorKind(kind)
        self.name = name

    def __repr__(self) -> str:
        return f"FetchError(kind={self.kind.value!r}, name={self.name!r})"
