"""
Module defines the per-lookup data structures: the secret request, the sensitive value wrapper that refuses to render or serialize its payload, the fetch result pairing a value with its content identifier, and the response shape returned at the HTTP boundary.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import hmac
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

LATEST_VERSION = "latest"
MASK = "**********"

DESC_SECRET_NAME = "name (path) of the secret"
DESC_SECRET_VERSION = "version of the secret"
DESC_SECRET_VALUE = "value of the secret"
DESC_SECRET_ID = "SHA-256 hex digest of the secret value"


class SensitiveValue:
    """Raw secret payload that only leaves this wrapper through an explicit reveal call.

    Formatting renders a fixed mask, pickling raises and pydantic refuses to
    serialize it, so a value handed to a logger or an encoder by mistake does
    not leak.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: Union[bytes, bytearray, str]) -> None:
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        if not isinstance(raw, (bytes, bytearray)):
            raise TypeError("SensitiveValue wraps bytes or str only")
        object.__setattr__(self, "_raw", bytes(raw))

    def reveal(self) -> str:
        return self._raw.decode("utf-8", errors="replace")

    def reveal_bytes(self) -> bytes:
        return self._raw

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("SensitiveValue is immutable")

    def __repr__(self) -> str:
        return f"SensitiveValue('{MASK}')"

    def __str__(self) -> str:
        return MASK

    def __format__(self, format_spec: str) -> str:
        return format(MASK, format_spec)

    def __bool__(self) -> bool:
        return bool(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SensitiveValue):
            return NotImplemented
        return hmac.compare_digest(self._raw, other._raw)

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self):
        raise TypeError("SensitiveValue cannot be pickled")

    def __copy__(self) -> "SensitiveValue":
        return self

    def __deepcopy__(self, memo: dict) -> "SensitiveValue":
        return self


def normalize_version(value: Any) -> str:
    if value is None:
        return LATEST_VERSION
    text = str(value).strip()
    if not text or text.lower() == LATEST_VERSION:
        return LATEST_VERSION
    if not text.isdigit() or int(text) < 1:
        raise ValueError("version must be 'latest' or a positive integer")
    return str(int(text))


class SecretRequest(BaseModel):
    name: str = Field(..., min_length=1, description=DESC_SECRET_NAME)
    version: str = Field(LATEST_VERSION, description=DESC_SECRET_VERSION)
    model_config = ConfigDict(frozen=True)

    @field_validator("version", mode="before")
    @classmethod
    def _normalize_version(cls, value: Any) -> str:
        return normalize_version(value)

    @property
    def is_latest(self) -> bool:
        return self.version == LATEST_VERSION


class SecretResult(BaseModel):
    value: SensitiveValue = Field(..., description=DESC_SECRET_VALUE)
    identifier: str = Field(..., min_length=64, max_length=64, description=DESC_SECRET_ID)
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class SecretLookupRequest(BaseModel):
    name: str = Field(..., min_length=1, description=DESC_SECRET_NAME)
    version: str = Field(LATEST_VERSION, description=DESC_SECRET_VERSION)

    @field_validator("version", mode="before")
    @classmethod
    def _normalize_version(cls, value: Any) -> str:
        return normalize_version(value)


class SecretLookupResponse(BaseModel):
    id: str = Field(..., description=DESC_SECRET_ID)
    value: str = Field(..., description=DESC_SECRET_VALUE)
