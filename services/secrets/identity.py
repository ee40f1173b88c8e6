"""
Content-addressed identifiers for fetched secrets.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
from typing import Union

from models.secrets.lookups import SensitiveValue


def digest(value: Union[bytes, bytearray, str, SensitiveValue]) -> str:
    if isinstance(value, SensitiveValue):
        payload = value.reveal_bytes()
    elif isinstance(value, str):
        payload = value.encode("utf-8")
    elif isinstance(value, (bytes, bytearray)):
        payload = bytes(value)
    else:
        raise TypeError(f"Cannot digest value of type {type(value).__name__}")
    return hashlib.sha256(payload).hexdigest()
