"""
Utilities for checking and normalizing Conjur appliance URLs, including validation that the URL has an http(s) scheme and a host, stripping of trailing slashes, and the `/api` suffix required by Conjur Cloud tenants.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from urllib.parse import urlparse

_ALLOWED_SCHEMES = frozenset({"http", "https"})
_MAX_URL_LENGTH = 2048
_CONJUR_CLOUD_SUFFIX = ".secretsmgr.cyberark.cloud"


def is_http_url(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False

    if len(value) > _MAX_URL_LENGTH:
        return False

    try:
        parsed = urlparse(value.strip())
        port = parsed.port
    except ValueError:
        return False

    if parsed.scheme not in _ALLOWED_SCHEMES:
        return False

    if not parsed.hostname:
        return False

    if port is not None and not 0 < port < 65536:
        return False

    return True


def is_conjur_cloud(value: str) -> bool:
    hostname = urlparse(value).hostname or ""
    return hostname.endswith(_CONJUR_CLOUD_SUFFIX)


def normalize_appliance_url(value: str | None) -> str:
    if not is_http_url(value):
        raise ValueError("appliance URL must be an http(s) URL with a host")

    url = value.strip().rstrip("/")
    if is_conjur_cloud(url) and not url.endswith("/api"):
        url = f"{url}/api"
    return url
