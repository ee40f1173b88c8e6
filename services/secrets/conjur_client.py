"""
Minimal Conjur REST client used as the vault collaborator. It exchanges credentials for a short-lived access token through one of three authenticators (login/API key, AWS IAM via authn-iam, or a pre-issued token), refreshes that token under a lock before it expires, and retrieves variable values by id with optional version selection. Errors are raised as ConjurAPIError carrying the HTTP status and Conjur's error message, never a response payload.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import base64
import json
import logging
import ssl
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Tuple, Union
from urllib.parse import quote

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)

# Conjur access tokens live for 8 minutes.
TOKEN_REFRESH_SECONDS = 5 * 60

VerifyTypes = Union[bool, str, ssl.SSLContext]


class ConjurClientError(Exception):
    pass


class ConjurAPIError(ConjurClientError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Conjur API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _path(value: str) -> str:
    return quote(value, safe="")


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    message = response.reason_phrase or "request failed"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = str(body["error"].get("message") or message)
    raise ConjurAPIError(response.status_code, message)


def encode_token(raw: Union[bytes, str]) -> str:
    """Return the base64 form Conjur expects in the Authorization header."""
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    raw = raw.strip()
    if not raw:
        raise ConjurClientError("Conjur returned an empty access token")
    if raw.startswith(b"{"):
        return base64.b64encode(raw).decode("ascii")
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise ConjurClientError("Conjur access token is not valid base64 text") from exc


def token_from_authn_response(response: httpx.Response) -> str:
    """Encode the raw JSON token an authn endpoint returns; anything else is rejected."""
    try:
        parsed = json.loads(response.content)
    except ValueError as exc:
        raise ConjurClientError("Conjur authenticator did not return a JSON access token") from exc
    if not isinstance(parsed, dict) or not parsed:
        raise ConjurClientError("Conjur authenticator did not return a JSON access token")
    return encode_token(response.content)


class Authenticator(Protocol):
    name: str

    def fetch_token(self, http: httpx.Client, appliance_url: str, account: str) -> str: ...


class ApiKeyAuthenticator:
    name = "authn"

    def __init__(self, login: str, api_key: SecretStr) -> None:
        self.login = login
        self._api_key = api_key

    def fetch_token(self, http: httpx.Client, appliance_url: str, account: str) -> str:
        url = f"{appliance_url}/authn/{_path(account)}/{_path(self.login)}/authenticate"
        response = http.post(
            url,
            content=self._api_key.get_secret_value().encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        _raise_for_status(response)
        return token_from_authn_response(response)


class IAMAuthenticator:
    name = "authn-iam"

    def __init__(self, login: str, service_id: str, signer: Callable[[], Dict[str, str]]) -> None:
        self.login = login
        self.service_id = service_id
        self._signer = signer

    def fetch_token(self, http: httpx.Client, appliance_url: str, account: str) -> str:
        url = (
            f"{appliance_url}/authn-iam/{_path(self.service_id)}/"
            f"{_path(account)}/{_path(self.login)}/authenticate"
        )
        signed_headers = self._signer()
        response = http.post(
            url,
            content=json.dumps(signed_headers).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        _raise_for_status(response)
        return token_from_authn_response(response)


class TokenAuthenticator:
    """Uses a token issued out of band, re-reading the token file on every refresh."""

    name = "token"

    def __init__(self, token: Optional[SecretStr] = None, token_file: Optional[str] = None) -> None:
        if not token_file and not (token and token.get_secret_value()):
            raise ConjurClientError("TokenAuthenticator needs a token or a token file")
        self._token = token
        self.token_file = token_file

    def fetch_token(self, http: httpx.Client, appliance_url: str, account: str) -> str:
        if self.token_file:
            try:
                raw = Path(self.token_file).read_bytes()
            except OSError as exc:
                raise ConjurClientError(f"Unable to read Conjur access token file {self.token_file}") from exc
            return encode_token(raw)
        return encode_token(self._token.get_secret_value())


def parse_variable_id(variable_id: str, default_account: str) -> Tuple[str, str]:
    """Split an optionally qualified id ('account:variable:path' or 'variable:path')."""
    parts = variable_id.split(":", 2)
    if len(parts) == 3 and parts[1] == "variable" and parts[0] and parts[2]:
        return parts[0], parts[2]
    if len(parts) >= 2 and parts[0] == "variable":
        return default_account, variable_id.split(":", 1)[1]
    return default_account, variable_id


class ConjurClient:
    def __init__(
        self,
        appliance_url: str,
        account: str,
        authenticator: Authenticator,
        *,
        verify: VerifyTypes = True,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.appliance_url = appliance_url.rstrip("/")
        self.account = account
        self._authenticator = authenticator
        self._http = httpx.Client(timeout=httpx.Timeout(timeout), verify=verify, transport=transport)
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._token_issued_at = 0.0

    @property
    def authenticator_name(self) -> str:
        return self._authenticator.name

    def authenticate(self) -> None:
        with self._lock:
            self._refresh_locked()

    def _refresh_locked(self) -> None:
        self._token = self._authenticator.fetch_token(self._http, self.appliance_url, self.account)
        self._token_issued_at = time.monotonic()
        logger.debug("Obtained Conjur access token via %s", self._authenticator.name)

    def _authorization(self) -> str:
        with self._lock:
            expired = time.monotonic() - self._token_issued_at > TOKEN_REFRESH_SECONDS
            if self._token is None or expired:
                self._refresh_locked()
            return f'Token token="{self._token}"'

    def retrieve_secret(self, variable_id: str, version: Optional[str] = None) -> bytes:
        account, identifier = parse_variable_id(variable_id, self.account)
        url = f"{self.appliance_url}/secrets/{_path(account)}/variable/{_path(identifier)}"
        params = {"version": version} if version else None
        response = self._http.get(url, params=params, headers={"Authorization": self._authorization()})
        _raise_for_status(response)
        return response.content

    def close(self) -> None:
        self._http.close()
