"""
Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from tests._env import ensure_test_env

ensure_test_env()

import base64
import json

import httpx
import pytest
from pydantic import SecretStr

from services.secrets import conjur_client
from services.secrets.conjur_client import (
    ApiKeyAuthenticator,
    ConjurAPIError,
    ConjurClient,
    ConjurClientError,
    IAMAuthenticator,
    TokenAuthenticator,
    encode_token,
    parse_variable_id,
)

BASE = "https://conjur.example.com"
RAW_TOKEN = b'{"protected":"p","payload":"x","signature":"s"}'
ENCODED = base64.b64encode(RAW_TOKEN).decode("ascii")


class Recorder:
    def __init__(self, secrets=None):
        self.requests = []
        self.auth_calls = 0
        self.secrets = secrets or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/authenticate"):
            self.auth_calls += 1
            return httpx.Response(200, content=RAW_TOKEN)
        key = request.url.path
        if key in self.secrets:
            return httpx.Response(200, content=self.secrets[key])
        return httpx.Response(404, json={"error": {"code": "not_found", "message": "Variable not found"}})


def _client(recorder, authenticator=None):
    return ConjurClient(
        BASE,
        "acme",
        authenticator or ApiKeyAuthenticator("host/app", SecretStr("api-key")),
        transport=httpx.MockTransport(recorder),
    )


def test_encode_token_base64_encodes_raw_json():
    assert encode_token(RAW_TOKEN) == ENCODED
    assert encode_token(ENCODED) == ENCODED
    with pytest.raises(ConjurClientError):
        encode_token(b"  ")


def test_parse_variable_id_variants():
    assert parse_variable_id("db/password", "acme") == ("acme", "db/password")
    assert parse_variable_id("variable:db/password", "acme") == ("acme", "db/password")
    assert parse_variable_id("other:variable:db/password", "acme") == ("other", "db/password")


def test_api_key_authentication_posts_key_as_body():
    recorder = Recorder()
    client = _client(recorder)
    client.authenticate()

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.raw_path == b"/authn/acme/host%2Fapp/authenticate"
    assert request.content == b"api-key"


def test_retrieve_secret_sends_token_and_version():
    recorder = Recorder(secrets={"/secrets/acme/variable/db/password": b"s3cr3t"})
    client = _client(recorder)

    assert client.retrieve_secret("db/password", version="2") == b"s3cr3t"

    fetch = recorder.requests[-1]
    assert fetch.url.raw_path.startswith(b"/secrets/acme/variable/db%2Fpassword")
    assert fetch.url.params["version"] == "2"
    assert fetch.headers["Authorization"] == f'Token token="{ENCODED}"'


def test_retrieve_latest_omits_version_param():
    recorder = Recorder(secrets={"/secrets/acme/variable/db/password": b"v"})
    client = _client(recorder)
    client.retrieve_secret("db/password")
    assert "version" not in recorder.requests[-1].url.params


def test_token_is_reused_until_refresh_window(monkeypatch):
    recorder = Recorder(secrets={"/secrets/acme/variable/a": b"1"})
    client = _client(recorder)
    now = [1000.0]
    monkeypatch.setattr(conjur_client.time, "monotonic", lambda: now[0])

    client.retrieve_secret("a")
    client.retrieve_secret("a")
    assert recorder.auth_calls == 1

    now[0] += conjur_client.TOKEN_REFRESH_SECONDS + 1
    client.retrieve_secret("a")
    assert recorder.auth_calls == 2


def test_error_message_comes_from_conjur_body():
    client = _client(Recorder())
    with pytest.raises(ConjurAPIError) as excinfo:
        client.retrieve_secret("missing")
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Variable not found"


def test_iam_authenticator_posts_signed_headers():
    recorder = Recorder()
    signed = {"host": "sts.amazonaws.com", "authorization": "AWS4-HMAC-SHA256 ..."}
    client = _client(recorder, IAMAuthenticator("host/app", "prod", lambda: signed))
    client.authenticate()

    request = recorder.requests[0]
    assert request.url.raw_path == b"/authn-iam/prod/acme/host%2Fapp/authenticate"
    assert json.loads(request.content) == signed


def test_token_authenticator_rereads_token_file(tmp_path):
    token_file = tmp_path / "token"
    token_file.write_bytes(RAW_TOKEN)
    authenticator = TokenAuthenticator(token_file=str(token_file))
    assert authenticator.fetch_token(None, BASE, "acme") == ENCODED

    token_file.write_text("already-encoded")
    assert authenticator.fetch_token(None, BASE, "acme") == "already-encoded"


def test_token_authenticator_requires_a_source(tmp_path):
    with pytest.raises(ConjurClientError):
        TokenAuthenticator()
    missing = TokenAuthenticator(token_file=str(tmp_path / "missing"))
    with pytest.raises(ConjurClientError):
        missing.fetch_token(None, BASE, "acme")


@pytest.mark.parametrize("body", [b"<html>login page</html>", "<html>café</html>".encode("utf-8"), b"[]", b"{}"])
def test_authn_response_must_be_a_json_token(body):
    client = _client(lambda request: httpx.Response(200, content=body))
    with pytest.raises(ConjurClientError):
        client.authenticate()
    client.close()


def test_non_ascii_pre_issued_token_is_rejected():
    with pytest.raises(ConjurClientError):
        encode_token("tökén")
