"""
Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import json
import unittest

from tests._env import ensure_test_env

ensure_test_env()

from starlette.requests import Request

from middleware.error_handlers import secret_bridge_exception_handler, status_for_error
from services.secrets.errors import (
    AuthError,
    AuthErrorKind,
    ConfigLoadError,
    FetchError,
    FetchErrorKind,
    ProviderNotConfiguredError,
)


def _request():
    return Request({"type": "http", "method": "POST", "path": "/internal/v1/secrets/lookup", "headers": []})


class ErrorHandlerTests(unittest.TestCase):
    def test_auth_kinds_map_to_statuses(self):
        self.assertEqual(status_for_error(AuthError(AuthErrorKind.INVALID_CONFIG, "x")), 400)
        self.assertEqual(status_for_error(AuthError(AuthErrorKind.REJECTED_CREDENTIALS, "x")), 401)
        self.assertEqual(status_for_error(AuthError(AuthErrorKind.NETWORK_UNAVAILABLE, "x")), 503)

    def test_fetch_kinds_map_to_statuses(self):
        self.assertEqual(status_for_error(FetchError(FetchErrorKind.NOT_FOUND, "x")), 404)
        self.assertEqual(status_for_error(FetchError(FetchErrorKind.ACCESS_DENIED, "x")), 403)
        self.assertEqual(status_for_error(FetchError(FetchErrorKind.TRANSIENT, "x")), 502)

    def test_config_load_error_is_bad_request(self):
        self.assertEqual(status_for_error(ConfigLoadError("bad yaml")), 400)

    def test_unconfigured_provider_is_unavailable(self):
        exc = ProviderNotConfiguredError("Secret provider has not been configured")
        self.assertEqual(status_for_error(exc), 503)
        response = secret_bridge_exception_handler(_request(), exc)
        self.assertEqual(json.loads(response.body)["kind"], "not_configured")

    def test_handler_body_carries_message_and_kind(self):
        exc = FetchError(FetchErrorKind.NOT_FOUND, "Unable to retrieve secret 'db/x'", name="db/x")
        response = secret_bridge_exception_handler(_request(), exc)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            json.loads(response.body),
            {"detail": "Unable to retrieve secret 'db/x'", "kind": "not_found"},
        )

    def test_error_repr_keeps_kind(self):
        self.assertEqual(
            repr(AuthError(AuthErrorKind.REJECTED_CREDENTIALS, "denied")),
            "AuthError(kind='rejected_credentials', message='denied')",
        )
        self.assertEqual(str(ConfigLoadError("bad yaml")), "bad yaml")


if __name__ == "__main__":
    unittest.main()
