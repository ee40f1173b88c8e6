"""
Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT in sys.path:
    sys.path.remove(ROOT)
sys.path.insert(0, ROOT)

import pytest

_AMBIENT_VARS = (
    "CONJURRC",
    "CONJUR_APPLIANCE_URL",
    "CONJUR_ACCOUNT",
    "CONJUR_CERT_FILE",
    "CONJUR_SSL_CERTIFICATE",
    "CONJUR_NETRC_PATH",
    "CONJUR_AUTHN_LOGIN",
    "CONJUR_AUTHN_API_KEY",
    "CONJUR_AUTHN_TOKEN",
    "CONJUR_AUTHN_TOKEN_FILE",
)


@pytest.fixture(autouse=True)
def isolated_conjur_environment(monkeypatch):
    for name in _AMBIENT_VARS:
        monkeypatch.delenv(name, raising=False)
