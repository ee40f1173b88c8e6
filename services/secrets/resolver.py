"""
Credential resolver that selects exactly one authentication strategy from the raw credential fields. Rules are evaluated in order and the first complete match wins: a login/API key pair, then the full set of AWS IAM parameters, and finally the ambient environment. Incomplete inputs never raise here; they fall through to the ambient strategy and any failure surfaces when the session is built.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from models.secrets.config import CredentialInput
from models.secrets.strategies import Ambient, AuthStrategy, CloudIAM, StaticKey

logger = logging.getLogger(__name__)

Rule = Callable[[CredentialInput], Optional[AuthStrategy]]


def _static_key(creds: CredentialInput) -> Optional[StaticKey]:
    if creds.login and creds.api_key.get_secret_value():
        return StaticKey(login=creds.login, api_key=creds.api_key)
    return None


def _cloud_iam(creds: CredentialInput) -> Optional[CloudIAM]:
    required = (
        creds.login,
        creds.aws_iam_role,
        creds.aws_account,
        creds.authn_iam_service_id,
        creds.aws_region,
    )
    if not all(required):
        return None
    return CloudIAM(
        login=creds.login,
        iam_role=creds.aws_iam_role,
        account=creds.aws_account,
        service_id=creds.authn_iam_service_id,
        region=creds.aws_region,
    )


RULES: Tuple[Tuple[str, Rule], ...] = (
    ("static_key", _static_key),
    ("cloud_iam", _cloud_iam),
)


def resolve_strategy(creds: CredentialInput) -> AuthStrategy:
    for name, rule in RULES:
        strategy = rule(creds)
        if strategy is not None:
            logger.debug("Resolved authentication strategy %s", name)
            return strategy

    logger.debug("No explicit credentials matched; deferring to ambient environment")
    return Ambient()
