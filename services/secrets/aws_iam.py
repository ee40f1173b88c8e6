"""
AWS identity proof for Conjur's authn-iam authenticator. The configured role is assumed through STS, and the resulting temporary credentials sign an STS GetCallerIdentity request with SigV4. Conjur replays the signed headers against STS to learn which AWS identity is calling, so only the headers are returned and posted to Conjur; no AWS secret material leaves this module.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
import logging
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import boto3
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

logger = logging.getLogger(__name__)

CALLER_IDENTITY_QUERY = "Action=GetCallerIdentity&Version=2011-06-15"
DEFAULT_ROLE_SESSION_NAME = "conjur-secret-bridge"
_EMPTY_PAYLOAD_SHA256 = hashlib.sha256(b"").hexdigest()


class IAMFailure(str, Enum):
    CREDENTIALS = "credentials"
    DENIED = "denied"
    NETWORK = "network"


class IAMSigningError(Exception):
    def __init__(self, message: str, reason: IAMFailure) -> None:
        super().__init__(message)
        self.reason = IAMFailure(reason)


def sts_endpoint(region: str) -> str:
    if region == "us-east-1":
        return "https://sts.amazonaws.com"
    return f"https://sts.{region}.amazonaws.com"


def role_arn(role: str, account: str) -> str:
    if role.startswith("arn:"):
        return role
    return f"arn:aws:iam::{account}:role/{role}"


def _assume_role(session: Any, arn: str, region: str, role_session_name: str) -> Credentials:
    try:
        sts = session.client("sts", region_name=region)
        response = sts.assume_role(RoleArn=arn, RoleSessionName=role_session_name)
    except NoCredentialsError as exc:
        raise IAMSigningError("No AWS credentials available to assume the IAM role", IAMFailure.CREDENTIALS) from exc
    except (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError) as exc:
        raise IAMSigningError("AWS STS endpoint is unreachable", IAMFailure.NETWORK) from exc
    except ClientError as exc:
        error = exc.response.get("Error", {}) if isinstance(exc.response, dict) else {}
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) if isinstance(exc.response, dict) else 0
        code = error.get("Code") or "Unknown"
        reason = IAMFailure.NETWORK if status >= 500 else IAMFailure.DENIED
        raise IAMSigningError(f"AWS STS refused AssumeRole for {arn} ({code})", reason) from exc
    except BotoCoreError as exc:
        raise IAMSigningError("AWS SDK could not assume the IAM role", IAMFailure.CREDENTIALS) from exc

    creds = response["Credentials"]
    return Credentials(
        access_key=creds["AccessKeyId"],
        secret_key=creds["SecretAccessKey"],
        token=creds.get("SessionToken"),
    )


def signed_identity_headers(
    role: str,
    account: str,
    region: str,
    *,
    session: Optional[Any] = None,
    role_session_name: str = DEFAULT_ROLE_SESSION_NAME,
) -> Dict[str, str]:
    arn = role_arn(role, account)
    session = session or boto3.session.Session(region_name=region)
    credentials = _assume_role(session, arn, region, role_session_name)
    logger.debug("Assumed IAM role %s for Conjur authn-iam", arn)

    url = f"{sts_endpoint(region)}/?{CALLER_IDENTITY_QUERY}"
    request = AWSRequest(
        method="GET",
        url=url,
        headers={"x-amz-content-sha256": _EMPTY_PAYLOAD_SHA256},
    )
    SigV4Auth(credentials, "sts", region).add_auth(request)

    headers = {key.lower(): value for key, value in request.headers.items()}
    headers.setdefault("host", urlparse(url).netloc)
    return headers
