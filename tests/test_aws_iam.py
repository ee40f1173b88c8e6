"""
Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from tests._env import ensure_test_env

ensure_test_env()

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from services.secrets.aws_iam import (
    IAMFailure,
    IAMSigningError,
    role_arn,
    signed_identity_headers,
    sts_endpoint,
)


class DummySTS:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def assume_role(self, RoleArn, RoleSessionName):
        self.calls.append((RoleArn, RoleSessionName))
        if self.error is not None:
            raise self.error
        return {
            "Credentials": {
                "AccessKeyId": "AKIDEXAMPLE",
                "SecretAccessKey": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
                "SessionToken": "session-token",
            }
        }


class DummySession:
    def __init__(self, sts):
        self.sts = sts
        self.regions = []

    def client(self, service, region_name=None):
        assert service == "sts"
        self.regions.append(region_name)
        return self.sts


def test_role_arn_builds_or_passes_through():
    assert role_arn("reader", "123456789012") == "arn:aws:iam::123456789012:role/reader"
    arn = "arn:aws:iam::123456789012:role/path/reader"
    assert role_arn(arn, "999") == arn


def test_sts_endpoint_is_regional_except_us_east_1():
    assert sts_endpoint("us-east-1") == "https://sts.amazonaws.com"
    assert sts_endpoint("eu-west-1") == "https://sts.eu-west-1.amazonaws.com"


def test_signed_headers_come_from_assumed_role():
    sts = DummySTS()
    session = DummySession(sts)

    headers = signed_identity_headers("reader", "123456789012", "eu-west-1", session=session, role_session_name="bridge")

    assert sts.calls == [("arn:aws:iam::123456789012:role/reader", "bridge")]
    assert session.regions == ["eu-west-1"]
    assert headers["host"] == "sts.eu-west-1.amazonaws.com"
    assert headers["authorization"].startswith("AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/")
    assert "/eu-west-1/sts/aws4_request" in headers["authorization"]
    assert headers["x-amz-security-token"] == "session-token"
    assert "x-amz-date" in headers
    assert "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY" not in "".join(headers.values())


def _client_error(code, status):
    return ClientError(
        {"Error": {"Code": code, "Message": "msg"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "AssumeRole",
    )


@pytest.mark.parametrize(
    "error, reason",
    [
        (NoCredentialsError(), IAMFailure.CREDENTIALS),
        (EndpointConnectionError(endpoint_url="https://sts.eu-west-1.amazonaws.com"), IAMFailure.NETWORK),
        (_client_error("AccessDenied", 403), IAMFailure.DENIED),
        (_client_error("ServiceUnavailable", 503), IAMFailure.NETWORK),
    ],
)
def test_assume_role_failures_are_classified(error, reason):
    session = DummySession(DummySTS(error=error))
    with pytest.raises(IAMSigningError) as excinfo:
        signed_identity_headers("reader", "123456789012", "eu-west-1", session=session)
    assert excinfo.value.reason is reason
