"""
Module defines Pydantic models for vault connection and credential inputs: the effective connection configuration, the raw user supplied credential fields, the ambient credentials found in the process environment and the flat provider-level settings mapping handed over by the declarative tool.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DESC_APPLIANCE_URL = "Conjur endpoint URL"
DESC_ACCOUNT = "Conjur account"
DESC_LOGIN = "Conjur login"
DESC_API_KEY = "Conjur API key"
DESC_AWS_IAM_ROLE = "AWS IAM role"
DESC_AWS_ACCOUNT = "AWS account"
DESC_AUTHN_IAM_SERVICE_ID = "Conjur service ID for authenticating to AWS"
DESC_AWS_REGION = "AWS region"
DESC_SSL_CERT = "Content of Conjur public SSL certificate"
DESC_SSL_CERT_PATH = "Path to Conjur public SSL certificate"
DESC_NETRC_PATH = "Path to a netrc file holding Conjur login/API key pairs"
DESC_AUTHN_TOKEN = "Pre-issued Conjur access token"
DESC_AUTHN_TOKEN_FILE = "Path to a file holding a Conjur access token"

CONNECTION_FIELDS = ("appliance_url", "account", "ssl_cert", "ssl_cert_path")


class _StringFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Unset keys arrive as null from JSON and schema layers; treat them as empty.
    @field_validator("*", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class EffectiveConfig(_StringFields):
    appliance_url: str = Field("", description=DESC_APPLIANCE_URL)
    account: str = Field("", description=DESC_ACCOUNT)
    ssl_cert: str = Field("", description=DESC_SSL_CERT)
    ssl_cert_path: str = Field("", description=DESC_SSL_CERT_PATH)
    netrc_path: str = Field("", description=DESC_NETRC_PATH)


class CredentialInput(_StringFields):
    login: str = Field("", description=DESC_LOGIN)
    api_key: SecretStr = Field(SecretStr(""), description=DESC_API_KEY)
    aws_iam_role: str = Field("", description=DESC_AWS_IAM_ROLE)
    aws_account: str = Field("", description=DESC_AWS_ACCOUNT)
    authn_iam_service_id: str = Field("", description=DESC_AUTHN_IAM_SERVICE_ID)
    aws_region: str = Field("", description=DESC_AWS_REGION)


class AmbientCredentials(_StringFields):
    login: str = Field("", description=DESC_LOGIN)
    api_key: SecretStr = Field(SecretStr(""), description=DESC_API_KEY)
    token: SecretStr = Field(SecretStr(""), description=DESC_AUTHN_TOKEN)
    token_file: str = Field("", description=DESC_AUTHN_TOKEN_FILE)


class ProviderSettings(_StringFields):
    """Provider-level keys exactly as the declarative tool supplies them."""

    appliance_url: str = Field("", description=DESC_APPLIANCE_URL)
    account: str = Field("", description=DESC_ACCOUNT)
    login: str = Field("", description=DESC_LOGIN)
    api_key: SecretStr = Field(SecretStr(""), description=DESC_API_KEY)
    aws_iam_role: str = Field("", description=DESC_AWS_IAM_ROLE)
    aws_account: str = Field("", description=DESC_AWS_ACCOUNT)
    authn_iam_service_id: str = Field("", description=DESC_AUTHN_IAM_SERVICE_ID)
    aws_region: str = Field("", description=DESC_AWS_REGION)
    ssl_cert: str = Field("", description=DESC_SSL_CERT)
    ssl_cert_path: str = Field("", description=DESC_SSL_CERT_PATH)
    model_config = ConfigDict(frozen=True, extra="forbid")

    def credentials(self) -> CredentialInput:
        return CredentialInput(
            login=self.login,
            api_key=self.api_key,
            aws_iam_role=self.aws_iam_role,
            aws_account=self.aws_account,
            authn_iam_service_id=self.authn_iam_service_id,
            aws_region=self.aws_region,
        )

    def connection_overrides(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in CONNECTION_FIELDS}
