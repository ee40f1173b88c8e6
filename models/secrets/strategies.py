"""
Module defines the authentication strategy variants the credential resolver can select. Exactly one variant is active per resolution, discriminated by its `kind` tag.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .config import (
    DESC_AWS_ACCOUNT,
    DESC_API_KEY,
    DESC_AUTHN_IAM_SERVICE_ID,
    DESC_AWS_IAM_ROLE,
    DESC_AWS_REGION,
    DESC_LOGIN,
)

DESC_STRATEGY_KIND = "Authentication strategy tag"


class StaticKey(BaseModel):
    kind: Literal["static_key"] = Field("static_key", description=DESC_STRATEGY_KIND)
    login: str = Field(..., min_length=1, description=DESC_LOGIN)
    api_key: SecretStr = Field(..., description=DESC_API_KEY)
    model_config = ConfigDict(frozen=True)


class CloudIAM(BaseModel):
    kind: Literal["cloud_iam"] = Field("cloud_iam", description=DESC_STRATEGY_KIND)
    login: str = Field(..., min_length=1, description=DESC_LOGIN)
    iam_role: str = Field(..., min_length=1, description=DESC_AWS_IAM_ROLE)
    account: str = Field(..., min_length=1, description=DESC_AWS_ACCOUNT)
    service_id: str = Field(..., min_length=1, description=DESC_AUTHN_IAM_SERVICE_ID)
    region: str = Field(..., min_length=1, description=DESC_AWS_REGION)
    model_config = ConfigDict(frozen=True)


class Ambient(BaseModel):
    kind: Literal["ambient"] = Field("ambient", description=DESC_STRATEGY_KIND)
    model_config = ConfigDict(frozen=True)


AuthStrategy = Annotated[Union[StaticKey, CloudIAM, Ambient], Field(discriminator="kind")]
