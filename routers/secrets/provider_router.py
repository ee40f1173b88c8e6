"""
Secret bridge API endpoints. Callers fetch the provider schema, submit a provider configuration (which authenticates once and replaces the active provider on success) and look up individual secrets against the active provider. Blocking Conjur calls run in the threadpool so lookups stay independent of one another.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from config import config
from models.secrets.config import ProviderSettings
from models.secrets.lookups import SecretLookupRequest, SecretLookupResponse, SecretRequest
from services.secrets.provider import (
    ProviderHolder,
    SecretsProvider,
    lookup_payload,
    provider_schema,
    session_options,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["secrets"])

provider_holder = ProviderHolder()


@router.get("/provider/schema")
async def get_provider_schema() -> Dict[str, Any]:
    return provider_schema()


@router.post("/provider/configure")
async def configure_provider(payload: ProviderSettings) -> Dict[str, str]:
    provider = await run_in_threadpool(
        SecretsProvider.configure,
        payload,
        **session_options(config),
    )
    provider_holder.replace(provider)
    return {"status": "configured", "strategy": provider.handle.strategy_kind}


@router.post("/secrets/lookup", response_model=SecretLookupResponse)
async def lookup_secret(payload: SecretLookupRequest) -> SecretLookupResponse:
    provider = provider_holder.get()
    request = SecretRequest(name=payload.name, version=payload.version)
    result = await run_in_threadpool(provider.read_secret, request)
    return SecretLookupResponse(**lookup_payload(result))
