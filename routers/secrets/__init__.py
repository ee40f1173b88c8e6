"""
Routers for the secret bridge: provider schema, provider configuration and secret lookups.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from .provider_router import provider_holder, router as secrets_router

__all__ = [
    "provider_holder",
    "secrets_router",
]
