"""
Middleware components for the Conjur secret bridge API.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from .audit import security_headers_middleware
from .error_handlers import general_exception_handler, secret_bridge_exception_handler, validation_exception_handler
from .limits import ConcurrencyLimitMiddleware, RequestSizeLimitMiddleware

__all__ = [
    "security_headers_middleware",
    "general_exception_handler",
    "secret_bridge_exception_handler",
    "validation_exception_handler",
    "RequestSizeLimitMiddleware",
    "ConcurrencyLimitMiddleware",
]
