"""SANtricity Web Services Proxy API client package.

Provides a lightweight HTTP client for the E-Series ``/devmgr/v2`` REST API
that returns raw, validated API response types with minimal processing.
Metric transformations are handled by collector modules.

Exports:
    SantricityRestApiClient: Authenticated client bound to a Target.
    Target: Per-request backend descriptor.
    FetchError: Raised on transport failures and non-200 responses.
    DecodeError: Raised on malformed response bodies.
    types: Module containing Pydantic models for API responses.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import types
from .client import (
    DEFAULT_TIMEOUT,
    DecodeError,
    FetchError,
    SantricityRestApiClient,
    Target,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "DecodeError",
    "FetchError",
    "SantricityRestApiClient",
    "Target",
    "types",
]
