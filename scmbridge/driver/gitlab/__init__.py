"""GitLab driver."""

from __future__ import annotations

from .client import (
    GitLabClient,
    Namespace,
    decode_error,
    new_webhook_service,
    parse_rate,
)
from .graphql import DynamicGraphQLClient

__all__ = [
    "DynamicGraphQLClient",
    "GitLabClient",
    "Namespace",
    "decode_error",
    "new_webhook_service",
    "parse_rate",
]
