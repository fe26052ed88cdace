"""Transport envelope and normalized webhook model for SCM API clients."""

from __future__ import annotations

from .client import Client, Request, Response
from .config import SCMClientConfig
from .errors import (
    APIError,
    GraphQLError,
    ResponseDecodeError,
    SCMConfigError,
    SCMError,
    SignatureInvalidError,
    TransportError,
    UnknownWebhookTypeError,
    WebhookError,
    WebhookShapeError,
    WebhookSyntaxError,
)
from .rate import Rate, RateLimitState
from .webhook import (
    WEBHOOK_TYPES,
    AnyWebhook,
    BranchHook,
    DeployHook,
    IssueCommentHook,
    IssueHook,
    PullRequestCommentHook,
    PullRequestHook,
    PushHook,
    ReviewCommentHook,
    TagHook,
    Webhook,
    WebhookEnvelope,
    decode_webhook,
    encode_webhook,
)

__all__ = [
    "WEBHOOK_TYPES",
    "APIError",
    "AnyWebhook",
    "BranchHook",
    "Client",
    "DeployHook",
    "GraphQLError",
    "IssueCommentHook",
    "IssueHook",
    "PullRequestCommentHook",
    "PullRequestHook",
    "PushHook",
    "Rate",
    "RateLimitState",
    "Request",
    "Response",
    "ResponseDecodeError",
    "ReviewCommentHook",
    "SCMClientConfig",
    "SCMConfigError",
    "SCMError",
    "SignatureInvalidError",
    "TagHook",
    "TransportError",
    "UnknownWebhookTypeError",
    "Webhook",
    "WebhookEnvelope",
    "WebhookError",
    "WebhookShapeError",
    "WebhookSyntaxError",
    "decode_webhook",
    "encode_webhook",
]
