"""Exception hierarchy for scmbridge transport and webhook handling.

Every condition raised by the package derives from :class:`SCMError`, so
callers have a single catch point. The subclasses separate transport
failures, server-reported business errors, and response bodies that do not
match the expected schema, because callers need to branch on each.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .client import Response

# Longest body excerpt embedded in decode error messages
_PREVIEW_LIMIT = 100


def _preview(content: str | bytes) -> str:
    text = (
        content.decode("utf-8", errors="replace")
        if isinstance(content, bytes)
        else content
    )
    if len(text) > _PREVIEW_LIMIT:
        return text[:_PREVIEW_LIMIT] + "..."
    return text


class SCMError(Exception):
    """Base exception for all scmbridge errors."""


class SCMConfigError(SCMError):
    """Raised when client configuration is invalid."""

    @classmethod
    def invalid_base_url(cls, value: str) -> SCMConfigError:
        """Return an error for a base URL without scheme or host."""
        return cls(f"Invalid SCM base URL {value!r}: scheme and host are required")

    @classmethod
    def invalid_timeout(cls, value: str) -> SCMConfigError:
        """Return an error for a non-numeric or non-positive timeout."""
        return cls(f"Invalid SCMBRIDGE_TIMEOUT_S {value!r}: must be a positive number")


class TransportError(SCMError):
    """Raised when the HTTP exchange itself fails.

    No response envelope exists for this condition: the request never
    produced a status line.
    """

    @classmethod
    def timeout(cls, url: str) -> TransportError:
        """Return an error for a request that exceeded its deadline."""
        return cls(f"Request to {url} timed out")

    @classmethod
    def network_error(cls, url: str, detail: str) -> TransportError:
        """Return an error for connection, DNS or TLS failures."""
        return cls(f"Request to {url} failed: {detail}")


class APIError(SCMError):
    """Raised when the server answers with a non-success status.

    Attributes
    ----------
    message
        Message decoded from the error body; empty when the body carried
        none.
    status_code
        HTTP status of the exchange.
    response
        The populated envelope, so rate and request id remain inspectable.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        response: Response | None = None,
    ) -> None:
        """Initialise with the decoded message, status and envelope."""
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Return the server-supplied message."""
        return self.message


class ResponseDecodeError(SCMError):
    """Raised when a success body does not decode into the requested type."""

    def __init__(self, message: str, *, response: Response | None = None) -> None:
        """Initialise with a description and the envelope that carried the body."""
        self.response = response
        super().__init__(message)

    @classmethod
    def invalid_body(
        cls, detail: str, body: bytes, *, response: Response | None = None
    ) -> ResponseDecodeError:
        """Return an error for malformed JSON or a schema mismatch."""
        return cls(
            f"Failed to decode response body ({detail}): {_preview(body)}",
            response=response,
        )

    @classmethod
    def undecodable_content(
        cls, detail: str, *, response: Response | None = None
    ) -> ResponseDecodeError:
        """Return an error for a body its ``Content-Encoding`` cannot decode."""
        return cls(
            f"Failed to decode response content encoding: {detail}",
            response=response,
        )

    @classmethod
    def too_short(
        cls, body: bytes, *, response: Response | None = None
    ) -> ResponseDecodeError:
        """Return an error for a body too short to hold a JSON array."""
        return cls(
            f"Response body too short to unwrap as an array: {_preview(body)!r}",
            response=response,
        )

    @classmethod
    def empty_array(cls, *, response: Response | None = None) -> ResponseDecodeError:
        """Return an error for an array-shaped body with no elements."""
        return cls("Response array is empty; nothing to unwrap", response=response)


class GraphQLError(SCMError):
    """Raised when a GraphQL request fails at the HTTP or query level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> GraphQLError:
        """Return an error for non-2xx GraphQL responses."""
        return cls(f"GraphQL HTTP {status_code}", status_code=status_code)

    @classmethod
    def query_errors(cls, errors: object) -> GraphQLError:
        """Return an error for a populated ``errors`` payload."""
        return cls(f"GraphQL errors: {errors}")


class WebhookError(SCMError):
    """Base class for webhook codec and delivery failures."""


class WebhookSyntaxError(WebhookError):
    """Raised when a webhook payload is not a JSON object."""

    @classmethod
    def malformed(cls, detail: str) -> WebhookSyntaxError:
        """Return an error for bytes that are not valid JSON."""
        return cls(f"Malformed webhook JSON: {detail}")

    @classmethod
    def not_an_object(cls, detail: str) -> WebhookSyntaxError:
        """Return an error for valid JSON whose top level is not an object."""
        return cls(f"Webhook payload must be a JSON object: {detail}")


class UnknownWebhookTypeError(WebhookError):
    """Raised when the ``type`` discriminator is missing or unrecognized."""

    def __init__(self, message: str, *, webhook_type: object = None) -> None:
        """Initialise with a message and the offending discriminator value."""
        self.webhook_type = webhook_type
        super().__init__(message)

    @classmethod
    def missing(cls) -> UnknownWebhookTypeError:
        """Return an error for a payload without a ``type`` key."""
        return cls("Webhook payload has no 'type' discriminator")

    @classmethod
    def unrecognized(cls, value: object) -> UnknownWebhookTypeError:
        """Return an error for a discriminator outside the known set."""
        return cls(f"Unrecognized webhook type: {value!r}", webhook_type=value)


class WebhookShapeError(WebhookError):
    """Raised when a recognized webhook payload does not fit its variant."""

    def __init__(self, message: str, *, webhook_type: str) -> None:
        """Initialise with a message and the resolved discriminator."""
        self.webhook_type = webhook_type
        super().__init__(message)

    @classmethod
    def invalid(cls, webhook_type: str, detail: str) -> WebhookShapeError:
        """Return an error describing the first validation failure."""
        return cls(
            f"Invalid {webhook_type} payload: {detail}", webhook_type=webhook_type
        )


class SignatureInvalidError(WebhookError):
    """Raised when a relayed webhook signature is missing or wrong."""

    @classmethod
    def missing(cls) -> SignatureInvalidError:
        """Return an error for a delivery without a signature header."""
        return cls("Invalid webhook signature: header missing")

    @classmethod
    def mismatch(cls) -> SignatureInvalidError:
        """Return an error for a signature that does not match the body."""
        return cls("Invalid webhook signature")


__all__ = [
    "APIError",
    "GraphQLError",
    "ResponseDecodeError",
    "SCMConfigError",
    "SCMError",
    "SignatureInvalidError",
    "TransportError",
    "UnknownWebhookTypeError",
    "WebhookError",
    "WebhookShapeError",
    "WebhookSyntaxError",
]
