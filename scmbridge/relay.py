"""Signed delivery of normalized webhook events between services.

A service that has already normalized a provider event can forward it as the
tagged JSON produced by :func:`scmbridge.webhook.encode_webhook`. The
receiving side parses it with :class:`RelayWebhookService`, which checks an
HMAC-SHA256 signature carried in ``X-Scm-Signature`` using a secret chosen
per event by a :data:`SecretFunc`.
"""

from __future__ import annotations

import hashlib
import hmac
import typing as typ

import httpx

from .errors import SignatureInvalidError
from .logging import get_logger, log_warning
from .webhook import AnyWebhook, decode_webhook, encode_webhook, webhook_type

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Scm-Signature"
EVENT_HEADER = "X-Scm-Event"
_SIGNATURE_PREFIX = "sha256="

SecretFunc = typ.Callable[[AnyWebhook], str]


class WebhookService(typ.Protocol):
    """Parses and authenticates inbound webhook requests."""

    def parse(self, request: httpx.Request, secret_fn: SecretFunc) -> AnyWebhook:
        """Return the webhook carried by ``request``."""
        ...


def sign_payload(body: bytes, secret: str) -> str:
    """Return the ``X-Scm-Signature`` value for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{_SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, secret: str, signature: str | None) -> None:
    """Check ``signature`` against ``body``.

    Raises
    ------
    SignatureInvalidError
        If the signature is absent, malformed, or does not match.

    """
    if not signature:
        raise SignatureInvalidError.missing()
    if not signature.startswith(_SIGNATURE_PREFIX):
        raise SignatureInvalidError.mismatch()
    if not hmac.compare_digest(sign_payload(body, secret), signature):
        raise SignatureInvalidError.mismatch()


class RelayWebhookService:
    """:class:`WebhookService` for relayed, already-normalized events."""

    def parse(self, request: httpx.Request, secret_fn: SecretFunc) -> AnyWebhook:
        """Decode the request body and verify its signature.

        The event is decoded before verification because the secret may
        depend on it (typically on its repository). An empty secret
        disables verification.

        Raises
        ------
        WebhookError
            If the body is not a valid tagged webhook.
        SignatureInvalidError
            If a secret is configured and the signature does not match.

        """
        body = request.read()
        hook = decode_webhook(body).webhook
        secret = secret_fn(hook)
        if not secret:
            return hook

        try:
            verify_signature(body, secret, request.headers.get(SIGNATURE_HEADER))
        except SignatureInvalidError:
            log_warning(
                logger,
                "Rejected %s delivery for %s: bad signature",
                webhook_type(hook),
                hook.repository().full_name,
            )
            raise
        return hook


def build_relay_request(
    url: str,
    hook: AnyWebhook,
    secret: str = "",
    *,
    headers: cabc.Mapping[str, str] | None = None,
) -> httpx.Request:
    """Build a POST request that relays ``hook`` to ``url``.

    The body is signed when ``secret`` is non-empty.
    """
    body = encode_webhook(hook)
    request_headers = {
        **(headers or {}),
        "Content-Type": "application/json",
        EVENT_HEADER: webhook_type(hook),
    }
    if secret:
        request_headers[SIGNATURE_HEADER] = sign_payload(body, secret)
    return httpx.Request("POST", url, content=body, headers=request_headers)


__all__ = [
    "EVENT_HEADER",
    "SIGNATURE_HEADER",
    "RelayWebhookService",
    "SecretFunc",
    "WebhookService",
    "build_relay_request",
    "sign_payload",
    "verify_signature",
]
