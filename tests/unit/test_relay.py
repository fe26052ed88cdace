"""Unit tests for signed webhook relay."""

from __future__ import annotations

import hashlib
import hmac
import json
import typing as typ

import httpx
import pytest

from scmbridge.driver.gitlab import GitLabClient, new_webhook_service
from scmbridge.errors import (
    SignatureInvalidError,
    UnknownWebhookTypeError,
    WebhookSyntaxError,
)
from scmbridge.models import Action, Reference, Repository
from scmbridge.relay import (
    EVENT_HEADER,
    SIGNATURE_HEADER,
    RelayWebhookService,
    build_relay_request,
    sign_payload,
    verify_signature,
)
from scmbridge.webhook import AnyWebhook, TagHook

if typ.TYPE_CHECKING:
    from tests.conftest import RecordingLogger

_SECRET = "s3cr3t"
_URL = "https://relay.example.test/hooks"
_HOOK = TagHook(
    ref=Reference(name="v1.0.0", sha="abc"),
    repo=Repository(namespace="acme", name="reef", full_name="acme/reef"),
    action=Action.CREATE,
)


def _secret_for(secret: str) -> typ.Callable[[AnyWebhook], str]:
    def _lookup(hook: AnyWebhook) -> str:
        del hook
        return secret

    return _lookup


def test_sign_payload_is_prefixed_hmac_sha256() -> None:
    """Signatures are hex HMAC-SHA256 digests with a ``sha256=`` prefix."""
    expected = hmac.new(b"key", b"{}", hashlib.sha256).hexdigest()

    assert sign_payload(b"{}", "key") == f"sha256={expected}"
    assert sign_payload(b"{}", "key") != sign_payload(b"{}", "other")


class TestVerifySignature:
    """Checks performed on the signature header."""

    def test_accepts_matching_signature(self) -> None:
        """A signature computed over the same body verifies."""
        verify_signature(b"payload", _SECRET, sign_payload(b"payload", _SECRET))

    @pytest.mark.parametrize("signature", [None, ""])
    def test_rejects_missing_signature(self, signature: str | None) -> None:
        """An absent header is reported as missing."""
        with pytest.raises(SignatureInvalidError, match="header missing"):
            verify_signature(b"payload", _SECRET, signature)

    @pytest.mark.parametrize(
        "signature",
        [
            "sha256=deadbeef",
            "sha1=0123",
            sign_payload(b"other payload", _SECRET),
            sign_payload(b"payload", "wrong"),
        ],
        ids=["short", "wrong-algorithm", "other-body", "other-secret"],
    )
    def test_rejects_mismatch(self, signature: str) -> None:
        """Signatures that do not match the body and secret are rejected."""
        with pytest.raises(SignatureInvalidError, match="^Invalid webhook signature$"):
            verify_signature(b"payload", _SECRET, signature)


class TestRelayWebhookService:
    """Parsing of relayed deliveries."""

    def test_round_trips_signed_delivery(self) -> None:
        """A request built for a hook parses back to the same hook."""
        request = build_relay_request(_URL, _HOOK, _SECRET)

        assert RelayWebhookService().parse(request, _secret_for(_SECRET)) == _HOOK

    def test_build_sets_headers(self) -> None:
        """Relay requests carry content type, event and signature headers."""
        request = build_relay_request(
            _URL, _HOOK, _SECRET, headers={"X-Delivery": "d-1"}
        )

        assert request.method == "POST"
        assert str(request.url) == _URL
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers[EVENT_HEADER] == "tagHook"
        assert request.headers["X-Delivery"] == "d-1"
        assert request.headers[SIGNATURE_HEADER] == sign_payload(
            request.content, _SECRET
        )
        assert json.loads(request.content)["type"] == "tagHook"

    def test_unsigned_delivery_omits_signature(self) -> None:
        """No signature header is written without a secret."""
        request = build_relay_request(_URL, _HOOK)

        assert SIGNATURE_HEADER not in request.headers
        assert RelayWebhookService().parse(request, _secret_for("")) == _HOOK

    def test_secret_function_sees_decoded_hook(self) -> None:
        """The secret is chosen from the decoded event."""
        seen: list[AnyWebhook] = []

        def _lookup(hook: AnyWebhook) -> str:
            seen.append(hook)
            return _SECRET

        request = build_relay_request(_URL, _HOOK, _SECRET)
        RelayWebhookService().parse(request, _lookup)

        assert seen == [_HOOK]

    def test_rejects_tampered_body(
        self,
        recording_logger: RecordingLogger,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A body changed after signing fails verification and is logged."""
        monkeypatch.setattr("scmbridge.relay.logger", recording_logger)
        signed = build_relay_request(_URL, _HOOK, _SECRET)
        tampered_body = signed.content.replace(b"v1.0.0", b"v6.6.6")
        request = httpx.Request(
            "POST", _URL, content=tampered_body, headers=dict(signed.headers)
        )

        with pytest.raises(SignatureInvalidError):
            RelayWebhookService().parse(request, _secret_for(_SECRET))
        assert recording_logger.messages("WARNING") == [
            "Rejected tagHook delivery for acme/reef: bad signature"
        ]

    def test_rejects_missing_signature_when_secret_configured(self) -> None:
        """An unsigned delivery fails when the receiver expects a signature."""
        request = build_relay_request(_URL, _HOOK)

        with pytest.raises(SignatureInvalidError, match="header missing"):
            RelayWebhookService().parse(request, _secret_for(_SECRET))

    def test_invalid_body_fails_before_secret_lookup(self) -> None:
        """Codec failures surface without consulting the secret function."""

        def _lookup(hook: AnyWebhook) -> str:
            raise AssertionError(hook)

        with pytest.raises(WebhookSyntaxError):
            RelayWebhookService().parse(
                httpx.Request("POST", _URL, content=b"not json"), _lookup
            )
        with pytest.raises(UnknownWebhookTypeError):
            RelayWebhookService().parse(
                httpx.Request("POST", _URL, content=b'{"type": "nope"}'), _lookup
            )


def test_driver_exposes_relay_services() -> None:
    """Clients carry a webhook service and one can be built standalone."""
    with GitLabClient.new_default() as client:
        assert isinstance(client.webhooks, RelayWebhookService)
    assert isinstance(new_webhook_service(), RelayWebhookService)
