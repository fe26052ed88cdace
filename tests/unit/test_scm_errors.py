"""Unit tests for the scmbridge exception hierarchy."""

from __future__ import annotations

import httpx
import pytest

from scmbridge.client import Response
from scmbridge.errors import (
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


@pytest.mark.parametrize(
    "error",
    [
        SCMConfigError.invalid_base_url("x"),
        TransportError.timeout("https://gitlab.example.test/api/v4/user"),
        APIError("nope", status_code=404),
        ResponseDecodeError.empty_array(),
        GraphQLError.http_error(500),
        WebhookSyntaxError.malformed("eof"),
        UnknownWebhookTypeError.missing(),
        WebhookShapeError.invalid("pushHook", "bad"),
        SignatureInvalidError.mismatch(),
    ],
    ids=lambda error: type(error).__name__,
)
def test_every_error_is_an_scm_error(error: SCMError) -> None:
    """A single ``except SCMError`` catches every package failure."""
    assert isinstance(error, SCMError)


@pytest.mark.parametrize(
    "error_type",
    [
        WebhookSyntaxError,
        UnknownWebhookTypeError,
        WebhookShapeError,
        SignatureInvalidError,
    ],
)
def test_webhook_errors_share_a_base(error_type: type[SCMError]) -> None:
    """Webhook failures can be caught together."""
    assert issubclass(error_type, WebhookError)


def test_api_error_carries_envelope() -> None:
    """API errors keep the message, status and populated envelope."""
    response = Response(
        status=403, headers=httpx.Headers(), body=b"{}", request_id="req-1"
    )

    error = APIError("403 Forbidden", status_code=403, response=response)

    assert str(error) == "403 Forbidden"
    assert error.message == "403 Forbidden"
    assert error.status_code == 403
    assert error.response is response


def test_api_error_with_empty_message_stringifies_empty() -> None:
    """An error body without a message yields an empty string."""
    assert str(APIError("", status_code=500)) == ""


def test_decode_error_previews_long_bodies() -> None:
    """Decode errors embed at most a short excerpt of the body."""
    body = b"x" * 500

    message = str(ResponseDecodeError.invalid_body("bad", body))

    assert message == f"Failed to decode response body (bad): {'x' * 100}..."


def test_decode_error_replaces_invalid_utf8() -> None:
    """Bodies that are not UTF-8 still produce a readable message."""
    message = str(ResponseDecodeError.invalid_body("bad", b"\xff\xfe"))

    assert message.endswith("\ufffd\ufffd")


def test_too_short_reports_body() -> None:
    """The too-short condition shows the offending body."""
    error = ResponseDecodeError.too_short(b"[")

    assert str(error) == "Response body too short to unwrap as an array: '['"


def test_transport_errors_name_the_url() -> None:
    """Transport messages identify the target and the cause."""
    url = "https://gitlab.example.test/api/v4/user"

    assert str(TransportError.timeout(url)) == f"Request to {url} timed out"
    assert str(TransportError.network_error(url, "reset")) == (
        f"Request to {url} failed: reset"
    )


def test_unknown_webhook_type_keeps_value() -> None:
    """The rejected discriminator is available to callers."""
    error = UnknownWebhookTypeError.unrecognized("bogus")

    assert error.webhook_type == "bogus"
    assert str(error) == "Unrecognized webhook type: 'bogus'"
    assert UnknownWebhookTypeError.missing().webhook_type is None


def test_graphql_query_errors_have_no_status() -> None:
    """Query-level errors are not tied to an HTTP status."""
    assert GraphQLError.query_errors([{"message": "x"}]).status_code is None
