"""GitLab request executor.

Every GitLab resource call funnels through :meth:`GitLabClient.do` (or its
array-unwrapping sibling :meth:`GitLabClient.do_unwrapped`), which owns the
shared transport contract:

- request bodies are sent as JSON;
- ``X-Request-Id`` and the ``RateLimit-*`` triple are read from every
  response, and the client's rate-limit state is updated before the status
  is inspected, error responses included;
- statuses of 300 and above raise :class:`~scmbridge.errors.APIError`
  carrying the decoded ``message``;
- success bodies are decoded with msgspec into the caller's type.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from scmbridge.client import Client, Request, Response, url_join
from scmbridge.config import SCMClientConfig
from scmbridge.errors import APIError, ResponseDecodeError
from scmbridge.logging import get_logger, log_debug, log_warning
from scmbridge.rate import Rate, RateLimitState
from scmbridge.relay import RelayWebhookService

from .graphql import DynamicGraphQLClient

logger = get_logger(__name__)

_DEFAULT_BASE_URL = "https://gitlab.com"
_GRAPHQL_PATH = "/api/graphql"
_HTTP_ERROR_STATUS_THRESHOLD = 300
# Shortest body that can hold a JSON array: "[]"
_MIN_ARRAY_BODY_LENGTH = 2

_REQUEST_ID_HEADER = "X-Request-Id"
_RATE_LIMIT_HEADER = "RateLimit-Limit"
_RATE_REMAINING_HEADER = "RateLimit-Remaining"
_RATE_RESET_HEADER = "RateLimit-Reset"


class Namespace(msgspec.Struct, kw_only=True, frozen=True):
    """GitLab user or group namespace as returned by ``api/v4/namespaces``."""

    id: int = 0
    name: str = ""
    path: str = ""
    kind: str = ""
    full_path: str = ""
    parent_id: int | None = None
    avatar_url: str | None = None
    web_url: str = ""


class _ErrorBody(msgspec.Struct):
    message: typ.Any = None


def _header_int(headers: httpx.Headers, name: str) -> int:
    raw = headers.get(name)
    if raw is None:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def parse_rate(headers: httpx.Headers) -> Rate:
    """Read the rate-limit triple; absent or malformed values become zero."""
    return Rate(
        limit=_header_int(headers, _RATE_LIMIT_HEADER),
        remaining=_header_int(headers, _RATE_REMAINING_HEADER),
        reset=_header_int(headers, _RATE_RESET_HEADER),
    )


def decode_error(body: bytes) -> str:
    """Return the ``message`` of a GitLab error body.

    Never raises: a body that is not a JSON object, or that has no
    ``message``, yields an empty string so the status code stays the primary
    signal. Validation failures report ``message`` as a field-to-errors map,
    which is rendered as compact JSON.
    """
    try:
        parsed = msgspec.json.decode(body, type=_ErrorBody)
    except msgspec.DecodeError:
        log_debug(logger, "Undecodable error body (%d bytes)", len(body))
        return ""

    message = parsed.message
    if message is None:
        return ""
    if isinstance(message, str):
        return message
    return msgspec.json.encode(message).decode()


def _decode_as[T](data: bytes, out: type[T], response: Response) -> T:
    try:
        return msgspec.json.decode(data, type=out)
    except msgspec.DecodeError as exc:
        raise ResponseDecodeError.invalid_body(
            str(exc), data, response=response
        ) from exc


class GitLabClient(Client):
    """GitLab API client.

    Examples
    --------
    >>> from scmbridge.driver.gitlab import GitLabClient
    >>> with GitLabClient.new("https://gitlab.example.com") as client:
    ...     namespace = client.find_namespace_by_name("platform")
    ...     quota = client.rate()

    """

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        *,
        http_client: httpx.Client | None = None,
        rate_state: RateLimitState | None = None,
        config: SCMClientConfig | None = None,
    ) -> None:
        """Initialise the client; GraphQL uses only an injected HTTP client."""
        super().__init__(
            base_url,
            http_client=http_client,
            rate_state=rate_state,
            config=config,
        )
        self.graphql = DynamicGraphQLClient(
            url_join(base_url, _GRAPHQL_PATH), http_client
        )
        self.webhooks = RelayWebhookService()

    @classmethod
    def new(
        cls,
        uri: str,
        *,
        http_client: httpx.Client | None = None,
        rate_state: RateLimitState | None = None,
        config: SCMClientConfig | None = None,
    ) -> GitLabClient:
        """Return a client for the GitLab instance at ``uri``.

        Raises
        ------
        SCMConfigError
            If ``uri`` has no scheme or host.

        """
        return cls(
            uri, http_client=http_client, rate_state=rate_state, config=config
        )

    @classmethod
    def new_default(cls) -> GitLabClient:
        """Return a client for gitlab.com."""
        return cls(_DEFAULT_BASE_URL)

    @classmethod
    def from_config(
        cls,
        config: SCMClientConfig,
        *,
        http_client: httpx.Client | None = None,
        rate_state: RateLimitState | None = None,
    ) -> GitLabClient:
        """Return a client for ``config.base_url`` using its HTTP settings."""
        return cls(
            config.base_url,
            http_client=http_client,
            rate_state=rate_state,
            config=config,
        )

    def _observe(self, request: Request, raw: Response) -> Response:
        """Attach request id and rate to ``raw`` and record the rate."""
        rate = parse_rate(raw.headers)
        response = dataclasses.replace(
            raw,
            request_id=raw.headers.get(_REQUEST_ID_HEADER, ""),
            rate=rate,
        )
        self.set_rate(rate)
        log_debug(
            logger,
            "%s %s status=%d request_id=%s rate_remaining=%d",
            request.method,
            request.path,
            response.status,
            response.request_id,
            rate.remaining,
        )
        return response

    def _exchange(self, method: str, path: str, body: object | None) -> Response:
        """Send one request and return the envelope of a success response."""
        headers: dict[str, str] = {}
        content: bytes | None = None
        if body is not None:
            content = msgspec.json.encode(body)
            headers["Content-Type"] = "application/json"

        request = Request(method=method, path=path, headers=headers, body=content)
        try:
            raw = self.send(request)
        except ResponseDecodeError as exc:
            # The server answered, so its quota headers still count.
            if exc.response is not None:
                exc.response = self._observe(request, exc.response)
            raise
        response = self._observe(request, raw)

        if response.status >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise APIError(
                decode_error(response.body),
                status_code=response.status,
                response=response,
            )
        return response

    def do[T](
        self,
        method: str,
        path: str,
        *,
        body: object | None = None,
        out: type[T] | None = None,
    ) -> tuple[Response, T | None]:
        """Execute a request and decode the JSON response into ``out``.

        Parameters
        ----------
        method
            HTTP method.
        path
            Path relative to the base URL, query string included.
        body
            Optional value sent as the JSON request body.
        out
            Type to decode a success body into; ``None`` skips decoding.

        Returns
        -------
        tuple[Response, T | None]
            The envelope and the decoded body (``None`` when ``out`` is
            ``None``).

        Raises
        ------
        TransportError
            If no response was received.
        APIError
            If the status is 300 or above.
        ResponseDecodeError
            If the body cannot be decoded per its ``Content-Encoding``, or a
            success body does not decode into ``out``.

        """
        response = self._exchange(method, path, body)
        if out is None:
            return response, None
        return response, _decode_as(response.body, out, response)

    def do_unwrapped[T](
        self,
        method: str,
        path: str,
        *,
        out: type[T],
        body: object | None = None,
    ) -> tuple[Response, T]:
        """Execute a request whose success body is an array holding one object.

        Some GitLab endpoints (namespace search among them) answer with an
        array even when the caller wants a single object. The body is parsed
        as a JSON array and its first element is decoded into ``out``;
        further elements are ignored with a warning.

        Raises
        ------
        ResponseDecodeError
            If the body is too short to be an array, is not an array, is an
            empty array, or its first element does not decode into ``out``.

        """
        response = self._exchange(method, path, body)
        payload = response.body.strip()
        if len(payload) < _MIN_ARRAY_BODY_LENGTH:
            raise ResponseDecodeError.too_short(response.body, response=response)

        elements = _decode_as(payload, list[msgspec.Raw], response)
        if not elements:
            raise ResponseDecodeError.empty_array(response=response)
        if len(elements) > 1:
            log_warning(
                logger,
                "%s %s returned %d elements; using the first",
                method,
                path,
                len(elements),
            )
        return response, _decode_as(bytes(elements[0]), out, response)

    def find_namespace_by_name(self, name: str) -> Namespace:
        """Look up the namespace matching ``name``."""
        query = httpx.QueryParams({"search": name})
        _, namespace = self.do_unwrapped(
            "GET", f"api/v4/namespaces?{query}", out=Namespace
        )
        return namespace


def new_webhook_service() -> RelayWebhookService:
    """Return a webhook service that is not bound to any client."""
    return RelayWebhookService()
