"""Provider-neutral HTTP plumbing shared by all drivers.

:class:`Client` performs exactly one HTTP exchange per :meth:`Client.send`
call and returns a :class:`Response` envelope whose body has already been
read and released. Drivers layer provider conventions (request id header,
rate-limit headers, error body format) on top.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from .config import SCMClientConfig
from .errors import ResponseDecodeError, SCMConfigError, TransportError
from .rate import Rate, RateLimitState


def ensure_trailing_slash(base_url: str) -> str:
    """Validate ``base_url`` and return it with a path ending in ``/``.

    Relative paths are resolved against the base, so a missing trailing slash
    would silently drop the last path segment of self-hosted installs such as
    ``https://example.com/gitlab``.
    """
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise SCMConfigError.invalid_base_url(base_url) from exc
    if not url.scheme or not url.host:
        raise SCMConfigError.invalid_base_url(base_url)
    path = url.path if url.path.endswith("/") else f"{url.path}/"
    return str(url.copy_with(path=path))


def url_join(base: str, *parts: str) -> str:
    """Join path segments onto ``base`` with exactly one ``/`` between each."""
    joined = base.rstrip("/")
    for part in parts:
        segment = part.strip("/")
        if segment:
            joined = f"{joined}/{segment}"
    return joined


@dataclasses.dataclass(frozen=True, slots=True)
class Request:
    """Outbound HTTP request relative to a client's base URL."""

    method: str
    path: str
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    body: bytes | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class Response:
    """Normalized result of one HTTP exchange.

    Attributes
    ----------
    status
        HTTP status code.
    headers
        Response headers as received.
    body
        Complete response body; the underlying stream is already closed.
    request_id
        Server-assigned request identifier, empty when not reported.
    rate
        Rate-limit snapshot parsed from this exchange.

    """

    status: int
    headers: httpx.Headers
    body: bytes
    request_id: str = ""
    rate: Rate = dataclasses.field(default_factory=Rate)


class Client:
    """Executes requests against a base URL using an ``httpx.Client``.

    Parameters
    ----------
    base_url
        Absolute URL that request paths are resolved against.
    http_client
        Optional pre-configured client. When omitted an owned client is
        created from ``config`` and closed by :meth:`close`.
    rate_state
        Cell receiving rate-limit snapshots. Pass a shared instance to pool
        quota readings across clients; by default each client has its own.
    config
        Timeout and user agent for the owned client.

    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.Client | None = None,
        rate_state: RateLimitState | None = None,
        config: SCMClientConfig | None = None,
    ) -> None:
        """Initialise the client; see the class docstring for parameters."""
        self.base_url = ensure_trailing_slash(base_url)
        self.rate_state = rate_state or RateLimitState()
        self._configured_client = http_client
        self._owns_client = http_client is None
        self._http = http_client or _default_http_client(config)

    @property
    def http_client(self) -> httpx.Client | None:
        """Return the caller-supplied HTTP client, if one was configured."""
        return self._configured_client

    def rate(self) -> Rate:
        """Return the most recently observed rate-limit snapshot."""
        return self.rate_state.current()

    def set_rate(self, rate: Rate) -> None:
        """Record a rate-limit snapshot."""
        self.rate_state.observe(rate)

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> typ.Self:
        """Return ``self`` for use as a context manager."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close owned resources on context exit."""
        self.close()

    def resolve(self, path: str) -> httpx.URL:
        """Resolve ``path`` against :attr:`base_url`."""
        return httpx.URL(self.base_url).join(path)

    def send(self, request: Request) -> Response:
        """Perform one exchange and return its envelope.

        The response is streamed inside a context manager and read in full,
        so the connection is returned to the pool on every path.

        Raises
        ------
        TransportError
            If no response was received (timeout, connection failure).
        ResponseDecodeError
            If the body cannot be decoded per its ``Content-Encoding``. The
            attached envelope carries status and headers with an empty body.

        """
        url = self.resolve(request.path)
        try:
            with self._http.stream(
                request.method,
                url,
                content=request.body,
                headers=request.headers,
            ) as raw:
                status = raw.status_code
                headers = raw.headers
                try:
                    body = raw.read()
                except httpx.DecodingError as exc:
                    raise ResponseDecodeError.undecodable_content(
                        str(exc),
                        response=Response(status=status, headers=headers, body=b""),
                    ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError.timeout(str(url)) from exc
        except httpx.TransportError as exc:
            raise TransportError.network_error(str(url), str(exc)) from exc
        return Response(status=status, headers=headers, body=body)


def _default_http_client(config: SCMClientConfig | None) -> httpx.Client:
    settings = config or SCMClientConfig()
    return httpx.Client(
        timeout=settings.timeout_s,
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "application/json",
        },
    )


__all__ = [
    "Client",
    "Request",
    "Response",
    "ensure_trailing_slash",
    "url_join",
]
