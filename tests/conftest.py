"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import httpx
import pytest

from scmbridge.driver.gitlab import GitLabClient

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from scmbridge.rate import RateLimitState

BASE_URL = "https://gitlab.example.test"

Handler = typ.Callable[[httpx.Request], httpx.Response]


class TrackingStream(httpx.SyncByteStream):
    """Response body stream that records whether it was closed."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.closed = False

    def __iter__(self) -> cabc.Iterator[bytes]:
        yield self._data

    def close(self) -> None:
        self.closed = True


class FakeGitLab:
    """Scripted GitLab server backed by ``httpx.MockTransport``.

    Responses are queued in order; each request consumes one. Every request
    is recorded for assertions.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.streams: list[TrackingStream] = []
        self._handlers: list[Handler] = []
        self._http_clients: list[httpx.Client] = []

    def queue(
        self,
        status: int,
        *,
        json_body: object = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Queue a response; ``json_body`` wins over ``content``."""
        if json_body is not None:
            data = httpx.Response(200, json=json_body).content
        else:
            data = content or b""
        stream = TrackingStream(data)
        self.streams.append(stream)

        def _respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status, headers=headers, stream=stream, request=request
            )

        self._handlers.append(_respond)

    def fail(self, error: type[httpx.TransportError], message: str) -> None:
        """Queue a transport failure instead of a response."""

        def _raise(request: httpx.Request) -> httpx.Response:
            raise error(message, request=request)

        self._handlers.append(_raise)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert self._handlers, f"Unexpected request: {request.method} {request.url}"
        return self._handlers.pop(0)(request)

    def http_client(self) -> httpx.Client:
        """Return an HTTP client routed to this fake server."""
        http_client = httpx.Client(transport=httpx.MockTransport(self._handle))
        self._http_clients.append(http_client)
        return http_client

    def client(
        self,
        *,
        base_url: str = BASE_URL,
        rate_state: RateLimitState | None = None,
    ) -> GitLabClient:
        """Return a GitLab client whose HTTP traffic reaches this fake."""
        return GitLabClient.new(
            base_url, http_client=self.http_client(), rate_state=rate_state
        )

    def close(self) -> None:
        for http_client in self._http_clients:
            http_client.close()


@pytest.fixture
def fake_gitlab() -> cabc.Iterator[FakeGitLab]:
    """Yield a scripted GitLab server and close its clients afterwards."""
    server = FakeGitLab()
    yield server
    server.close()


class RecordingLogger:
    """Collects femtologging-style ``log`` calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        del stack_info
        self.calls.append((level, message, exc_info))
        return message

    def messages(self, level: str) -> list[str]:
        """Return messages logged at ``level``."""
        return [message for lvl, message, _ in self.calls if lvl == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Return a logger double that records calls."""
    return RecordingLogger()
