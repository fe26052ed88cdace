"""GraphQL pass-through for GitLab."""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from scmbridge.errors import GraphQLError, ResponseDecodeError, TransportError
from scmbridge.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 300


class _GraphQLPayload(msgspec.Struct):
    data: typ.Any = None
    errors: list[typ.Any] | None = None


class DynamicGraphQLClient:
    """Forward GraphQL queries using the caller's configured HTTP client.

    The client is bound lazily to whatever ``httpx.Client`` the owning
    driver was given. When none was given, :meth:`query` logs a warning and
    returns ``None`` instead of failing.
    """

    def __init__(self, endpoint: str, http_client: httpx.Client | None) -> None:
        """Initialise with the GraphQL endpoint and optional HTTP client."""
        self.endpoint = endpoint
        self._http_client = http_client

    def query(
        self,
        query: str,
        variables: cabc.Mapping[str, typ.Any] | None = None,
        *,
        out: type[typ.Any] | None = None,
    ) -> typ.Any:
        """Execute ``query`` and return its ``data`` member.

        Parameters
        ----------
        query
            GraphQL document.
        variables
            Values for the document's variables.
        out
            Optional type the ``data`` member is converted into; the plain
            decoded JSON is returned when omitted.

        Raises
        ------
        TransportError
            If no response was received.
        GraphQLError
            If the endpoint returns an HTTP error or an ``errors`` payload.
        ResponseDecodeError
            If the body is not JSON, or ``data`` does not fit ``out``.

        """
        if self._http_client is None:
            log_warning(
                logger,
                "No HTTP client configured for GraphQL endpoint %s; query skipped",
                self.endpoint,
            )
            return None

        request_body = msgspec.json.encode(
            {"query": query, "variables": dict(variables or {})}
        )
        try:
            response = self._http_client.post(
                self.endpoint,
                content=request_body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.DecodingError as exc:
            raise ResponseDecodeError.undecodable_content(str(exc)) from exc
        except httpx.TimeoutException as exc:
            raise TransportError.timeout(self.endpoint) from exc
        except httpx.TransportError as exc:
            raise TransportError.network_error(self.endpoint, str(exc)) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GraphQLError.http_error(response.status_code)

        try:
            payload = msgspec.json.decode(response.content, type=_GraphQLPayload)
        except msgspec.DecodeError as exc:
            raise ResponseDecodeError.invalid_body(str(exc), response.content) from exc
        if payload.errors:
            raise GraphQLError.query_errors(payload.errors)
        if out is None:
            return payload.data

        try:
            return msgspec.convert(payload.data, type=out)
        except msgspec.ValidationError as exc:
            raise ResponseDecodeError.invalid_body(str(exc), response.content) from exc
