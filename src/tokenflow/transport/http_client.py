"""Default transport over ``httpx``."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from uuid import UUID

import httpx

from tokenflow.auth.client.models.errors import TransportError
from tokenflow.transport.base import Transport, TransportResponse

logger = logging.getLogger(__name__)

CLIENT_REQUEST_ID_HEADER = "client-request-id"
RETURN_CLIENT_REQUEST_ID_HEADER = "return-client-request-id"


class HttpxTransport(Transport):
    """Synchronous transport backed by ``httpx.Client``.

    Supports connection pooling by reusing a caller-supplied client. A client
    created here is closed by ``close``; a shared one is left open.
    """

    def __init__(self, timeout: float = 30.0, http_client: httpx.Client | None = None):
        """Initialize the transport.

        Args:
            timeout: HTTP request timeout in seconds
            http_client: Optional shared httpx client for connection pooling
        """
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    def post(
        self,
        uri: str,
        headers: Mapping[str, list[str]],
        body: bytes,
        content_type: str,
        correlation_id: UUID | None = None,
    ) -> TransportResponse:
        request_headers = {name: ", ".join(values) for name, values in headers.items()}
        request_headers["Content-Type"] = content_type
        if correlation_id is not None:
            request_headers[CLIENT_REQUEST_ID_HEADER] = str(correlation_id)
            request_headers[RETURN_CLIENT_REQUEST_ID_HEADER] = "true"

        logger.debug(f"POST {uri} ({len(body)} bytes)")

        try:
            response = self._http_client.post(uri, content=body, headers=request_headers)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error posting to {uri}: {e}") from e

        response_headers: dict[str, list[str]] = {}
        for name in response.headers.keys():
            response_headers[name] = response.headers.get_list(name)

        return TransportResponse(
            status_code=response.status_code,
            headers=response_headers,
            body=response.content,
        )

    def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            self._http_client.close()
