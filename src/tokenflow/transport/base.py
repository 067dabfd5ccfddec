from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import TracebackType
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and raw body of an HTTP response.

    ``body`` is None when the server sent no body at all, and ``b""`` when
    it sent an empty one.
    """

    status_code: int
    headers: Mapping[str, list[str]] = field(default_factory=dict)
    body: bytes | None = None


class Transport(ABC):
    """Abstract HTTP transport used to reach the token endpoint.

    The engine calls ``post`` once per token request and never retries.
    Implementations own timeouts and cancellation and must be safe to call
    from several flows at once.
    """

    @abstractmethod
    def post(
        self,
        uri: str,
        headers: Mapping[str, list[str]],
        body: bytes,
        content_type: str,
        correlation_id: UUID | None = None,
    ) -> TransportResponse:
        """POST a request body and return the server's response.

        Args:
            uri: Target endpoint
            headers: Request headers, name to list of values
            body: Encoded request body
            content_type: Media type of the body
            correlation_id: Identifier the server is expected to echo back

        Returns:
            TransportResponse for any HTTP status, including errors

        Raises:
            TransportError: If the request could not be delivered
        """

    def close(self) -> None:
        """Release any resources held by the transport."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
        return None
