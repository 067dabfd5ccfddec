import json
from typing import Any

import pytest

from tokenflow.shared.logging import LogEvent, LoggingContext, LogLevel
from tokenflow.transport.base import Transport, TransportResponse


class FakeTransport(Transport):
    """Records token requests and replays a canned response."""

    def __init__(self):
        self.calls: list[dict[str, Any]] = []
        self.response = TransportResponse(status_code=200, body=b"{}")
        self.error: Exception | None = None
        self.closed = False

    def respond_json(
        self,
        payload: dict[str, Any],
        status_code: int = 200,
        headers: dict[str, list[str]] | None = None,
    ) -> None:
        self.response = TransportResponse(
            status_code=status_code,
            headers=headers or {},
            body=json.dumps(payload).encode("utf-8"),
        )

    def post(self, uri, headers, body, content_type, correlation_id=None):
        self.calls.append(
            {
                "uri": uri,
                "headers": headers,
                "body": body,
                "content_type": content_type,
                "correlation_id": correlation_id,
            }
        )
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


class CapturingSink:
    def __init__(self):
        self.events: list[LogEvent] = []

    def __call__(self, event: LogEvent) -> None:
        self.events.append(event)

    def has(self, level: LogLevel, error_code) -> bool:
        return any(
            e.level == level and e.error_code == error_code for e in self.events
        )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sink() -> CapturingSink:
    return CapturingSink()


@pytest.fixture
def logging_context(sink: CapturingSink) -> LoggingContext:
    return LoggingContext(level=LogLevel.DEBUG, sink=sink)
