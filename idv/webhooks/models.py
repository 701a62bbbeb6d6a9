import json
import time
from dataclasses import dataclass, field
from typing import Any

SESSION_CREATED = "session.created"
SESSION_PROCESSING_STARTED = "session.processing.started"
SESSION_COMPLETED = "session.completed"
SESSION_FAILED = "session.failed"
WEBHOOK_TEST = "webhook.test"

DELIVERY_SUCCESS = "success"
DELIVERY_FAILED = "failed"


@dataclass(frozen=True)
class WebhookEvent:
    """A notification as sent on the wire; timestamp is epoch milliseconds."""

    event: str
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None

    @classmethod
    def create(
        cls, event: str, data: dict[str, Any], session_id: str | None = None
    ) -> "WebhookEvent":
        return cls(
            event=event,
            timestamp=int(time.time() * 1000),
            data=data,
            session_id=session_id,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"event": self.event}
        if self.session_id is not None:
            payload["session_id"] = self.session_id
        payload["timestamp"] = self.timestamp
        payload["data"] = self.data
        return payload

    def serialize(self) -> bytes:
        """Exact body bytes that are signed and sent."""
        return json.dumps(self.to_payload(), separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class WebhookTestOutcome:
    success: bool
    test_id: str
    response_status: int | None = None
    error: str | None = None
