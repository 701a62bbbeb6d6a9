from idv.streaming.event_stream import (
    COMPLETE_EVENT,
    EventStreamParser,
    ServerSentEvent,
    iter_complete_payloads,
)

__all__ = [
    "COMPLETE_EVENT",
    "EventStreamParser",
    "ServerSentEvent",
    "iter_complete_payloads",
]
