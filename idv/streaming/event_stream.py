"""Incremental decoder for server-sent event byte streams.

Events are blank-line delimited blocks of ``field: value`` lines, for example::

    event: complete
    data: [{"status": "ok", "data": {...}}]

Both LF and CRLF line endings are accepted. Only completed blocks are
decoded; a trailing fragment stays buffered until more bytes arrive.
"""

import codecs
import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from idv.logging.logger import Log

COMPLETE_EVENT = "complete"

_EVENT_DELIMITER = re.compile(r"\r\n\r\n|\n\n")
_EVENT_FIELD = "event:"
_DATA_MARKER = "data: "


@dataclass(frozen=True)
class ServerSentEvent:
    """One decoded event block."""

    name: str | None
    data: str | None

    @classmethod
    def from_block(cls, block: str) -> "ServerSentEvent":
        """The event name is read only from a leading ``event:`` line."""
        first_line, _, _ = block.lstrip("\r\n").partition("\n")
        name = None
        if first_line.startswith(_EVENT_FIELD):
            name = first_line[len(_EVENT_FIELD):].strip()
        _, marker, data = block.partition(_DATA_MARKER)
        return cls(name=name, data=data.strip() if marker else None)

    @property
    def is_complete(self) -> bool:
        return self.name == COMPLETE_EVENT


class EventStreamParser:
    """Push-model parser: feed byte chunks in arrival order, get events back."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Undelimited tail held until the next chunk arrives."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[ServerSentEvent]:
        """Decode every event completed by this chunk."""
        self._buffer += self._decoder.decode(chunk)
        *blocks, self._buffer = _EVENT_DELIMITER.split(self._buffer)
        return [ServerSentEvent.from_block(block) for block in blocks if block.strip()]


def iter_complete_payloads(chunks: Iterable[bytes]) -> Iterator[Any]:
    """Yield the JSON payload of each ``complete`` event as it arrives.

    Malformed JSON is logged and skipped. Exhaustion means the stream ended;
    errors raised by ``chunks`` propagate to the caller unchanged.
    """
    parser = EventStreamParser()
    for chunk in chunks:
        for event in parser.feed(chunk):
            if not event.is_complete:
                Log.debug(f"Skipping event stream block: {event.name}")
                continue
            if event.data is None:
                Log.warning("Complete event carried no data field")
                continue
            try:
                payload = json.loads(event.data)
            except json.JSONDecodeError as exc:
                Log.warning(f"Complete event data is not valid JSON: {exc}")
                continue
            yield payload
