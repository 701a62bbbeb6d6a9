class RecognitionError(Exception):
    """Base exception for recognition backend calls."""


class BackendNotConfiguredError(RecognitionError):
    """Raised when a backend base URL is missing from service settings."""


class RecognitionRequestFailed(RecognitionError):
    """Raised when a submit (or stream open) HTTP call to the backend fails."""

    def __init__(self, endpoint: str, cause: object) -> None:
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"Recognition request to '{endpoint}' failed: {cause}")


class UpstreamProtocolError(RecognitionError):
    """Raised when the backend answers with nothing usable."""


class EmptyRecognitionResult(UpstreamProtocolError):
    """Raised when the completion payload is empty or has no keys."""


class StreamIncomplete(RecognitionError):
    """Raised when the event stream ends without a usable completion event."""


class StreamTransportError(RecognitionError):
    """Raised when the event stream fails at the transport level (incl. timeouts)."""
