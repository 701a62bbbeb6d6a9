class WebhookError(Exception):
    """Base exception for webhook delivery."""


class DeliveryError(WebhookError):
    """Raised when a webhook POST fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class WebhookConfigurationError(WebhookError):
    """Raised when a test delivery is requested without a usable configuration."""
