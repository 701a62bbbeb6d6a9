import hashlib
import hmac
import secrets
from typing import Any
from urllib.parse import urlparse

import httpx

from idv.config.service_settings import ServiceSettings
from idv.database.models import WebhookLogEntry
from idv.database.repositories.webhook_log_repository import WebhookLogRepository
from idv.logging.logger import Log
from idv.webhooks.exceptions import DeliveryError, WebhookConfigurationError
from idv.webhooks.models import (
    DELIVERY_FAILED,
    DELIVERY_SUCCESS,
    WEBHOOK_TEST,
    WebhookEvent,
    WebhookTestOutcome,
)

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"


def sign_payload(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the exact body bytes."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class WebhookNotifier:
    """Fire-once signed webhook delivery with a delivery log.

    Deliveries are never retried. Every attempt is recorded in webhook_logs;
    a failure to record is logged and otherwise ignored.
    """

    def __init__(
        self,
        log_repo: WebhookLogRepository,
        *,
        timeout_seconds: float = 10.0,
        test_timeout_seconds: float = 15.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._log_repo = log_repo
        self._timeout_seconds = timeout_seconds
        self._test_timeout_seconds = test_timeout_seconds
        self._http = http_client if http_client is not None else httpx.Client()

    def send(
        self,
        session_id: str,
        event: str,
        data: dict[str, Any],
        settings: ServiceSettings,
    ) -> bool:
        """Deliver a session notification.

        Returns True on a 2xx response. Returns False when delivery failed or
        webhooks are disabled or not configured; never raises for delivery.
        """
        if not settings.webhooks_configured:
            Log.debug("Webhooks not configured or disabled", event=event)
            return False

        webhook_event = WebhookEvent.create(event, data, session_id=session_id)
        try:
            response = self._deliver(webhook_event, settings, self._timeout_seconds)
        except DeliveryError as exc:
            Log.error(
                f"Failed to send webhook notification: {exc}",
                session_id=session_id,
                event=event,
            )
            self._record(
                WebhookLogEntry(
                    session_id=session_id,
                    event=event,
                    status=DELIVERY_FAILED,
                    error=str(exc),
                )
            )
            return False

        Log.info(
            "Webhook delivered",
            session_id=session_id,
            event=event,
            status=response.status_code,
        )
        self._record(
            WebhookLogEntry(
                session_id=session_id,
                event=event,
                status=DELIVERY_SUCCESS,
                response_status=response.status_code,
            )
        )
        return True

    def send_test(self, settings: ServiceSettings) -> WebhookTestOutcome:
        """Send a webhook.test event to the configured endpoint.

        Raises:
            WebhookConfigurationError: if webhooks are disabled or the URL or
                secret is missing or the URL is not absolute http(s).
        """
        self._require_test_configuration(settings)

        test_id = secrets.token_hex(8)
        webhook_event = WebhookEvent.create(
            WEBHOOK_TEST,
            {"message": "This is a test webhook notification", "test_id": test_id},
        )
        Log.info("Sending test webhook", url=settings.webhook_url, test_id=test_id)

        try:
            response = self._deliver(webhook_event, settings, self._test_timeout_seconds)
        except DeliveryError as exc:
            self._record(
                WebhookLogEntry(
                    event=WEBHOOK_TEST,
                    status=DELIVERY_FAILED,
                    response_status=exc.status_code,
                    error=str(exc),
                    test=True,
                    test_id=test_id,
                    webhook_url=settings.webhook_url,
                )
            )
            return WebhookTestOutcome(
                success=False,
                test_id=test_id,
                response_status=exc.status_code,
                error=str(exc),
            )

        self._record(
            WebhookLogEntry(
                event=WEBHOOK_TEST,
                status=DELIVERY_SUCCESS,
                response_status=response.status_code,
                test=True,
                test_id=test_id,
                webhook_url=settings.webhook_url,
            )
        )
        return WebhookTestOutcome(
            success=True, test_id=test_id, response_status=response.status_code
        )

    def _deliver(
        self,
        webhook_event: WebhookEvent,
        settings: ServiceSettings,
        timeout_seconds: float,
    ) -> httpx.Response:
        body = webhook_event.serialize()
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(body, settings.webhook_secret),
            EVENT_HEADER: webhook_event.event,
        }
        try:
            response = self._http.post(
                settings.webhook_url,
                content=body,
                headers=headers,
                timeout=timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DeliveryError(
                f"Webhook server responded with status {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TimeoutException as exc:
            raise DeliveryError("No response received from webhook server") from exc
        except httpx.ConnectError as exc:
            raise DeliveryError(f"Could not connect to webhook server: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Failed to deliver webhook: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise DeliveryError(f"Invalid webhook URL: {exc}") from exc
        except Exception as exc:
            raise DeliveryError(f"Failed to deliver webhook: {exc!r}") from exc
        return response

    def _record(self, entry: WebhookLogEntry) -> None:
        try:
            self._log_repo.add(entry)
        except Exception as exc:
            Log.error(
                f"Failed to record webhook delivery: {exc}",
                session_id=entry.session_id,
                event=entry.event,
            )

    @staticmethod
    def _require_test_configuration(settings: ServiceSettings) -> None:
        if not settings.webhook_enabled:
            raise WebhookConfigurationError("Webhooks are not enabled in settings")
        if not settings.webhook_url:
            raise WebhookConfigurationError("Webhook URL is not configured in settings")
        if not settings.webhook_secret:
            raise WebhookConfigurationError("Webhook secret is not configured in settings")
        parsed = urlparse(settings.webhook_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise WebhookConfigurationError("Invalid webhook URL format in settings")
