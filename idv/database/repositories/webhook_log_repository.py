from idv.database.connection import get_connection
from idv.database.models import WebhookLogEntry


class WebhookLogRepository:
    """Append-only access to the webhook_logs table."""

    def add(self, entry: WebhookLogEntry) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO webhook_logs
                    (session_id, event, status, response_status, error,
                     test, test_id, webhook_url, timestamp)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
                """,
                (
                    entry.session_id,
                    entry.event,
                    entry.status,
                    entry.response_status,
                    entry.error,
                    entry.test,
                    entry.test_id,
                    entry.webhook_url,
                ),
            )
            conn.commit()
