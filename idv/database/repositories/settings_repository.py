from typing import Any

from idv.database.connection import get_connection


class SettingsRepository:
    """Reads the service settings document from the settings table."""

    DEFAULT_ID = "all"

    def load(self, settings_id: str = DEFAULT_ID) -> dict[str, Any] | None:
        """Return the stored settings document, or None if it does not exist."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT data FROM settings WHERE id = %s", (settings_id,))
                row = cur.fetchone()

        if row is None or row[0] is None:
            return None
        data: dict[str, Any] = row[0]
        return data
