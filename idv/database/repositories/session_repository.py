from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from idv.database.connection import get_connection
from idv.database.models import SessionRecord
from idv.sessions.exceptions import SessionNotFoundError
from idv.sessions.models import ENTRY_STATUSES, SessionStatus

_SESSION_COLUMNS = (
    "id",
    "status",
    "vendor_id",
    "session_url",
    "created_by",
    "id_image_front_base64",
    "id_image_back_base64",
    "face_image_base64",
    "document_type",
    "document_number",
    "personal_number",
    "issuing_state",
    "first_name",
    "last_name",
    "date_of_birth",
    "document_valid",
    "document_score",
    "recognition_id",
    "portrait_image_base64",
    "signature_image_base64",
    "document_front_image_base64",
    "document_back_image_base64",
    "ocr_data",
    "nation_data",
    "document_liveness",
    "error_message",
    "created_at",
    "updated_at",
)

# Columns the orchestrator may write when a session reaches review.
RESULT_COLUMNS = frozenset(
    {
        "document_type",
        "document_number",
        "personal_number",
        "issuing_state",
        "first_name",
        "last_name",
        "date_of_birth",
        "document_valid",
        "document_score",
        "recognition_id",
        "portrait_image_base64",
        "signature_image_base64",
        "document_front_image_base64",
        "document_back_image_base64",
        "face_image_base64",
        "ocr_data",
        "nation_data",
        "document_liveness",
    }
)

_JSON_COLUMNS = frozenset({"ocr_data", "nation_data", "document_liveness"})

_SELECT_SESSION = sql.SQL("SELECT {columns} FROM sessions").format(
    columns=sql.SQL(", ").join(sql.Identifier(c) for c in _SESSION_COLUMNS)
)


def _row_to_record(row: dict[str, Any]) -> SessionRecord:
    values = {column: row.get(column) for column in _SESSION_COLUMNS}
    values["ocr_data"] = values["ocr_data"] or {}
    values["nation_data"] = values["nation_data"] or {}
    if values["document_score"] is not None:
        values["document_score"] = float(values["document_score"])
    return SessionRecord(**values)


class SessionRepository:
    """Database operations for the sessions and session_images tables."""

    def find_by_id(self, session_id: str) -> SessionRecord:
        """Find a session by ID.

        Raises:
            SessionNotFoundError: if no session with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(_SELECT_SESSION + sql.SQL(" WHERE id = %s"), (session_id,))
                row = cur.fetchone()

        if row is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return _row_to_record(row)

    def find_eligible(self, limit: int) -> list[SessionRecord]:
        """Sessions waiting in an entry status with a front image, oldest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    _SELECT_SESSION
                    + sql.SQL(
                        """
                        WHERE status = ANY(%s)
                          AND id_image_front_base64 IS NOT NULL
                          AND id_image_front_base64 <> ''
                        ORDER BY updated_at
                        LIMIT %s
                        """
                    ),
                    (sorted(ENTRY_STATUSES), limit),
                )
                rows = cur.fetchall()
        return [_row_to_record(row) for row in rows]

    def mark_processing(self, session_id: str) -> bool:
        """Advance a session to PROCESSING_IMAGES if it is still eligible.

        Compare-and-set: only one caller can win for a given session.
        Returns False when the session was already claimed or is no longer
        eligible.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE sessions
                    SET status = %s, updated_at = NOW()
                    WHERE id = %s
                      AND status = ANY(%s)
                      AND id_image_front_base64 IS NOT NULL
                      AND id_image_front_base64 <> ''
                    """,
                    (
                        SessionStatus.PROCESSING_IMAGES.value,
                        session_id,
                        sorted(ENTRY_STATUSES),
                    ),
                )
                claimed = cur.rowcount == 1
            conn.commit()
        return claimed

    def save_images(self, session_id: str, images: dict[str, str]) -> None:
        """Archive image payloads under the session in a single transaction."""
        if not images:
            return
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    """
                    INSERT INTO session_images (session_id, name, base64, created_at)
                    VALUES (%s, %s, %s, NOW())
                    ON CONFLICT (session_id, name)
                    DO UPDATE SET base64 = EXCLUDED.base64, created_at = EXCLUDED.created_at
                    """,
                    [(session_id, name, payload) for name, payload in images.items()],
                )
            conn.commit()

    def mark_in_review(self, session_id: str, fields: dict[str, Any]) -> None:
        """Persist result fields, move to IN_REVIEW and drop the raw uploads.

        Raises:
            ValueError: if fields names a column outside RESULT_COLUMNS.
            SessionNotFoundError: if no session with this ID exists.
        """
        unknown = set(fields) - RESULT_COLUMNS
        if unknown:
            raise ValueError(f"Unknown session result columns: {sorted(unknown)}")

        assignments = [
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder())
            for column in fields
        ]
        values = [
            Jsonb(value) if column in _JSON_COLUMNS and value is not None else value
            for column, value in fields.items()
        ]
        query = sql.SQL(
            """
            UPDATE sessions
            SET {assignments},
                status = %s,
                id_image_front_base64 = NULL,
                id_image_back_base64 = NULL,
                error_message = NULL,
                updated_at = NOW()
            WHERE id = %s
            """
        ).format(assignments=sql.SQL(", ").join(assignments))

        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (*values, SessionStatus.IN_REVIEW.value, session_id))
                if cur.rowcount == 0:
                    raise SessionNotFoundError(f"Session {session_id} not found")
            conn.commit()

    def mark_failed(self, session_id: str, error: str) -> None:
        """Mark a session as failed. Raw image payloads are left in place."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE sessions
                SET status = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (SessionStatus.PROCESSING_FAILED.value, error, session_id),
            )
            conn.commit()

    def create(
        self,
        session_id: str,
        session_url: str,
        vendor_id: str | None,
        created_by: str = "api",
    ) -> SessionRecord:
        """Insert a NOT_STARTED session and return it as stored."""
        query = sql.SQL(
            """
            INSERT INTO sessions (id, status, session_url, vendor_id, created_by,
                                  created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, NOW(), NOW())
            RETURNING {columns}
            """
        ).format(columns=sql.SQL(", ").join(sql.Identifier(c) for c in _SESSION_COLUMNS))

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    query,
                    (
                        session_id,
                        SessionStatus.NOT_STARTED.value,
                        session_url,
                        vendor_id,
                        created_by,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Insert of session {session_id} returned no row")
        return _row_to_record(row)
