from unittest.mock import MagicMock, patch

import pytest
from psycopg.types.json import Jsonb

from idv.database.models import SessionRecord
from idv.database.repositories.session_repository import SessionRepository
from idv.sessions.exceptions import SessionNotFoundError

_MODULE = "idv.database.repositories.session_repository.get_connection"


def _make_row(**overrides: object) -> dict:
    row: dict = {
        "id": "sess-1",
        "status": "NOT_STARTED",
        "vendor_id": "vendor-9",
        "session_url": "https://verify.test/s/sess-1",
        "id_image_front_base64": "RlJPTlQ=",
        "document_score": None,
        "ocr_data": None,
        "nation_data": None,
    }
    row.update(overrides)
    return row


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


class TestFindById:
    @patch(_MODULE)
    def test_returns_session_when_found(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row(document_score="0.97")

        result = SessionRepository().find_by_id("sess-1")

        assert isinstance(result, SessionRecord)
        assert result.id == "sess-1"
        assert result.vendor_id == "vendor-9"
        assert result.document_score == 0.97
        assert result.ocr_data == {}
        assert result.nation_data == {}

    @patch(_MODULE)
    def test_raises_not_found_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(SessionNotFoundError, match="Session nope not found"):
            SessionRepository().find_by_id("nope")


class TestFindEligible:
    @patch(_MODULE)
    def test_queries_entry_statuses_with_limit(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(), _make_row(id="sess-2")]

        result = SessionRepository().find_eligible(4)

        assert [s.id for s in result] == ["sess-1", "sess-2"]
        params = mock_cursor.execute.call_args.args[1]
        assert params == (["IN_PROGRESS", "NOT_STARTED"], 4)


class TestMarkProcessing:
    @patch(_MODULE)
    def test_returns_true_when_claimed(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        assert SessionRepository().mark_processing("sess-1") is True
        params = mock_cursor.execute.call_args.args[1]
        assert params == ("PROCESSING_IMAGES", "sess-1", ["IN_PROGRESS", "NOT_STARTED"])
        mock_conn.commit.assert_called_once()

    @patch(_MODULE)
    def test_returns_false_when_already_claimed(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        assert SessionRepository().mark_processing("sess-1") is False

    @patch(_MODULE)
    def test_update_is_conditional_on_status(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        SessionRepository().mark_processing("sess-1")

        query = mock_cursor.execute.call_args.args[0]
        assert "status = ANY(%s)" in query
        assert "id_image_front_base64 IS NOT NULL" in query


class TestSaveImages:
    @patch(_MODULE)
    def test_writes_all_images_in_one_commit(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)

        SessionRepository().save_images("sess-1", {"portrait": "UE9S", "unCroppedIdFront": "RlJU"})

        rows = mock_cursor.executemany.call_args.args[1]
        assert rows == [("sess-1", "portrait", "UE9S"), ("sess-1", "unCroppedIdFront", "RlJU")]
        mock_conn.commit.assert_called_once()

    @patch(_MODULE)
    def test_empty_mapping_skips_database(self, mock_get_conn: MagicMock) -> None:
        SessionRepository().save_images("sess-1", {})

        mock_get_conn.assert_not_called()


class TestMarkInReview:
    @patch(_MODULE)
    def test_writes_fields_and_status(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        SessionRepository().mark_in_review(
            "sess-1", {"document_type": "PASSPORT", "ocr_data": {"name": "Jane Doe"}}
        )

        params = mock_cursor.execute.call_args.args[1]
        assert params[0] == "PASSPORT"
        assert isinstance(params[1], Jsonb)
        assert params[1].obj == {"name": "Jane Doe"}
        assert params[2:] == ("IN_REVIEW", "sess-1")
        mock_conn.commit.assert_called_once()

    @patch(_MODULE)
    def test_rejects_unknown_columns(self, mock_get_conn: MagicMock) -> None:
        with pytest.raises(ValueError, match="status"):
            SessionRepository().mark_in_review("sess-1", {"status": "DONE"})

        mock_get_conn.assert_not_called()

    @patch(_MODULE)
    def test_raises_not_found_when_no_row_updated(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        with pytest.raises(SessionNotFoundError):
            SessionRepository().mark_in_review("nope", {"document_type": "PASSPORT"})


class TestMarkFailed:
    @patch(_MODULE)
    def test_stores_error_message(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)

        SessionRepository().mark_failed("sess-1", "stream ended")

        query, params = mock_conn.execute.call_args.args
        assert params == ("PROCESSING_FAILED", "stream ended", "sess-1")
        assert "id_image_front_base64" not in query
        mock_conn.commit.assert_called_once()


class TestCreate:
    @patch(_MODULE)
    def test_inserts_not_started_session(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row(id_image_front_base64=None)

        result = SessionRepository().create("sess-1", "https://verify.test/s/sess-1", "vendor-9")

        params = mock_cursor.execute.call_args.args[1]
        assert params == (
            "sess-1",
            "NOT_STARTED",
            "https://verify.test/s/sess-1",
            "vendor-9",
            "api",
        )
        assert result.status == "NOT_STARTED"
        mock_conn.commit.assert_called_once()
