from unittest.mock import MagicMock, patch

from idv.config.service_settings import ServiceSettings
from idv.config.watcher import SettingsWatcher
from idv.database.repositories.settings_repository import SettingsRepository


def _make_watcher(
    initial: ServiceSettings | None = None,
) -> tuple[SettingsWatcher, MagicMock]:
    mock_repo = MagicMock()
    watcher = SettingsWatcher(mock_repo, refresh_interval_seconds=60, initial=initial)
    return watcher, mock_repo


class TestRefresh:
    def test_publishes_new_snapshot(self) -> None:
        watcher, mock_repo = _make_watcher()
        mock_repo.load.return_value = {"server_url": "https://recognition.test"}

        watcher.refresh()

        assert watcher.current().server_url == "https://recognition.test"

    def test_earlier_snapshot_is_untouched(self) -> None:
        watcher, mock_repo = _make_watcher()
        mock_repo.load.return_value = {"server_url": "https://a.test"}
        watcher.refresh()
        held = watcher.current()

        mock_repo.load.return_value = {"server_url": "https://b.test"}
        watcher.refresh()

        assert held.server_url == "https://a.test"
        assert watcher.current().server_url == "https://b.test"

    def test_read_error_keeps_previous_snapshot(self) -> None:
        initial = ServiceSettings(server_url="https://a.test")
        watcher, mock_repo = _make_watcher(initial)
        mock_repo.load.side_effect = Exception("db down")

        assert watcher.refresh() is initial
        assert watcher.current() is initial

    def test_missing_record_keeps_previous_snapshot(self) -> None:
        initial = ServiceSettings(server_url="https://a.test")
        watcher, mock_repo = _make_watcher(initial)
        mock_repo.load.return_value = None

        watcher.refresh()

        assert watcher.current() is initial

    def test_invalid_document_keeps_previous_snapshot(self) -> None:
        initial = ServiceSettings(server_url="https://a.test")
        watcher, mock_repo = _make_watcher(initial)
        mock_repo.load.return_value = {"server_url": "https://b.test", "api_keys": [123]}

        assert watcher.refresh() is initial
        assert watcher.current() is initial

    def test_defaults_before_first_load(self) -> None:
        watcher, _repo = _make_watcher()
        assert watcher.current() == ServiceSettings()


class TestLifecycle:
    def test_start_loads_immediately(self) -> None:
        watcher, mock_repo = _make_watcher()
        mock_repo.load.return_value = {"access_token": "token-1"}

        watcher.start()
        try:
            assert watcher.current().access_token == "token-1"
        finally:
            watcher.stop()

    def test_start_survives_invalid_document(self) -> None:
        watcher, mock_repo = _make_watcher()
        mock_repo.load.return_value = {"api_keys": "not-a-list"}

        watcher.start()
        try:
            assert watcher.current() == ServiceSettings()
        finally:
            watcher.stop()

    def test_stop_without_start(self) -> None:
        watcher, _repo = _make_watcher()
        watcher.stop()  # Should not raise


def _mock_connection(mock_get_conn: MagicMock) -> MagicMock:
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_cursor


class TestSettingsRepository:
    @patch("idv.database.repositories.settings_repository.get_connection")
    def test_returns_document(self, mock_get_conn: MagicMock) -> None:
        mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = ({"server_url": "https://a.test"},)

        assert SettingsRepository().load() == {"server_url": "https://a.test"}
        assert mock_cursor.execute.call_args.args[1] == ("all",)

    @patch("idv.database.repositories.settings_repository.get_connection")
    def test_returns_none_when_missing(self, mock_get_conn: MagicMock) -> None:
        mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        assert SettingsRepository().load() is None
