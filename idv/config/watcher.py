import threading

from pydantic import ValidationError

from idv.config.service_settings import ServiceSettings
from idv.database.repositories.settings_repository import SettingsRepository
from idv.logging.logger import Log


class SettingsWatcher:
    """Publishes immutable ServiceSettings snapshots refreshed from the store.

    Readers call current() once per unit of work and keep that snapshot; a
    refresh swaps the reference and never mutates a published snapshot.
    """

    def __init__(
        self,
        repo: SettingsRepository,
        refresh_interval_seconds: float,
        initial: ServiceSettings | None = None,
    ) -> None:
        self._repo = repo
        self._refresh_interval_seconds = refresh_interval_seconds
        self._snapshot = initial if initial is not None else ServiceSettings()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def current(self) -> ServiceSettings:
        return self._snapshot

    def refresh(self) -> ServiceSettings:
        """Reload settings; keep the previous snapshot if the read fails."""
        try:
            data = self._repo.load()
        except Exception as exc:
            Log.warning(f"Settings refresh failed, keeping previous snapshot: {exc}")
            return self._snapshot

        if data is None:
            Log.warning("Settings record not found, keeping previous snapshot")
            return self._snapshot

        try:
            snapshot = ServiceSettings.from_record(data)
        except ValidationError as exc:
            Log.warning(f"Stored settings are invalid, keeping previous snapshot: {exc}")
            return self._snapshot

        if snapshot != self._snapshot:
            Log.info("Service settings updated")
        self._snapshot = snapshot
        return snapshot

    def start(self) -> None:
        """Load once, then keep refreshing on a daemon thread."""
        self.refresh()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="settings-watcher", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._refresh_interval_seconds)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._refresh_interval_seconds):
            self.refresh()
