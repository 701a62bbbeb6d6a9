from idv.config.watcher import SettingsWatcher
from idv.database.models import SessionRecord
from idv.logging.logger import Log
from idv.sessions.models import ProcessingOutcome, SessionChange
from idv.sessions.orchestrator import SessionOrchestrator


class SessionRunner:
    """Run one orchestration unit against the settings snapshot current at start."""

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        settings_watcher: SettingsWatcher,
    ) -> None:
        self._orchestrator = orchestrator
        self._settings_watcher = settings_watcher

    def run(self, session: SessionRecord) -> ProcessingOutcome | None:
        settings = self._settings_watcher.current()
        change = SessionChange(before=None, after=session)
        Log.info(f"Running session {session.id} (status {session.status})")
        try:
            outcome = self._orchestrator.handle_session_update(change, settings)
        except Exception as exc:
            Log.error(f"Session {session.id} crashed outside orchestration: {exc}")
            return None

        if outcome is not None:
            Log.info(
                f"Session {session.id} finished",
                status=outcome.status.value,
                success=outcome.success,
            )
        return outcome
