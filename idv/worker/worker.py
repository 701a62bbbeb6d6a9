import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from idv.config.settings import Settings
from idv.database.models import SessionRecord
from idv.database.repositories.session_repository import SessionRepository
from idv.logging.logger import Log
from idv.worker.session_runner import SessionRunner


class Worker:
    """Poll loop: fetch eligible sessions -> run them in parallel -> sleep when idle."""

    def __init__(
        self,
        session_repo: SessionRepository,
        session_runner: SessionRunner,
        settings: Settings,
    ) -> None:
        self._session_repo = session_repo
        self._session_runner = session_runner
        self._settings = settings

    def run(self, max_polls: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_polls is set, stop after that many polls (for testing).
        """
        Log.info("Worker started, polling for sessions")
        polls = 0
        try:
            with ThreadPoolExecutor(
                max_workers=self._settings.max_concurrent_sessions,
                thread_name_prefix="session",
            ) as executor:
                while max_polls is None or polls < max_polls:
                    sessions = self._try_fetch_sessions()
                    polls += 1
                    if sessions:
                        self._run_batch(executor, sessions)
                    else:
                        Log.debug("No sessions eligible, sleeping")
                        time.sleep(self._settings.session_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _run_batch(self, executor: ThreadPoolExecutor, sessions: list[SessionRecord]) -> None:
        """Run one batch and wait for all of it so a session is never queued twice."""
        futures = {
            executor.submit(self._session_runner.run, session): session for session in sessions
        }
        for future in as_completed(futures):
            exc = future.exception()
            if exc is not None:
                Log.error(f"Session {futures[future].id} escaped its runner: {exc}")

    def _try_fetch_sessions(self) -> list[SessionRecord]:
        """Fetch the next batch of eligible sessions. Gracefully handle DB errors."""
        try:
            return self._session_repo.find_eligible(self._settings.max_concurrent_sessions)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return []
