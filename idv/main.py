import argparse

from idv.config.settings import Settings
from idv.config.watcher import SettingsWatcher
from idv.database.connection import close_pool, init_pool
from idv.database.repositories.session_repository import SessionRepository
from idv.database.repositories.settings_repository import SettingsRepository
from idv.database.repositories.webhook_log_repository import WebhookLogRepository
from idv.logging.logger import Log
from idv.recognition.api_clients import ApiClientFactory
from idv.recognition.client import RecognitionClient
from idv.sessions.creator import SessionCreator
from idv.sessions.orchestrator import SessionOrchestrator
from idv.webhooks.notifier import WebhookNotifier
from idv.worker.session_runner import SessionRunner
from idv.worker.worker import Worker


def build_orchestrator(
    settings: Settings,
    session_repo: SessionRepository,
    notifier: WebhookNotifier,
    clients: ApiClientFactory,
) -> SessionOrchestrator:
    """Wire the orchestrator with a recognition client built from settings."""
    recognition_client = RecognitionClient(
        clients,
        stream_timeout_seconds=settings.recognition_stream_timeout_seconds,
        submit_delay_seconds=settings.biometric_submit_delay_seconds,
    )
    return SessionOrchestrator(session_repo, recognition_client, notifier)


def build_notifier(settings: Settings) -> WebhookNotifier:
    return WebhookNotifier(
        WebhookLogRepository(),
        timeout_seconds=settings.webhook_timeout_seconds,
        test_timeout_seconds=settings.webhook_test_timeout_seconds,
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="idv-worker")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("run", help="process eligible sessions until interrupted")
    create = commands.add_parser("create-session", help="create a NOT_STARTED session")
    create.add_argument("--api-key", required=True)
    create.add_argument("--vendor-id")
    commands.add_parser("test-webhook", help="send a webhook.test event")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point: initialize pool -> load service settings -> run a command."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    watcher = SettingsWatcher(
        SettingsRepository(), settings.settings_refresh_interval_seconds
    )
    try:
        session_repo = SessionRepository()
        notifier = build_notifier(settings)

        if args.command == "create-session":
            watcher.refresh()
            session = SessionCreator(session_repo, notifier).create(
                args.api_key, args.vendor_id, watcher.current()
            )
            Log.info(f"Created session {session.id}", session_url=session.session_url)
        elif args.command == "test-webhook":
            watcher.refresh()
            outcome = notifier.send_test(watcher.current())
            Log.info(
                "Test webhook finished",
                success=outcome.success,
                test_id=outcome.test_id,
                response_status=outcome.response_status,
                error=outcome.error,
            )
        else:
            watcher.start()
            clients = ApiClientFactory()
            orchestrator = build_orchestrator(settings, session_repo, notifier, clients)
            worker = Worker(session_repo, SessionRunner(orchestrator, watcher), settings)
            try:
                worker.run()
            finally:
                clients.close()
    finally:
        watcher.stop()
        close_pool()


if __name__ == "__main__":
    main()
