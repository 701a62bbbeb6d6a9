import uuid
from collections.abc import Callable

from idv.config.service_settings import ServiceSettings
from idv.database.models import SessionRecord
from idv.database.repositories.session_repository import SessionRepository
from idv.logging.logger import Log
from idv.sessions.exceptions import InvalidApiKeyError
from idv.sessions.models import SessionStatus
from idv.webhooks.models import SESSION_CREATED
from idv.webhooks.notifier import WebhookNotifier


def _new_session_id() -> str:
    return uuid.uuid4().hex


class SessionCreator:
    """Creates NOT_STARTED sessions for API clients."""

    def __init__(
        self,
        session_repo: SessionRepository,
        notifier: WebhookNotifier,
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        self._session_repo = session_repo
        self._notifier = notifier
        self._id_factory = id_factory

    def create(
        self,
        api_key: str | None,
        vendor_id: str | None,
        settings: ServiceSettings,
    ) -> SessionRecord:
        """Create a session and announce it with session.created.

        Raises:
            InvalidApiKeyError: if api_key is not one of settings.api_keys.
        """
        if not api_key or api_key not in settings.api_keys:
            raise InvalidApiKeyError("Invalid API key")

        session_id = self._id_factory()
        session_url = f"{settings.session_site_url}/{session_id}"
        session = self._session_repo.create(session_id, session_url, vendor_id)
        Log.info("Session created", session_id=session_id, vendor_id=vendor_id)

        self._notifier.send(
            session_id,
            SESSION_CREATED,
            {"status": SessionStatus.NOT_STARTED.value},
            settings,
        )
        return session
