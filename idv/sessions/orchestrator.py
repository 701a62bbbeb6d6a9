from dataclasses import asdict
from typing import Any

from idv.config.service_settings import ServiceSettings
from idv.database.models import SessionRecord
from idv.database.repositories.session_repository import SessionRepository
from idv.logging.logger import Log
from idv.recognition.client import RecognitionClient
from idv.sessions.models import (
    ENTRY_STATUSES,
    ProcessingOutcome,
    SessionChange,
    SessionStatus,
)
from idv.verification.models import VerificationResult
from idv.webhooks.models import (
    SESSION_COMPLETED,
    SESSION_FAILED,
    SESSION_PROCESSING_STARTED,
)
from idv.webhooks.notifier import WebhookNotifier


class SessionOrchestrator:
    """Drives one eligible session from upload to IN_REVIEW or PROCESSING_FAILED.

    Flow: claim -> recognize -> validate -> archive images -> persist result.
    Any exception after the claim is turned into PROCESSING_FAILED; nothing
    escapes handle_session_update. Webhook outcomes never change state.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        recognition_client: RecognitionClient,
        notifier: WebhookNotifier,
    ) -> None:
        self._session_repo = session_repo
        self._recognition_client = recognition_client
        self._notifier = notifier

    @staticmethod
    def is_eligible(session: SessionRecord | None) -> bool:
        return (
            session is not None
            and session.status in ENTRY_STATUSES
            and bool(session.id_image_front_base64)
        )

    def handle_session_update(
        self,
        change: SessionChange,
        settings: ServiceSettings,
    ) -> ProcessingOutcome | None:
        """Process the session if the change left it eligible.

        Returns None when nothing was done: the session is ineligible or
        another unit claimed it first.
        """
        session = change.after
        if session is None or not self.is_eligible(session):
            return None

        try:
            claimed = self._session_repo.mark_processing(session.id)
        except Exception as exc:
            return self._fail(session, exc, settings)
        if not claimed:
            Log.info("Session already claimed, skipping", session_id=session.id)
            return None

        Log.info("Session marked as processing", session_id=session.id)
        self._notify(
            session.id,
            SESSION_PROCESSING_STARTED,
            {"status": SessionStatus.PROCESSING_IMAGES.value},
            settings,
        )

        try:
            result = self._process(session, settings)
        except Exception as exc:
            return self._fail(session, exc, settings)

        Log.info(
            "Session moved to review",
            session_id=session.id,
            document_type=result.document_type,
            document_valid=result.document_valid,
        )
        self._notify(
            session.id,
            SESSION_COMPLETED,
            {
                "status": SessionStatus.IN_REVIEW.value,
                "document_type": result.document_type,
                "document_valid": result.document_valid,
            },
            settings,
        )
        return ProcessingOutcome(success=True, status=SessionStatus.IN_REVIEW)

    def _process(
        self, session: SessionRecord, settings: ServiceSettings
    ) -> VerificationResult:
        front = session.id_image_front_base64 or ""
        raw = self._recognition_client.recognize_document(
            front, session.id_image_back_base64, settings
        )
        result = VerificationResult.from_payload(raw).validate()

        fields = result.to_session_fields()
        if settings.liveness_check_document:
            liveness = self._recognition_client.check_document_liveness(front, settings)
            fields["document_liveness"] = asdict(liveness)
            Log.info(
                "Document liveness checked",
                session_id=session.id,
                is_live=liveness.is_live,
            )

        self._session_repo.save_images(session.id, archived_images(result, session))
        self._session_repo.mark_in_review(session.id, fields)
        return result

    def _fail(
        self,
        session: SessionRecord,
        exc: Exception,
        settings: ServiceSettings,
    ) -> ProcessingOutcome:
        message = str(exc) or type(exc).__name__
        Log.error(f"Session processing failed: {message}", session_id=session.id)
        try:
            self._session_repo.mark_failed(session.id, message)
        except Exception as persist_exc:
            Log.error(
                f"Could not record session failure: {persist_exc}",
                session_id=session.id,
            )
        self._notify(session.id, SESSION_FAILED, {"error": message}, settings)
        return ProcessingOutcome(
            success=False, status=SessionStatus.PROCESSING_FAILED, error=message
        )

    def _notify(
        self,
        session_id: str,
        event: str,
        data: dict[str, Any],
        settings: ServiceSettings,
    ) -> None:
        try:
            self._notifier.send(session_id, event, data, settings)
        except Exception as exc:
            Log.error(f"Webhook {event} raised: {exc}", session_id=session_id)


def archived_images(result: VerificationResult, session: SessionRecord) -> dict[str, str]:
    """Every non-empty image produced or consumed, keyed by archive name."""
    candidates = {
        "portrait": result.images.portrait,
        "signature": result.images.signature,
        "documentFrontSide": result.images.document_front_side,
        "documentBackSide": result.images.document_back_side,
        "face_image_base64": session.face_image_base64,
        "unCroppedIdFront": session.id_image_front_base64,
        "unCroppedIdBack": session.id_image_back_base64,
    }
    return {name: payload for name, payload in candidates.items() if payload}
