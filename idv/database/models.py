from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class SessionRecord:
    """Represents a row from the sessions table."""

    id: str
    status: str
    vendor_id: str | None = None
    session_url: str | None = None
    created_by: str | None = None
    id_image_front_base64: str | None = None
    id_image_back_base64: str | None = None
    face_image_base64: str | None = None
    document_type: str | None = None
    document_number: str | None = None
    personal_number: str | None = None
    issuing_state: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    document_valid: bool | None = None
    document_score: float | None = None
    recognition_id: str | None = None
    portrait_image_base64: str | None = None
    signature_image_base64: str | None = None
    document_front_image_base64: str | None = None
    document_back_image_base64: str | None = None
    ocr_data: dict[str, Any] = field(default_factory=dict)
    nation_data: dict[str, Any] = field(default_factory=dict)
    document_liveness: dict[str, Any] | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class WebhookLogEntry:
    """One delivery attempt, appended to the webhook_logs table."""

    event: str
    status: str
    session_id: str | None = None
    response_status: int | None = None
    error: str | None = None
    test: bool = False
    test_id: str | None = None
    webhook_url: str | None = None
