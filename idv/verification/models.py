from dataclasses import dataclass, field
from typing import Any

from idv.verification.exceptions import MissingDocumentType

VALID_STATE_SENTINEL = 1


@dataclass(frozen=True)
class DocumentImages:
    """Image crops returned by the recognition backend, base64 encoded."""

    portrait: str | None = None
    signature: str | None = None
    document_front_side: str | None = None
    document_back_side: str | None = None

    @classmethod
    def from_payload(cls, raw: Any) -> "DocumentImages":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            portrait=raw.get("portrait") or None,
            signature=raw.get("signature") or None,
            document_front_side=raw.get("documentFrontSide") or None,
            document_back_side=raw.get("documentBackSide") or None,
        )


@dataclass(frozen=True)
class VerificationResult:
    """Normalized view of a raw recognition result document."""

    document_type: str | None = None
    document_number: str | None = None
    personal_number: str | None = None
    issuing_state: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    document_valid: bool = False
    document_score: float = 0
    vendor_id: str | None = None
    images: DocumentImages = field(default_factory=DocumentImages)
    ocr_data: dict[str, Any] = field(default_factory=dict)
    nation_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "VerificationResult":
        """Map a recognition result document onto a VerificationResult."""
        ocr = data.get("ocr")
        if not isinstance(ocr, dict):
            ocr = {}
        nation = data.get("nation")
        first_name, last_name = split_full_name(ocr.get("name"))
        return cls(
            document_type=_text(data.get("documentName")),
            document_number=_text(ocr.get("identityCardNumber")),
            personal_number=_text(ocr.get("personalNumber")),
            issuing_state=_text(data.get("countryName")),
            first_name=first_name,
            last_name=last_name,
            date_of_birth=_text(ocr.get("dateOfBirth")),
            document_valid=_is_valid_state(ocr.get("validState")),
            document_score=data.get("score") or 0,
            vendor_id=_text(data.get("id")),
            images=DocumentImages.from_payload(data.get("image")),
            ocr_data=ocr,
            nation_data=nation if isinstance(nation, dict) else {},
        )

    def validate(self) -> "VerificationResult":
        """Return self when acceptable.

        Raises:
            MissingDocumentType: if no document type was recognised.
        """
        if not self.document_type:
            raise MissingDocumentType("Document type is required")
        return self

    def to_session_fields(self) -> dict[str, Any]:
        """Session columns written when the session moves to review."""
        return {
            "document_type": self.document_type,
            "document_number": self.document_number,
            "personal_number": self.personal_number,
            "issuing_state": self.issuing_state,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth,
            "document_valid": self.document_valid,
            "document_score": self.document_score,
            "recognition_id": self.vendor_id,
            "portrait_image_base64": self.images.portrait,
            "signature_image_base64": self.images.signature,
            "document_front_image_base64": self.images.document_front_side,
            "document_back_image_base64": self.images.document_back_side,
            "face_image_base64": self.images.portrait,
            "ocr_data": self.ocr_data,
            "nation_data": self.nation_data,
        }


def split_full_name(full_name: Any) -> tuple[str | None, str | None]:
    """Split "First Last" on single spaces.

    Only the first two tokens are kept: "Jane Q Doe" gives ("Jane", "Q").
    This is lossy for middle names and multi-part surnames.
    """
    if not isinstance(full_name, str) or not full_name:
        return None, None
    tokens = full_name.split(" ")
    first = tokens[0] or None
    last = (tokens[1] or None) if len(tokens) > 1 else None
    return first, last


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _is_valid_state(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return value == VALID_STATE_SENTINEL
