class VerificationValidationError(Exception):
    """Raised when a recognition result cannot be accepted."""


class MissingDocumentType(VerificationValidationError):
    """Raised when the recognition result names no document type."""
