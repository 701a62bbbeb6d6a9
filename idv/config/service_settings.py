from typing import Any

from pydantic import BaseModel, ConfigDict

# Stored document key -> field name.
_RECORD_KEYS = {
    "server_url": "server_url",
    "document_liveness_server_url": "document_liveness_server_url",
    "access_token": "access_token",
    "liveness_check_document": "liveness_check_document",
    "sessionSiteUrl": "session_site_url",
    "api_keys": "api_keys",
    "webhook_enabled": "webhook_enabled",
    "webhook_url": "webhook_url",
    "webhook_secret": "webhook_secret",
}


class ServiceSettings(BaseModel):
    """Immutable snapshot of the hot-reloadable service configuration."""

    model_config = ConfigDict(frozen=True)

    server_url: str = ""
    document_liveness_server_url: str = ""
    access_token: str = ""
    liveness_check_document: bool = False
    session_site_url: str = ""
    api_keys: tuple[str, ...] = ()
    webhook_enabled: bool = False
    webhook_url: str = ""
    webhook_secret: str = ""

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "ServiceSettings":
        """Build a snapshot from the stored settings document.

        Null or missing keys fall back to defaults; other values are validated
        as stored.

        Raises:
            pydantic.ValidationError: if a stored value has the wrong type.
        """
        values = {
            field: data[key]
            for key, field in _RECORD_KEYS.items()
            if data.get(key) is not None
        }
        return cls.model_validate(values)

    @property
    def webhooks_configured(self) -> bool:
        return bool(self.webhook_enabled and self.webhook_url and self.webhook_secret)
