from collections.abc import Callable
from typing import Any

import pytest

from idv.config.service_settings import ServiceSettings
from idv.database.models import SessionRecord


@pytest.fixture()
def service_settings() -> ServiceSettings:
    """Fully configured service settings with webhooks on."""
    return ServiceSettings(
        server_url="https://recognition.test",
        document_liveness_server_url="https://liveness.test",
        access_token="token-1",
        session_site_url="https://verify.test/s",
        api_keys=("key-1",),
        webhook_enabled=True,
        webhook_url="https://hooks.test/idv",
        webhook_secret="s3cret",
    )


@pytest.fixture()
def make_session() -> Callable[..., SessionRecord]:
    """Factory for session records waiting for processing."""

    def _make(**overrides: Any) -> SessionRecord:
        values: dict[str, Any] = {
            "id": "sess-1",
            "status": "NOT_STARTED",
            "id_image_front_base64": "RlJPTlQ=",
        }
        values.update(overrides)
        return SessionRecord(**values)

    return _make
