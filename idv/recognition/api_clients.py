import threading

import httpx

from idv.config.service_settings import ServiceSettings
from idv.recognition.exceptions import BackendNotConfiguredError


class ApiClientFactory:
    """Caches one httpx.Client per backend.

    A cached client is rebuilt when the settings snapshot carries a different
    base URL or access token than the one it was built with.
    """

    RECOGNITION = "recognition"
    DOCUMENT_LIVENESS = "document_liveness"

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport
        self._clients: dict[str, tuple[tuple[str, str], httpx.Client]] = {}
        self._retired: list[httpx.Client] = []
        self._lock = threading.Lock()

    def recognition(self, settings: ServiceSettings) -> httpx.Client:
        return self._get(self.RECOGNITION, settings.server_url, settings.access_token)

    def document_liveness(self, settings: ServiceSettings) -> httpx.Client:
        return self._get(
            self.DOCUMENT_LIVENESS,
            settings.document_liveness_server_url,
            settings.access_token,
        )

    def close(self) -> None:
        with self._lock:
            for _key, client in self._clients.values():
                client.close()
            for client in self._retired:
                client.close()
            self._clients.clear()
            self._retired.clear()

    def _get(self, backend: str, base_url: str, access_token: str) -> httpx.Client:
        if not base_url:
            raise BackendNotConfiguredError(f"No base URL configured for {backend} backend")

        key = (base_url, access_token)
        with self._lock:
            cached = self._clients.get(backend)
            if cached is not None and cached[0] == key:
                return cached[1]
            client = httpx.Client(
                base_url=base_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
            if cached is not None:
                # In-flight streams may still hold the old client; close() releases it.
                self._retired.append(cached[1])
            self._clients[backend] = (key, client)
        return client
