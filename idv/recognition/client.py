"""Client for the submit-then-stream protocol of the recognition backends.

Every call is two requests:

1. ``POST {CALL_PATH}/{endpoint}`` with ``{"data": [base64, ...]}`` returns
   ``{"event_id": ...}``.
2. ``GET {CALL_PATH}/{endpoint}/{event_id}`` streams server-sent events; the
   ``complete`` event's data is a JSON array whose first element holds the
   result.

Endpoint names are fixed by the backend. Two-sided document recognition is
submitted to ``id_recognition_base64`` but streamed from ``id_recognition``;
the one-sided variant uses the same name for both requests.
"""

import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from idv.config.service_settings import ServiceSettings
from idv.logging.logger import Log
from idv.recognition.api_clients import ApiClientFactory
from idv.recognition.exceptions import (
    EmptyRecognitionResult,
    RecognitionRequestFailed,
    StreamIncomplete,
    StreamTransportError,
    UpstreamProtocolError,
)
from idv.recognition.models import (
    DocumentLivenessResult,
    FaceComparisonResult,
    FaceLivenessResult,
)
from idv.streaming import iter_complete_payloads

T = TypeVar("T")

CALL_PATH = "/gradio_api/call"

TWO_SIDED_SUBMIT_ENDPOINT = "id_recognition_base64"
TWO_SIDED_STREAM_ENDPOINT = "id_recognition"
ONE_SIDED_ENDPOINT = "id_recognition_oneside_base64"
FACE_LIVENESS_ENDPOINT = "face_liveness_base64"
DOCUMENT_LIVENESS_ENDPOINT = "id_liveness_base64"
FACE_COMPARISON_ENDPOINT = "compare_face_base64"

NO_FACE_DETECTED = "no face detected!"
GENUINE = "genuine"


class RecognitionClient:
    """Stateless apart from the per-backend HTTP clients held by the factory."""

    def __init__(
        self,
        clients: ApiClientFactory,
        *,
        stream_timeout_seconds: float = 30.0,
        submit_delay_seconds: float = 5.0,
    ) -> None:
        self._clients = clients
        self._stream_timeout_seconds = stream_timeout_seconds
        self._submit_delay_seconds = submit_delay_seconds

    def recognize_document(
        self,
        front_base64: str,
        back_base64: str | None,
        settings: ServiceSettings,
    ) -> dict[str, Any]:
        """Run document recognition and return the raw result document.

        Raises:
            RecognitionRequestFailed: submission or stream open failed.
            UpstreamProtocolError: no event id in the submission response.
            StreamIncomplete: the stream ended without a usable result.
            StreamTransportError: the stream broke or timed out.
            EmptyRecognitionResult: the result document is empty.
        """
        if back_base64:
            images = [front_base64, back_base64]
            submit_endpoint = TWO_SIDED_SUBMIT_ENDPOINT
            stream_endpoint = TWO_SIDED_STREAM_ENDPOINT
        else:
            images = [front_base64]
            submit_endpoint = stream_endpoint = ONE_SIDED_ENDPOINT

        client = self._clients.recognition(settings)
        event_id = self._submit(client, submit_endpoint, images)
        Log.info(f"Recognition job submitted to {submit_endpoint}", event_id=event_id)

        result = self._stream_result(client, stream_endpoint, event_id, _output_data)
        if not isinstance(result, dict) or not result:
            raise EmptyRecognitionResult("Empty response received from recognition backend")

        Log.info(
            "Recognition result received",
            event_id=event_id,
            document_name=result.get("documentName"),
            has_ocr="ocr" in result,
        )
        return result

    def check_face_liveness(
        self, face_base64: str, settings: ServiceSettings
    ) -> FaceLivenessResult:
        client = self._clients.recognition(settings)
        return self._run_biometric(
            client, FACE_LIVENESS_ENDPOINT, [face_base64], _face_liveness
        )

    def check_document_liveness(
        self, document_base64: str, settings: ServiceSettings
    ) -> DocumentLivenessResult:
        client = self._clients.document_liveness(settings)
        return self._run_biometric(
            client, DOCUMENT_LIVENESS_ENDPOINT, [document_base64], _document_liveness
        )

    def compare_faces(
        self, face1_base64: str, face2_base64: str, settings: ServiceSettings
    ) -> FaceComparisonResult:
        client = self._clients.recognition(settings)
        return self._run_biometric(
            client, FACE_COMPARISON_ENDPOINT, [face1_base64, face2_base64], _face_comparison
        )

    def _run_biometric(
        self,
        client: httpx.Client,
        endpoint: str,
        images: list[str],
        extract: Callable[[Any], T | None],
    ) -> T:
        event_id = self._submit(client, endpoint, images)
        Log.info(f"Biometric job submitted to {endpoint}", event_id=event_id)
        if self._submit_delay_seconds > 0:
            time.sleep(self._submit_delay_seconds)
        return self._stream_result(client, endpoint, event_id, extract)

    def _submit(self, client: httpx.Client, endpoint: str, images: list[str]) -> str:
        try:
            response = client.post(f"{CALL_PATH}/{endpoint}", json={"data": images})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RecognitionRequestFailed(endpoint, exc) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamProtocolError(
                f"Submission to '{endpoint}' returned invalid JSON: {exc}"
            ) from exc

        event_id = body.get("event_id") if isinstance(body, dict) else None
        if not event_id:
            raise UpstreamProtocolError(f"Submission to '{endpoint}' returned no event_id")
        return str(event_id)

    def _stream_result(
        self,
        client: httpx.Client,
        endpoint: str,
        event_id: str,
        extract: Callable[[Any], T | None],
    ) -> T:
        """Read the event stream until extract() accepts a completion payload.

        Returning from inside the ``with`` block closes the response, which
        abandons the rest of the stream.
        """
        url = f"{CALL_PATH}/{endpoint}/{event_id}"
        try:
            with client.stream(
                "GET",
                url,
                headers={"Accept": "text/event-stream"},
                timeout=self._stream_timeout_seconds,
            ) as response:
                try:
                    response.raise_for_status()
                except httpx.HTTPStatusError as exc:
                    raise RecognitionRequestFailed(endpoint, exc) from exc

                for payload in iter_complete_payloads(response.iter_bytes()):
                    result = extract(payload)
                    if result is not None:
                        return result
        except httpx.TransportError as exc:
            raise StreamTransportError(
                f"Event stream from '{endpoint}' failed: {exc!r}"
            ) from exc

        raise StreamIncomplete(f"Stream from '{endpoint}' ended without valid data")


def _first_output(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0]
    return None


def _output_data(payload: Any) -> Any:
    output = _first_output(payload)
    if output is None:
        return None
    return output.get("data")


def _face_liveness(payload: Any) -> FaceLivenessResult | None:
    output = _first_output(payload)
    if output is None:
        return None
    data = output.get("data")
    if not isinstance(data, dict):
        return None
    if data.get("result") == NO_FACE_DETECTED:
        return FaceLivenessResult(
            status="ok",
            is_live=False,
            liveness_score=0,
            face_rect=data.get("face_rect"),
            angles=data.get("angles"),
        )
    return FaceLivenessResult(
        status=output.get("status"),
        is_live=data.get("result") == GENUINE,
        liveness_score=data.get("liveness_score"),
        face_rect=data.get("face_rect"),
        angles=data.get("angles"),
    )


def _document_liveness(payload: Any) -> DocumentLivenessResult | None:
    output = _first_output(payload)
    if output is None:
        return None
    data = output.get("data")
    if not isinstance(data, dict):
        return None
    return DocumentLivenessResult(
        status=output.get("status"),
        is_live=data.get("result") == GENUINE,
        screenreplay_score=data.get("screenreplay_integrity_score"),
        portraitreplace_score=data.get("portraitreplace_integrity_score"),
        printedcutout_score=data.get("printedcutout_integrity_score"),
    )


def _face_comparison(payload: Any) -> FaceComparisonResult | None:
    data = _output_data(payload)
    if not isinstance(data, dict) or not data:
        return None
    return FaceComparisonResult(result=data.get("result"), similarity=data.get("similarity"))
