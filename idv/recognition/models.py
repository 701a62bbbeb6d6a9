from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FaceLivenessResult:
    status: str | None
    is_live: bool
    liveness_score: float | None
    face_rect: Any = None
    angles: Any = None


@dataclass(frozen=True)
class DocumentLivenessResult:
    status: str | None
    is_live: bool
    screenreplay_score: float | None = None
    portraitreplace_score: float | None = None
    printedcutout_score: float | None = None


@dataclass(frozen=True)
class FaceComparisonResult:
    result: Any
    similarity: float | None
