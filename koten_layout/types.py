from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class LetterboxMapping:
    """
    Parameters needed to undo a letterbox transform.

    A point (x, y) on the padded canvas maps back to the original image as
    ((x - pad_x) / scale, (y - pad_y) / scale).
    """

    scale: float
    pad_x: float
    pad_y: float
    orig_width: int
    orig_height: int

    def to_original(self, x: float, y: float) -> Tuple[float, float]:
        return (x - self.pad_x) / self.scale, (y - self.pad_y) / self.scale

    def to_canvas(self, x: float, y: float) -> Tuple[float, float]:
        return x * self.scale + self.pad_x, y * self.scale + self.pad_y


@dataclass(frozen=True)
class Candidate:
    """
    Box in original-image coordinates, before labels are attached.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float
    class_id: int

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    def area(self) -> float:
        return (self.x2 - self.x1) * (self.y2 - self.y1)


@dataclass(frozen=True)
class Detection(Candidate):
    label: str = ""
    color: str = "#ffffff"

    @classmethod
    def from_candidate(cls, cand: Candidate, label: str, color: str) -> "Detection":
        return cls(
            x1=cand.x1,
            y1=cand.y1,
            x2=cand.x2,
            y2=cand.y2,
            confidence=cand.confidence,
            class_id=cand.class_id,
            label=label,
            color=color,
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
