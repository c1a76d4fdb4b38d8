"""
Class table for the NDL-DocL classical-document layout model.

Lookups never fail: unknown ids fall back to the stringified id and white.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

FALLBACK_COLOR = "#ffffff"


@dataclass(frozen=True)
class ClassDefinition:
    id: int
    key: str
    label: str


CLASSES: Tuple[ClassDefinition, ...] = (
    ClassDefinition(0, "1_overall", "全体"),
    ClassDefinition(1, "2_handwritten", "手書き"),
    ClassDefinition(2, "3_typography", "活字"),
    ClassDefinition(3, "4_illustration", "図版"),
    ClassDefinition(4, "5_stamp", "印判"),
)

COLORS: Tuple[str, ...] = ("#e74c3c", "#3498db", "#2ecc71", "#f39c12", "#9b59b6")


@dataclass(frozen=True)
class ClassTable:
    classes: Tuple[ClassDefinition, ...]
    colors: Tuple[str, ...]

    @classmethod
    def from_labels(cls, labels: Iterable[str], colors: Optional[Sequence[str]] = None) -> "ClassTable":
        defs = tuple(ClassDefinition(i, label, label) for i, label in enumerate(labels))
        palette = tuple(colors) if colors is not None else COLORS
        return cls(classes=defs, colors=palette[: len(defs)])

    def __len__(self) -> int:
        return len(self.classes)

    def _get(self, class_id: int) -> Optional[ClassDefinition]:
        if 0 <= class_id < len(self.classes):
            return self.classes[class_id]
        return None

    def key_for(self, class_id: int) -> str:
        entry = self._get(class_id)
        return entry.key if entry is not None else str(class_id)

    def label_for(self, class_id: int) -> str:
        entry = self._get(class_id)
        return entry.label if entry is not None else str(class_id)

    def color_for(self, class_id: int) -> str:
        if 0 <= class_id < len(self.colors):
            return self.colors[class_id]
        return FALLBACK_COLOR


DEFAULT_CLASS_TABLE = ClassTable(classes=CLASSES, colors=COLORS)
