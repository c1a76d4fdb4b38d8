from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np

from .classes import ClassTable
from .types import Detection


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    """
    "#rrggbb" -> (b, g, r) for OpenCV. Malformed strings give white.
    """

    value = color.lstrip("#")
    if len(value) != 6:
        return (255, 255, 255)
    try:
        r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return (255, 255, 255)
    return (b, g, r)


def _ascii_label(det: Detection, class_table: Optional[ClassTable]) -> str:
    # Hershey fonts only cover ASCII; fall back to the class key.
    if det.label.isascii():
        return det.label
    if class_table is not None:
        return class_table.key_for(det.class_id)
    return str(det.class_id)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_table: Optional[ClassTable] = None,
    show_score: bool = True,
    font_scale: Optional[float] = None,
) -> np.ndarray:
    """
    Draw boxes + labels on an OpenCV BGR image and return a copy.

    Line width is max(2, W / 300). Boxes are clamped to the image, since
    decoded coordinates can fall slightly outside it.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]
    thickness = max(2, int(round(w / 300)))
    if font_scale is None:
        font_scale = max(0.5, w / 1600)
    font_thickness = max(1, thickness // 2)

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        color = hex_to_bgr(det.color)
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=thickness)

        label = _ascii_label(det, class_table)
        if show_score:
            label = f"{label} {det.confidence * 100:.0f}%"

        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Label above the box if it fits, else inside.
        y_text_top = y1i - th - baseline
        if y_text_top < 0:
            y_text_top = y1i

        x_text_right = min(x1i + tw + 8, w - 1)
        y_text_bottom = min(y_text_top + th + baseline, h - 1)

        cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1i + 4, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
