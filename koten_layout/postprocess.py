import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .classes import DEFAULT_CLASS_TABLE, ClassTable
from .errors import ShapeMismatch
from .nms import nms
from .types import Candidate, Detection, LetterboxMapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutPostConfig:
    """
    Thresholds for turning raw model output into detections.

    Values outside [0, 1] are accepted as-is: 0 keeps every anchor, anything
    above the best possible score keeps nothing.
    """

    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    # Optional list of class IDs to keep; None keeps all.
    class_ids: Optional[Sequence[int]] = None


class LayoutPostprocessor:
    """
    Decoder for channel-first YOLO exports shaped (1, 4 + C, A), e.g.
    (1, 9, 8400) for the 5-class layout model:

    - rows 0..3: cx, cy, w, h on the letterboxed canvas
    - rows 4..4+C-1: per-class scores

    No objectness row. NaN class scores are ignored when picking the best
    class. Output boxes are in original-image pixels with x1 <= x2 and
    y1 <= y2 (negative w/h are folded), and are not clipped; renderers clamp.
    """

    def __init__(self, cfg: LayoutPostConfig = LayoutPostConfig(), class_table: ClassTable = DEFAULT_CLASS_TABLE):
        self.cfg = cfg
        self.class_table = class_table

    def process(self, preds: np.ndarray, mapping: LetterboxMapping) -> List[Detection]:
        candidates = self.candidates(preds, mapping)
        kept = nms(candidates, self.cfg.iou_threshold)
        LOGGER.debug("%d candidates, %d kept after NMS", len(candidates), len(kept))
        return [
            Detection.from_candidate(
                cand,
                label=self.class_table.label_for(cand.class_id),
                color=self.class_table.color_for(cand.class_id),
            )
            for cand in kept
        ]

    def candidates(self, preds: np.ndarray, mapping: LetterboxMapping) -> List[Candidate]:
        """
        Threshold and un-letterbox every anchor, before NMS. Order follows
        anchor index.
        """

        boxes_xyxy, scores, class_ids = self._decode(preds)

        keep = scores >= self.cfg.conf_threshold
        if self.cfg.class_ids is not None:
            keep &= np.isin(class_ids, np.asarray(self.cfg.class_ids))
        if not keep.any():
            return []

        boxes_xyxy = self._scale_boxes(boxes_xyxy[keep], mapping)
        return [
            Candidate(
                x1=float(x1),
                y1=float(y1),
                x2=float(x2),
                y2=float(y2),
                confidence=float(score),
                class_id=int(cls_id),
            )
            for (x1, y1, x2, y2), score, cls_id in zip(boxes_xyxy, scores[keep], class_ids[keep])
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode(self, preds: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        (1, 4 + C, A) or (4 + C, A) -> xyxy canvas boxes (A, 4), best score (A,), class id (A,).
        """

        p = np.asarray(preds)
        if p.ndim == 3:
            if p.shape[0] != 1:
                raise ShapeMismatch(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]
        if p.ndim != 2:
            raise ShapeMismatch(f"Expected output shape (1, 4 + C, A), got {np.asarray(preds).shape}")

        channels, anchors = p.shape
        if channels <= 4:
            raise ShapeMismatch(f"Output has {channels} channels; need 4 box rows plus at least one class row.")
        if anchors <= 0:
            raise ShapeMismatch("Output has no anchors.")

        p = p.astype(np.float64, copy=False)
        # NaN scores never count as the best class.
        class_scores = np.where(np.isnan(p[4:, :]), -np.inf, p[4:, :])
        # argmax returns the first maximum, so ties go to the lowest class id.
        class_ids = np.argmax(class_scores, axis=0)
        scores = class_scores[class_ids, np.arange(anchors)]

        cx, cy, w_box, h_box = p[0], p[1], p[2], p[3]
        ax, bx = cx - w_box / 2, cx + w_box / 2
        ay, by = cy - h_box / 2, cy + h_box / 2
        # Negative w/h would invert the corners; keep x1 <= x2 and y1 <= y2.
        boxes_xyxy = np.stack(
            [np.minimum(ax, bx), np.minimum(ay, by), np.maximum(ax, bx), np.maximum(ay, by)],
            axis=1,
        )
        return boxes_xyxy, scores, class_ids

    @staticmethod
    def _scale_boxes(boxes: np.ndarray, mapping: LetterboxMapping) -> np.ndarray:
        """
        Map boxes from the letterboxed canvas back to the original image.
        """

        out = boxes.copy()
        out[:, [0, 2]] = (out[:, [0, 2]] - mapping.pad_x) / mapping.scale
        out[:, [1, 3]] = (out[:, [1, 3]] - mapping.pad_y) / mapping.scale
        return out


def decode(
    output: np.ndarray,
    mapping: LetterboxMapping,
    conf_threshold: float = 0.5,
    iou_threshold: float = 0.45,
    class_table: ClassTable = DEFAULT_CLASS_TABLE,
) -> List[Detection]:
    post = LayoutPostprocessor(
        LayoutPostConfig(conf_threshold=conf_threshold, iou_threshold=iou_threshold),
        class_table=class_table,
    )
    return post.process(output, mapping)
