from typing import Dict, List, Sequence, TypeVar

import numpy as np

from .types import Candidate

C = TypeVar("C", bound=Candidate)


def iou(a, b) -> float:
    """
    Intersection over union for two objects with x1, y1, x2, y2.
    Zero-area or inverted pairs give 0.0.
    """
    inter_w = max(0.0, min(a.x2, b.x2) - max(a.x1, b.x1))
    inter_h = max(0.0, min(a.y2, b.y2) - max(a.y1, b.y1))
    inter = inter_w * inter_h

    area_a = (a.x2 - a.x1) * (a.y2 - a.y1)
    area_b = (b.x2 - b.x1) * (b.y2 - b.y1)
    union = area_a + area_b - inter

    return 0.0 if union <= 0 else inter / union


def pairwise_iou(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box (4,) against boxes (N, 4). Same formula as `iou`.
    """

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    area = (box[2] - box[0]) * (box[3] - box[1])
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0)
    return out


def _nms_indices(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> List[int]:
    # Stable sort: equal scores keep their input order, first one wins.
    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        i = int(order[0])
        keep.append(i)
        rest = order[1:]
        if rest.size == 0:
            break
        ious = pairwise_iou(boxes[i], boxes[rest])
        order = rest[ious < iou_threshold]

    return keep


def nms(candidates: Sequence[C], iou_threshold: float = 0.45) -> List[C]:
    """
    Greedy per-class NMS.

    Classes are processed in order of first appearance and their kept boxes
    are concatenated in that order (no global re-sort). Within a class, a box
    survives when its IoU with every higher-scoring kept box is strictly below
    `iou_threshold`. The input objects themselves are returned.
    """

    if not candidates:
        return []

    groups: Dict[int, List[int]] = {}
    for idx, cand in enumerate(candidates):
        groups.setdefault(cand.class_id, []).append(idx)

    result: List[C] = []
    for members in groups.values():
        boxes = np.array([candidates[i].as_xyxy() for i in members], dtype=np.float64)
        scores = np.array([candidates[i].confidence for i in members], dtype=np.float64)
        for local in _nms_indices(boxes, scores, iou_threshold):
            result.append(candidates[members[local]])

    return result
