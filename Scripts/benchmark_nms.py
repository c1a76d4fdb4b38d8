from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from koten_layout import LayoutPostConfig, LayoutPostprocessor, LetterboxMapping


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms_sorted = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)),
        p50_ms=_percentile(ms_sorted, 50.0),
        p90_ms=_percentile(ms_sorted, 90.0),
        p95_ms=_percentile(ms_sorted, 95.0),
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def _synthetic_output(anchors: int, classes: int, hot: float, seed: int = 0) -> np.ndarray:
    """
    Random (1, 4 + C, A) output where roughly `hot` of the anchors clear 0.5,
    clustered so NMS has duplicates to remove.
    """

    rng = np.random.default_rng(seed)
    out = np.zeros((1, 4 + classes, anchors), dtype=np.float32)
    centers = rng.uniform(40, 600, size=(max(1, anchors // 50), 2))
    picks = rng.integers(0, centers.shape[0], size=anchors)
    out[0, 0:2] = (centers[picks] + rng.normal(0, 4, size=(anchors, 2))).T
    out[0, 2:4] = rng.uniform(20, 120, size=(2, anchors))
    out[0, 4:] = rng.uniform(0.0, 0.5, size=(classes, anchors))
    hot_idx = rng.random(anchors) < hot
    out[0, 4 + rng.integers(0, classes, size=int(hot_idx.sum())), np.flatnonzero(hot_idx)] = rng.uniform(
        0.5, 1.0, size=int(hot_idx.sum())
    )
    return out


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark decode + per-class NMS on synthetic model output.")
    parser.add_argument("--anchors", type=int, default=8400, help="Anchor count A.")
    parser.add_argument("--classes", type=int, default=5, help="Class count C.")
    parser.add_argument("--hot", type=float, default=0.05, help="Fraction of anchors above the threshold.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup runs not recorded.")
    parser.add_argument("--repeats", type=int, default=100, help="Recorded runs.")
    args = parser.parse_args()

    if args.anchors < 1:
        raise ValueError("--anchors must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")

    preds = _synthetic_output(int(args.anchors), int(args.classes), float(args.hot))
    mapping = LetterboxMapping(scale=0.5, pad_x=0.0, pad_y=160.0, orig_width=1280, orig_height=640)
    post = LayoutPostprocessor(LayoutPostConfig(conf_threshold=float(args.conf), iou_threshold=float(args.iou)))

    t_decode: List[float] = []
    t_full: List[float] = []
    n_cand = n_kept = 0
    for i in range(int(args.warmup) + int(args.repeats)):
        t0 = time.perf_counter()
        cands = post.candidates(preds, mapping)
        t1 = time.perf_counter()
        dets = post.process(preds, mapping)
        t2 = time.perf_counter()
        if i >= int(args.warmup):
            t_decode.append(t1 - t0)
            t_full.append(t2 - t1)
        n_cand, n_kept = len(cands), len(dets)

    print(_format_summary("decode_only", _summarize_ms(t_decode)))
    print(_format_summary("decode_with_nms", _summarize_ms(t_full)))
    print(f"candidates={n_cand} kept={n_kept} anchors={args.anchors} classes={args.classes}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
