from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

import numpy as np

from .classes import DEFAULT_CLASS_TABLE, ClassTable
from .letterbox import letterbox, to_tensor
from .postprocess import LayoutPostConfig, LayoutPostprocessor
from .types import Detection, LetterboxMapping

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths
    such as `models/koten-layout.onnx`.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones are resolved against
    `root`, or the project root when `root` is "auto" or None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class LetterboxConfig:
    size: int = 640
    pad_value: int = 114
    # Channel order of incoming images: "rgb" (RGBA too) or "bgr" (cv2.imread).
    channel_order: str = "rgb"


@dataclass(frozen=True)
class PreprocessResult:
    tensor: np.ndarray
    mapping: LetterboxMapping

    def __iter__(self) -> Iterator[object]:
        return iter((self.tensor, self.mapping))


def preprocess(image: np.ndarray, cfg: LetterboxConfig = LetterboxConfig()) -> PreprocessResult:
    """
    Letterbox an image into a (1, 3, size, size) float32 RGB tensor.

    Raises InvalidInput for anything that is not a non-empty (H, W, 3|4) array.
    """

    canvas, mapping = letterbox(image, size=cfg.size, pad_value=cfg.pad_value)
    tensor = to_tensor(canvas, channel_order=cfg.channel_order)
    LOGGER.debug(
        "letterboxed %dx%d -> %d (scale=%.4f, pad=(%d, %d))",
        mapping.orig_width,
        mapping.orig_height,
        cfg.size,
        mapping.scale,
        mapping.pad_x,
        mapping.pad_y,
    )
    return PreprocessResult(tensor=tensor, mapping=mapping)


class LayoutPipeline:
    """
    preprocess (letterbox) -> inference -> decode + per-class NMS.

    `infer_fn` takes the (1, 3, S, S) tensor and returns the raw
    (1, 4 + C, A) output. The pipeline keeps no per-call state, so one
    instance can be shared between threads as long as `infer_fn` allows it.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        backend: Optional[object] = None,
        letterbox_cfg: LetterboxConfig = LetterboxConfig(),
        post_cfg: LayoutPostConfig = LayoutPostConfig(),
        class_table: ClassTable = DEFAULT_CLASS_TABLE,
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.letterbox_cfg = letterbox_cfg
        self.post = LayoutPostprocessor(post_cfg, class_table=class_table)

    def preprocess(self, image: np.ndarray) -> PreprocessResult:
        return preprocess(image, self.letterbox_cfg)

    def __call__(self, image: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image)
        preds = self._infer_fn(prep.tensor)
        detections = self.post.process(preds, prep.mapping)
        LOGGER.debug("%d detections", len(detections))
        return detections


def load_pipeline(
    model_path: PathLike,
    *,
    root: Optional[PathLike] = "auto",
    letterbox_cfg: LetterboxConfig = LetterboxConfig(),
    post_cfg: LayoutPostConfig = LayoutPostConfig(),
    class_table: ClassTable = DEFAULT_CLASS_TABLE,
    providers: Optional[Sequence[str]] = None,
    input_name: Optional[str] = None,
    output_name: Optional[str] = None,
) -> LayoutPipeline:
    """
    Create a pipeline for an ONNX layout model on disk.

        pipe = load_pipeline("models/koten-layout.onnx")
        detections = pipe(image_rgb)
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got '{resolved.name}'")

    backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(providers=providers, input_name=input_name, output_name=output_name),
    )
    return LayoutPipeline(
        backend.infer,
        backend=backend,
        letterbox_cfg=letterbox_cfg,
        post_cfg=post_cfg,
        class_table=class_table,
    )
