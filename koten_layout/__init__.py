"""
Layout detection for classical Japanese documents (NDL-DocL, 5 classes).

Letterbox preprocessing, decoding of (1, 4 + C, A) YOLO output and per-class
NMS on NumPy arrays. OpenCV is used for resizing and drawing; onnxruntime is
only needed by `load_pipeline`.
"""

from .classes import CLASSES, COLORS, DEFAULT_CLASS_TABLE, ClassDefinition, ClassTable
from .errors import InvalidInput, KotenLayoutError, ShapeMismatch
from .letterbox import letterbox, to_tensor
from .metadata import load_class_names, load_class_table
from .nms import iou, nms, pairwise_iou
from .postprocess import LayoutPostConfig, LayoutPostprocessor, decode
from .runtime import (
    LayoutPipeline,
    LetterboxConfig,
    PreprocessResult,
    find_project_root,
    load_pipeline,
    preprocess,
    resolve_path,
)
from .types import Candidate, Detection, LetterboxMapping
from .visualize import draw_detections, hex_to_bgr

__all__ = [
    "CLASSES",
    "COLORS",
    "DEFAULT_CLASS_TABLE",
    "ClassDefinition",
    "ClassTable",
    "InvalidInput",
    "KotenLayoutError",
    "ShapeMismatch",
    "letterbox",
    "to_tensor",
    "load_class_names",
    "load_class_table",
    "iou",
    "nms",
    "pairwise_iou",
    "LayoutPostConfig",
    "LayoutPostprocessor",
    "decode",
    "LayoutPipeline",
    "LetterboxConfig",
    "PreprocessResult",
    "find_project_root",
    "load_pipeline",
    "preprocess",
    "resolve_path",
    "Candidate",
    "Detection",
    "LetterboxMapping",
    "draw_detections",
    "hex_to_bgr",
]
