import math
from typing import Tuple

import numpy as np

from .errors import InvalidInput
from .types import LetterboxMapping


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def validate_image(image: np.ndarray) -> Tuple[int, int]:
    """
    Check an (H, W, 3|4) uint8 array and return (width, height).
    """

    if image is None or not hasattr(image, "shape"):
        raise InvalidInput("image must be a NumPy array shaped (H, W, 3) or (H, W, 4).")
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise InvalidInput(f"Expected image shape (H, W, 3) or (H, W, 4), got {image.shape}")
    if image.dtype != np.uint8:
        raise InvalidInput(f"Expected an 8-bit (uint8) image, got dtype {image.dtype}")
    h, w = image.shape[:2]
    if w <= 0 or h <= 0:
        raise InvalidInput(f"Image width and height must be > 0, got {w}x{h}")
    return int(w), int(h)


def letterbox(
    image: np.ndarray,
    size: int = 640,
    pad_value: int = 114,
) -> Tuple[np.ndarray, LetterboxMapping]:
    """
    Scale an image to fit a size x size canvas and center it on a uniform
    pad color.

    Returns:
        canvas: (size, size, C) uint8 array, same channel order as `image`
        mapping: LetterboxMapping to bring canvas coordinates back
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    w, h = validate_image(image)

    scale = min(size / w, size / h)
    resized_w, resized_h = _round_half_up(w * scale), _round_half_up(h * scale)
    pad_x = (size - resized_w) // 2
    pad_y = (size - resized_h) // 2

    canvas = np.full((size, size, image.shape[2]), pad_value, dtype=np.uint8)

    # Extreme aspect ratios can round one side down to nothing.
    if resized_w > 0 and resized_h > 0:
        src = np.ascontiguousarray(image)
        if (w, h) != (resized_w, resized_h):
            src = cv2.resize(src, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
        canvas[pad_y : pad_y + resized_h, pad_x : pad_x + resized_w] = src

    mapping = LetterboxMapping(
        scale=scale,
        pad_x=float(pad_x),
        pad_y=float(pad_y),
        orig_width=w,
        orig_height=h,
    )
    return canvas, mapping


def to_tensor(canvas: np.ndarray, channel_order: str = "rgb") -> np.ndarray:
    """
    HWC uint8 canvas -> (1, 3, H, W) float32 RGB tensor scaled to [0, 1].

    A fourth (alpha) channel is dropped.
    """

    order = channel_order.lower()
    if order not in ("rgb", "bgr"):
        raise ValueError(f"channel_order must be 'rgb' or 'bgr', got {channel_order!r}")

    rgb = canvas[:, :, :3]
    if order == "bgr":
        rgb = rgb[:, :, ::-1]

    blob = rgb.astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob)
