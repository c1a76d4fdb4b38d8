import argparse
import json
import logging
import sys

import cv2

from koten_layout import (
    DEFAULT_CLASS_TABLE,
    LayoutPostConfig,
    LetterboxConfig,
    draw_detections,
    load_class_table,
    load_pipeline,
)

LOGGER = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=[handler])


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect layout regions in a classical Japanese document image.")
    parser.add_argument("--image", required=True, help="Path to an input page image.")
    parser.add_argument("--model", default="models/koten-layout.onnx", help="Path to the ONNX layout model.")
    parser.add_argument("--metadata", default=None, help="Optional metadata file with a `names:` mapping.")
    parser.add_argument("--imgsz", type=int, default=640, help="Letterbox input size.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument(
        "--providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CPUExecutionProvider".',
    )
    parser.add_argument("--out", default=None, help="Optional output path for the rendered image.")
    parser.add_argument("--json", action="store_true", help="Print detections as a JSON list.")
    parser.add_argument("--show", action="store_true", help="Show a window with the rendered detections.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")
    if not 0.0 <= args.conf <= 1.0:
        raise ValueError("--conf must be within [0, 1]")
    if not 0.0 < args.iou <= 1.0:
        raise ValueError("--iou must be within (0, 1]")

    class_table = load_class_table(args.metadata) if args.metadata else DEFAULT_CLASS_TABLE
    providers = None
    if args.providers:
        providers = [p.strip() for p in str(args.providers).split(",") if p.strip()]

    pipeline = load_pipeline(
        model_path=args.model,
        letterbox_cfg=LetterboxConfig(size=int(args.imgsz), channel_order="bgr"),
        post_cfg=LayoutPostConfig(conf_threshold=args.conf, iou_threshold=args.iou),
        class_table=class_table,
        providers=providers,
    )

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    detections = pipeline(img)
    LOGGER.info("%s: %d regions", args.image, len(detections))

    if args.json:
        print(json.dumps([d.as_dict() for d in detections], ensure_ascii=False, indent=2))
    else:
        for det in detections:
            x1, y1, x2, y2 = det.as_xyxy()
            print(f"{det.label}\t{det.confidence:.3f}\t{x1:.1f}\t{y1:.1f}\t{x2:.1f}\t{y2:.1f}")

    if args.out or args.show:
        vis = draw_detections(img, detections, class_table=class_table)
        if args.out:
            ok = cv2.imwrite(args.out, vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {args.out}")
        if args.show:
            cv2.imshow("layout", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
