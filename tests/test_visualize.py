import unittest

import numpy as np

from koten_layout.classes import DEFAULT_CLASS_TABLE
from koten_layout.types import Detection
from koten_layout.visualize import _ascii_label, draw_detections, hex_to_bgr


def _det(x1, y1, x2, y2, class_id=2, label="活字", color="#2ecc71") -> Detection:
    return Detection(x1=x1, y1=y1, x2=x2, y2=y2, confidence=0.87, class_id=class_id, label=label, color=color)


class TestVisualize(unittest.TestCase):
    def test_hex_to_bgr(self) -> None:
        self.assertEqual(hex_to_bgr("#2ecc71"), (0x71, 0xCC, 0x2E))
        self.assertEqual(hex_to_bgr("ffffff"), (255, 255, 255))
        self.assertEqual(hex_to_bgr("#zzzzzz"), (255, 255, 255))
        self.assertEqual(hex_to_bgr("#fff"), (255, 255, 255))

    def test_draws_box_in_class_color_on_a_copy(self) -> None:
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        out = draw_detections(img, [_det(10, 50, 60, 90)], class_table=DEFAULT_CLASS_TABLE)
        self.assertTrue(np.all(img == 0))
        self.assertEqual(tuple(int(v) for v in out[70, 10]), (0x71, 0xCC, 0x2E))

    def test_out_of_bounds_boxes_are_clamped(self) -> None:
        img = np.zeros((50, 80, 3), dtype=np.uint8)
        out = draw_detections(img, [_det(-30, -10, 500, 400)])
        self.assertEqual(out.shape, img.shape)
        self.assertTrue(np.any(out != 0))

    def test_ascii_label_fallback(self) -> None:
        self.assertEqual(_ascii_label(_det(0, 0, 1, 1), DEFAULT_CLASS_TABLE), "3_typography")
        self.assertEqual(_ascii_label(_det(0, 0, 1, 1), None), "2")
        self.assertEqual(_ascii_label(_det(0, 0, 1, 1, label="page"), None), "page")

    def test_rejects_non_bgr(self) -> None:
        with self.assertRaises(ValueError):
            draw_detections(np.zeros((10, 10), dtype=np.uint8), [])


if __name__ == "__main__":
    unittest.main()
