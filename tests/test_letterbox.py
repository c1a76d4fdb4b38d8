import unittest

import numpy as np

from koten_layout.errors import InvalidInput
from koten_layout.letterbox import letterbox, to_tensor
from koten_layout.runtime import LetterboxConfig, preprocess


def _solid(w: int, h: int, rgb=(200, 10, 50), alpha=None) -> np.ndarray:
    channels = 3 if alpha is None else 4
    img = np.zeros((h, w, channels), dtype=np.uint8)
    img[:, :, 0], img[:, :, 1], img[:, :, 2] = rgb
    if alpha is not None:
        img[:, :, 3] = alpha
    return img


class TestLetterbox(unittest.TestCase):
    def test_wide_image_mapping(self) -> None:
        canvas, mapping = letterbox(_solid(1280, 640))
        self.assertEqual(canvas.shape, (640, 640, 3))
        self.assertEqual(mapping.scale, 0.5)
        self.assertEqual((mapping.pad_x, mapping.pad_y), (0.0, 160.0))
        self.assertEqual((mapping.orig_width, mapping.orig_height), (1280, 640))

        # Pad bands top and bottom, image in the middle.
        self.assertTrue(np.all(canvas[:160] == 114))
        self.assertTrue(np.all(canvas[480:] == 114))
        self.assertTrue(np.all(canvas[160:480] == np.array([200, 10, 50], dtype=np.uint8)))

    def test_tall_image_pads_left_and_right(self) -> None:
        canvas, mapping = letterbox(_solid(320, 640))
        self.assertEqual(mapping.scale, 1.0)
        self.assertEqual((mapping.pad_x, mapping.pad_y), (160.0, 0.0))
        self.assertTrue(np.all(canvas[:, :160] == 114))
        self.assertTrue(np.all(canvas[:, 160:480, 0] == 200))

    def test_small_image_is_scaled_up(self) -> None:
        _, mapping = letterbox(_solid(64, 32))
        self.assertEqual(mapping.scale, 10.0)
        self.assertEqual((mapping.pad_x, mapping.pad_y), (0.0, 160.0))

    def test_resized_size_rounds_half_up(self) -> None:
        # scale = 1.25, height 2 * 1.25 = 2.5 -> 3, pad_y = floor((5 - 3) / 2) = 1
        canvas, mapping = letterbox(_solid(4, 2), size=5)
        self.assertEqual(mapping.pad_y, 1.0)
        self.assertTrue(np.all(canvas[0] == 114))
        self.assertTrue(np.all(canvas[4] == 114))
        self.assertTrue(np.all(canvas[1:4, :, 0] == 200))

    def test_odd_padding_floors(self) -> None:
        # 640 x 333 at scale 1 leaves 307 rows; 153 above, 154 below.
        canvas, mapping = letterbox(_solid(640, 333))
        self.assertEqual(mapping.pad_y, 153.0)
        self.assertTrue(np.all(canvas[152] == 114))
        self.assertTrue(np.all(canvas[153, :, 0] == 200))
        self.assertTrue(np.all(canvas[485, :, 0] == 200))
        self.assertTrue(np.all(canvas[486] == 114))

    def test_mapping_round_trips_canvas_center(self) -> None:
        for w, h in [(1000, 700), (333, 1201), (1280, 640), (17, 9)]:
            _, mapping = letterbox(_solid(w, h))
            cx, cy = mapping.to_canvas(w / 2, h / 2)
            self.assertLessEqual(abs(cx - 320), 1.0)
            self.assertLessEqual(abs(cy - 320), 1.0)
            ox, oy = mapping.to_original(320, 320)
            self.assertLessEqual(abs(ox - w / 2), 1.0)
            self.assertLessEqual(abs(oy - h / 2), 1.0)

    def test_rejects_empty_and_malformed_images(self) -> None:
        with self.assertRaises(InvalidInput):
            letterbox(np.zeros((0, 10, 3), dtype=np.uint8))
        with self.assertRaises(InvalidInput):
            letterbox(np.zeros((10, 0, 3), dtype=np.uint8))
        with self.assertRaises(InvalidInput):
            letterbox(np.zeros((10, 10), dtype=np.uint8))
        with self.assertRaises(InvalidInput):
            letterbox(np.zeros((10, 10, 2), dtype=np.uint8))
        with self.assertRaises(InvalidInput):
            letterbox(None)  # type: ignore[arg-type]

    def test_rejects_non_uint8_images(self) -> None:
        with self.assertRaises(InvalidInput):
            letterbox(np.full((10, 10, 3), 300, dtype=np.uint16))
        with self.assertRaises(InvalidInput):
            letterbox(np.full((10, 10, 3), 0.5, dtype=np.float32))
        with self.assertRaises(InvalidInput):
            preprocess(np.zeros((10, 10, 4), dtype=np.int64))

    def test_invalid_input_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            letterbox(np.zeros((0, 0, 3), dtype=np.uint8))


class TestToTensor(unittest.TestCase):
    def test_rgb_planes_normalized(self) -> None:
        canvas = _solid(4, 4, rgb=(255, 51, 0))
        t = to_tensor(canvas)
        self.assertEqual(t.shape, (1, 3, 4, 4))
        self.assertEqual(t.dtype, np.float32)
        self.assertTrue(np.allclose(t[0, 0], 1.0))
        self.assertTrue(np.allclose(t[0, 1], 0.2))
        self.assertTrue(np.allclose(t[0, 2], 0.0))

    def test_bgr_is_reordered(self) -> None:
        canvas = _solid(4, 4, rgb=(0, 51, 255))  # stored as B, G, R
        t = to_tensor(canvas, channel_order="bgr")
        self.assertTrue(np.allclose(t[0, 0], 1.0))
        self.assertTrue(np.allclose(t[0, 2], 0.0))

    def test_alpha_dropped(self) -> None:
        canvas = _solid(4, 4, rgb=(255, 0, 0), alpha=7)
        t = to_tensor(canvas)
        self.assertEqual(t.shape, (1, 3, 4, 4))
        self.assertTrue(np.allclose(t[0, 0], 1.0))

    def test_unknown_channel_order(self) -> None:
        with self.assertRaises(ValueError):
            to_tensor(_solid(2, 2), channel_order="hsv")


class TestPreprocess(unittest.TestCase):
    def test_tensor_and_mapping(self) -> None:
        tensor, mapping = preprocess(_solid(1280, 640, alpha=255))
        self.assertEqual(tensor.shape, (1, 3, 640, 640))
        self.assertEqual(tensor.dtype, np.float32)
        self.assertAlmostEqual(float(tensor[0, 0, 0, 0]), 114 / 255.0, places=6)
        self.assertAlmostEqual(float(tensor[0, 0, 320, 320]), 200 / 255.0, places=6)
        self.assertAlmostEqual(float(tensor[0, 1, 320, 320]), 10 / 255.0, places=6)
        self.assertAlmostEqual(float(tensor[0, 2, 320, 320]), 50 / 255.0, places=6)
        self.assertEqual(mapping.pad_y, 160.0)

    def test_custom_size(self) -> None:
        result = preprocess(_solid(100, 50), LetterboxConfig(size=320))
        self.assertEqual(result.tensor.shape, (1, 3, 320, 320))
        self.assertEqual(result.mapping.scale, 3.2)


if __name__ == "__main__":
    unittest.main()
