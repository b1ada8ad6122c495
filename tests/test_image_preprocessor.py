"""Unit tests for the image preprocessor."""

import unittest
import sys
import os

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_classifier.models.recognition import RawImage
from image_classifier.services.exceptions import PreprocessError
from image_classifier.services.image_preprocessor import ImagePreprocessor


def solid(height, width, color, pixel_format="RGB"):
    pixels = np.zeros((height, width, len(color)), dtype=np.uint8)
    pixels[:, :] = color
    return RawImage(pixels=pixels, pixel_format=pixel_format)


class TestImagePreprocessor(unittest.TestCase):
    """Test cases for ImagePreprocessor."""

    def setUp(self):
        self.preprocessor = ImagePreprocessor()

    def test_output_shape_and_size(self):
        """Every capture size maps to the same 224x224x3 tensor."""
        for height, width in [(480, 640), (640, 480), (224, 224), (100, 50), (1, 1)]:
            tensor = self.preprocessor.preprocess(solid(height, width, (10, 20, 30)))
            self.assertEqual(tensor.shape, (1, 224, 224, 3))
            self.assertEqual(tensor.dtype, np.uint8)
            self.assertTrue(tensor.flags["C_CONTIGUOUS"])
            self.assertEqual(tensor.nbytes, 150528)

        self.assertEqual(self.preprocessor.expected_size, 150528)

    def test_deterministic(self):
        rng = np.random.default_rng(7)
        image = RawImage(pixels=rng.integers(0, 256, (480, 640, 3), dtype=np.uint8))
        first = self.preprocessor.preprocess_bytes(image)
        second = self.preprocessor.preprocess_bytes(image)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 150528)

    def test_input_not_mutated(self):
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, (300, 400, 3), dtype=np.uint8)
        original = pixels.copy()
        self.preprocessor.preprocess(RawImage(pixels=pixels, pixel_format="BGR"))
        np.testing.assert_array_equal(pixels, original)

    def test_bgr_converted_to_rgb(self):
        tensor = self.preprocessor.preprocess(solid(480, 640, (255, 0, 0), "BGR"))
        np.testing.assert_array_equal(tensor[0, 112, 112], [0, 0, 255])

    def test_rgba_and_grayscale(self):
        tensor = self.preprocessor.preprocess(solid(240, 320, (1, 2, 3, 255), "RGBA"))
        np.testing.assert_array_equal(tensor[0, 0, 0], [1, 2, 3])

        gray = RawImage(pixels=np.full((240, 320), 77, dtype=np.uint8), pixel_format="L")
        tensor = self.preprocessor.preprocess(gray)
        np.testing.assert_array_equal(tensor[0, 100, 100], [77, 77, 77])

    def test_values_not_normalized(self):
        tensor = self.preprocessor.preprocess(solid(224, 224, (200, 100, 50)))
        np.testing.assert_array_equal(tensor[0, 50, 50], [200, 100, 50])

    def test_center_crop_box(self):
        """Landscape and portrait captures keep the centered square."""
        self.assertEqual(self.preprocessor.crop_box(640, 480), (80, 0, 480, 480))
        self.assertEqual(self.preprocessor.crop_box(480, 640), (0, 80, 480, 480))
        self.assertEqual(self.preprocessor.crop_box(224, 224), (0, 0, 224, 224))

    def test_center_crop_discards_sides(self):
        # Left and right quarters are red, the middle is green
        pixels = np.zeros((480, 640, 3), dtype=np.uint8)
        pixels[:, :80] = (255, 0, 0)
        pixels[:, 80:560] = (0, 255, 0)
        pixels[:, 560:] = (255, 0, 0)
        tensor = self.preprocessor.preprocess(RawImage(pixels=pixels))
        self.assertTrue(np.all(tensor[0, :, :, 0] == 0))
        self.assertTrue(np.all(tensor[0, :, :, 1] == 255))

    def test_letterbox_pads_with_black(self):
        preprocessor = ImagePreprocessor(mode="letterbox")
        tensor = preprocessor.preprocess(solid(240, 480, (255, 255, 255)))
        self.assertEqual(tensor.shape, (1, 224, 224, 3))
        # 480x240 scales to 224x112, centered vertically with 56 rows of padding
        self.assertTrue(np.all(tensor[0, :56] == 0))
        self.assertTrue(np.all(tensor[0, 168:] == 0))
        self.assertTrue(np.all(tensor[0, 60:164] == 255))

    def test_custom_target_size(self):
        preprocessor = ImagePreprocessor(target_width=128, target_height=96)
        tensor = preprocessor.preprocess(solid(480, 640, (5, 5, 5)))
        self.assertEqual(tensor.shape, (1, 96, 128, 3))
        self.assertEqual(preprocessor.expected_size, 96 * 128 * 3)

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            ImagePreprocessor(target_width=0)
        with self.assertRaises(ValueError):
            ImagePreprocessor(mode="stretch")

    def test_errors(self):
        with self.assertRaises(PreprocessError):
            self.preprocessor.preprocess(None)
        with self.assertRaises(PreprocessError):
            self.preprocessor.preprocess(RawImage(pixels=None))
        with self.assertRaises(PreprocessError):
            self.preprocessor.preprocess(RawImage(pixels=np.zeros((0, 10, 3), dtype=np.uint8)))
        with self.assertRaises(PreprocessError):
            self.preprocessor.preprocess(solid(10, 10, (1, 2, 3), "YUV"))
        with self.assertRaises(PreprocessError):
            self.preprocessor.preprocess(RawImage(pixels=np.zeros((10, 10, 3), dtype=np.float32)))
        with self.assertRaises(PreprocessError):
            # RGB data with an alpha channel
            self.preprocessor.preprocess(solid(10, 10, (1, 2, 3, 4), "RGB"))


if __name__ == '__main__':
    unittest.main()
