"""Turns camera captures into the fixed-size input tensor of the classifier."""

from typing import Tuple

import cv2
import numpy as np

from ..config.defaults import CROP_MODES, MODEL_SETTINGS
from ..logging_config import get_logger
from ..models.recognition import RawImage, SUPPORTED_PIXEL_FORMATS
from .error_decorators import log_execution_time
from .exceptions import PreprocessError

logger = get_logger("image_preprocessor")

# cv2 conversion code per source pixel format, None means already RGB
_TO_RGB = {
    "RGB": None,
    "BGR": cv2.COLOR_BGR2RGB,
    "RGBA": cv2.COLOR_RGBA2RGB,
    "BGRA": cv2.COLOR_BGRA2RGB,
    "L": cv2.COLOR_GRAY2RGB,
}


class ImagePreprocessor:
    """Center-crops (or letterboxes) and resizes a RawImage to the model input.

    The output is a C-contiguous ``uint8`` array of shape
    ``(1, target_height, target_width, 3)`` in RGB order. Pixel values are
    passed through unscaled because the reference model is 8-bit quantized.

    ``center_crop`` keeps the largest centered region with the target aspect
    ratio; odd leftover rows/columns are dropped from the bottom/right.
    ``letterbox`` scales the whole image to fit and pads with black, the image
    centered with any odd padding pixel going to the bottom/right.
    """

    def __init__(self, target_width: int = MODEL_SETTINGS["input_size"][0],
                 target_height: int = MODEL_SETTINGS["input_size"][1],
                 mode: str = "center_crop"):
        if target_width <= 0 or target_height <= 0:
            raise ValueError(f"Invalid target size {target_width}x{target_height}")
        if mode not in CROP_MODES:
            raise ValueError(f"Unknown crop mode '{mode}', expected one of {CROP_MODES}")

        self.target_width = target_width
        self.target_height = target_height
        self.mode = mode
        self.channels = MODEL_SETTINGS["channels"]

    @property
    def output_shape(self) -> Tuple[int, int, int, int]:
        return (MODEL_SETTINGS["batch_size"], self.target_height, self.target_width, self.channels)

    @property
    def expected_size(self) -> int:
        """Exact byte length of every preprocessed tensor."""
        batch, height, width, channels = self.output_shape
        return batch * height * width * channels

    @log_execution_time("preprocess")
    def preprocess(self, image: RawImage) -> np.ndarray:
        """Produce the classifier input for one capture."""
        rgb = self._to_rgb(image)

        if self.mode == "letterbox":
            fitted = self._letterbox(rgb)
        else:
            fitted = self._center_crop_resize(rgb)

        tensor = np.ascontiguousarray(fitted[np.newaxis, ...], dtype=np.uint8)
        if tensor.nbytes != self.expected_size:
            raise PreprocessError(
                f"Preprocessed tensor has {tensor.nbytes} bytes, expected {self.expected_size}")
        return tensor

    def preprocess_bytes(self, image: RawImage) -> bytes:
        """Preprocess and return the raw tensor bytes."""
        return self.preprocess(image).tobytes()

    def crop_box(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Return the ``(x, y, w, h)`` center crop used for a source size."""
        tw, th = self.target_width, self.target_height
        if width * th > height * tw:
            crop_w = max(1, (height * tw) // th)
            crop_h = height
        else:
            crop_w = width
            crop_h = max(1, (width * th) // tw)
        return ((width - crop_w) // 2, (height - crop_h) // 2, crop_w, crop_h)

    def _to_rgb(self, image: RawImage) -> np.ndarray:
        """Validate the capture and return an (H, W, 3) RGB view or copy."""
        if image is None or image.pixels is None:
            raise PreprocessError("No image to preprocess")

        pixels = np.asarray(image.pixels)
        pixel_format = (image.pixel_format or "").upper()

        if pixel_format not in SUPPORTED_PIXEL_FORMATS:
            raise PreprocessError(f"Unsupported pixel format: {image.pixel_format}")
        if pixels.dtype != np.uint8:
            raise PreprocessError(f"Unsupported pixel dtype: {pixels.dtype}")
        if pixels.ndim not in (2, 3) or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise PreprocessError(f"Image has zero area (shape {pixels.shape})")

        channels = 1 if pixels.ndim == 2 else pixels.shape[2]
        expected_channels = SUPPORTED_PIXEL_FORMATS[pixel_format]
        if channels != expected_channels:
            raise PreprocessError(
                f"{pixel_format} image must have {expected_channels} channel(s), got {channels}")

        if pixel_format == "L" and pixels.ndim == 3:
            pixels = pixels[:, :, 0]

        code = _TO_RGB[pixel_format]
        if code is None:
            return pixels
        return cv2.cvtColor(np.ascontiguousarray(pixels), code)

    def _resize(self, pixels: np.ndarray, width: int, height: int) -> np.ndarray:
        src_h, src_w = pixels.shape[:2]
        if (src_w, src_h) == (width, height):
            return pixels
        shrinking = src_w * src_h > width * height
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        return cv2.resize(np.ascontiguousarray(pixels), (width, height), interpolation=interpolation)

    def _center_crop_resize(self, rgb: np.ndarray) -> np.ndarray:
        height, width = rgb.shape[:2]
        x, y, crop_w, crop_h = self.crop_box(width, height)
        cropped = rgb[y:y + crop_h, x:x + crop_w]
        return self._resize(cropped, self.target_width, self.target_height)

    def _letterbox(self, rgb: np.ndarray) -> np.ndarray:
        height, width = rgb.shape[:2]
        scale = min(self.target_width / width, self.target_height / height)
        new_w = min(self.target_width, max(1, int(round(width * scale))))
        new_h = min(self.target_height, max(1, int(round(height * scale))))

        resized = self._resize(rgb, new_w, new_h)
        canvas = np.zeros((self.target_height, self.target_width, self.channels), dtype=np.uint8)
        x0 = (self.target_width - new_w) // 2
        y0 = (self.target_height - new_h) // 2
        canvas[y0:y0 + new_h, x0:x0 + new_w] = resized
        return canvas
