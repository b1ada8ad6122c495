"""Still image camera sources: the Pi camera module and image files."""

from abc import abstractmethod
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from ..config.defaults import CAMERA_SETTINGS
from ..logging_config import get_logger
from ..models.recognition import RawImage
from .error_decorators import retry_on_error
from .error_handler import global_error_handler, ErrorSeverity
from .exceptions import CaptureError
from .interfaces import CameraSourceInterface

# Handle camera imports gracefully
try:
    from picamera2 import Picamera2
    CAMERA_AVAILABLE = True
except ImportError:
    CAMERA_AVAILABLE = False
    Picamera2 = None

logger = get_logger("camera_source")


class ThreadedCameraSource(CameraSourceInterface):
    """Runs captures on a dedicated single worker thread.

    Subclasses implement ``_open`` / ``_capture`` / ``_close``; this class
    turns them into the asynchronous ``request_capture`` contract.
    """

    component_name = "camera"

    def __init__(self):
        self._executor: Optional[ThreadPoolExecutor] = None
        self._capture_lock = threading.Lock()
        self._initialized = False
        self._released = False
        self.capture_count = 0
        self.error_count = 0
        self.last_successful_capture: Optional[float] = None

        global_error_handler.register_component(self.component_name)

    def initialize(self) -> None:
        if self._released:
            raise CaptureError("Camera has been released")
        if self._initialized:
            return
        self._open()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.component_name)
        self._initialized = True

    def request_capture(self) -> "Future[RawImage]":
        if self._released or not self._initialized or self._executor is None:
            future: "Future[RawImage]" = Future()
            future.set_exception(CaptureError("Camera is not initialized"))
            return future
        try:
            return self._executor.submit(self._safe_capture)
        except RuntimeError as e:
            # executor shut down between the check and the submit
            future = Future()
            future.set_exception(CaptureError(f"Camera is shutting down: {e}"))
            return future

    def _safe_capture(self) -> RawImage:
        with self._capture_lock:
            if self._released:
                raise CaptureError("Camera has been released")
            try:
                image = self._capture()
            except CaptureError as e:
                self.error_count += 1
                global_error_handler.handle_error(self.component_name, e, ErrorSeverity.MEDIUM)
                raise
            except Exception as e:
                self.error_count += 1
                global_error_handler.handle_error(self.component_name, e, ErrorSeverity.MEDIUM)
                raise CaptureError(f"Capture failed: {e}") from e

        self.capture_count += 1
        self.last_successful_capture = time.time()
        logger.debug(f"Captured {image.width}x{image.height} {image.pixel_format} image")
        return image

    def release(self) -> None:
        """Stop accepting captures, wait for an in-flight one, close the device."""
        if self._released:
            return
        self._released = True

        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

        with self._capture_lock:
            if self._initialized:
                self._close()
        self._initialized = False
        logger.info(f"{type(self).__name__} released")

    def is_available(self) -> bool:
        return self._initialized and not self._released

    def get_camera_info(self) -> dict:
        """Get camera information and status."""
        return {
            "type": type(self).__name__,
            "initialized": self._initialized,
            "released": self._released,
            "capture_count": self.capture_count,
            "error_count": self.error_count,
            "last_successful_capture": self.last_successful_capture,
        }

    @abstractmethod
    def _open(self) -> None:
        """Acquire the device."""

    @abstractmethod
    def _capture(self) -> RawImage:
        """Take one picture; runs on the capture worker."""

    @abstractmethod
    def _close(self) -> None:
        """Release the device."""


class PiCameraSource(ThreadedCameraSource):
    """Raspberry Pi camera module through picamera2."""

    def __init__(self, resolution: Tuple[int, int] = CAMERA_SETTINGS["resolution"],
                 warmup_seconds: float = CAMERA_SETTINGS["warmup_seconds"]):
        super().__init__()
        self.resolution = resolution
        self.warmup_seconds = warmup_seconds
        self.camera = None

        logger.info(f"PiCameraSource created - Resolution: {resolution}, hardware: {CAMERA_AVAILABLE}")

    def _open(self) -> None:
        if not CAMERA_AVAILABLE:
            raise CaptureError("picamera2 is not installed")
        try:
            self._start_camera()
        except Exception as e:
            global_error_handler.handle_error(self.component_name, e, ErrorSeverity.HIGH)
            raise CaptureError(f"Failed to start camera: {e}") from e

    @retry_on_error(max_attempts=3, delay=1.0, backoff_factor=2.0, exceptions=(RuntimeError, OSError))
    def _start_camera(self) -> None:
        if self.camera is not None:
            self._stop_camera()
        self.camera = Picamera2()
        config = self.camera.create_still_configuration(
            main={"size": self.resolution, "format": CAMERA_SETTINGS["format"]}
        )
        self.camera.configure(config)
        self.camera.start()
        time.sleep(self.warmup_seconds)
        logger.info(f"Camera started at {self.resolution[0]}x{self.resolution[1]}")

    def _capture(self) -> RawImage:
        if self.camera is None:
            raise CaptureError("Camera is not started")
        frame = self.camera.capture_array("main")
        if frame is None or frame.size == 0:
            raise CaptureError("Camera returned an empty frame")
        # picamera2 "RGB888" buffers are laid out B, G, R in memory
        return RawImage(pixels=frame, pixel_format="BGR")

    def _stop_camera(self) -> None:
        camera, self.camera = self.camera, None
        if camera is None:
            return
        try:
            camera.stop()
        finally:
            camera.close()

    def _close(self) -> None:
        self._stop_camera()


class StillImageSource(ThreadedCameraSource):
    """Serves an image file as the capture, for boards without a camera."""

    def __init__(self, image_path: str):
        super().__init__()
        self.image_path = Path(image_path)

    def _open(self) -> None:
        if not self.image_path.is_file():
            raise CaptureError(f"Image file not found: {self.image_path}")
        logger.info(f"Using still image {self.image_path} as camera")

    def _capture(self) -> RawImage:
        try:
            with Image.open(self.image_path) as img:
                pixels = np.asarray(img.convert("RGB"), dtype=np.uint8)
        except OSError as e:
            raise CaptureError(f"Cannot decode {self.image_path}: {e}") from e
        return RawImage(pixels=pixels, pixel_format="RGB")

    def _close(self) -> None:
        pass
