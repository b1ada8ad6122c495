"""Status display: formats results and renders status text."""

import threading
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..config.defaults import STATUS_MESSAGES
from ..logging_config import get_logger
from ..models.recognition import EnvironmentReading, RawImage, Recognition
from .error_decorators import safe_operation
from .interfaces import StatusPresenterInterface

logger = get_logger("status_presenter")


def format_results(results: Optional[Sequence[Recognition]],
                   empty_text: str = STATUS_MESSAGES["empty_result"]) -> str:
    """Join labels as ``a``, ``a or b``, ``a, b or c``."""
    if not results:
        return empty_text
    labels = [r.label for r in results]
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + " or " + labels[-1]


def format_environment(reading: EnvironmentReading, greeting: str) -> str:
    temperature, pressure = reading.snapshot()
    return STATUS_MESSAGES["environment"].format(
        greeting=greeting, temperature=temperature, pressure=pressure)


class LoggingStatusPresenter(StatusPresenterInterface):
    """Writes every status to the log and keeps the latest one."""

    def __init__(self):
        self._lock = threading.Lock()
        self.last_text: Optional[str] = None
        self.history: List[str] = []

    def render(self, text: str) -> None:
        with self._lock:
            self.last_text = text
            self.history.append(text)
            del self.history[:-50]
        for line in text.strip().splitlines() or [""]:
            logger.info(f"[display] {line}")


class ImageStatusPresenter(StatusPresenterInterface):
    """Draws the status onto a PNG sized for a small attached screen.

    The last captured photo, when there is one, is shown as a thumbnail
    in the upper half of the canvas and the text goes below it.
    """

    def __init__(self, output_path: str, width: int = 480, height: int = 320,
                 background: str = "black", foreground: str = "white"):
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.background = background
        self.foreground = foreground
        self._lock = threading.Lock()
        self._photo: Optional[Image.Image] = None
        self._font = ImageFont.load_default()

        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    @safe_operation()
    def render(self, text: str) -> None:
        with self._lock:
            canvas = Image.new("RGB", (self.width, self.height), color=self.background)
            draw = ImageDraw.Draw(canvas)

            top = 10
            if self._photo is not None:
                thumb = self._photo.copy()
                thumb.thumbnail((self.width - 20, self.height // 2))
                canvas.paste(thumb, ((self.width - thumb.width) // 2, top))
                top += thumb.height + 10

            draw.multiline_text((10, top), self._wrap(draw, text), fill=self.foreground,
                                font=self._font, spacing=4)
            canvas.save(self.output_path, "PNG")
        logger.debug(f"Status image written to {self.output_path}")

    @safe_operation()
    def show_image(self, image: RawImage) -> None:
        pixels = np.asarray(image.pixels, dtype=np.uint8)
        if image.pixel_format in ("BGR", "BGRA"):
            pixels = pixels[..., 2::-1]
        elif image.pixel_format == "RGBA":
            pixels = pixels[..., :3]
        photo = Image.fromarray(np.ascontiguousarray(pixels)).convert("RGB")
        with self._lock:
            self._photo = photo

    def _wrap(self, draw: ImageDraw.ImageDraw, text: str) -> str:
        max_width = self.width - 20
        lines = []
        for paragraph in text.split("\n"):
            line = ""
            for word in paragraph.split(" "):
                candidate = f"{line} {word}" if line else word
                if line and draw.textlength(candidate, font=self._font) > max_width:
                    lines.append(line)
                    line = word
                else:
                    line = candidate
            lines.append(line)
        return "\n".join(lines)

    def close(self) -> None:
        with self._lock:
            self._photo = None


class CompositeStatusPresenter(StatusPresenterInterface):
    """Forwards every call to several presenters."""

    def __init__(self, presenters: Iterable[StatusPresenterInterface]):
        self.presenters = list(presenters)

    def render(self, text: str) -> None:
        for presenter in self.presenters:
            presenter.render(text)

    def show_image(self, image: RawImage) -> None:
        for presenter in self.presenters:
            presenter.show_image(image)

    def close(self) -> None:
        for presenter in self.presenters:
            presenter.close()
