"""Capture, recognition and environment data models."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Channel count per supported pixel format
SUPPORTED_PIXEL_FORMATS: Dict[str, int] = {
    "RGB": 3,
    "BGR": 3,
    "RGBA": 4,
    "BGRA": 4,
    "L": 1,
}


@dataclass
class RawImage:
    """Decoded pixel buffer produced by a camera source for a single capture."""
    pixels: Any  # numpy uint8 array, (H, W, C) or (H, W)
    pixel_format: str = "RGB"
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def width(self) -> int:
        shape = getattr(self.pixels, "shape", ())
        return int(shape[1]) if len(shape) >= 2 else 0

    @property
    def height(self) -> int:
        shape = getattr(self.pixels, "shape", ())
        return int(shape[0]) if len(shape) >= 2 else 0

    @property
    def channels(self) -> int:
        shape = getattr(self.pixels, "shape", ())
        if len(shape) == 2:
            return 1
        return int(shape[2]) if len(shape) == 3 else 0

    def area(self) -> int:
        """Number of pixels in the image."""
        return self.width * self.height


@dataclass(frozen=True)
class Recognition:
    """A single label with its classifier score."""
    label: str
    confidence: float
    index: int = -1

    @property
    def probability(self) -> float:
        """Score mapped onto [0, 1] for the 8-bit quantized model output."""
        return float(self.confidence) / 255.0

    def as_tuple(self) -> Tuple[str, float]:
        return (self.label, self.confidence)


# Ordered highest confidence first, at most top-K long
RecognitionResult = Tuple[Recognition, ...]


class EnvironmentReading:
    """Latest temperature and pressure values, written by the sensor feed.

    Each field is last-write-wins; readers get a consistent snapshot of
    both fields through ``snapshot()``.
    """

    def __init__(self, temperature: float = 0.0, pressure: float = 0.0):
        self._lock = threading.Lock()
        self._temperature = temperature
        self._pressure = pressure
        self._connected: Dict[str, bool] = {}

    @property
    def temperature(self) -> float:
        with self._lock:
            return self._temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        with self._lock:
            self._temperature = float(value)

    @property
    def pressure(self) -> float:
        with self._lock:
            return self._pressure

    @pressure.setter
    def pressure(self, value: float) -> None:
        with self._lock:
            self._pressure = float(value)

    def set_connected(self, kind: str, connected: bool) -> None:
        with self._lock:
            self._connected[kind] = connected

    def is_connected(self, kind: str) -> bool:
        with self._lock:
            return self._connected.get(kind, False)

    def snapshot(self) -> Tuple[float, float]:
        """Return ``(temperature, pressure)``."""
        with self._lock:
            return self._temperature, self._pressure


class ControllerState(Enum):
    """States of the capture-classify cycle."""
    IDLE = "idle"
    CAPTURING = "capturing"
    CLASSIFYING = "classifying"
    SHUT_DOWN = "shut_down"


class EventKind(Enum):
    """Kinds of notifications published by the controller."""
    STATE_CHANGED = "state_changed"
    BUSY = "busy"
    RESULT = "result"
    FAILURE = "failure"


@dataclass
class ControllerEvent:
    """Notification delivered to controller subscribers."""
    kind: EventKind
    state: ControllerState
    result: Optional[RecognitionResult] = None
    error: Optional[Exception] = None
    timestamp: datetime = field(default_factory=datetime.now)
