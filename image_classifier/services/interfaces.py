"""Service interfaces for the external collaborators of the classifier."""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from ..models.recognition import RawImage
from .notifications import Subscription

NDArray = np.ndarray


class SensorKind(Enum):
    """Environment sensor kinds exposed by the sensor feed."""
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"


class CameraSourceInterface(ABC):
    """Interface for a still image camera."""

    @abstractmethod
    def initialize(self) -> None:
        """Open the camera; raises CaptureError when it is unavailable."""
        pass

    @abstractmethod
    def request_capture(self) -> "Future[RawImage]":
        """Start one still capture; the future resolves to a RawImage or a CaptureError."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the camera and its capture thread."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the camera can be used."""
        pass


class ClassifierEngineInterface(ABC):
    """Interface for a quantized-model inference engine."""

    @abstractmethod
    def load(self, model_content: bytes, labels: Sequence[str]) -> None:
        """Load model bytes and the label list; raises LoadError."""
        pass

    @abstractmethod
    def infer(self, input_tensor: NDArray) -> NDArray:
        """Run inference and return one score per label; raises InferenceError."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the interpreter."""
        pass

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        pass


class SensorFeedInterface(ABC):
    """Interface for environment sensor readings."""

    @abstractmethod
    def subscribe(self, kind: SensorKind,
                  on_reading: Callable[[SensorKind, float], None],
                  on_connected: Optional[Callable[[SensorKind], None]] = None,
                  on_disconnected: Optional[Callable[[SensorKind], None]] = None) -> Subscription:
        """Register callbacks for one sensor kind."""
        pass

    @abstractmethod
    def start(self) -> None:
        """Start delivering readings."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop delivering readings and release the driver."""
        pass


class StatusPresenterInterface(ABC):
    """Interface for the status display."""

    @abstractmethod
    def render(self, text: str) -> None:
        """Show a status string."""
        pass

    def show_image(self, image: RawImage) -> None:
        """Show the last captured photo; optional."""
        pass

    def close(self) -> None:
        """Release the display surface; optional."""
        pass


class TriggerInputInterface(ABC):
    """Interface for inputs that start a capture (button, key)."""

    @abstractmethod
    def register(self, callback: Callable[[], None]) -> Subscription:
        """Register the callback run on every trigger; raises ResourceError."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the input device."""
        pass
