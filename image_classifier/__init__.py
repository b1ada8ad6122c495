"""
Image Classifier Kit

Push-button photo recognition for a Raspberry Pi with a camera module and
a Rainbow HAT: a quantized MobileNet model labels each photo, and the
display shows the greeting and BMP280 readings in between.
"""

__version__ = "1.0.0"
__author__ = "Image Classifier Kit"

# Import core components
from .config_manager import ConfigManager
from .models import (
    RawImage,
    Recognition,
    RecognitionResult,
    EnvironmentReading,
    ControllerState,
    ControllerEvent,
    EventKind,
    AppConfig,
)
from .services import (
    CameraSourceInterface,
    ClassifierEngineInterface,
    SensorFeedInterface,
    StatusPresenterInterface,
    TriggerInputInterface,
)
from .capture_controller import CaptureClassifyController
from .classifier_app import ImageClassifierApp

__all__ = [
    # Core management
    'ConfigManager',
    'CaptureClassifyController',
    'ImageClassifierApp',

    # Data models
    'RawImage',
    'Recognition',
    'RecognitionResult',
    'EnvironmentReading',
    'ControllerState',
    'ControllerEvent',
    'EventKind',
    'AppConfig',

    # Service interfaces
    'CameraSourceInterface',
    'ClassifierEngineInterface',
    'SensorFeedInterface',
    'StatusPresenterInterface',
    'TriggerInputInterface',
]
