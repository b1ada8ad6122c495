"""Services for the image classifier kit."""

from .exceptions import (
    ImageClassifierError,
    CaptureError,
    PreprocessError,
    InferenceError,
    RankError,
    LoadError,
    ResourceError,
)
from .interfaces import (
    CameraSourceInterface,
    ClassifierEngineInterface,
    SensorFeedInterface,
    SensorKind,
    StatusPresenterInterface,
    TriggerInputInterface,
)
from .notifications import NotificationChannel, Subscription

__all__ = [
    'ImageClassifierError',
    'CaptureError',
    'PreprocessError',
    'InferenceError',
    'RankError',
    'LoadError',
    'ResourceError',
    'CameraSourceInterface',
    'ClassifierEngineInterface',
    'SensorFeedInterface',
    'SensorKind',
    'StatusPresenterInterface',
    'TriggerInputInterface',
    'NotificationChannel',
    'Subscription',
]
