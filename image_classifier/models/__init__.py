"""Data models for the image classifier kit."""

from .recognition import (
    RawImage,
    Recognition,
    RecognitionResult,
    EnvironmentReading,
    ControllerState,
    ControllerEvent,
    EventKind,
    SUPPORTED_PIXEL_FORMATS,
)
from .config import AppConfig

__all__ = [
    'RawImage',
    'Recognition',
    'RecognitionResult',
    'EnvironmentReading',
    'ControllerState',
    'ControllerEvent',
    'EventKind',
    'SUPPORTED_PIXEL_FORMATS',
    'AppConfig',
]
