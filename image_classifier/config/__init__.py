"""Configuration components for the image classifier kit."""

from .defaults import (
    DEFAULT_PATHS,
    CAMERA_SETTINGS,
    MODEL_SETTINGS,
    CROP_MODES,
    STATUS_MESSAGES
)

__all__ = [
    'DEFAULT_PATHS',
    'CAMERA_SETTINGS',
    'MODEL_SETTINGS',
    'CROP_MODES',
    'STATUS_MESSAGES'
]
