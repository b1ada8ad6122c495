"""Configuration data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AppConfig:
    """Application configuration settings."""
    # Model settings
    model_path: str = "models/mobilenet_quant_v1_224.tflite"
    labels_path: str = "models/labels.txt"
    top_k: int = 3
    min_confidence: float = 0.0
    num_threads: int = 2

    # Image settings
    input_width: int = 224
    input_height: int = 224
    crop_mode: str = "center_crop"  # center_crop, letterbox
    capture_width: int = 640
    capture_height: int = 480
    static_image_path: Optional[str] = None  # classify a file instead of the camera

    # Trigger inputs
    button_enabled: bool = True
    button_pin: int = 16  # Rainbow HAT button C
    keyboard_enabled: bool = True

    # Environment sensors
    sensors_enabled: bool = True
    sensor_i2c_address: int = 0x77
    sensor_poll_interval: float = 1.0

    # Display
    greeting: str = "Good morning, Blackfoot."
    status_image_path: Optional[str] = None
    display_width: int = 480
    display_height: int = 320

    # Error policy: show per-cycle failures on the display instead of the help prompt
    surface_errors: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None
