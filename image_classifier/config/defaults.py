"""Default configuration values and constants."""

# File paths and directories
DEFAULT_PATHS = {
    "config_file": "config.json",
    "models_dir": "models",
    "logs_dir": "logs",
}

# Camera settings for the Pi camera module
CAMERA_SETTINGS = {
    "resolution": (640, 480),
    "format": "RGB888",
    "warmup_seconds": 2.0,
    "capture_timeout_seconds": 10.0,
}

# Classifier model settings (MobileNet v1, 8-bit quantized)
MODEL_SETTINGS = {
    "input_size": (224, 224),
    "batch_size": 1,
    "channels": 3,
    "quantization": "uint8",
    "max_results": 3,
}

CROP_MODES = ("center_crop", "letterbox")

# User-visible status text
STATUS_MESSAGES = {
    "initializing": "Initializing...",
    "help": "Press the button or Enter to take a photo",
    "busy": "Still processing, please wait",
    "running": "Running photo recognition",
    "empty_result": "I don't understand what I see",
    "classifier_unavailable": "Classifier not available, check the model and label files",
    "failure": "Recognition failed: {error}",
    "environment": (
        "{greeting}\n\n"
        "Onboard Temperature: {temperature:.2f} °C.\n"
        "Barometric Pressure: {pressure:.2f} hPa.\n"
    ),
}
