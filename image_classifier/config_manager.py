"""Configuration management with JSON file persistence."""

import json
import os
from dataclasses import asdict, fields
from typing import Optional, Dict, Any, Callable, List

from .models.config import AppConfig
from .config.defaults import CROP_MODES, DEFAULT_PATHS
from .logging_config import get_logger

logger = get_logger("config_manager")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigManager:
    """Loads, validates and saves the application configuration."""

    def __init__(self, config_path: Optional[str] = None, create_missing: bool = True):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self.create_missing = create_missing
        self._config: Optional[AppConfig] = None
        self._config_change_callbacks: List[Callable[[AppConfig], None]] = []

        self.load_config()

    def load_config(self) -> AppConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config_dict = json.load(f)
                if not isinstance(config_dict, dict):
                    raise TypeError("top level value must be an object")
                self._config = AppConfig(**config_dict)
            except (json.JSONDecodeError, TypeError, OSError) as e:
                logger.warning(f"Error loading config {self.config_path}: {e}. Using defaults.")
                self._config = AppConfig()
        else:
            self._config = AppConfig()
            if self.create_missing:
                self.save_config()

        if not self.validate_config():
            logger.warning(f"Config {self.config_path} has invalid values. Using defaults.")
            self._config = AppConfig()

        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            return

        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(asdict(self._config), f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values.

        Unknown keys are ignored with a warning. Values are only kept when
        the result still validates.
        """
        if self._config is None:
            self.load_config()

        known = {f.name for f in fields(AppConfig)}
        previous = asdict(self._config)
        for key, value in kwargs.items():
            if key in known:
                setattr(self._config, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

        if not self.validate_config():
            self._config = AppConfig(**previous)
            raise ValueError(f"Invalid configuration values: {kwargs}")

        self.save_config()

        # Notify callbacks of config change
        for callback in self._config_change_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")

    def validate_config(self) -> bool:
        """Validate current configuration."""
        if self._config is None:
            return False
        config = self._config

        wrong_types = _wrong_type_fields(config)
        if wrong_types:
            logger.warning(f"Config fields have the wrong type: {', '.join(wrong_types)}")
            return False

        # Validate model settings
        if not config.model_path or not config.labels_path:
            return False
        if config.top_k < 1 or config.num_threads < 1:
            return False
        if not 0.0 <= config.min_confidence <= 255.0:
            return False

        # Validate image settings
        if (config.input_width <= 0 or config.input_height <= 0 or
                config.capture_width <= 0 or config.capture_height <= 0):
            return False
        if config.crop_mode not in CROP_MODES:
            return False

        # Validate inputs and sensors
        if not 0 <= config.button_pin <= 27:
            return False
        if not 0x03 <= config.sensor_i2c_address <= 0x77:
            return False
        if config.sensor_poll_interval <= 0:
            return False

        # Validate display settings
        if config.display_width <= 0 or config.display_height <= 0:
            return False

        if str(config.log_level).upper() not in LOG_LEVELS:
            return False

        return True

    def add_config_change_callback(self, callback: Callable[[AppConfig], None]) -> None:
        """Register a callback to be called when config changes."""
        if callback not in self._config_change_callbacks:
            self._config_change_callbacks.append(callback)

    def remove_config_change_callback(self, callback: Callable[[AppConfig], None]) -> None:
        """Unregister a config change callback."""
        if callback in self._config_change_callbacks:
            self._config_change_callbacks.remove(callback)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self.get_config())


def _wrong_type_fields(config: AppConfig) -> List[str]:
    """Names of fields whose value does not match the type of the default."""
    defaults = AppConfig()
    wrong = []
    for f in fields(AppConfig):
        value = getattr(config, f.name)
        default = getattr(defaults, f.name)
        if default is None:
            ok = value is None or isinstance(value, str)
        elif isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif isinstance(default, float):
            # ints are accepted where a float is expected
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            ok = isinstance(value, type(default))
        if not ok:
            wrong.append(f.name)
    return wrong
