#!/usr/bin/env python3
"""Entry point for the Image Classifier Kit."""

import argparse
import os
import sys
import traceback

from image_classifier.classifier_app import ImageClassifierApp
from image_classifier.config_manager import ConfigManager
from image_classifier.logging_config import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Push-button photo recognition with a quantized MobileNet model",
    )
    parser.add_argument("--config", default=None,
                        help="Path to the JSON config file (default: config.json)")
    parser.add_argument("--image", default=None,
                        help="Classify this image file instead of using the camera")
    parser.add_argument("--once", action="store_true",
                        help="Run a single capture-classify cycle and exit")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Override the configured log level")
    parser.add_argument("--log-dir", default=None,
                        help="Also write rotating log files to this directory")
    parser.add_argument("--no-button", action="store_true", help="Do not use the GPIO button")
    parser.add_argument("--no-keyboard", action="store_true", help="Do not read Enter from stdin")
    parser.add_argument("--no-sensors", action="store_true", help="Do not read the BMP280 sensor")
    return parser


def main(argv=None) -> int:
    """Main entry point for the classifier."""
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    config = config_manager.get_config()
    if args.image:
        config.static_image_path = args.image
    if args.no_button:
        config.button_enabled = False
    if args.no_keyboard or args.once:
        config.keyboard_enabled = False
    if args.no_sensors:
        config.sensors_enabled = False

    setup_logging(args.log_level or config.log_level, args.log_dir or config.log_dir)
    logger = get_logger("start_classifier")
    logger.info("Starting Image Classifier Kit")
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Working directory: {os.getcwd()}")

    app = ImageClassifierApp(config)
    try:
        if args.once:
            app.start()
            if not app.trigger():
                return 1
            app.controller.wait_for_cycle(timeout=60.0)
            return 0 if app.controller.failure_count == 0 else 1

        app.run()
        return 0
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
        return 0
    except Exception as e:
        logger.error(f"Image classifier failed: {e}")
        traceback.print_exc()
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    sys.exit(main())
