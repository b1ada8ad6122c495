"""Tests for the command line entry point."""

import unittest
import tempfile
import shutil
from unittest.mock import patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import start_classifier


class TestStartClassifier(unittest.TestCase):
    """Test cases for argument handling in start_classifier."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.test_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_parser_defaults(self):
        args = start_classifier.build_parser().parse_args([])
        self.assertIsNone(args.config)
        self.assertFalse(args.once)
        self.assertFalse(args.no_button)

    @patch("start_classifier.setup_logging")
    @patch("start_classifier.ImageClassifierApp")
    def test_flags_override_config(self, app_class, setup_logging):
        code = start_classifier.main(["--config", self.config_path, "--image", "cat.jpg",
                                      "--no-button", "--no-sensors", "--log-level", "DEBUG"])

        self.assertEqual(code, 0)
        config = app_class.call_args[0][0]
        self.assertEqual(config.static_image_path, "cat.jpg")
        self.assertFalse(config.button_enabled)
        self.assertFalse(config.sensors_enabled)
        self.assertTrue(config.keyboard_enabled)
        setup_logging.assert_called_once_with("DEBUG", None)
        app_class.return_value.run.assert_called_once()
        app_class.return_value.shutdown.assert_called_once()

    @patch("start_classifier.setup_logging")
    @patch("start_classifier.ImageClassifierApp")
    def test_once(self, app_class, setup_logging):
        app = app_class.return_value
        app.trigger.return_value = True
        app.controller.failure_count = 0

        code = start_classifier.main(["--config", self.config_path, "--once"])

        self.assertEqual(code, 0)
        self.assertFalse(app_class.call_args[0][0].keyboard_enabled)
        app.controller.wait_for_cycle.assert_called_once_with(timeout=60.0)
        app.run.assert_not_called()

    @patch("start_classifier.setup_logging")
    @patch("start_classifier.ImageClassifierApp")
    def test_once_without_classifier(self, app_class, setup_logging):
        app_class.return_value.trigger.return_value = False
        code = start_classifier.main(["--config", self.config_path, "--once"])
        self.assertEqual(code, 1)

    @patch("start_classifier.setup_logging")
    @patch("start_classifier.ImageClassifierApp")
    def test_keyboard_interrupt(self, app_class, setup_logging):
        app_class.return_value.run.side_effect = KeyboardInterrupt
        self.assertEqual(start_classifier.main(["--config", self.config_path]), 0)
        app_class.return_value.shutdown.assert_called_once()


if __name__ == '__main__':
    unittest.main()
