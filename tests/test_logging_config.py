"""Tests for the logging setup."""

import logging
import unittest
import tempfile
import shutil
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_classifier import logging_config
from image_classifier.logging_config import get_logger, log_performance, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Test cases for LoggingManager and helpers."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        setup_logging("INFO")
        shutil.rmtree(self.test_dir)

    def test_component_logger_namespace(self):
        logger = get_logger("camera_source")
        self.assertEqual(logger.name, "image_classifier.camera_source")
        self.assertIs(get_logger("camera_source"), logger)

    def test_console_only_without_log_dir(self):
        manager = setup_logging("WARNING")
        package_logger = logging.getLogger(logging_config.LOGGER_NAMESPACE)
        self.assertEqual(package_logger.level, logging.WARNING)
        self.assertEqual(len(package_logger.handlers), 1)
        self.assertIsNone(manager.get_log_stats()["log_directory"])

    def test_log_files_with_log_dir(self):
        manager = setup_logging("DEBUG", self.test_dir)
        get_logger("test").error("something broke")
        log_performance("inference", {"elapsed_ms": "12.5"})
        for handler in logging.getLogger(logging_config.LOGGER_NAMESPACE).handlers:
            handler.flush()

        self.assertTrue(os.path.exists(os.path.join(self.test_dir, "image_classifier.log")))
        with open(os.path.join(self.test_dir, "errors.log")) as f:
            self.assertIn("something broke", f.read())
        stats = manager.get_log_stats()
        self.assertEqual(stats["log_level"], "DEBUG")
        self.assertIn("image_classifier.log", stats["log_files"])

    def test_set_log_level(self):
        manager = setup_logging("INFO")
        manager.set_log_level(logging.ERROR)
        self.assertEqual(logging.getLogger(logging_config.LOGGER_NAMESPACE).level, logging.ERROR)


if __name__ == '__main__':
    unittest.main()
