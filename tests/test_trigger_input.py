"""Unit tests for trigger inputs."""

import io
import unittest
from unittest.mock import Mock, MagicMock, patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_classifier.services import trigger_input
from image_classifier.services.exceptions import ResourceError
from image_classifier.services.trigger_input import GpioButtonTrigger, KeyboardTrigger


class TestKeyboardTrigger(unittest.TestCase):
    """Test cases for KeyboardTrigger."""

    def test_enter_triggers(self):
        trigger = KeyboardTrigger(io.StringIO("\n\nhello\n\n"))
        callback = Mock()
        trigger.register(callback)
        trigger.wait_closed(timeout=5)
        self.assertEqual(callback.call_count, 3)

    def test_quit_command(self):
        trigger = KeyboardTrigger(io.StringIO("q\n"))
        on_quit = Mock()
        callback = Mock()
        trigger.on_quit(on_quit)
        trigger.register(callback)
        trigger.wait_closed(timeout=5)
        on_quit.assert_called_once_with()
        callback.assert_not_called()

    def test_cancelled_subscription(self):
        trigger = KeyboardTrigger(io.StringIO(""))
        subscription = trigger.register(Mock())
        trigger.wait_closed(timeout=5)
        subscription.cancel()
        self.assertFalse(subscription.active)

    def test_closed_stream(self):
        stream = io.StringIO()
        stream.close()
        with self.assertRaises(ResourceError):
            KeyboardTrigger(stream).register(Mock())

    def test_close_stops_delivery(self):
        trigger = KeyboardTrigger(io.StringIO("\n"))
        trigger.close()
        callback = Mock()
        trigger.register(callback)
        trigger.wait_closed(timeout=5)
        callback.assert_not_called()


class TestGpioButtonTrigger(unittest.TestCase):
    """Test cases for GpioButtonTrigger with a mocked gpiozero."""

    def setUp(self):
        self.button_class = MagicMock()
        self.button = self.button_class.return_value
        patcher = patch.multiple(trigger_input, Button=self.button_class, GPIO_AVAILABLE=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_release_fires_callback(self):
        trigger = GpioButtonTrigger(pin=16)
        callback = Mock()
        trigger.register(callback)

        self.button_class.assert_called_once_with(16, pull_up=True, bounce_time=0.05)
        self.button.when_released()
        callback.assert_called_once_with()

    def test_button_opened_once(self):
        trigger = GpioButtonTrigger(pin=16)
        first, second = Mock(), Mock()
        trigger.register(first)
        subscription = trigger.register(second)
        self.assertEqual(self.button_class.call_count, 1)

        subscription.cancel()
        self.button.when_released()
        first.assert_called_once_with()
        second.assert_not_called()

    def test_close(self):
        trigger = GpioButtonTrigger(pin=16)
        trigger.register(Mock())
        trigger.close()
        self.button.close.assert_called_once()
        self.assertIsNone(trigger.button)
        trigger.close()

    def test_gpio_error(self):
        self.button_class.side_effect = OSError("pin in use")
        with self.assertRaises(ResourceError):
            GpioButtonTrigger(pin=16).register(Mock())

    def test_gpiozero_missing(self):
        with patch.object(trigger_input, "GPIO_AVAILABLE", False):
            with self.assertRaises(ResourceError):
                GpioButtonTrigger(pin=16).register(Mock())


if __name__ == '__main__':
    unittest.main()
