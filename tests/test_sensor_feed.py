"""Unit tests for the sensor feed and environment monitor."""

import unittest
from unittest.mock import Mock, MagicMock, patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_classifier.models.recognition import EnvironmentReading
from image_classifier.services import sensor_feed
from image_classifier.services.exceptions import ResourceError
from image_classifier.services.interfaces import SensorKind
from image_classifier.services.sensor_feed import Bmp280Driver, EnvironmentMonitor, PollingSensorFeed


class FakeDriver:
    """Sensor driver returning scripted values."""

    def __init__(self):
        self.values = {SensorKind.TEMPERATURE: 21.5, SensorKind.PRESSURE: 1013.25}
        self.failing = set()
        self.opened = False
        self.closed = False
        self.open_error = None

    def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def read(self, kind):
        if kind in self.failing:
            raise OSError("I2C read failed")
        return self.values[kind]

    def close(self):
        self.closed = True


class TestPollingSensorFeed(unittest.TestCase):
    """Test cases for PollingSensorFeed."""

    def setUp(self):
        self.driver = FakeDriver()
        # Long interval so only explicit poll_once calls read the sensor
        self.feed = PollingSensorFeed(self.driver, poll_interval=3600)

    def tearDown(self):
        self.feed.close()

    def test_readings_published_on_change_only(self):
        on_reading = Mock()
        self.feed.subscribe(SensorKind.TEMPERATURE, on_reading)

        self.feed.poll_once()
        self.feed.poll_once()
        on_reading.assert_called_once_with(SensorKind.TEMPERATURE, 21.5)

        self.driver.values[SensorKind.TEMPERATURE] = 22.0
        self.feed.poll_once()
        self.assertEqual(on_reading.call_count, 2)
        self.assertEqual(self.feed.last_value(SensorKind.TEMPERATURE), 22.0)

    def test_listeners_only_get_their_kind(self):
        on_pressure = Mock()
        self.feed.subscribe(SensorKind.PRESSURE, on_pressure)
        self.feed.poll_once()
        on_pressure.assert_called_once_with(SensorKind.PRESSURE, 1013.25)

    def test_connection_events(self):
        on_connected = Mock()
        on_disconnected = Mock()
        self.feed.subscribe(SensorKind.TEMPERATURE, Mock(), on_connected, on_disconnected)

        self.feed.poll_once()
        on_connected.assert_called_once_with(SensorKind.TEMPERATURE)
        self.assertTrue(self.feed.is_connected(SensorKind.TEMPERATURE))

        self.driver.failing.add(SensorKind.TEMPERATURE)
        self.feed.poll_once()
        on_disconnected.assert_called_once_with(SensorKind.TEMPERATURE)
        self.assertFalse(self.feed.is_connected(SensorKind.TEMPERATURE))
        self.assertIsNone(self.feed.last_value(SensorKind.TEMPERATURE))

    def test_late_subscriber_told_already_connected(self):
        self.feed.poll_once()
        on_connected = Mock()
        self.feed.subscribe(SensorKind.PRESSURE, Mock(), on_connected)
        on_connected.assert_called_once_with(SensorKind.PRESSURE)

    def test_cancelled_subscription(self):
        on_reading = Mock()
        subscription = self.feed.subscribe(SensorKind.TEMPERATURE, on_reading)
        subscription.cancel()
        self.feed.poll_once()
        on_reading.assert_not_called()

    def test_failing_listener_is_isolated(self):
        good = Mock()
        self.feed.subscribe(SensorKind.TEMPERATURE, Mock(side_effect=ValueError("boom")))
        self.feed.subscribe(SensorKind.TEMPERATURE, good)
        self.feed.poll_once()
        good.assert_called_once()

    def test_start_and_close(self):
        on_reading = Mock()
        on_disconnected = Mock()
        self.feed.subscribe(SensorKind.TEMPERATURE, on_reading, on_disconnected=on_disconnected)

        self.feed.start()
        self.assertTrue(self.driver.opened)
        on_reading.assert_called_once_with(SensorKind.TEMPERATURE, 21.5)

        self.feed.close()
        self.assertTrue(self.driver.closed)
        on_disconnected.assert_called_once_with(SensorKind.TEMPERATURE)

        self.feed.close()
        with self.assertRaises(ResourceError):
            self.feed.start()

    def test_start_failure_propagates(self):
        self.driver.open_error = ResourceError("no sensor")
        with self.assertRaises(ResourceError):
            self.feed.start()


class TestEnvironmentMonitor(unittest.TestCase):
    """Test cases for EnvironmentMonitor."""

    def test_reading_updated(self):
        driver = FakeDriver()
        feed = PollingSensorFeed(driver, poll_interval=3600)
        on_change = Mock()
        monitor = EnvironmentMonitor(feed, on_change=on_change)

        feed.poll_once()

        self.assertEqual(monitor.reading.snapshot(), (21.5, 1013.25))
        self.assertTrue(monitor.reading.is_connected("temperature"))
        self.assertEqual(on_change.call_count, 2)
        on_change.assert_called_with(monitor.reading)

        monitor.close()
        driver.values[SensorKind.PRESSURE] = 990.0
        feed.poll_once()
        self.assertEqual(monitor.reading.pressure, 1013.25)
        feed.close()

    def test_shared_reading(self):
        reading = EnvironmentReading()
        feed = PollingSensorFeed(FakeDriver(), poll_interval=3600)
        EnvironmentMonitor(feed, reading)
        feed.poll_once()
        self.assertEqual(reading.temperature, 21.5)
        feed.close()


class TestBmp280Driver(unittest.TestCase):
    """Test cases for the BMP280 driver adapter."""

    def test_read(self):
        board = MagicMock()
        bmp280 = MagicMock()
        sensor = bmp280.Adafruit_BMP280_I2C.return_value
        sensor.temperature = 23.25
        sensor.pressure = 1001.5

        with patch.multiple(sensor_feed, board=board, adafruit_bmp280=bmp280, SENSOR_AVAILABLE=True):
            driver = Bmp280Driver(address=0x77)
            driver.open()
            self.assertEqual(driver.read(SensorKind.TEMPERATURE), 23.25)
            self.assertEqual(driver.read(SensorKind.PRESSURE), 1001.5)
            driver.close()

        bmp280.Adafruit_BMP280_I2C.assert_called_once_with(board.I2C.return_value, address=0x77)
        board.I2C.return_value.deinit.assert_called_once()

    def test_sensor_not_found(self):
        bmp280 = MagicMock()
        bmp280.Adafruit_BMP280_I2C.side_effect = ValueError("No I2C device at address: 0x77")
        with patch.multiple(sensor_feed, board=MagicMock(), adafruit_bmp280=bmp280, SENSOR_AVAILABLE=True):
            with self.assertRaises(ResourceError):
                Bmp280Driver().open()

    def test_driver_unavailable(self):
        with patch.object(sensor_feed, "SENSOR_AVAILABLE", False):
            with self.assertRaises(ResourceError):
                Bmp280Driver().open()

    def test_read_before_open(self):
        with self.assertRaises(ResourceError):
            Bmp280Driver().read(SensorKind.TEMPERATURE)


if __name__ == '__main__':
    unittest.main()
