"""Environment sensor feed for the BMP280 temperature/pressure sensor."""

import itertools
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..logging_config import get_logger
from ..models.recognition import EnvironmentReading
from .error_handler import global_error_handler, ErrorSeverity, release_quietly
from .exceptions import ResourceError
from .interfaces import SensorFeedInterface, SensorKind
from .notifications import Subscription

# Handle sensor driver imports gracefully; board raises NotImplementedError off-device
try:
    import board
    import adafruit_bmp280
    SENSOR_AVAILABLE = True
except (ImportError, NotImplementedError):
    SENSOR_AVAILABLE = False
    board = None
    adafruit_bmp280 = None

logger = get_logger("sensor_feed")


class Bmp280Driver:
    """BMP280 over I2C through the Adafruit CircuitPython driver."""

    def __init__(self, address: int = 0x77):
        self.address = address
        self._i2c = None
        self._sensor = None

    def open(self) -> None:
        if not SENSOR_AVAILABLE:
            raise ResourceError("adafruit-circuitpython-bmp280 is not available on this board")
        try:
            self._i2c = board.I2C()
            self._sensor = adafruit_bmp280.Adafruit_BMP280_I2C(self._i2c, address=self.address)
        except (ValueError, OSError, RuntimeError) as e:
            self.close()
            raise ResourceError(f"BMP280 not found at 0x{self.address:02x}: {e}") from e
        logger.info(f"BMP280 sensor opened at 0x{self.address:02x}")

    def read(self, kind: SensorKind) -> float:
        """Read one value: °C for temperature, hPa for pressure."""
        if self._sensor is None:
            raise ResourceError("BMP280 sensor is not open")
        if kind == SensorKind.TEMPERATURE:
            return float(self._sensor.temperature)
        return float(self._sensor.pressure)

    def close(self) -> None:
        i2c, self._i2c = self._i2c, None
        self._sensor = None
        if i2c is not None and hasattr(i2c, "deinit"):
            i2c.deinit()


@dataclass
class _Listener:
    kind: SensorKind
    on_reading: Callable[[SensorKind, float], None]
    on_connected: Optional[Callable[[SensorKind], None]] = None
    on_disconnected: Optional[Callable[[SensorKind], None]] = None


class PollingSensorFeed(SensorFeedInterface):
    """Polls a sensor driver on a background thread and publishes changes.

    A reading is delivered only when it differs from the previous one. A
    read failure marks that sensor kind disconnected until it reads again.
    """

    def __init__(self, driver=None, poll_interval: float = 1.0,
                 kinds=(SensorKind.TEMPERATURE, SensorKind.PRESSURE)):
        self.driver = driver if driver is not None else Bmp280Driver()
        self.poll_interval = max(0.05, poll_interval)
        self.kinds = tuple(kinds)

        self._listeners: Dict[int, _Listener] = {}
        self._ids = itertools.count()
        self._lock = threading.RLock()
        self._connected: Dict[SensorKind, bool] = {kind: False for kind in self.kinds}
        self._last_values: Dict[SensorKind, Optional[float]] = {kind: None for kind in self.kinds}

        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._started = False
        self._closed = False

        global_error_handler.register_component("sensor_feed")

    def subscribe(self, kind: SensorKind,
                  on_reading: Callable[[SensorKind, float], None],
                  on_connected: Optional[Callable[[SensorKind], None]] = None,
                  on_disconnected: Optional[Callable[[SensorKind], None]] = None) -> Subscription:
        listener = _Listener(kind, on_reading, on_connected, on_disconnected)
        with self._lock:
            key = next(self._ids)
            self._listeners[key] = listener
            already_connected = self._connected.get(kind, False)

        if already_connected and on_connected is not None:
            self._deliver(on_connected, kind)

        def _cancel():
            with self._lock:
                self._listeners.pop(key, None)

        return Subscription(_cancel, f"sensor_feed:{kind.value}")

    def start(self) -> None:
        """Open the driver, publish connection and start polling."""
        with self._lock:
            if self._closed:
                raise ResourceError("Sensor feed has been closed")
            if self._started:
                return
            self.driver.open()
            self._started = True

        self.poll_once()

        self._stop_event.clear()
        self._poll_thread = threading.Thread(target=self._poll_loop, name="sensor_feed", daemon=True)
        self._poll_thread.start()
        logger.info(f"Sensor feed polling every {self.poll_interval}s")

    def poll_once(self) -> None:
        """Read every sensor kind once and publish what changed."""
        for kind in self.kinds:
            try:
                value = self.driver.read(kind)
            except Exception as e:
                global_error_handler.handle_error("sensor_feed", e, ErrorSeverity.LOW)
                self._set_connected(kind, False)
                continue

            self._set_connected(kind, True)
            with self._lock:
                changed = self._last_values.get(kind) != value
                self._last_values[kind] = value
                listeners = [listener for listener in self._listeners.values() if listener.kind == kind]
            if changed:
                for listener in listeners:
                    self._deliver(listener.on_reading, kind, value)

    def last_value(self, kind: SensorKind) -> Optional[float]:
        with self._lock:
            return self._last_values.get(kind)

    def is_connected(self, kind: SensorKind) -> bool:
        with self._lock:
            return self._connected.get(kind, False)

    def close(self) -> None:
        """Stop polling, publish disconnection and release the driver."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            was_started = self._started

        self._stop_event.set()
        if self._poll_thread is not None and self._poll_thread is not threading.current_thread():
            self._poll_thread.join(timeout=max(2.0, self.poll_interval * 2))

        for kind in self.kinds:
            self._set_connected(kind, False)
        with self._lock:
            self._listeners.clear()

        if was_started:
            release_quietly("sensor_feed", self.driver.close)
        logger.info("Sensor feed closed")

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.poll_once()

    def _set_connected(self, kind: SensorKind, connected: bool) -> None:
        with self._lock:
            if self._connected.get(kind, False) == connected:
                return
            self._connected[kind] = connected
            if not connected:
                self._last_values[kind] = None
            listeners = [listener for listener in self._listeners.values() if listener.kind == kind]

        logger.info(f"Sensor {kind.value} {'connected' if connected else 'disconnected'}")
        for listener in listeners:
            callback = listener.on_connected if connected else listener.on_disconnected
            if callback is not None:
                self._deliver(callback, kind)

    @staticmethod
    def _deliver(callback, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Sensor listener failed: {e}", exc_info=True)


class EnvironmentMonitor:
    """Keeps an EnvironmentReading current from a sensor feed.

    ``on_change`` is called with the reading after every update so the
    caller can refresh the display.
    """

    def __init__(self, feed: SensorFeedInterface,
                 reading: Optional[EnvironmentReading] = None,
                 on_change: Optional[Callable[[EnvironmentReading], None]] = None):
        self.feed = feed
        self.reading = reading or EnvironmentReading()
        self.on_change = on_change
        self._subscriptions = [
            feed.subscribe(kind, self._on_reading, self._on_connected, self._on_disconnected)
            for kind in (SensorKind.TEMPERATURE, SensorKind.PRESSURE)
        ]

    def _on_reading(self, kind: SensorKind, value: float) -> None:
        if kind == SensorKind.TEMPERATURE:
            self.reading.temperature = value
        elif kind == SensorKind.PRESSURE:
            self.reading.pressure = value
        if self.on_change is not None:
            self.on_change(self.reading)

    def _on_connected(self, kind: SensorKind) -> None:
        self.reading.set_connected(kind.value, True)

    def _on_disconnected(self, kind: SensorKind) -> None:
        self.reading.set_connected(kind.value, False)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
