"""Inputs that start a capture: the HAT push button and the Enter key."""

import sys
import threading
from typing import Callable, Optional, TextIO

from ..logging_config import get_logger
from .error_handler import global_error_handler
from .exceptions import ResourceError
from .interfaces import TriggerInputInterface
from .notifications import NotificationChannel, Subscription

# Handle GPIO imports gracefully
try:
    from gpiozero import Button
    from gpiozero.exc import GPIOZeroError
    GPIO_AVAILABLE = True
except ImportError:
    GPIO_AVAILABLE = False
    Button = None
    GPIOZeroError = OSError

logger = get_logger("trigger_input")

QUIT_COMMANDS = ("q", "quit", "exit")


class GpioButtonTrigger(TriggerInputInterface):
    """Push button wired to a GPIO pin; fires when the button is released."""

    def __init__(self, pin: int = 16, bounce_time: Optional[float] = 0.05):
        self.pin = pin
        self.bounce_time = bounce_time
        self.button = None
        self._channel: NotificationChannel[None] = NotificationChannel(f"button:{pin}")
        global_error_handler.register_component("button")

    def _open(self) -> None:
        if self.button is not None:
            return
        if not GPIO_AVAILABLE:
            raise ResourceError("gpiozero is not installed")
        try:
            self.button = Button(self.pin, pull_up=True, bounce_time=self.bounce_time)
        except (GPIOZeroError, OSError, RuntimeError) as e:
            raise ResourceError(f"Cannot open button on GPIO{self.pin}: {e}") from e
        self.button.when_released = self._on_released
        logger.info(f"Button registered on GPIO{self.pin}")

    def register(self, callback: Callable[[], None]) -> Subscription:
        self._open()
        return self._channel.subscribe(lambda _: callback(), f"button:{self.pin}")

    def _on_released(self) -> None:
        logger.debug(f"Button on GPIO{self.pin} released")
        self._channel.publish(None)

    def close(self) -> None:
        self._channel.clear()
        button, self.button = self.button, None
        if button is not None:
            button.when_released = None
            button.close()


class KeyboardTrigger(TriggerInputInterface):
    """Reads lines from a text stream; an empty line (Enter) is a trigger.

    ``q``, ``quit`` or ``exit`` call the quit callbacks instead, and end of
    input stops the reader.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdin
        self._triggers: NotificationChannel[None] = NotificationChannel("keyboard")
        self._quits: NotificationChannel[None] = NotificationChannel("keyboard:quit")
        self._reader: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        global_error_handler.register_component("keyboard")

    def register(self, callback: Callable[[], None]) -> Subscription:
        if self.stream is None or getattr(self.stream, "closed", False):
            raise ResourceError("No input stream for keyboard trigger")
        subscription = self._triggers.subscribe(lambda _: callback(), "keyboard")
        self._start_reader()
        return subscription

    def on_quit(self, callback: Callable[[], None]) -> Subscription:
        return self._quits.subscribe(lambda _: callback(), "keyboard:quit")

    def _start_reader(self) -> None:
        if self._reader is not None:
            return
        self._reader = threading.Thread(target=self._read_loop, name="keyboard", daemon=True)
        self._reader.start()
        logger.info("Keyboard trigger active, press Enter to take a photo")

    def _read_loop(self) -> None:
        while not self._stopped.is_set():
            try:
                line = self.stream.readline()
            except (OSError, ValueError) as e:
                logger.warning(f"Keyboard input stopped: {e}")
                break
            if not line:
                logger.info("Keyboard input closed")
                break
            if self._stopped.is_set():
                break

            command = line.strip().lower()
            if command in QUIT_COMMANDS:
                self._quits.publish(None)
            elif command == "":
                self._triggers.publish(None)
            else:
                logger.debug(f"Ignoring keyboard input: {command!r}")

    def wait_closed(self, timeout: Optional[float] = None) -> None:
        """Block until the reader thread ends."""
        if self._reader is not None:
            self._reader.join(timeout)

    def close(self) -> None:
        self._stopped.set()
        self._triggers.clear()
        self._quits.clear()
