"""Application wiring: builds every service from the config and runs them."""

import threading
from typing import Any, Dict, List, Optional

from .capture_controller import CaptureClassifyController
from .config.defaults import STATUS_MESSAGES
from .logging_config import get_logger, log_performance
from .models.config import AppConfig
from .models.recognition import EnvironmentReading
from .services.camera_source import PiCameraSource, StillImageSource
from .services.classifier_engine import TFLiteClassifierEngine, load_model_file, read_labels
from .services.error_handler import ErrorHandler, ErrorSeverity, ResourceStack, global_error_handler
from .services.exceptions import CaptureError, LoadError, ResourceError
from .services.image_preprocessor import ImagePreprocessor
from .services.interfaces import (
    CameraSourceInterface,
    ClassifierEngineInterface,
    SensorFeedInterface,
    StatusPresenterInterface,
    TriggerInputInterface,
)
from .services.sensor_feed import Bmp280Driver, EnvironmentMonitor, PollingSensorFeed
from .services.status_presenter import (
    CompositeStatusPresenter,
    ImageStatusPresenter,
    LoggingStatusPresenter,
    format_environment,
)
from .services.trigger_input import GpioButtonTrigger, KeyboardTrigger

logger = get_logger("classifier_app")


class ImageClassifierApp:
    """Owns the peripherals, the classifier and the controller.

    Optional inputs (sensors, button, keyboard) that fail to open are
    disabled and the rest keeps running. A classifier that fails to load
    leaves the app running with triggers showing "classifier unavailable".
    Collaborators can be passed in to replace the hardware ones.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 camera: Optional[CameraSourceInterface] = None,
                 engine: Optional[ClassifierEngineInterface] = None,
                 sensor_feed: Optional[SensorFeedInterface] = None,
                 presenter: Optional[StatusPresenterInterface] = None,
                 button: Optional[TriggerInputInterface] = None,
                 keyboard: Optional[TriggerInputInterface] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.config = config or AppConfig()
        self.error_handler = error_handler or global_error_handler
        self.messages = dict(STATUS_MESSAGES)

        self.presenter = presenter or self._build_presenter()
        self.camera = camera
        self.engine = engine
        self.sensor_feed = sensor_feed
        self.button = button
        self.keyboard = keyboard

        self.reading = EnvironmentReading()
        self.monitor: Optional[EnvironmentMonitor] = None
        self.controller: Optional[CaptureClassifyController] = None
        self.labels = ()
        self.classifier_available = False
        self.disabled_inputs: List[str] = []

        self._resources = ResourceStack(self.error_handler)
        self._stop_event = threading.Event()
        self._started = False
        self._shut_down = False
        self._shutdown_timeout: Optional[float] = None

        for component in ("classifier_app", "camera", "classifier_engine",
                          "sensor_feed", "button", "keyboard"):
            self.error_handler.register_component(component)

    def _build_presenter(self) -> StatusPresenterInterface:
        presenters: List[StatusPresenterInterface] = [LoggingStatusPresenter()]
        if self.config.status_image_path:
            presenters.append(ImageStatusPresenter(
                self.config.status_image_path,
                width=self.config.display_width,
                height=self.config.display_height,
            ))
        return CompositeStatusPresenter(presenters)

    def start(self) -> None:
        """Bring every component up; optional ones degrade instead of failing."""
        if self._started:
            return
        self._started = True

        self._resources.push("status_presenter", self.presenter.close)
        self.presenter.render(self.messages["initializing"])

        self._start_sensors()
        self._start_camera()
        self._load_classifier()

        self.controller = CaptureClassifyController(
            camera=self.camera,
            engine=self.engine,
            labels=self.labels,
            preprocessor=ImagePreprocessor(self.config.input_width, self.config.input_height,
                                           self.config.crop_mode),
            presenter=self.presenter,
            top_k=self.config.top_k,
            min_confidence=self.config.min_confidence or None,
            surface_errors=self.config.surface_errors,
            messages=self.messages,
            error_handler=self.error_handler,
        )
        self._resources.push("capture_controller",
                             lambda: self.controller.shutdown(self._shutdown_timeout))

        self._start_triggers()

        self.presenter.render(self.messages["help"])
        logger.info("Image classifier started")
        log_performance("Application startup completed", {
            "classifier_available": self.classifier_available,
            "disabled_inputs": list(self.disabled_inputs),
        })

    def _start_sensors(self) -> None:
        if not self.config.sensors_enabled:
            logger.info("Environment sensors disabled by config")
            return

        if self.sensor_feed is None:
            self.sensor_feed = PollingSensorFeed(
                Bmp280Driver(self.config.sensor_i2c_address),
                poll_interval=self.config.sensor_poll_interval,
            )
        self.monitor = EnvironmentMonitor(self.sensor_feed, self.reading,
                                          on_change=self._on_environment_change)
        try:
            self.sensor_feed.start()
        except ResourceError as e:
            self._disable_input("sensor_feed", e)
            self.monitor.close()
            self.monitor = None
            return

        self._resources.push("sensor_feed", self.sensor_feed.close)
        self._resources.push("environment_monitor", self.monitor.close)

    def _start_camera(self) -> None:
        if self.camera is None:
            if self.config.static_image_path:
                self.camera = StillImageSource(self.config.static_image_path)
            else:
                self.camera = PiCameraSource((self.config.capture_width, self.config.capture_height))
        try:
            self.camera.initialize()
        except CaptureError as e:
            # Captures will fail per cycle until the camera is fixed
            self.error_handler.handle_error("camera", e, ErrorSeverity.HIGH)

    def _load_classifier(self) -> None:
        if self.engine is None:
            self.engine = TFLiteClassifierEngine(num_threads=self.config.num_threads)
        try:
            labels = read_labels(self.config.labels_path)
            self.engine.load(load_model_file(self.config.model_path), labels)
        except LoadError as e:
            self.error_handler.handle_error("classifier_engine", e, ErrorSeverity.HIGH)
            logger.error(f"Classifier unavailable: {e}")
            return
        self.labels = labels
        self.classifier_available = True

    def _start_triggers(self) -> None:
        if self.config.button_enabled:
            if self.button is None:
                self.button = GpioButtonTrigger(self.config.button_pin)
            self._register_trigger("button", self.button)

        if self.config.keyboard_enabled:
            if self.keyboard is None:
                self.keyboard = KeyboardTrigger()
            if self._register_trigger("keyboard", self.keyboard) and hasattr(self.keyboard, "on_quit"):
                self.keyboard.on_quit(self.request_stop)

    def _register_trigger(self, name: str, trigger: TriggerInputInterface) -> bool:
        try:
            subscription = trigger.register(self.controller.trigger)
        except ResourceError as e:
            self._disable_input(name, e)
            return False
        self._resources.push(name, trigger.close)
        self._resources.push(f"{name}_subscription", subscription.cancel)
        return True

    def _disable_input(self, name: str, error: Exception) -> None:
        self.error_handler.mark_disabled(name, str(error))
        self.disabled_inputs.append(name)

    def _on_environment_change(self, reading: EnvironmentReading) -> None:
        text = format_environment(reading, self.config.greeting)
        if self.controller is None:
            self.presenter.render(text)
        else:
            self.controller.show_when_idle(text)

    def trigger(self) -> bool:
        """Start a capture as if the button was pressed."""
        if self.controller is None:
            return False
        return self.controller.trigger()

    def request_stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        """Start and block until ``request_stop()`` is called."""
        self.start()
        try:
            self._stop_event.wait()
        finally:
            self.shutdown()

    def shutdown(self, timeout: Optional[float] = 5.0) -> List[str]:
        """Release everything in reverse start order.

        Returns the names of components whose release failed.
        """
        if self._shut_down:
            return []
        self._shut_down = True
        self._stop_event.set()
        self._shutdown_timeout = timeout

        failures = self._resources.close()
        if failures:
            logger.warning(f"Components failed to release: {failures}")
        logger.info("Image classifier stopped")
        return failures

    def get_status(self) -> Dict[str, Any]:
        temperature, pressure = self.reading.snapshot()
        return {
            "classifier_available": self.classifier_available,
            "disabled_inputs": list(self.disabled_inputs),
            "controller": self.controller.get_status() if self.controller else None,
            "environment": {"temperature": temperature, "pressure": pressure},
            "component_health": {k: v.value for k, v in self.error_handler.get_component_health().items()},
        }
