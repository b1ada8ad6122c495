"""Capture-classify controller: one photo in, one set of labels out."""

import threading
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config.defaults import MODEL_SETTINGS, STATUS_MESSAGES
from .logging_config import get_logger, log_performance
from .models.recognition import (
    ControllerEvent,
    ControllerState,
    EventKind,
    RecognitionResult,
)
from .services.error_handler import ErrorHandler, ErrorSeverity, global_error_handler, release_quietly
from .services.exceptions import CaptureError, CYCLE_ERRORS
from .services.image_preprocessor import ImagePreprocessor
from .services.interfaces import (
    CameraSourceInterface,
    ClassifierEngineInterface,
    StatusPresenterInterface,
)
from .services.notifications import NotificationChannel, Subscription
from .services.result_ranker import ResultRanker
from .services.status_presenter import format_results

logger = get_logger("capture_controller")


class CaptureClassifyController:
    """Runs at most one capture-classify cycle at a time.

    ``trigger()`` starts a cycle when the controller is idle and rejects it
    with a busy message otherwise; nothing is queued. The capture future's
    completion callback does preprocessing, inference and ranking on the
    camera's worker thread, then renders the labels and returns to idle.

    All state changes and notifications happen under one lock, so once
    ``shutdown()`` returns no subscriber is called again.
    """

    def __init__(self,
                 camera: CameraSourceInterface,
                 engine: ClassifierEngineInterface,
                 labels: Sequence[str],
                 preprocessor: ImagePreprocessor,
                 presenter: StatusPresenterInterface,
                 error_callback: Optional[Callable[[Exception], None]] = None,
                 top_k: int = MODEL_SETTINGS["max_results"],
                 min_confidence: Optional[float] = None,
                 surface_errors: bool = False,
                 messages: Optional[Dict[str, str]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.camera = camera
        self.engine = engine
        self.labels = tuple(labels)
        self.preprocessor = preprocessor
        self.presenter = presenter
        self.error_callback = error_callback
        self.ranker = ResultRanker(top_k, min_confidence)
        self.surface_errors = surface_errors
        self.messages = dict(STATUS_MESSAGES, **(messages or {}))
        self.error_handler = error_handler or global_error_handler

        self._lock = threading.RLock()
        self._state = ControllerState.IDLE
        self._events: NotificationChannel[ControllerEvent] = NotificationChannel("capture_controller")
        self._subscriptions: List[Subscription] = []
        self._in_flight: Optional[Future] = None
        self._close_engine_on_completion = False
        self._cycle_done = threading.Event()
        self._cycle_done.set()

        # Statistics
        self.cycle_count = 0
        self.failure_count = 0
        self.busy_count = 0
        self.last_result: Optional[RecognitionResult] = None

        self.error_handler.register_component("capture_controller")

    @property
    def state(self) -> ControllerState:
        with self._lock:
            return self._state

    @property
    def classifier_ready(self) -> bool:
        return self.engine.is_loaded and bool(self.labels)

    def subscribe(self, callback: Callable[[ControllerEvent], None]) -> Subscription:
        """Register for controller events until the handle is cancelled."""
        with self._lock:
            subscription = self._events.subscribe(callback)
            if self._state == ControllerState.SHUT_DOWN:
                subscription.cancel()
            else:
                self._subscriptions.append(subscription)
            return subscription

    def trigger(self) -> bool:
        """Start a cycle; returns False when one is already running."""
        with self._lock:
            if self._state == ControllerState.SHUT_DOWN:
                logger.debug("Trigger ignored after shutdown")
                return False

            if self._state != ControllerState.IDLE:
                self.busy_count += 1
                logger.info(f"Trigger rejected, controller is {self._state.value}")
                self._render(self.messages["busy"])
                self._publish(EventKind.BUSY)
                return False

            if not self.classifier_ready:
                logger.warning("Trigger ignored, classifier is not loaded")
                self._render(self.messages["classifier_unavailable"])
                return False

            self._set_state(ControllerState.CAPTURING)
            self._render(self.messages["running"])
            self._cycle_done.clear()
            try:
                future = self.camera.request_capture()
            except Exception as e:
                future = Future()
                future.set_exception(CaptureError(f"Capture request failed: {e}"))
            self._in_flight = future

        future.add_done_callback(self._on_capture_complete)
        return True

    def wait_for_cycle(self, timeout: Optional[float] = None) -> bool:
        """Block until no cycle is in flight; returns False on timeout."""
        return self._cycle_done.wait(timeout)

    def show_when_idle(self, text: str) -> bool:
        """Render ``text`` only if no cycle is running."""
        with self._lock:
            if self._state != ControllerState.IDLE:
                return False
            self._render(text)
            return True

    def _on_capture_complete(self, future: Future) -> None:
        try:
            with self._lock:
                if self._state == ControllerState.SHUT_DOWN:
                    return
                self._set_state(ControllerState.CLASSIFYING)

            try:
                result = self._classify(future)
            except CYCLE_ERRORS as e:
                self._fail(e)
                return
            except Exception as e:
                logger.exception(f"Unexpected error in capture-classify cycle: {e}")
                self._fail(e, ErrorSeverity.HIGH)
                return

            with self._lock:
                if self._state == ControllerState.SHUT_DOWN:
                    return
                self.cycle_count += 1
                self.last_result = result
                self._render(format_results(result, self.messages["empty_result"]))
                self._publish(EventKind.RESULT, result=result)
                self._set_state(ControllerState.IDLE)
        finally:
            self._finish_cycle(future)

    def _classify(self, future: Future) -> RecognitionResult:
        try:
            image = future.result()
        except CancelledError:
            raise CaptureError("Capture was cancelled")

        self.presenter.show_image(image)
        tensor = self.preprocessor.preprocess(image)
        scores = self.engine.infer(tensor)
        result = self.ranker(scores, self.labels)

        logger.info(f"Recognized: {[(r.label, r.confidence) for r in result]}")
        log_performance("Capture-classify cycle completed", {
            "image_size": f"{image.width}x{image.height}",
            "results": len(result),
        })
        return result

    def _fail(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.MEDIUM) -> None:
        self.error_handler.handle_error("capture_controller", error, severity)
        with self._lock:
            if self._state == ControllerState.SHUT_DOWN:
                return
            self.failure_count += 1
            self._publish(EventKind.FAILURE, error=error)
            if self.error_callback is not None:
                try:
                    self.error_callback(error)
                except Exception as e:
                    logger.error(f"Error callback failed: {e}", exc_info=True)
            if self.surface_errors:
                self._render(self.messages["failure"].format(error=error))
            else:
                self._render(self.messages["help"])
            self._set_state(ControllerState.IDLE)

    def _finish_cycle(self, future: Future) -> None:
        with self._lock:
            # A subscriber may already have started the next cycle
            if self._in_flight is not future:
                return
            self._in_flight = None
            if not self._close_engine_on_completion:
                self._cycle_done.set()
                return
            self._close_engine_on_completion = False

        # Only reached after shutdown, so no new cycle can start here
        release_quietly("classifier_engine", self.engine.close, self.error_handler)
        self._cycle_done.set()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the controller and release the camera and the engine.

        Safe to call more than once. When a cycle is in flight the engine is
        closed once that cycle completes; ``timeout`` bounds the wait for it.
        """
        with self._lock:
            if self._state == ControllerState.SHUT_DOWN:
                return
            in_flight = self._in_flight is not None
            self._set_state(ControllerState.SHUT_DOWN)
            for subscription in self._subscriptions:
                subscription.cancel()
            self._subscriptions = []
            self._events.clear()
            self._close_engine_on_completion = in_flight

        logger.info(f"Shutting down controller (cycle in flight: {in_flight})")
        release_quietly("camera", self.camera.release, self.error_handler)
        if not in_flight:
            release_quietly("classifier_engine", self.engine.close, self.error_handler)
        elif timeout is not None:
            if not self._cycle_done.wait(timeout):
                logger.warning(f"In-flight cycle did not finish within {timeout}s")

    def get_status(self) -> Dict[str, Any]:
        """Get controller status and statistics."""
        with self._lock:
            return {
                "state": self._state.value,
                "classifier_ready": self.classifier_ready,
                "cycle_count": self.cycle_count,
                "failure_count": self.failure_count,
                "busy_count": self.busy_count,
                "subscribers": len(self._events),
                "last_result": [r.as_tuple() for r in self.last_result] if self.last_result else None,
            }

    def _set_state(self, state: ControllerState) -> None:
        if state == self._state:
            return
        logger.debug(f"State {self._state.value} -> {state.value}")
        self._state = state
        self._publish(EventKind.STATE_CHANGED)

    def _publish(self, kind: EventKind, result: Optional[RecognitionResult] = None,
                 error: Optional[Exception] = None) -> None:
        self._events.publish(ControllerEvent(kind=kind, state=self._state, result=result, error=error))

    def _render(self, text: str) -> None:
        try:
            self.presenter.render(text)
        except Exception as e:
            self.error_handler.handle_error("status_presenter", e, ErrorSeverity.LOW)
