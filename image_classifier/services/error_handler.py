"""Error tracking, graceful degradation and best-effort resource release."""

import contextlib
import logging
import threading
import traceback
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Callable, Any
from dataclasses import dataclass, field
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComponentStatus(Enum):
    """Component status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DISABLED = "disabled"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class ErrorRecord:
    """Record of an error occurrence."""
    component: str
    error_type: str
    message: str
    severity: ErrorSeverity
    timestamp: datetime = field(default_factory=datetime.now)
    traceback_str: str = ""


class ErrorHandler:
    """Central error bookkeeping for the application components."""

    def __init__(self, max_error_history: int = 200):
        self.logger = logging.getLogger("image_classifier.error_handler")
        self.max_error_history = max_error_history
        self.error_history: List[ErrorRecord] = []
        self.component_error_counts: Dict[str, int] = {}
        self.component_status: Dict[str, ComponentStatus] = {}
        self.disabled_reasons: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register_component(self, component_name: str) -> None:
        """Register a component for health tracking."""
        with self._lock:
            self.component_error_counts.setdefault(component_name, 0)
            self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)
        self.logger.debug(f"Component registered: {component_name}")

    def handle_error(self, component_name: str, error: Exception,
                     severity: ErrorSeverity = ErrorSeverity.MEDIUM) -> ErrorRecord:
        """Record an error raised by a component and update its status."""
        record = ErrorRecord(
            component=component_name,
            error_type=type(error).__name__,
            message=str(error),
            severity=severity,
            traceback_str="".join(traceback.format_exception(type(error), error, error.__traceback__))
        )

        with self._lock:
            self.error_history.append(record)
            if len(self.error_history) > self.max_error_history:
                self.error_history = self.error_history[-self.max_error_history:]

            self.component_error_counts[component_name] = \
                self.component_error_counts.get(component_name, 0) + 1

            current = self.component_status.get(component_name, ComponentStatus.HEALTHY)
            if current != ComponentStatus.DISABLED:
                if severity == ErrorSeverity.CRITICAL:
                    self.component_status[component_name] = ComponentStatus.FAILED
                elif severity in (ErrorSeverity.MEDIUM, ErrorSeverity.HIGH):
                    self.component_status[component_name] = ComponentStatus.DEGRADED
                else:
                    self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)

        log_level = logging.WARNING if severity == ErrorSeverity.LOW else logging.ERROR
        self.logger.log(log_level, f"Error in {component_name}: {error} (Severity: {severity.value})")
        return record

    def mark_disabled(self, component_name: str, reason: str) -> None:
        """Mark an optional component as unavailable for the rest of the run."""
        with self._lock:
            self.component_status[component_name] = ComponentStatus.DISABLED
            self.disabled_reasons[component_name] = reason
        self.logger.warning(f"Component disabled: {component_name} ({reason})")

    def is_component_disabled(self, component_name: str) -> bool:
        with self._lock:
            return self.component_status.get(component_name) == ComponentStatus.DISABLED

    def mark_healthy(self, component_name: str) -> None:
        with self._lock:
            self.component_status[component_name] = ComponentStatus.HEALTHY
            self.disabled_reasons.pop(component_name, None)

    def get_component_health(self) -> Dict[str, ComponentStatus]:
        """Get health status of all registered components."""
        with self._lock:
            return dict(self.component_status)

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        with self._lock:
            return {
                "total_errors": len(self.error_history),
                "component_error_counts": dict(self.component_error_counts),
                "disabled_components": dict(self.disabled_reasons),
            }

    def get_error_summary(self, hours: int = 24) -> Dict[str, Any]:
        """Get summary of errors in the last N hours."""
        cutoff_time = datetime.now() - timedelta(hours=hours)
        with self._lock:
            recent_errors = [e for e in self.error_history if e.timestamp >= cutoff_time]

        component_counts: Dict[str, int] = {}
        severity_counts = {severity.value: 0 for severity in ErrorSeverity}
        for error in recent_errors:
            component_counts[error.component] = component_counts.get(error.component, 0) + 1
            severity_counts[error.severity.value] += 1

        return {
            "total_errors": len(recent_errors),
            "component_counts": component_counts,
            "severity_counts": severity_counts,
            "time_period_hours": hours
        }

    def clear_error_history(self) -> None:
        """Forget all recorded errors and reset component status."""
        with self._lock:
            self.error_history.clear()
            for component in self.component_error_counts:
                self.component_error_counts[component] = 0
            for component in self.component_status:
                self.component_status[component] = ComponentStatus.HEALTHY
            self.disabled_reasons.clear()


# Create global error handler instance
global_error_handler = ErrorHandler()


def release_quietly(name: str, release: Callable[[], Any],
                    handler: Optional[ErrorHandler] = None) -> bool:
    """Run one best-effort release; a failure is logged, recorded and swallowed.

    Returns True when the release completed without raising.
    """
    handler = handler or global_error_handler
    try:
        release()
        return True
    except Exception as e:
        handler.handle_error(name, e, ErrorSeverity.LOW)
        return False


class ResourceStack:
    """Releases registered resources in reverse order, each one isolated.

    A failing release is recorded with the error handler and does not stop
    the remaining releases from running.
    """

    def __init__(self, handler: Optional[ErrorHandler] = None):
        self._handler = handler or global_error_handler
        self._stack = contextlib.ExitStack()
        self._names: List[str] = []
        self._failures: List[str] = []

    def push(self, name: str, release: Callable[[], Any]) -> None:
        """Register a release callable under a component name."""
        def _release():
            if not release_quietly(name, release, self._handler):
                self._failures.append(name)

        self._names.append(name)
        self._stack.callback(_release)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def close(self) -> List[str]:
        """Release everything; returns the names of releases that failed."""
        self._failures = []
        self._stack.close()
        self._names = []
        return list(self._failures)

    def __enter__(self) -> "ResourceStack":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
