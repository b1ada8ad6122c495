"""TensorFlow Lite classifier engine and model asset helpers."""

import threading
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config.defaults import MODEL_SETTINGS
from ..logging_config import get_logger
from .error_decorators import log_execution_time
from .error_handler import global_error_handler, ErrorSeverity
from .exceptions import InferenceError, LoadError
from .interfaces import ClassifierEngineInterface

# Handle TensorFlow Lite import gracefully
try:
    import tflite_runtime.interpreter as tflite
    TFLITE_AVAILABLE = True
except ImportError:
    try:
        import tensorflow.lite as tflite
        TFLITE_AVAILABLE = True
    except ImportError:
        TFLITE_AVAILABLE = False
        tflite = None

logger = get_logger("classifier_engine")


def load_model_file(model_path: str) -> bytes:
    """Read a .tflite model into memory."""
    try:
        return Path(model_path).read_bytes()
    except OSError as e:
        raise LoadError(f"Cannot read model file {model_path}: {e}") from e


def read_labels(labels_path: str) -> Tuple[str, ...]:
    """Read one label per line; blank lines are skipped."""
    try:
        text = Path(labels_path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Cannot read labels file {labels_path}: {e}") from e

    labels = tuple(line.strip() for line in text.splitlines() if line.strip())
    if not labels:
        raise LoadError(f"Labels file {labels_path} is empty")
    return labels


class TFLiteClassifierEngine(ClassifierEngineInterface):
    """Runs an image classification model through the TFLite interpreter.

    The interpreter is not safe for concurrent invocation, so ``infer`` is
    serialized with a lock.
    """

    def __init__(self, num_threads: int = 2):
        self.num_threads = num_threads
        self._interpreter = None
        self._input_detail = None
        self._output_detail = None
        self._labels: Tuple[str, ...] = ()
        self._lock = threading.Lock()

        global_error_handler.register_component("classifier_engine")

    @property
    def is_loaded(self) -> bool:
        return self._interpreter is not None

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    @property
    def input_shape(self) -> Optional[Tuple[int, ...]]:
        if self._input_detail is None:
            return None
        return tuple(int(d) for d in self._input_detail["shape"])

    @property
    def input_dtype(self):
        return None if self._input_detail is None else self._input_detail["dtype"]

    def load(self, model_content: bytes, labels: Sequence[str]) -> None:
        """Create the interpreter from model bytes and check it against the labels."""
        if not TFLITE_AVAILABLE:
            raise LoadError("TensorFlow Lite runtime is not installed")
        if not model_content:
            raise LoadError("Model content is empty")
        labels = tuple(labels)
        if not labels:
            raise LoadError("Label list is empty")

        try:
            interpreter = tflite.Interpreter(model_content=model_content,
                                             num_threads=self.num_threads)
            interpreter.allocate_tensors()
            input_detail = interpreter.get_input_details()[0]
            output_detail = interpreter.get_output_details()[0]
        except Exception as e:
            global_error_handler.handle_error("classifier_engine", e, ErrorSeverity.HIGH)
            raise LoadError(f"Failed to load TFLite model: {e}") from e

        output_size = int(np.prod(output_detail["shape"][1:]))
        if output_size != len(labels):
            raise LoadError(
                f"Model produces {output_size} scores but {len(labels)} labels were given")

        with self._lock:
            self._interpreter = interpreter
            self._input_detail = input_detail
            self._output_detail = output_detail
            self._labels = labels

        logger.info(f"TFLite model loaded - input {self.input_shape} {np.dtype(self.input_dtype).name}, "
                    f"{len(labels)} labels")

    def load_from_files(self, model_path: str, labels_path: str) -> None:
        """Load the model and labels from disk."""
        self.load(load_model_file(model_path), read_labels(labels_path))

    @log_execution_time("inference")
    def infer(self, input_tensor: np.ndarray) -> np.ndarray:
        """Run one inference and return the per-label score vector."""
        with self._lock:
            if self._interpreter is None:
                raise InferenceError("Classifier model is not loaded")

            expected_shape = tuple(int(d) for d in self._input_detail["shape"])
            if tuple(input_tensor.shape) != expected_shape:
                raise InferenceError(
                    f"Input shape {tuple(input_tensor.shape)} does not match model input {expected_shape}")
            if input_tensor.dtype != self._input_detail["dtype"]:
                raise InferenceError(
                    f"Input dtype {input_tensor.dtype} does not match model input "
                    f"{np.dtype(self._input_detail['dtype']).name}")

            try:
                self._interpreter.set_tensor(self._input_detail["index"], input_tensor)
                self._interpreter.invoke()
                output = self._interpreter.get_tensor(self._output_detail["index"])
            except Exception as e:
                raise InferenceError(f"Inference failed: {e}") from e

        scores = np.array(output).reshape(-1)
        if scores.size != len(self._labels):
            raise InferenceError(
                f"Model returned {scores.size} scores for {len(self._labels)} labels")
        return scores

    def close(self) -> None:
        """Drop the interpreter; safe to call more than once."""
        with self._lock:
            if self._interpreter is None:
                return
            self._interpreter = None
            self._input_detail = None
            self._output_detail = None
        logger.info("Classifier engine closed")

    def get_model_info(self) -> dict:
        """Get model information."""
        return {
            "loaded": self.is_loaded,
            "tflite_available": TFLITE_AVAILABLE,
            "input_shape": self.input_shape,
            "expected_input_size": MODEL_SETTINGS["input_size"],
            "label_count": len(self._labels),
            "num_threads": self.num_threads,
        }
