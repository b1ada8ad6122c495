"""Exception types raised by the image classifier services."""


class ImageClassifierError(Exception):
    """Base class for all errors raised by the kit."""


class CaptureError(ImageClassifierError):
    """Camera unavailable or a still capture failed."""


class PreprocessError(ImageClassifierError):
    """Image is empty, malformed or in an unsupported pixel format."""


class InferenceError(ImageClassifierError):
    """The classifier engine failed to produce scores."""


class RankError(ImageClassifierError):
    """Scores and labels cannot be ranked together."""


class LoadError(ImageClassifierError):
    """Model or label file could not be loaded."""


class ResourceError(ImageClassifierError):
    """An optional peripheral (button, sensor, keyboard) is unavailable."""


# Errors that end a single capture-classify cycle without a result
CYCLE_ERRORS = (CaptureError, PreprocessError, InferenceError, RankError)
