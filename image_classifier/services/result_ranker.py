"""Top-K ranking of classifier scores."""

from typing import Optional, Sequence

from ..config.defaults import MODEL_SETTINGS
from ..models.recognition import Recognition, RecognitionResult
from .exceptions import RankError


def rank_results(confidences: Sequence[float], labels: Sequence[str],
                 k: int = MODEL_SETTINGS["max_results"],
                 min_confidence: Optional[float] = None) -> RecognitionResult:
    """Return the ``k`` best ``Recognition``s, highest confidence first.

    Equal confidences keep label-index order. Scores below ``min_confidence``
    are dropped when a threshold is given. Neither input is modified.

    Raises:
        RankError: if either input is empty, their lengths differ, or k < 1.
    """
    if k < 1:
        raise RankError(f"k must be at least 1, got {k}")

    scores = [float(c) for c in confidences]
    label_list = list(labels)

    if not scores:
        raise RankError("Confidence vector is empty")
    if not label_list:
        raise RankError("Label set is empty")
    if len(scores) != len(label_list):
        raise RankError(
            f"Confidence vector has {len(scores)} entries but there are {len(label_list)} labels")

    order = sorted(range(len(scores)), key=lambda i: (-scores[i], i))
    if min_confidence is not None:
        order = [i for i in order if scores[i] >= min_confidence]

    return tuple(
        Recognition(label=label_list[i], confidence=_as_number(confidences[i]), index=i)
        for i in order[:k]
    )


def _as_number(value):
    """Convert numpy scalars to plain Python numbers."""
    return value.item() if hasattr(value, "item") else value


class ResultRanker:
    """Holds the configured top-K and threshold for the controller."""

    def __init__(self, top_k: int = MODEL_SETTINGS["max_results"],
                 min_confidence: Optional[float] = None):
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        self.top_k = top_k
        self.min_confidence = min_confidence

    def __call__(self, confidences: Sequence[float], labels: Sequence[str]) -> RecognitionResult:
        return rank_results(confidences, labels, self.top_k, self.min_confidence)
