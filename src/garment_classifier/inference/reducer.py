"""
Confidence Vector Reduction

Reduces a model's per-class scores to one labeled prediction: the index of
the highest score (lowest index on ties) looked up in a fixed label table.
"""

import logging
from dataclasses import dataclass

import numpy as np

from garment_classifier.inference.labels import LabelTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationResult:
    """
    Final labeled prediction of one model.

    Attributes:
        label: Human-readable class label
        score: Model confidence for that class
    """

    label: str
    score: float


def reduce_confidences(
    confidences: np.ndarray,
    label_table: LabelTable,
    strict: bool = True,
) -> ClassificationResult:
    """
    Pick the top-scoring class and label it.

    Args:
        confidences: 1-D score vector, one entry per class
        label_table: Table mapping class index to label
        strict: Raise on indices outside the table (see LabelTable.label_for)

    Returns:
        ClassificationResult for the argmax index

    Raises:
        ValueError: If the vector is empty
        UnknownClassIndexError: If strict and the argmax index has no label

    Example:
        >>> scores = np.array([0.05, 0.02, 0.1, 0.6, 0.01, 0.01, 0.01, 0.1, 0.1])
        >>> reduce_confidences(scores, COLOR_LABELS).label
        'Green'
    """
    scores = np.asarray(confidences, dtype=np.float32).reshape(-1)

    if scores.size == 0:
        raise ValueError(f"Empty confidence vector for '{label_table.name}'")

    # np.argmax returns the first occurrence of the maximum
    index = int(np.argmax(scores))

    return ClassificationResult(
        label=label_table.label_for(index, strict=strict),
        score=float(scores[index]),
    )


def log_confidences(confidences: np.ndarray, label_table: LabelTable) -> None:
    """Log every class percentage at DEBUG level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(f"{label_table.name.capitalize()} classification percentages:")
    for index, confidence in enumerate(np.asarray(confidences).reshape(-1)):
        label = label_table.label_for(index, strict=False)
        logger.debug(f"  {index} {label}: {float(confidence) * 100:.2f}%")
