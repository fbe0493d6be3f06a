"""
Inference Module - Running Sessions and Reducing Their Output

This module provides:
- runner: One inference call per model, failures reported as None
- reducer: Argmax reduction to a ClassificationResult
- labels: Fixed color and type label tables
"""

from garment_classifier.inference.labels import (
    COLOR_LABELS,
    LABEL_TABLES,
    TYPE_LABELS,
    LabelTable,
)
from garment_classifier.inference.reducer import (
    ClassificationResult,
    log_confidences,
    reduce_confidences,
)
from garment_classifier.inference.runner import run_inference

__all__ = [
    "COLOR_LABELS",
    "LABEL_TABLES",
    "TYPE_LABELS",
    "LabelTable",
    "ClassificationResult",
    "log_confidences",
    "reduce_confidences",
    "run_inference",
]
