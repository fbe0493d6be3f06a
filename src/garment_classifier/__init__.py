"""
Garment Classifier - Color and Garment Type Classification

Classifies an image with two independently provisioned ONNX models:

- processing: Image decoding and per-model input buffers
- model: MinIO model download and ONNX Runtime sessions
- inference: Inference calls and argmax label reduction
- classifier: GarmentClassifier, which ties the above together
"""

from garment_classifier.classifier import (
    CLASSIFIER_FAILED_MESSAGE,
    ClassificationReport,
    ClassifierListener,
    ClassifierState,
    GarmentClassifier,
)
from garment_classifier.inference import ClassificationResult

__all__ = [
    "CLASSIFIER_FAILED_MESSAGE",
    "ClassificationReport",
    "ClassificationResult",
    "ClassifierListener",
    "ClassifierState",
    "GarmentClassifier",
]

__version__ = "0.1.0"
