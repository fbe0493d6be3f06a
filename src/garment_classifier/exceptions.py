"""
Exceptions raised by the classification pipeline.

Library functions raise these; GarmentClassifier catches them at its
boundary, logs the detail and reports a single failure message to the
listener.
"""


class ClassifierError(Exception):
    """Base exception for classification pipeline errors."""

    def __init__(self, message: str, model_name: str | None = None):
        self.message = message
        self.model_name = model_name
        super().__init__(self.message)


class ProvisioningError(ClassifierError):
    """Raised when a model cannot be downloaded or turned into a session."""

    def __init__(self, model_name: str, reason: str):
        self.reason = reason
        message = f"Failed to provision model '{model_name}': {reason}"
        super().__init__(message, model_name)


class NotReadyError(ClassifierError):
    """Raised when classification is requested before both sessions exist."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        message = f"Classifier not ready, missing sessions: {missing}"
        super().__init__(message)


class ImageDecodeError(ClassifierError, ValueError):
    """Raised when an image reference cannot be read or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        message = f"Failed to load image '{source}': {reason}"
        super().__init__(message)


class InferenceError(ClassifierError):
    """Raised when a session rejects its input or the runtime fails."""


class UnknownClassIndexError(ClassifierError, IndexError):
    """Raised when a model predicts an index its label table does not cover."""

    def __init__(self, index: int, table_name: str, size: int):
        self.index = index
        self.table_name = table_name
        self.size = size
        message = (
            f"Class index {index} out of range for '{table_name}' "
            f"label table ({size} labels)"
        )
        super().__init__(message)


class AggregationError(ClassifierError):
    """Raised when one or both reductions produced no result."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        message = f"No classification result for: {missing}"
        super().__init__(message)
