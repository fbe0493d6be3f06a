"""ONNX Runtime session wrapper.

This module binds one downloaded model file to an ONNX Runtime inference
session and records what the pipeline needs to know about it: the NHWC
input dimensions and the number of output classes.

Features:
- Thread configuration: Fixed intra_op/inter_op thread settings
- Shape validation: Input must be 4-D (batch, height, width, channels)
- Explicit release: close() drops the runtime session
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import onnxruntime as ort

from garment_classifier.config import get_runtime_config
from garment_classifier.exceptions import InferenceError, ProvisioningError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_INTRA_OP_THREADS: int = 4
"""ONNX Runtime intra-op parallelism (within single operator)."""

DEFAULT_INTER_OP_THREADS: int = 1
"""ONNX Runtime inter-op parallelism (across operators)."""

INPUT_RANK: int = 4
"""Input tensors are (batch, height, width, channels)."""


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SessionConfig:
    """Configuration for ONNX Runtime inference session.

    Attributes:
        intra_op_threads: Number of threads for intra-op parallelism
        inter_op_threads: Number of threads for inter-op parallelism
        providers: Execution providers (default: CPUExecutionProvider)
    """

    intra_op_threads: int = DEFAULT_INTRA_OP_THREADS
    inter_op_threads: int = DEFAULT_INTER_OP_THREADS
    providers: list[str] = field(default_factory=lambda: ["CPUExecutionProvider"])

    @classmethod
    def from_config(cls) -> "SessionConfig":
        """Build a SessionConfig from the runtime section of classifier.yaml."""
        runtime = get_runtime_config()
        return cls(
            intra_op_threads=runtime.get("intra_op_num_threads", DEFAULT_INTRA_OP_THREADS),
            inter_op_threads=runtime.get("inter_op_num_threads", DEFAULT_INTER_OP_THREADS),
            providers=list(runtime.get("providers", ["CPUExecutionProvider"])),
        )


# =============================================================================
# Model Session
# =============================================================================


class ModelSession:
    """A provisioned model, ready for repeated inference calls.

    Attributes:
        name: Model identifier
        path: Path to the ONNX file the session was built from
        input_name: Name of input tensor
        input_height: Declared input height
        input_width: Declared input width
        input_channels: Declared input channel count
        num_classes: Output classes per row, or None if the model leaves it symbolic
    """

    def __init__(self, name: str, path: Path, session: ort.InferenceSession) -> None:
        """Wrap an existing runtime session.

        Args:
            name: Model identifier
            path: Model file the session was loaded from
            session: ONNX Runtime session

        Raises:
            ProvisioningError: If the input tensor is not 4-D with concrete
                positive height, width and channel dimensions
        """
        self.name = name
        self.path = Path(path)

        input_meta = session.get_inputs()[0]
        output_meta = session.get_outputs()[0]

        shape = tuple(input_meta.shape)
        if len(shape) != INPUT_RANK:
            raise ProvisioningError(
                name, f"expected {INPUT_RANK}-D input (batch, height, width, channels), got {shape}"
            )

        # Batch is discarded; it is often symbolic ("N") anyway
        _, height, width, channels = shape
        for label, dim in (("height", height), ("width", width), ("channels", channels)):
            if not isinstance(dim, int) or dim < 1:
                raise ProvisioningError(name, f"input {label} must be a positive integer, got {dim!r}")

        self.input_name: str = input_meta.name
        self.input_height: int = height
        self.input_width: int = width
        self.input_channels: int = channels

        self.output_name: str = output_meta.name
        last_dim = output_meta.shape[-1] if output_meta.shape else None
        self.num_classes: int | None = last_dim if isinstance(last_dim, int) else None

        self._session: ort.InferenceSession | None = session

    def __repr__(self) -> str:
        return (
            f"ModelSession(name={self.name!r}, input_shape={self.input_shape}, "
            f"num_classes={self.num_classes}, closed={self.closed})"
        )

    @property
    def input_shape(self) -> tuple[int, int, int, int]:
        """NHWC input shape with a batch of one."""
        return (1, self.input_height, self.input_width, self.input_channels)

    @property
    def input_size(self) -> int:
        """Number of values in one input buffer."""
        return self.input_height * self.input_width * self.input_channels

    @property
    def closed(self) -> bool:
        return self._session is None

    def run(self, batch: np.ndarray) -> np.ndarray:
        """Run inference on one NHWC batch.

        Args:
            batch: float32 array with shape input_shape

        Returns:
            First model output, shape (1, num_classes)

        Raises:
            InferenceError: If the session has been closed
        """
        if self._session is None:
            raise InferenceError(f"Session for '{self.name}' is closed", self.name)

        outputs = self._session.run([self.output_name], {self.input_name: batch})
        return outputs[0]

    def close(self) -> None:
        """Release the runtime session. Safe to call more than once."""
        if self._session is not None:
            self._session = None
            logger.info(f"Released session for {self.name}")


def load_session(name: str, model_path: Path, config: SessionConfig | None = None) -> ModelSession:
    """Build a ModelSession from a model file.

    Args:
        name: Model identifier used in logs and errors
        model_path: Path to ONNX file
        config: Session configuration (default: 4 intra-op, 1 inter-op threads)

    Returns:
        ModelSession bound to the file

    Raises:
        ProvisioningError: If the file is missing, malformed, or has an
            unexpected input shape
    """
    config = config or SessionConfig()
    model_path = Path(model_path)

    if not model_path.exists():
        raise ProvisioningError(name, f"model file not found: {model_path}")

    logger.info(f"Creating session for {name} from {model_path}")

    sess_options = ort.SessionOptions()
    sess_options.intra_op_num_threads = config.intra_op_threads
    sess_options.inter_op_num_threads = config.inter_op_threads

    try:
        session = ort.InferenceSession(
            str(model_path),
            sess_options,
            providers=config.providers,
        )
    except Exception as e:
        # onnxruntime raises its own pybind exception types for bad files
        raise ProvisioningError(name, f"cannot load model: {e}") from e

    model_session = ModelSession(name, model_path, session)

    logger.info(
        f"  ✓ Session for {name} created with input shape {model_session.input_shape}",
        extra={"model_name": name, "input_shape": list(model_session.input_shape)},
    )
    return model_session
