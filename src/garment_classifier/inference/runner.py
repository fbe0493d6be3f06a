"""Single-model inference call.

run_inference() never raises: an absent or closed session, a buffer that
does not match the session's declared input, or a runtime error are all
logged and reported as None. The caller treats None as failure.
"""

import logging
import time

import numpy as np

from garment_classifier.model.session import ModelSession
from garment_classifier.processing.tensor import InputTensor

logger = logging.getLogger(__name__)


def run_inference(
    session: ModelSession | None,
    tensor: InputTensor,
    role: str = "model",
) -> np.ndarray | None:
    """Run one inference call and return the confidence vector.

    Args:
        session: Provisioned session, or None if not provisioned
        tensor: Preprocessed input buffer
        role: Model role for log messages ("color" or "type")

    Returns:
        1-D float32 confidence vector (row 0 of the (1, N) output), or None
        on failure
    """
    if session is None or session.closed:
        logger.error(f"{role.capitalize()} session is not ready", extra={"role": role})
        return None

    if len(tensor) != session.input_size:
        logger.error(
            f"{role.capitalize()} input has {len(tensor)} values, "
            f"{session.name} expects {session.input_size} {session.input_shape}",
            extra={"role": role, "model_name": session.name},
        )
        return None

    batch = tensor.values.astype(np.float32, copy=False).reshape(session.input_shape)

    t0 = time.perf_counter()
    try:
        logger.debug(f"Running {role} classification", extra={"role": role})
        output = session.run(batch)
    except Exception:
        logger.exception(
            f"Error during {role} classification",
            extra={"role": role, "model_name": session.name},
        )
        return None

    latency_ms = (time.perf_counter() - t0) * 1000

    output = np.asarray(output, dtype=np.float32)
    if output.ndim == 0 or output.shape[0] < 1:
        logger.error(f"{role.capitalize()} model returned an empty output {output.shape}")
        return None

    confidences = output.reshape(output.shape[0], -1)[0]

    logger.debug(
        f"{role.capitalize()} inference took {latency_ms:.2f} ms",
        extra={"role": role, "latency_ms": round(latency_ms, 2)},
    )
    return confidences
