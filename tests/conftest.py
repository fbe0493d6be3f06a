"""
Pytest Fixtures - Shared Test Fixtures for the Garment Classifier

This module provides reusable fixtures for all test modules.

Fixtures:
    sample_image: Sample RGB image (100x150) for testing
    sample_image_square: Sample square RGB image (64x64)
    sample_png_bytes: sample_image encoded as PNG
    oversized_png_bytes: PNG header declaring more pixels than decoders accept
    model_factory: Builds tiny NHWC ONNX classifiers with fixed scores
    fake_bucket: MagicMock MinIO client serving files from a dict
    recording_listener: ClassifierListener that records every event

Test models are Flatten -> MatMul -> Add -> (Softmax), so their output is
fully determined by the weights and bias handed to model_factory.
"""

import shutil
import struct
import zlib
from pathlib import Path
from typing import Callable, Sequence
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from garment_classifier import config
from garment_classifier.model import (
    DownloadConditions,
    DownloadType,
    ModelDownloader,
    ModelProvisioner,
    SessionConfig,
)


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def packaged_config():
    """Every test starts and ends with the packaged classifier.yaml."""
    config.load_config(config.DEFAULT_CONFIG_PATH)
    yield
    config.load_config(config.DEFAULT_CONFIG_PATH)


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def sample_image() -> np.ndarray:
    """
    Sample RGB image for testing.

    Returns:
        RGB uint8 array with shape [100, 150, 3]
    """
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (100, 150, 3), dtype=np.uint8)


@pytest.fixture
def sample_image_square() -> np.ndarray:
    """
    Sample square RGB image for testing.

    Returns:
        RGB uint8 array with shape [64, 64, 3]
    """
    rng = np.random.default_rng(43)
    return rng.integers(0, 256, (64, 64, 3), dtype=np.uint8)


@pytest.fixture
def sample_png_bytes(sample_image: np.ndarray) -> bytes:
    """sample_image encoded as lossless PNG bytes."""
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(sample_image, cv2.COLOR_RGB2BGR))
    assert ok
    return encoded.tobytes()


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(tag + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)


@pytest.fixture
def oversized_png_bytes() -> bytes:
    """PNG whose header declares 50000x50000 RGB pixels; the data is a stub."""
    header = struct.pack(">IIBBBBB", 50000, 50000, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b"\x00" * 16))
        + _png_chunk(b"IEND", b"")
    )


# =============================================================================
# ONNX Model Fixtures
# =============================================================================

def build_model(
    path: Path,
    input_dims: Sequence,
    bias: Sequence[float],
    weights: np.ndarray | None = None,
    softmax: bool = False,
) -> Path:
    """
    Write a minimal classifier ONNX model.

    Args:
        path: Output file
        input_dims: Full input shape, e.g. [1, 24, 24, 3] or ["N", 28, 28, 1]
        bias: Per-class bias; with zero weights this is the model output
        weights: Optional [features, classes] matrix (default: zeros)
        softmax: Apply softmax to the scores

    Returns:
        path
    """
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper, numpy_helper

    num_classes = len(bias)
    if weights is None:
        features = int(np.prod([d for d in input_dims[1:]]))
        weights = np.zeros((features, num_classes), dtype=np.float32)

    X = helper.make_tensor_value_info("input", TensorProto.FLOAT, list(input_dims))
    Y = helper.make_tensor_value_info("output", TensorProto.FLOAT, [input_dims[0], num_classes])

    initializers = [
        numpy_helper.from_array(np.asarray(weights, dtype=np.float32), "weights"),
        numpy_helper.from_array(np.asarray(bias, dtype=np.float32), "bias"),
    ]

    scores_name = "scores" if softmax else "output"
    nodes = [
        helper.make_node("Flatten", ["input"], ["flat"], axis=1),
        helper.make_node("MatMul", ["flat", "weights"], ["logits"]),
        helper.make_node("Add", ["logits", "bias"], [scores_name]),
    ]
    if softmax:
        nodes.append(helper.make_node("Softmax", ["scores"], ["output"], axis=-1))

    graph = helper.make_graph(nodes, "test_classifier", [X], [Y], initializer=initializers)
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 17)])

    # IR 9 keeps older onnxruntime releases happy
    model.ir_version = 9

    onnx.save(model, str(path))
    return path


COLOR_SCORES = [0.05, 0.02, 0.1, 0.6, 0.01, 0.01, 0.01, 0.1, 0.1]
"""Color model output used across tests: argmax 3 -> Green."""

TYPE_SCORES = [0.1, 0.7, 0.1, 0.05, 0.05]
"""Type model output used across tests: argmax 1 -> Trouser."""


@pytest.fixture
def model_factory(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing test models into a temporary source directory."""
    source_dir = tmp_path / "source_models"
    source_dir.mkdir()

    def factory(name: str, input_dims: Sequence, bias: Sequence[float], **kwargs) -> Path:
        return build_model(source_dir / f"{name}.onnx", input_dims, bias, **kwargs)

    return factory


@pytest.fixture
def color_model_file(model_factory) -> Path:
    """Color model with input (1, 24, 24, 3) and COLOR_SCORES output."""
    return model_factory("color_model", [1, 24, 24, 3], COLOR_SCORES)


@pytest.fixture
def type_model_file(model_factory) -> Path:
    """Type model with input (1, 28, 28, 1) and TYPE_SCORES output."""
    return model_factory("type_model", [1, 28, 28, 1], TYPE_SCORES)


# =============================================================================
# Distribution Service Fixtures
# =============================================================================

class FakeBucket:
    """Object name -> local file map behind a MagicMock MinIO client."""

    def __init__(self) -> None:
        self.objects: dict[str, Path] = {}
        self.client = MagicMock()
        self.client.fget_object.side_effect = self._fget_object

    def put(self, object_name: str, source: Path) -> None:
        self.objects[object_name] = source

    def _fget_object(self, bucket_name: str, object_name: str, file_path: str) -> None:
        if object_name not in self.objects:
            raise ConnectionError(f"no such object: {bucket_name}/{object_name}")
        shutil.copy(self.objects[object_name], file_path)

    def downloaded(self) -> list[str]:
        return [c.args[1] for c in self.client.fget_object.call_args_list]


@pytest.fixture
def fake_bucket(color_model_file: Path, type_model_file: Path) -> FakeBucket:
    """Bucket serving color_model and type_model under version 1."""
    bucket = FakeBucket()
    bucket.put("color_model/1/model.onnx", color_model_file)
    bucket.put("type_model/1/model.onnx", type_model_file)
    return bucket


@pytest.fixture
def models_dir(tmp_path: Path) -> Path:
    """Empty local model directory."""
    return tmp_path / "models"


@pytest.fixture
def provisioner(fake_bucket: FakeBucket, models_dir: Path) -> ModelProvisioner:
    """Provisioner downloading from fake_bucket into models_dir."""
    downloader = ModelDownloader(fake_bucket.client, "models", models_dir)
    return ModelProvisioner(
        downloader,
        session_config=SessionConfig(intra_op_threads=1),
        download_type=DownloadType.LOCAL_MODEL,
        conditions=DownloadConditions(require_wifi=True),
    )


# =============================================================================
# Listener Fixtures
# =============================================================================

class RecordingListener:
    """Records classifier events."""

    def __init__(self) -> None:
        self.failures: list[str] = []
        self.successes: list[list] = []
        self.ready_count = 0

    def on_failure(self, error: str) -> None:
        self.failures.append(error)

    def on_success(self, results: list) -> None:
        self.successes.append(results)

    def on_model_ready(self) -> None:
        self.ready_count += 1


@pytest.fixture
def recording_listener() -> RecordingListener:
    return RecordingListener()
