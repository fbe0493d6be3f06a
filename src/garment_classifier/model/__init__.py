"""
Model Module - Provisioning and ONNX Runtime Sessions

This module provides:
- provisioning: Download models from the MinIO bucket and build sessions
- session: ONNX Runtime session wrapper with input shape extraction
- registry: Write-once session holder that decides readiness
"""

from garment_classifier.model.session import (
    ModelSession,
    SessionConfig,
    load_session,
    DEFAULT_INTRA_OP_THREADS,
    DEFAULT_INTER_OP_THREADS,
)

from garment_classifier.model.registry import ModelRegistry

from garment_classifier.model.provisioning import (
    DownloadConditions,
    DownloadType,
    ModelDownloader,
    ModelProvisioner,
    ModelRef,
)

__all__ = [
    # Session
    "ModelSession",
    "SessionConfig",
    "load_session",
    "DEFAULT_INTRA_OP_THREADS",
    "DEFAULT_INTER_OP_THREADS",
    # Registry
    "ModelRegistry",
    # Provisioning
    "DownloadConditions",
    "DownloadType",
    "ModelDownloader",
    "ModelProvisioner",
    "ModelRef",
]
