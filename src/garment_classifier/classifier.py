"""Dual-model garment classifier.

This module orchestrates the complete color + type pipeline:
1. Provision both models concurrently; ready once both sessions exist
2. Decode the image once
3. Color and type branches in parallel: preprocess -> inference -> reduce
4. Aggregate into [color, type] or report failure

Results are delivered to a ClassifierListener and also returned from
classify(). Every failure reaches the listener as one message; the
detail only goes to the log.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

import numpy as np

from garment_classifier.config import get_label_config, get_model_config
from garment_classifier.exceptions import (
    AggregationError,
    ClassifierError,
    NotReadyError,
    ProvisioningError,
)
from garment_classifier.inference import (
    COLOR_LABELS,
    TYPE_LABELS,
    ClassificationResult,
    log_confidences,
    reduce_confidences,
    run_inference,
)
from garment_classifier.logger import new_classification_id
from garment_classifier.model import ModelProvisioner, ModelRef, ModelRegistry, ModelSession
from garment_classifier.processing import load_image, preprocess_color, preprocess_type
from garment_classifier.processing.color_preprocess import SUPPORTED_CHANNELS
from garment_classifier.processing.transforms import ImageRef
from garment_classifier.processing.type_preprocess import TYPE_INPUT_CHANNELS
from garment_classifier.settings import Settings

logger = logging.getLogger(__name__)

CLASSIFIER_FAILED_MESSAGE = "Classifier failed"


# =============================================================================
# Caller-facing Types
# =============================================================================


class ClassifierListener(Protocol):
    """Receives classifier events."""

    def on_failure(self, error: str) -> None: ...

    def on_success(self, results: list[ClassificationResult]) -> None: ...

    def on_model_ready(self) -> None: ...


class ClassifierState(str, Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONING = "provisioning"
    READY = "ready"
    CLASSIFYING = "classifying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ClassificationReport:
    """
    Outcome of one successful classification.

    Attributes:
        results: Exactly two results, [color, type]
        timing: decode_ms, color_ms, type_ms, total_ms
    """

    results: list[ClassificationResult]
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def color(self) -> ClassificationResult:
        return self.results[0]

    @property
    def garment_type(self) -> ClassificationResult:
        return self.results[1]


def aggregate_results(
    color: ClassificationResult | None,
    garment_type: ClassificationResult | None,
) -> list[ClassificationResult]:
    """Combine both predictions in [color, type] order.

    Raises:
        AggregationError: If either prediction is missing
    """
    missing = [
        role
        for role, result in (("color", color), ("type", garment_type))
        if result is None
    ]
    if missing:
        raise AggregationError(missing)

    return [color, garment_type]


# =============================================================================
# Classifier
# =============================================================================


class GarmentClassifier:
    """Color + garment type classifier backed by two provisioned models.

    Example:
        >>> classifier = GarmentClassifier.from_config(listener=my_listener)
        >>> async with classifier:
        ...     await classifier.provision()
        ...     report = await classifier.classify("shirt.jpg")
        >>> [r.label for r in report.results]
        ['Blue', 'Shirt']

    Attributes:
        provisioner: Turns model refs into sessions
        listener: Optional event receiver
        models: Model ref per role
        strict_labels: Treat unknown class indices as failures
        registry: Sessions owned by this classifier
    """

    def __init__(
        self,
        provisioner: ModelProvisioner,
        listener: ClassifierListener | None = None,
        color_model: ModelRef = ModelRef("color_model"),
        type_model: ModelRef = ModelRef("type_model"),
        strict_labels: bool = True,
    ) -> None:
        self.provisioner = provisioner
        self.listener = listener
        self.models: dict[str, ModelRef] = {"color": color_model, "type": type_model}
        self.strict_labels = strict_labels
        self.registry = ModelRegistry(self.models.keys())

        self._provisioning: asyncio.Task | None = None
        self._in_flight = 0
        self._last_outcome: ClassifierState | None = None
        self._background: set[asyncio.Task] = set()

        logger.info(
            f"Initializing classifier (color={color_model.name}, type={type_model.name})"
        )

    @classmethod
    def from_config(
        cls,
        listener: ClassifierListener | None = None,
        settings: Settings | None = None,
        models_dir: Path | None = None,
    ) -> "GarmentClassifier":
        """Create a classifier from classifier.yaml and environment settings."""
        color = get_model_config("color")
        garment_type = get_model_config("type")

        return cls(
            provisioner=ModelProvisioner.from_config(settings, models_dir),
            listener=listener,
            color_model=ModelRef(color["name"], color.get("version", 1)),
            type_model=ModelRef(garment_type["name"], garment_type.get("version", 1)),
            strict_labels=get_label_config().get("strict", True),
        )

    # ---------- State ----------

    @property
    def is_ready(self) -> bool:
        return self.registry.is_complete()

    @property
    def state(self) -> ClassifierState:
        if not self.is_ready:
            if self._provisioning is not None and not self._provisioning.done():
                return ClassifierState.PROVISIONING
            return ClassifierState.UNPROVISIONED
        if self._in_flight:
            return ClassifierState.CLASSIFYING
        return self._last_outcome or ClassifierState.READY

    # ---------- Provisioning ----------

    async def provision(self) -> bool:
        """Provision every model that has no session yet.

        Both downloads run concurrently. on_model_ready fires once, when the
        second session is installed; each failed model sends one
        on_failure. Calling again after a failure only retries the missing
        models. A call made while a round is running waits for that round
        instead of starting another.

        Returns:
            True if the classifier is ready afterwards
        """
        if self.is_ready:
            return True

        if self._provisioning is None or self._provisioning.done():
            self._provisioning = asyncio.get_running_loop().create_task(
                self._provision_missing()
            )
        else:
            logger.info("Provisioning already in progress, waiting for it")

        await asyncio.shield(self._provisioning)
        return self.is_ready

    async def _provision_missing(self) -> None:
        pending = self.registry.missing()
        await asyncio.gather(*(self._provision_role(role) for role in pending))

    async def _provision_role(self, role: str) -> None:
        model = self.models[role]
        logger.info(f"Downloading model: {model.name}", extra={"role": role})

        try:
            session = await self.provisioner.provision(model)
            self._check_input_channels(role, session)
        except ClassifierError as e:
            logger.error(f"Model {model.name} provisioning failed: {e}", extra={"role": role})
            self._notify_failure()
            return

        if self.registry.install(role, session):
            logger.info("Both models are ready")
            if self.listener is not None:
                self.listener.on_model_ready()

    @staticmethod
    def _check_input_channels(role: str, session: ModelSession) -> None:
        if role == "color":
            allowed: tuple[int, ...] = SUPPORTED_CHANNELS
        else:
            allowed = (TYPE_INPUT_CHANNELS,)

        if session.input_channels not in allowed:
            session.close()
            raise ProvisioningError(
                session.name,
                f"{role} model declares {session.input_channels} input channels, "
                f"expected one of {allowed}",
            )

    # ---------- Classification ----------

    async def classify(self, image_ref: ImageRef) -> ClassificationReport | None:
        """Classify one image.

        Args:
            image_ref: Raw bytes, a path, a file:// URI or an RGB uint8 array

        Returns:
            ClassificationReport, or None on failure (the listener has
            already received on_failure)
        """
        new_classification_id()

        if not self.is_ready:
            error = NotReadyError(self.registry.missing())
            logger.error(f"Interpreters are not ready: {error}")
            self._notify_failure()
            return None

        self._in_flight += 1
        try:
            report = await self._classify(image_ref)
        except ClassifierError as e:
            logger.error(f"Classification failed: {e}")
            self._last_outcome = ClassifierState.FAILED
            self._notify_failure()
            return None
        finally:
            self._in_flight -= 1

        self._last_outcome = ClassifierState.SUCCEEDED
        if self.listener is not None:
            self.listener.on_success(report.results)
        return report

    def classify_nowait(self, image_ref: ImageRef) -> asyncio.Task:
        """Schedule classify() and return immediately.

        Must be called from a running event loop. Results arrive through
        the listener; the returned task can be awaited for the report.
        """
        task = asyncio.get_running_loop().create_task(self.classify(image_ref))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _classify(self, image_ref: ImageRef) -> ClassificationReport:
        timing: dict[str, float] = {}
        t0 = time.perf_counter()

        image = await asyncio.to_thread(load_image, image_ref)
        timing["decode_ms"] = (time.perf_counter() - t0) * 1000

        (color, color_ms), (garment_type, type_ms) = await asyncio.gather(
            asyncio.to_thread(self._run_branch, "color", image),
            asyncio.to_thread(self._run_branch, "type", image),
        )
        timing["color_ms"] = color_ms
        timing["type_ms"] = type_ms

        results = aggregate_results(color, garment_type)
        timing["total_ms"] = (time.perf_counter() - t0) * 1000

        logger.info(
            f"Classified as {results[0].label} {results[1].label} "
            f"in {timing['total_ms']:.1f} ms",
            extra={"latency_ms": round(timing["total_ms"], 2)},
        )
        return ClassificationReport(results=results, timing=timing)

    def _run_branch(self, role: str, image: np.ndarray) -> tuple[ClassificationResult | None, float]:
        """Preprocess, infer and reduce for one model. Never raises ClassifierError."""
        t0 = time.perf_counter()
        result = None

        session = self.registry.get(role)
        if session is None:
            logger.error(f"{role.capitalize()} interpreter is not ready", extra={"role": role})
        else:
            result = self._classify_with(role, session, image)

        return result, (time.perf_counter() - t0) * 1000

    def _classify_with(
        self,
        role: str,
        session: ModelSession,
        image: np.ndarray,
    ) -> ClassificationResult | None:
        logger.debug(f"Preprocessing image for {role} model", extra={"role": role})
        if role == "color":
            tensor = preprocess_color(
                image, session.input_width, session.input_height, session.input_channels
            )
            table = COLOR_LABELS
        else:
            tensor = preprocess_type(image, session.input_width, session.input_height)
            table = TYPE_LABELS

        confidences = run_inference(session, tensor, role)
        if confidences is None:
            return None

        log_confidences(confidences, table)

        try:
            result = reduce_confidences(confidences, table, strict=self.strict_labels)
        except (ClassifierError, ValueError) as e:
            logger.error(f"Cannot reduce {role} output: {e}", extra={"role": role})
            return None

        logger.debug(
            f"{role.capitalize()} classification result: {result.label} "
            f"with confidence {result.score:.4f}",
            extra={"role": role, "label": result.label, "score": result.score},
        )
        return result

    # ---------- Lifecycle ----------

    def close(self) -> None:
        """Release both sessions. The classifier must be provisioned again to be used."""
        self.registry.release_all()
        self._last_outcome = None

    async def __aenter__(self) -> "GarmentClassifier":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _notify_failure(self) -> None:
        if self.listener is not None:
            self.listener.on_failure(CLASSIFIER_FAILED_MESSAGE)
