"""
Unit Tests for Inference Module

This module tests:
- labels.py: Label tables and out-of-range handling
- reducer.py: Argmax reduction with lowest-index tie breaking
- runner.py: run_inference success and failure-as-None paths
"""

import logging
from unittest.mock import MagicMock

import numpy as np
import pytest

from garment_classifier.exceptions import UnknownClassIndexError
from garment_classifier.inference import (
    COLOR_LABELS,
    LABEL_TABLES,
    TYPE_LABELS,
    ClassificationResult,
    log_confidences,
    reduce_confidences,
    run_inference,
)
from garment_classifier.model import load_session
from garment_classifier.processing import InputTensor
from tests.conftest import COLOR_SCORES, TYPE_SCORES


def make_tensor(height: int, width: int, channels: int, fill: float = 0.5) -> InputTensor:
    values = np.full(height * width * channels, fill, dtype=np.float32)
    return InputTensor(values, height, width, channels, (height, width))


# =============================================================================
# Tests for labels.py
# =============================================================================


class TestLabelTables:
    """Tests for the fixed label tables."""

    def test_color_labels(self) -> None:
        assert COLOR_LABELS.labels == (
            "Black", "Blue", "Brown", "Green", "Grey", "Pink", "Red", "White", "Yellow",
        )

    def test_type_labels(self) -> None:
        assert TYPE_LABELS.labels == ("T-shirt/Top", "Trouser", "Pullover", "Dress", "Shirt")

    def test_tables_by_role(self) -> None:
        assert LABEL_TABLES["color"] is COLOR_LABELS
        assert LABEL_TABLES["type"] is TYPE_LABELS

    def test_strict_out_of_range(self) -> None:
        with pytest.raises(UnknownClassIndexError) as exc_info:
            COLOR_LABELS.label_for(9)

        assert exc_info.value.index == 9
        assert exc_info.value.size == 9

    def test_lenient_out_of_range_uses_last_label(self) -> None:
        assert COLOR_LABELS.label_for(42, strict=False) == "Yellow"
        assert TYPE_LABELS.label_for(-1, strict=False) == "Shirt"

    def test_unknown_index_is_index_error(self) -> None:
        with pytest.raises(IndexError):
            TYPE_LABELS.label_for(5)


# =============================================================================
# Tests for reducer.py
# =============================================================================


class TestReduceConfidences:
    """Tests for reduce_confidences."""

    def test_color_argmax(self) -> None:
        result = reduce_confidences(np.array(COLOR_SCORES), COLOR_LABELS)

        assert isinstance(result, ClassificationResult)
        assert result.label == "Green"
        assert result.score == pytest.approx(0.6)

    def test_type_argmax(self) -> None:
        result = reduce_confidences(np.array(TYPE_SCORES), TYPE_LABELS)

        assert result.label == "Trouser"
        assert result.score == pytest.approx(0.7)

    def test_tie_picks_lowest_index(self) -> None:
        scores = np.array([0.1, 0.4, 0.1, 0.4, 0.0, 0.0, 0.0, 0.0, 0.0])

        assert reduce_confidences(scores, COLOR_LABELS).label == "Blue"

    def test_uniform_scores_pick_first_label(self) -> None:
        scores = np.full(5, 0.2)

        assert reduce_confidences(scores, TYPE_LABELS).label == "T-shirt/Top"

    def test_accepts_2d_row(self) -> None:
        scores = np.array([TYPE_SCORES], dtype=np.float32)

        assert reduce_confidences(scores, TYPE_LABELS).label == "Trouser"

    def test_strict_rejects_extra_classes(self) -> None:
        """A model with more outputs than labels fails in strict mode."""
        scores = np.array([0.0] * 9 + [1.0])

        with pytest.raises(UnknownClassIndexError):
            reduce_confidences(scores, COLOR_LABELS)

    def test_lenient_extra_classes(self) -> None:
        scores = np.array([0.0] * 9 + [1.0])

        result = reduce_confidences(scores, COLOR_LABELS, strict=False)

        assert result.label == "Yellow"
        assert result.score == pytest.approx(1.0)

    def test_empty_vector(self) -> None:
        with pytest.raises(ValueError, match="Empty"):
            reduce_confidences(np.array([]), COLOR_LABELS)

    def test_log_confidences(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="garment_classifier.inference.reducer"):
            log_confidences(np.array(COLOR_SCORES), COLOR_LABELS)

        assert "3 Green: 60.00%" in caplog.text


# =============================================================================
# Tests for runner.py
# =============================================================================


class TestRunInference:
    """Tests for run_inference."""

    def test_returns_confidence_vector(self, color_model_file) -> None:
        session = load_session("color_model", color_model_file)

        confidences = run_inference(session, make_tensor(24, 24, 3), role="color")

        assert confidences.shape == (len(COLOR_SCORES),)
        assert confidences.dtype == np.float32
        assert np.allclose(confidences, COLOR_SCORES)

    def test_missing_session(self) -> None:
        assert run_inference(None, make_tensor(24, 24, 3), role="color") is None

    def test_closed_session(self, color_model_file) -> None:
        session = load_session("color_model", color_model_file)
        session.close()

        assert run_inference(session, make_tensor(24, 24, 3)) is None

    def test_length_mismatch(self, type_model_file) -> None:
        """A buffer built for another input size is rejected before running."""
        session = load_session("type_model", type_model_file)

        assert run_inference(session, make_tensor(24, 24, 1), role="type") is None

    def test_runtime_error_reported_as_none(self, caplog: pytest.LogCaptureFixture) -> None:
        session = MagicMock()
        session.closed = False
        session.name = "color_model"
        session.input_size = 24 * 24 * 3
        session.input_shape = (1, 24, 24, 3)
        session.run.side_effect = RuntimeError("bad kernel")

        result = run_inference(session, make_tensor(24, 24, 3), role="color")

        assert result is None
        assert "Error during color classification" in caplog.text

    def test_input_reshaped_to_session_shape(self) -> None:
        session = MagicMock()
        session.closed = False
        session.input_size = 28 * 28
        session.input_shape = (1, 28, 28, 1)
        session.run.return_value = np.array([TYPE_SCORES], dtype=np.float32)

        run_inference(session, make_tensor(28, 28, 1), role="type")

        batch = session.run.call_args.args[0]
        assert batch.shape == (1, 28, 28, 1)
        assert batch.dtype == np.float32
