"""Tests for prediction data containers."""

from __future__ import annotations

import numpy as np
import pytest

from kernelshap.core.exceptions import InvalidFeatureValueError, ValidationError
from kernelshap.model import (
    Feature,
    Output,
    Prediction,
    PredictionInput,
    PredictionOutput,
    get_predictions,
)


class TestFeature:
    """Tests for Feature and Output."""

    def test_value_stored_as_float(self) -> None:
        """Test integer values are stored as float."""
        feature = Feature("volume", 1000)

        assert feature.value == 1000.0
        assert isinstance(feature.value, float)

    @pytest.mark.parametrize("value", ["high", None, True, [1.0]])
    def test_non_numeric_rejected(self, value) -> None:
        """Test non-numeric values are rejected."""
        with pytest.raises(InvalidFeatureValueError) as exc_info:
            Feature("rsi_14", value)

        assert exc_info.value.details["field"] == "rsi_14"

    def test_numpy_scalar_accepted(self) -> None:
        """Test numpy floating scalars are numeric."""
        assert Output("score", np.float64(0.5)).value == 0.5

    def test_frozen(self) -> None:
        """Test features cannot be modified."""
        feature = Feature("macd", 0.5)

        with pytest.raises(AttributeError):
            feature.value = 1.0  # type: ignore[misc]


class TestPredictionInput:
    """Tests for PredictionInput."""

    def test_from_values_default_names(self) -> None:
        """Test positional names are generated."""
        row = PredictionInput.from_values([1.0, 2.0])

        assert len(row) == 2
        assert row.feature_names == ("feature_0", "feature_1")
        np.testing.assert_array_equal(row.values, [1.0, 2.0])

    def test_from_values_with_names(self) -> None:
        """Test explicit names are kept in order."""
        row = PredictionInput.from_values([65.0, 0.5], ["rsi_14", "macd"])

        assert row.feature_names == ("rsi_14", "macd")

    def test_name_count_mismatch(self) -> None:
        """Test names and values must have the same length."""
        with pytest.raises(ValidationError):
            PredictionInput.from_values([1.0, 2.0], ["only_one"])

    def test_from_array(self) -> None:
        """Test one input per array row."""
        inputs = PredictionInput.from_array(np.array([[1.0, 2.0], [3.0, 4.0]]), ("a", "b"))

        assert len(inputs) == 2
        assert inputs[1].feature_names == ("a", "b")
        np.testing.assert_array_equal(inputs[1].values, [3.0, 4.0])

    def test_list_features_become_tuple(self) -> None:
        """Test features passed as a list are stored as a tuple."""
        row = PredictionInput([Feature("a", 1.0)])  # type: ignore[arg-type]

        assert isinstance(row.features, tuple)
        assert hash(row) == hash(PredictionInput((Feature("a", 1.0),)))


class TestPrediction:
    """Tests for PredictionOutput, Prediction and get_predictions."""

    def test_output_from_values(self) -> None:
        """Test outputs get positional names."""
        output = PredictionOutput.from_values([0.2, 0.8])

        assert output.output_names == ("output_0", "output_1")
        assert len(output) == 2
        np.testing.assert_array_equal(output.values, [0.2, 0.8])

    def test_get_predictions_pairs_by_position(self) -> None:
        """Test inputs and outputs are paired in order."""
        inputs = [PredictionInput.from_values([1.0]), PredictionInput.from_values([2.0])]
        outputs = [PredictionOutput.from_values([10.0]), PredictionOutput.from_values([20.0])]

        predictions = get_predictions(inputs, outputs)

        assert predictions == [Prediction(inputs[0], outputs[0]), Prediction(inputs[1], outputs[1])]

    def test_get_predictions_length_mismatch(self) -> None:
        """Test unequal lengths are rejected."""
        with pytest.raises(ValidationError):
            get_predictions([PredictionInput.from_values([1.0])], [])
