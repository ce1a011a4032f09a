"""Tests for background dataset analysis."""

from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from model_stubs import rows
from kernelshap.core.exceptions import (
    EmptyBackgroundError,
    FeatureCountMismatchError,
    InvalidFeatureValueError,
)
from kernelshap.explainers.background import analyze_background, background_to_array
from kernelshap.model import PredictionInput


class TestBackgroundToArray:
    """Tests for background conversion."""

    def test_from_prediction_inputs(self, background_raw) -> None:
        """Test rows convert with their feature names."""
        array, names = background_to_array(rows(background_raw))

        assert array.shape == (3, 5)
        assert names == ("feature_0", "feature_1", "feature_2", "feature_3", "feature_4")
        np.testing.assert_array_equal(array, background_raw)

    def test_from_numpy(self) -> None:
        """Test a 2-D integer array converts to float."""
        array, names = background_to_array(np.array([[1, 2], [3, 4]]))

        assert array.dtype == np.float64
        assert names == ("feature_0", "feature_1")

    def test_from_polars(self) -> None:
        """Test DataFrame columns become feature names."""
        frame = pl.DataFrame({"rsi_14": [65.0, 45.0], "volume": [1000, 800]})

        array, names = background_to_array(frame)

        assert names == ("rsi_14", "volume")
        np.testing.assert_array_equal(array, [[65.0, 1000.0], [45.0, 800.0]])

    def test_polars_non_numeric_column(self) -> None:
        """Test string columns are rejected."""
        frame = pl.DataFrame({"symbol": ["AAPL", "MSFT"], "price": [1.0, 2.0]})

        with pytest.raises(InvalidFeatureValueError):
            background_to_array(frame)

    @pytest.mark.parametrize(
        "background",
        [[], np.empty((0, 3)), pl.DataFrame({"a": []}, schema={"a": pl.Float64})],
    )
    def test_empty(self, background) -> None:
        """Test every container rejects an empty background."""
        with pytest.raises(EmptyBackgroundError):
            background_to_array(background)

    def test_ragged_rows(self) -> None:
        """Test rows of different lengths are rejected."""
        background = [PredictionInput.from_values([1.0, 2.0]), PredictionInput.from_values([1.0])]

        with pytest.raises(FeatureCountMismatchError):
            background_to_array(background)

    def test_one_dimensional_array(self) -> None:
        """Test a vector is not accepted as a background."""
        with pytest.raises(FeatureCountMismatchError):
            background_to_array(np.array([1.0, 2.0, 3.0]))

    def test_boolean_array(self) -> None:
        """Test boolean arrays are rejected."""
        with pytest.raises(InvalidFeatureValueError):
            background_to_array(np.array([[True, False]]))


class TestVarianceMap:
    """Tests for variance classification."""

    def test_varying_columns(self, background_raw) -> None:
        """Test constant columns are detected."""
        variance = analyze_background(np.array(background_raw))

        assert variance.varying.tolist() == [True, True, True, False, True]
        assert variance.n_varying == 4
        assert variance.n_features == 5

    def test_single_row_background(self) -> None:
        """Test a one-row background has no varying columns."""
        variance = analyze_background(np.array([[1.0, 2.0, 3.0]]))

        assert variance.n_varying == 0

    def test_instance_equal_to_constant(self, background_no_variance) -> None:
        """Test an instance matching a constant background varies nowhere."""
        variance = analyze_background(np.array(background_no_variance))

        assert not variance.varying_for(np.array([1.0, 2.0, 3.0])).any()

    def test_instance_differs_from_constant(self, background_no_variance) -> None:
        """Test a constant column varies for an instance that differs there."""
        variance = analyze_background(np.array(background_no_variance))

        assert variance.varying_for(np.array([3.0, 2.0, 3.0])).tolist() == [True, False, False]

    def test_instance_wrong_length(self, background_raw) -> None:
        """Test a mismatched instance length is rejected."""
        variance = analyze_background(np.array(background_raw))

        with pytest.raises(FeatureCountMismatchError):
            variance.varying_for(np.array([1.0, 2.0]))

    def test_empty(self) -> None:
        """Test analysis of an empty matrix is rejected."""
        with pytest.raises(EmptyBackgroundError):
            analyze_background(np.empty((0, 2)))
