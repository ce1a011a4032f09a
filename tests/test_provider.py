"""Tests for the prediction provider contract."""

from __future__ import annotations

import numpy as np
import pytest

from model_stubs import RecordingProvider, sum_skip
from kernelshap.model import (
    FunctionPredictionProvider,
    PredictionInput,
    PredictionProvider,
    inputs_to_array,
    outputs_to_array,
)


class TestProtocol:
    """Tests for PredictionProvider structural typing."""

    def test_function_provider_satisfies_protocol(self) -> None:
        """Test the function adapter is a PredictionProvider."""
        assert isinstance(FunctionPredictionProvider(np.sum), PredictionProvider)

    def test_duck_typed_provider(self) -> None:
        """Test any object with predict_async is a PredictionProvider."""
        assert isinstance(RecordingProvider(sum_skip(0)), PredictionProvider)

    def test_plain_object_is_not_provider(self) -> None:
        """Test objects without predict_async are rejected."""
        assert not isinstance(object(), PredictionProvider)


class TestFunctionPredictionProvider:
    """Tests for FunctionPredictionProvider."""

    @pytest.mark.asyncio
    async def test_vector_output(self) -> None:
        """Test a 1-D result becomes one output per row."""
        provider = FunctionPredictionProvider(lambda X: X.sum(axis=1))

        outputs = await provider.predict_async(
            [PredictionInput.from_values([1.0, 2.0]), PredictionInput.from_values([3.0, 4.0])]
        )

        assert [o.values.tolist() for o in outputs] == [[3.0], [7.0]]
        assert outputs[0].output_names == ("output_0",)

    @pytest.mark.asyncio
    async def test_matrix_output_with_names(self) -> None:
        """Test a 2-D result keeps the configured output names."""
        provider = FunctionPredictionProvider(
            lambda X: np.column_stack([X[:, 0], -X[:, 0]]), output_names=["up", "down"]
        )

        outputs = await provider.predict_async([PredictionInput.from_values([2.0])])

        assert outputs[0].output_names == ("up", "down")
        assert outputs[0].values.tolist() == [2.0, -2.0]

    @pytest.mark.asyncio
    async def test_async_function(self) -> None:
        """Test coroutine functions are awaited."""

        async def predict(X: np.ndarray) -> np.ndarray:
            return X[:, 0] * 2

        provider = FunctionPredictionProvider(predict)

        outputs = await provider.predict_async([PredictionInput.from_values([5.0])])

        assert outputs[0].values.tolist() == [10.0]

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        """Test an empty batch never calls the function."""
        calls = []
        provider = FunctionPredictionProvider(lambda X: calls.append(X))

        assert await provider.predict_async([]) == []
        assert calls == []


class TestArrayConversion:
    """Tests for array conversion helpers."""

    def test_inputs_to_array(self) -> None:
        """Test inputs stack into rows."""
        array = inputs_to_array(
            [PredictionInput.from_values([1.0, 2.0]), PredictionInput.from_values([3.0, 4.0])]
        )

        np.testing.assert_array_equal(array, [[1.0, 2.0], [3.0, 4.0]])

    def test_empty_conversions(self) -> None:
        """Test empty sequences give empty matrices."""
        assert inputs_to_array([]).shape == (0, 0)
        assert outputs_to_array([]).shape == (0, 0)
