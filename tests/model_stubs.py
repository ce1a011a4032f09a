"""Stub models, providers and builders shared by the test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

import numpy as np

from kernelshap.model import (
    Prediction,
    PredictionInput,
    PredictionOutput,
    get_predictions,
    inputs_to_array,
)


def sum_skip(skip: int) -> Callable[[np.ndarray], np.ndarray]:
    """Model summing every feature except one."""

    def predict(X: np.ndarray) -> np.ndarray:
        return np.delete(X, skip, axis=1).sum(axis=1)

    return predict


def sum_skip_two_outputs(skip: int) -> Callable[[np.ndarray], np.ndarray]:
    """Model returning the skip-sum and twice the skip-sum."""

    def predict(X: np.ndarray) -> np.ndarray:
        total = np.delete(X, skip, axis=1).sum(axis=1)
        return np.column_stack([total, 2 * total])

    return predict


def rows(matrix: Sequence[Sequence[float]]) -> list[PredictionInput]:
    """Build prediction inputs from a nested list."""
    return [PredictionInput.from_values(row) for row in matrix]


def observe(func: Callable[[np.ndarray], np.ndarray], inputs: list[PredictionInput]) -> list[Prediction]:
    """Pair inputs with the outputs ``func`` produces for them."""
    values = np.asarray(func(inputs_to_array(inputs)), dtype=np.float64)
    if values.ndim == 1:
        values = values.reshape(-1, 1)
    return get_predictions(inputs, [PredictionOutput.from_values(row.tolist()) for row in values])


class RecordingProvider:
    """Prediction provider that records every batch it receives."""

    def __init__(self, func: Callable[[np.ndarray], np.ndarray], delay: float = 0.0) -> None:
        self.func = func
        self.delay = delay
        self.batch_sizes: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def predict_async(self, inputs: Sequence[PredictionInput]) -> list[PredictionOutput]:
        self.batch_sizes.append(len(inputs))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            values = np.asarray(self.func(inputs_to_array(inputs)), dtype=np.float64)
        finally:
            self.in_flight -= 1
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        return [PredictionOutput.from_values(row.tolist()) for row in values]


class FailingProvider:
    """Prediction provider that raises once it sees a marker value."""

    def __init__(self, func: Callable[[np.ndarray], np.ndarray], marker: float) -> None:
        self.func = func
        self.marker = marker
        self.calls = 0

    async def predict_async(self, inputs: Sequence[PredictionInput]) -> list[PredictionOutput]:
        self.calls += 1
        X = inputs_to_array(inputs)
        if np.any(X == self.marker):
            raise RuntimeError("model backend unavailable")
        return [PredictionOutput.from_values([v]) for v in self.func(X).tolist()]


class ShortProvider:
    """Prediction provider that drops the last output of every batch."""

    async def predict_async(self, inputs: Sequence[PredictionInput]) -> list[PredictionOutput]:
        return [PredictionOutput.from_values([1.0]) for _ in inputs][:-1]
