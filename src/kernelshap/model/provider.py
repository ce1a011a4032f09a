"""Prediction provider contract consumed by the explainers.

A prediction provider is anything with an asynchronous, order-preserving,
batch-capable ``predict_async`` method. Real models, remote service proxies
and test stubs all satisfy the same protocol; no base class is required.

Examples:
    Wrapping a plain numpy function:

    >>> import numpy as np
    >>> provider = FunctionPredictionProvider(lambda X: X.sum(axis=1))
    >>> outputs = await provider.predict_async(
    ...     [PredictionInput.from_values([1.0, 2.0])]
    ... )
    >>> outputs[0].values
    array([3.])
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.logging import get_logger
from kernelshap.model.prediction import (
    PredictionInput,
    PredictionOutput,
    default_output_names,
)

logger = get_logger(__name__)

ArrayFunction = Callable[
    [NDArray[np.float64]],
    NDArray[Any] | Awaitable[NDArray[Any]],
]


@runtime_checkable
class PredictionProvider(Protocol):
    """Asynchronous batch prediction capability.

    Implementations must return exactly one ``PredictionOutput`` per input,
    in the same order, and must accept arbitrarily large batches.
    """

    async def predict_async(
        self, inputs: Sequence[PredictionInput]
    ) -> list[PredictionOutput]:
        """Predict a batch of input rows."""
        ...


def inputs_to_array(inputs: Sequence[PredictionInput]) -> NDArray[np.float64]:
    """Stack input rows into a 2-D float array (rows x features)."""
    if not inputs:
        return np.empty((0, 0), dtype=np.float64)
    return np.array([[f.value for f in row.features] for row in inputs], dtype=np.float64)


def outputs_to_array(outputs: Sequence[PredictionOutput]) -> NDArray[np.float64]:
    """Stack output vectors into a 2-D float array (rows x outputs)."""
    if not outputs:
        return np.empty((0, 0), dtype=np.float64)
    return np.array([[o.value for o in out.outputs] for out in outputs], dtype=np.float64)


class FunctionPredictionProvider:
    """Adapt a numpy function to the ``PredictionProvider`` protocol.

    The wrapped function receives a 2-D array (rows x features) and returns
    either a vector (single output) or a 2-D array (rows x outputs). Plain
    functions run in a worker thread so the event loop is never blocked;
    coroutine functions are awaited directly.

    Attributes:
        func: Wrapped prediction function
        output_names: Names given to the outputs (positional when None)
    """

    def __init__(
        self,
        func: ArrayFunction,
        output_names: Sequence[str] | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            func: Numpy prediction function, sync or async
            output_names: Optional output names
        """
        self.func = func
        self.output_names = tuple(output_names) if output_names is not None else None
        self._is_async = inspect.iscoroutinefunction(func)

    async def predict_async(
        self, inputs: Sequence[PredictionInput]
    ) -> list[PredictionOutput]:
        """Evaluate the wrapped function on a batch of rows."""
        if not inputs:
            return []

        X = inputs_to_array(inputs)
        if self._is_async:
            raw = await self.func(X)  # type: ignore[misc]
        else:
            raw = await asyncio.to_thread(self.func, X)

        values = np.asarray(raw, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)

        names = self.output_names or default_output_names(values.shape[1])
        logger.debug("function_provider_predicted", n_rows=len(inputs), n_outputs=values.shape[1])
        return [PredictionOutput.from_values(row.tolist(), names) for row in values]
