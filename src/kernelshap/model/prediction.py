"""Data containers for model inputs and outputs.

A prediction provider consumes ``PredictionInput`` rows and returns
``PredictionOutput`` vectors; a ``Prediction`` pairs the two. All values are
numeric: non-numeric feature encodings are rejected at construction.

Key Classes:
    Feature: Named numeric input value
    PredictionInput: Ordered row of features
    Output: Named numeric model output
    PredictionOutput: Ordered vector of outputs
    Prediction: Input row with its observed output

Examples:
    >>> row = PredictionInput.from_values([1.0, 2.0, 3.0])
    >>> row.feature_names
    ('feature_0', 'feature_1', 'feature_2')
    >>> out = PredictionOutput.from_values([6.0])
    >>> prediction = Prediction(row, out)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Any

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.exceptions import InvalidFeatureValueError, ValidationError


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidFeatureValueError(
            f"{field} must be numeric, got {type(value).__name__}",
            field=field,
            value=value,
        )
    return float(value)


def default_feature_names(count: int) -> tuple[str, ...]:
    """Generate positional feature names ``feature_0`` .. ``feature_{count-1}``."""
    return tuple(f"feature_{i}" for i in range(count))


def default_output_names(count: int) -> tuple[str, ...]:
    """Generate positional output names ``output_0`` .. ``output_{count-1}``."""
    return tuple(f"output_{i}" for i in range(count))


@dataclass(frozen=True, slots=True)
class Feature:
    """A named numeric feature value.

    Attributes:
        name: Feature name
        value: Numeric value (stored as float)
    """

    name: str
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _as_float(self.value, self.name))


@dataclass(frozen=True, slots=True)
class PredictionInput:
    """Ordered row of features passed to a prediction provider.

    Attributes:
        features: Features in model input order
    """

    features: tuple[Feature, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.features, tuple):
            object.__setattr__(self, "features", tuple(self.features))

    def __len__(self) -> int:
        return len(self.features)

    @property
    def feature_names(self) -> tuple[str, ...]:
        """Names of the features in order."""
        return tuple(f.name for f in self.features)

    @property
    def values(self) -> NDArray[np.float64]:
        """Feature values as a float vector."""
        return np.array([f.value for f in self.features], dtype=np.float64)

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        names: Sequence[str] | None = None,
    ) -> PredictionInput:
        """Build a row from raw values.

        Args:
            values: Numeric feature values
            names: Feature names; positional names are generated when omitted

        Raises:
            ValidationError: If names and values differ in length
            InvalidFeatureValueError: If a value is not numeric
        """
        values = list(values)
        if names is None:
            names = default_feature_names(len(values))
        elif len(names) != len(values):
            raise ValidationError(
                f"Got {len(names)} feature names for {len(values)} values",
                field="names",
                constraint="len(names) == len(values)",
            )
        return cls(tuple(Feature(n, v) for n, v in zip(names, values, strict=True)))

    @classmethod
    def from_array(
        cls,
        array: NDArray[np.floating[Any]],
        names: Sequence[str],
    ) -> list[PredictionInput]:
        """Build one row per line of a 2-D numeric array."""
        return [
            cls(tuple(Feature(n, v) for n, v in zip(names, row.tolist(), strict=True)))
            for row in np.asarray(array, dtype=np.float64)
        ]


@dataclass(frozen=True, slots=True)
class Output:
    """A named numeric model output.

    Attributes:
        name: Output name
        value: Numeric value (stored as float)
    """

    name: str
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _as_float(self.value, self.name))


@dataclass(frozen=True, slots=True)
class PredictionOutput:
    """Ordered vector of outputs returned for one input row.

    Attributes:
        outputs: Outputs in model order
    """

    outputs: tuple[Output, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.outputs, tuple):
            object.__setattr__(self, "outputs", tuple(self.outputs))

    def __len__(self) -> int:
        return len(self.outputs)

    @property
    def output_names(self) -> tuple[str, ...]:
        """Names of the outputs in order."""
        return tuple(o.name for o in self.outputs)

    @property
    def values(self) -> NDArray[np.float64]:
        """Output values as a float vector."""
        return np.array([o.value for o in self.outputs], dtype=np.float64)

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        names: Sequence[str] | None = None,
    ) -> PredictionOutput:
        """Build an output vector from raw values."""
        values = list(values)
        if names is None:
            names = default_output_names(len(values))
        elif len(names) != len(values):
            raise ValidationError(
                f"Got {len(names)} output names for {len(values)} values",
                field="names",
                constraint="len(names) == len(values)",
            )
        return cls(tuple(Output(n, v) for n, v in zip(names, values, strict=True)))


@dataclass(frozen=True, slots=True)
class Prediction:
    """An input row together with the output observed for it.

    Attributes:
        input: Explained input row
        output: Output the model produced for ``input``
    """

    input: PredictionInput
    output: PredictionOutput


def get_predictions(
    inputs: Sequence[PredictionInput],
    outputs: Sequence[PredictionOutput],
) -> list[Prediction]:
    """Pair inputs with their outputs by position.

    Raises:
        ValidationError: If the sequences differ in length
    """
    if len(inputs) != len(outputs):
        raise ValidationError(
            f"Got {len(outputs)} outputs for {len(inputs)} inputs",
            field="outputs",
            constraint="len(outputs) == len(inputs)",
        )
    return [Prediction(i, o) for i, o in zip(inputs, outputs, strict=True)]
