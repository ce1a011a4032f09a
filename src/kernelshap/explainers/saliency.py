"""Named views over an explanation array.

An explanation is a plain (instances x outputs x features) array. These
helpers attach feature and output names to it, one ``Saliency`` per instance
and output, for callers that report local explanations.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.exceptions import ValidationError
from kernelshap.model.prediction import Prediction


@dataclass(frozen=True)
class FeatureImportance:
    """Attribution of a single feature.

    Attributes:
        feature_name: Name of the feature
        score: Attribution (may be NaN for degenerate link transforms)
    """

    feature_name: str
    score: float


@dataclass(frozen=True)
class Saliency:
    """Attributions of every feature for one instance and one output.

    Attributes:
        output_name: Output the attributions explain
        per_feature_importance: Attributions in feature order
        base_value: Baseline output in link space
        prediction_value: Observed output of the instance (raw)
    """

    output_name: str
    per_feature_importance: list[FeatureImportance]
    base_value: float
    prediction_value: float

    @property
    def total_contribution(self) -> float:
        """Sum of all attributions."""
        return float(sum(fi.score for fi in self.per_feature_importance))

    def top_features(self, k: int) -> list[FeatureImportance]:
        """The ``k`` features with the largest absolute attribution.

        NaN attributions sort last.
        """
        return sorted(
            self.per_feature_importance,
            key=lambda fi: math.inf if math.isnan(fi.score) else -abs(fi.score),
        )[:k]


def build_saliencies(
    predictions: Sequence[Prediction],
    explanation: NDArray[np.float64],
    base_values: NDArray[np.float64],
) -> list[dict[str, Saliency]]:
    """Attach names to an explanation array.

    Args:
        predictions: Explained predictions, in explanation order
        explanation: Attributions (instances x outputs x features)
        base_values: Baseline per output, in link space

    Returns:
        One mapping of output name to Saliency per instance

    Raises:
        ValidationError: If the shapes disagree or output names repeat
    """
    if explanation.shape[0] != len(predictions):
        raise ValidationError(
            f"Explanation covers {explanation.shape[0]} instances, got {len(predictions)} predictions",
            field="predictions",
            constraint="len(predictions) == explanation.shape[0]",
        )

    result: list[dict[str, Saliency]] = []
    for prediction, per_output in zip(predictions, explanation, strict=True):
        names = prediction.input.feature_names
        saliencies: dict[str, Saliency] = {}
        for o, output in enumerate(prediction.output.outputs):
            if output.name in saliencies:
                raise ValidationError(
                    f"Duplicate output name {output.name!r}",
                    field="output_names",
                    value=output.name,
                    constraint="output names must be unique",
                )
            saliencies[output.name] = Saliency(
                output_name=output.name,
                per_feature_importance=[
                    FeatureImportance(feature_name=name, score=float(score))
                    for name, score in zip(names, per_output[o], strict=True)
                ],
                base_value=float(base_values[o]),
                prediction_value=output.value,
            )
        result.append(saliencies)
    return result
