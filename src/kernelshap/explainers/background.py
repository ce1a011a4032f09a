"""Background dataset analysis.

The background is inspected once, when an explainer is built, to find which
features vary across its rows. The resulting ``VarianceMap`` is cached and
reused for every instance: a feature only takes part in coalition sampling
when the instance's value could differ from a background value at that
position.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import polars as pl
from numpy.typing import NDArray

from kernelshap.core.exceptions import (
    EmptyBackgroundError,
    FeatureCountMismatchError,
    InvalidFeatureValueError,
)
from kernelshap.core.logging import get_logger
from kernelshap.model.prediction import PredictionInput, default_feature_names

logger = get_logger(__name__)

BackgroundLike = Sequence[PredictionInput] | NDArray[Any] | pl.DataFrame


@dataclass(frozen=True)
class VarianceMap:
    """Per-feature variability of the background dataset.

    Attributes:
        varying: True where at least two distinct values occur in the column
        reference: First background row; the value of every constant column
    """

    varying: NDArray[np.bool_]
    reference: NDArray[np.float64]

    @property
    def n_features(self) -> int:
        return int(self.varying.shape[0])

    @property
    def n_varying(self) -> int:
        return int(self.varying.sum())

    def varying_for(self, instance: NDArray[np.float64]) -> NDArray[np.bool_]:
        """Features that vary for a given instance.

        A feature varies when the background varies at that position, or when
        the background is constant there and the instance holds a different
        value. Exact equality is used.
        """
        instance = np.asarray(instance, dtype=np.float64)
        if instance.shape != self.reference.shape:
            raise FeatureCountMismatchError(
                f"Instance has {instance.shape[0]} features, background has {self.n_features}",
                field="instance",
                value=instance.shape[0],
                constraint=f"feature count == {self.n_features}",
            )
        return self.varying | (instance != self.reference)


def background_to_array(
    background: BackgroundLike,
) -> tuple[NDArray[np.float64], tuple[str, ...]]:
    """Convert supported background containers to a float matrix.

    Args:
        background: Rows as ``PredictionInput`` objects, a 2-D numpy array,
            or a polars DataFrame with numeric columns

    Returns:
        Tuple of (rows x features array, feature names)

    Raises:
        EmptyBackgroundError: If the background has no rows
        FeatureCountMismatchError: If rows differ in length
        InvalidFeatureValueError: If a column is not numeric
    """
    if isinstance(background, pl.DataFrame):
        if background.height == 0:
            raise EmptyBackgroundError(field="background")
        for name, dtype in background.schema.items():
            if not dtype.is_numeric():
                raise InvalidFeatureValueError(
                    f"Background column {name!r} is not numeric",
                    field=name,
                    value=dtype,
                )
        return background.to_numpy().astype(np.float64), tuple(background.columns)

    if isinstance(background, np.ndarray):
        if background.ndim != 2:
            raise FeatureCountMismatchError(
                "Background array must be 2-D (rows x features)",
                field="background",
                value=background.shape,
            )
        if background.shape[0] == 0:
            raise EmptyBackgroundError(field="background")
        if not np.issubdtype(background.dtype, np.number) or background.dtype == np.bool_:
            raise InvalidFeatureValueError(
                "Background array must be numeric",
                field="background",
                value=background.dtype,
            )
        array = background.astype(np.float64)
        return array, default_feature_names(array.shape[1])

    rows = list(background)
    if not rows:
        raise EmptyBackgroundError(field="background")

    n_features = len(rows[0])
    for index, row in enumerate(rows):
        if len(row) != n_features:
            raise FeatureCountMismatchError(
                f"Background row {index} has {len(row)} features, expected {n_features}",
                field="background",
                value=len(row),
                constraint=f"feature count == {n_features}",
            )
    array = np.array([row.values for row in rows], dtype=np.float64).reshape(len(rows), n_features)
    return array, rows[0].feature_names


def analyze_background(background: NDArray[np.float64]) -> VarianceMap:
    """Classify each background column as varying or constant.

    Args:
        background: Background matrix (rows x features)

    Returns:
        VarianceMap for the background

    Raises:
        EmptyBackgroundError: If the background has no rows
    """
    if background.shape[0] == 0:
        raise EmptyBackgroundError(field="background")

    reference = background[0].copy()
    varying = np.any(background != reference, axis=0)

    logger.debug(
        "background_analyzed",
        n_rows=background.shape[0],
        n_features=background.shape[1],
        n_varying=int(varying.sum()),
    )
    return VarianceMap(varying=varying, reference=reference)
