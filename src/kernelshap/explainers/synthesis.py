"""Synthetic sample construction.

For every coalition and every background row one synthetic row is built:
features in the coalition take the explained instance's value, the other
varying features take the background row's value. Features that do not vary
for the instance always take the instance's value.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def synthesize(
    instance: NDArray[np.float64],
    background: NDArray[np.float64],
    varying: NDArray[np.bool_],
    masks: NDArray[np.bool_],
) -> NDArray[np.float64]:
    """Build the synthetic rows for one instance.

    Args:
        instance: Explained row (M features)
        background: Background matrix (N_bg x M)
        varying: Boolean mask of the instance's varying features (M)
        masks: Coalitions over the varying features (K x M')

    Returns:
        Array of shape (K * N_bg, M), grouped by coalition: rows
        ``k * N_bg .. (k + 1) * N_bg - 1`` belong to coalition ``k``.
    """
    n_coalitions = masks.shape[0]
    n_background, n_features = background.shape

    included = np.ones((n_coalitions, n_features), dtype=bool)
    included[:, varying] = masks

    samples = np.where(
        included[:, None, :],
        instance[None, None, :],
        background[None, :, :],
    )
    return samples.reshape(n_coalitions * n_background, n_features)


def average_by_coalition(
    outputs: NDArray[np.float64],
    n_coalitions: int,
    n_background: int,
) -> NDArray[np.float64]:
    """Mean model output of each coalition over the background rows.

    Args:
        outputs: Raw outputs in ``synthesize`` row order (K * N_bg x O)
        n_coalitions: Number of coalitions (K)
        n_background: Number of background rows (N_bg)

    Returns:
        Array of shape (K, O)
    """
    n_outputs = outputs.shape[1] if outputs.ndim == 2 else 1
    return outputs.reshape(n_coalitions, n_background, n_outputs).mean(axis=1)
