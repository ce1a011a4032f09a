"""Constrained weighted least squares for KernelSHAP.

The regression recovers one attribution per varying feature from the
coalition values of a single output dimension. Two equality constraints are
enforced exactly:

- the empty coalition reproduces the baseline (``null_value``);
- the full coalition reproduces the instance's own output (``full_value``).

The first constraint is met by shifting all targets by ``null_value``. The
second is met by eliminating the last feature's coefficient, which becomes
``(full_value - null_value) - sum(other coefficients)``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.logging import get_logger
from kernelshap.core.metrics import track_regularized_solve

logger = get_logger(__name__)

# Normal matrices worse conditioned than this are solved by pseudo-inverse
MAX_CONDITION_NUMBER = 1e12

# Relative singular value cutoff of the pseudo-inverse
PINV_RCOND = 1e-10


def _solve_normal_equations(
    A: NDArray[np.float64],
    b: NDArray[np.float64],
) -> tuple[NDArray[np.float64], bool]:
    """Solve ``A x = b``; returns the solution and whether it was regularized."""
    try:
        with np.errstate(divide="ignore", invalid="ignore"):
            condition = np.linalg.cond(A)
        if np.isfinite(condition) and condition < MAX_CONDITION_NUMBER:
            return np.linalg.solve(A, b), False
    except np.linalg.LinAlgError as e:
        logger.debug("normal_equations_singular", size=A.shape[0], error=str(e))

    return np.linalg.pinv(A, rcond=PINV_RCOND, hermitian=True) @ b, True


def solve_weighted_shap(
    masks: NDArray[np.bool_],
    weights: NDArray[np.float64],
    coalition_values: NDArray[np.float64],
    null_value: float,
    full_value: float,
) -> NDArray[np.float64]:
    """Solve the constrained KernelSHAP regression for one output.

    All values must already be in link space.

    Args:
        masks: Coalitions over the varying features (K x M')
        weights: Kernel weight per coalition (K)
        coalition_values: Mean model output per coalition (K)
        null_value: Output of the empty coalition (the baseline)
        full_value: Output of the full coalition (the instance)

    Returns:
        Attribution per varying feature (M'). All NaN when any input value
        is not finite.
    """
    n_features = masks.shape[1]
    if n_features == 0:
        return np.zeros(0, dtype=np.float64)

    coalition_values = np.asarray(coalition_values, dtype=np.float64)
    if not (
        np.isfinite(null_value)
        and np.isfinite(full_value)
        and np.all(np.isfinite(coalition_values))
    ):
        return np.full(n_features, np.nan)

    total = full_value - null_value
    if n_features == 1:
        return np.array([total], dtype=np.float64)

    m = masks.astype(np.float64)
    last = m[:, -1]
    y = coalition_values - null_value - last * total
    X = m[:, :-1] - last[:, None]

    Xw = X.T * weights
    beta, regularized = _solve_normal_equations(Xw @ X, Xw @ y)
    if regularized:
        track_regularized_solve()
        logger.debug(
            "regression_regularized",
            n_features=n_features,
            n_coalitions=masks.shape[0],
        )

    phi = np.empty(n_features, dtype=np.float64)
    phi[:-1] = beta
    phi[-1] = total - beta.sum()
    return phi
