"""Link functions applied to model outputs before regression."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from kernelshap.explainers.config import LinkType


def identity(values: NDArray[Any]) -> NDArray[np.float64]:
    """Pass values through unchanged."""
    return np.asarray(values, dtype=np.float64)


def logit(values: NDArray[Any]) -> NDArray[np.float64]:
    """Log-odds of probability-like values: ``ln(p / (1 - p))``.

    Values at 0 or 1 map to -inf / +inf and values outside [0, 1] map to NaN.
    Nothing is raised; the caller decides what a non-finite result means.
    """
    p = np.asarray(values, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.log(p / (1.0 - p))


_LINKS = {
    LinkType.IDENTITY: identity,
    LinkType.LOGIT: logit,
}


def apply_link(link: LinkType, values: NDArray[Any]) -> NDArray[np.float64]:
    """Apply a link function element-wise."""
    return _LINKS[LinkType(link)](values)
