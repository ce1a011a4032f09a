"""Coalition generation for KernelSHAP.

Coalitions are boolean masks over the varying features of one instance. The
empty and full coalitions are never generated: the regression enforces them
as equality constraints instead.

Subset sizes are visited from the outside in (1 and M-1, then 2 and M-2, ...).
A size whose subsets all fit in the remaining budget is enumerated exactly;
the rest of the budget is spent on weighted random draws over the sizes that
were not enumerated. With a large enough budget every non-trivial subset is
enumerated exactly once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import combinations

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.logging import get_logger

logger = get_logger(__name__)

# Budget used when none is configured: 2 * M + DEFAULT_BUDGET_OFFSET
DEFAULT_BUDGET_OFFSET = 2048

# Above this many varying features 2**M - 2 is never the binding limit
MAX_ENUMERABLE_FEATURES = 30


@dataclass(frozen=True)
class CoalitionSet:
    """Coalitions with their regression weights.

    Attributes:
        masks: Boolean matrix (coalitions x varying features)
        weights: Kernel weight per coalition, summing to 1
        n_enumerated: Leading rows of ``masks`` that came from full enumeration
    """

    masks: NDArray[np.bool_]
    weights: NDArray[np.float64]
    n_enumerated: int

    def __len__(self) -> int:
        return int(self.masks.shape[0])

    @property
    def fully_enumerated(self) -> bool:
        return self.n_enumerated == len(self)


def shap_kernel_weight(n_features: int, subset_size: int) -> float:
    """SHAP kernel weight of a single coalition of the given size.

    ``(M - 1) / (C(M, s) * s * (M - s))``; infinite for the empty and full
    coalitions.
    """
    if subset_size in (0, n_features):
        return math.inf
    return (n_features - 1) / (
        math.comb(n_features, subset_size) * subset_size * (n_features - subset_size)
    )


def effective_budget(n_features: int, n_samples: int | None) -> int:
    """Number of coalitions to generate for ``n_features`` varying features."""
    if n_features < 2:
        return 0
    budget = n_samples if n_samples is not None else 2 * n_features + DEFAULT_BUDGET_OFFSET
    if n_features <= MAX_ENUMERABLE_FEATURES:
        budget = min(budget, 2**n_features - 2)
    return budget


class CoalitionGenerator:
    """Generate KernelSHAP coalitions for a number of varying features.

    All randomness comes from the generator passed in, so a generator seeded
    the same way always yields the same coalitions.
    """

    def __init__(self, rng: np.random.Generator) -> None:
        self.rng = rng

    def generate(self, n_features: int, n_samples: int | None = None) -> CoalitionSet:
        """Build the coalition set.

        Args:
            n_features: Number of varying features (M')
            n_samples: Coalition budget; None uses ``2 * M' + 2048``

        Returns:
            CoalitionSet with masks and normalized kernel weights
        """
        budget = effective_budget(n_features, n_samples)
        if budget == 0:
            return CoalitionSet(
                masks=np.zeros((0, n_features), dtype=bool),
                weights=np.zeros(0, dtype=np.float64),
                n_enumerated=0,
            )

        num_subset_sizes = math.ceil((n_features - 1) / 2)
        num_paired_sizes = (n_features - 1) // 2

        weight_vector = np.array(
            [(n_features - 1) / (s * (n_features - s)) for s in range(1, num_subset_sizes + 1)]
        )
        weight_vector[:num_paired_sizes] *= 2
        weight_vector /= weight_vector.sum()

        masks: list[NDArray[np.bool_]] = []
        weights: list[float] = []

        num_full_sizes = 0
        samples_left = budget
        remaining = weight_vector.copy()

        for subset_size in range(1, num_subset_sizes + 1):
            paired = subset_size <= num_paired_sizes
            n_subsets = math.comb(n_features, subset_size) * (2 if paired else 1)

            if samples_left * remaining[subset_size - 1] / n_subsets < 1.0 - 1e-8:
                break

            num_full_sizes += 1
            samples_left -= n_subsets
            if remaining[subset_size - 1] < 1.0:
                remaining /= 1.0 - remaining[subset_size - 1]

            w = weight_vector[subset_size - 1] / math.comb(n_features, subset_size)
            if paired:
                w /= 2.0
            for indices in combinations(range(n_features), subset_size):
                mask = np.zeros(n_features, dtype=bool)
                mask[list(indices)] = True
                masks.append(mask)
                weights.append(w)
                if paired:
                    masks.append(~mask)
                    weights.append(w)

        n_enumerated = len(masks)

        if num_full_sizes != num_subset_sizes and samples_left > 0:
            self._sample_remaining(
                n_features,
                samples_left,
                weight_vector,
                num_full_sizes,
                num_paired_sizes,
                masks,
                weights,
                n_enumerated,
            )

        logger.debug(
            "coalitions_generated",
            n_features=n_features,
            budget=budget,
            n_coalitions=len(masks),
            n_enumerated=n_enumerated,
        )

        return CoalitionSet(
            masks=np.array(masks, dtype=bool).reshape(len(masks), n_features),
            weights=np.array(weights, dtype=np.float64),
            n_enumerated=n_enumerated,
        )

    def _sample_remaining(
        self,
        n_features: int,
        samples_left: int,
        weight_vector: NDArray[np.float64],
        num_full_sizes: int,
        num_paired_sizes: int,
        masks: list[NDArray[np.bool_]],
        weights: list[float],
        n_enumerated: int,
    ) -> None:
        """Draw the coalitions of the sizes that could not be enumerated."""
        size_probs = weight_vector.copy()
        size_probs[:num_paired_sizes] /= 2
        size_probs = size_probs[num_full_sizes:]
        size_probs /= size_probs.sum()

        draws = self.rng.choice(len(size_probs), 4 * samples_left, p=size_probs)
        seen: dict[bytes, int] = {}

        def add(mask: NDArray[np.bool_]) -> None:
            nonlocal samples_left
            key = mask.tobytes()
            if key in seen:
                weights[seen[key]] += 1.0
                return
            seen[key] = len(masks)
            masks.append(mask)
            weights.append(1.0)
            samples_left -= 1

        for draw in draws:
            if samples_left <= 0:
                break
            subset_size = int(draw) + num_full_sizes + 1
            mask = np.zeros(n_features, dtype=bool)
            mask[self.rng.permutation(n_features)[:subset_size]] = True
            add(mask)
            if samples_left > 0 and subset_size <= num_paired_sizes:
                add(~mask)

        sampled = np.array(weights[n_enumerated:])
        if sampled.size:
            weight_left = float(weight_vector[num_full_sizes:].sum())
            sampled *= weight_left / sampled.sum()
            weights[n_enumerated:] = sampled.tolist()
