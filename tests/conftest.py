"""Test configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from kernelshap.core.config import get_settings
from kernelshap.core.logging import clear_explanation_id
from kernelshap.model import FunctionPredictionProvider
from model_stubs import sum_skip, sum_skip_two_outputs


@pytest.fixture(autouse=True)
def clear_logging_context() -> Any:
    """Reset the explanation ID between tests."""
    clear_explanation_id()
    yield
    clear_explanation_id()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Any:
    """Reset cached settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sum_skip_model() -> FunctionPredictionProvider:
    """Single-output model ignoring feature 1."""
    return FunctionPredictionProvider(sum_skip(1))


@pytest.fixture
def two_output_model() -> FunctionPredictionProvider:
    """Two-output model ignoring feature 1."""
    return FunctionPredictionProvider(sum_skip_two_outputs(1))


@pytest.fixture
def background_raw() -> list[list[float]]:
    """Background with varying and constant columns."""
    return [
        [1.0, 2.0, 3.0, -4.0, 5.0],
        [10.0, 11.0, 12.0, -4.0, 13.0],
        [2.0, 3.0, 4.0, -4.0, 6.0],
    ]


@pytest.fixture
def to_explain_raw() -> list[list[float]]:
    """Instances explained against ``background_raw``."""
    return [
        [5.0, 6.0, 7.0, -4.0, 8.0],
        [11.0, 12.0, 13.0, -5.0, 14.0],
        [0.0, 0.0, 1.0, 4.0, 2.0],
    ]


@pytest.fixture
def background_no_variance() -> list[list[float]]:
    """Background whose columns are all constant."""
    return [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]]
