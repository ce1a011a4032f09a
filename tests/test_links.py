"""Tests for link functions."""

from __future__ import annotations

import math

import numpy as np
import pytest

from kernelshap.explainers.config import LinkType
from kernelshap.explainers.links import apply_link, identity, logit


class TestLinks:
    """Tests for identity and logit links."""

    def test_identity(self) -> None:
        """Test identity returns the values as floats."""
        np.testing.assert_array_equal(identity(np.array([1, -2, 3])), [1.0, -2.0, 3.0])

    def test_logit_values(self) -> None:
        """Test logit against the closed form."""
        values = logit(np.array([0.5, 0.25, 0.9]))

        np.testing.assert_allclose(values, [0.0, math.log(1 / 3), math.log(9)])

    def test_logit_bounds(self) -> None:
        """Test logit maps 0 and 1 to infinities without raising."""
        values = logit(np.array([0.0, 1.0]))

        assert values[0] == -math.inf
        assert values[1] == math.inf

    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_logit_outside_unit_interval(self, value: float) -> None:
        """Test values outside [0, 1] map to NaN."""
        assert math.isnan(logit(np.array([value]))[0])

    def test_apply_link_by_name(self) -> None:
        """Test links resolve from their string value."""
        np.testing.assert_allclose(apply_link("logit", np.array([0.5])), [0.0])
        np.testing.assert_allclose(apply_link(LinkType.IDENTITY, np.array([0.5])), [0.5])

    def test_apply_link_matrix(self) -> None:
        """Test links apply element-wise to matrices."""
        values = apply_link(LinkType.LOGIT, np.array([[0.5, 0.5], [0.5, 0.5]]))

        assert values.shape == (2, 2)
        np.testing.assert_array_equal(values, 0.0)
