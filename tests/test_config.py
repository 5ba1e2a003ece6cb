"""Tests for vector widths and simulation parameters."""

import numpy as np
import pytest

from tileflow import ConfigurationError, SimulationParams, VectorWidth, VectorWidthError
from tileflow.square import EdgeTopology
from tileflow.vectors import as_vector, check_width, zero_vector


class TestVectorWidth:
    def test_supported_widths(self):
        assert check_width(2) is VectorWidth.PLANAR
        assert check_width(3) is VectorWidth.HEX

    @pytest.mark.parametrize("width", [0, 1, 4, "wide", None])
    def test_unsupported_width_is_configuration_error(self, width):
        with pytest.raises(ConfigurationError):
            check_width(width)

    def test_topology_with_bad_width_fails_at_construction(self):
        class WideTopology(EdgeTopology):
            vector_width = 4

        with pytest.raises(ConfigurationError):
            WideTopology(3, 3)

    def test_as_vector_rejects_mismatch_instead_of_converting(self):
        with pytest.raises(VectorWidthError):
            as_vector((1.0, 2.0), 3)
        with pytest.raises(VectorWidthError):
            as_vector((1.0, 2.0, 3.0), 2)
        with pytest.raises(VectorWidthError):
            as_vector("abc", 2)
        with pytest.raises(VectorWidthError):
            as_vector((np.nan, 0.0), 2)

    def test_as_vector_accepts_matching_width(self):
        vec = as_vector([1, 2, 3], 3)
        assert vec.dtype == np.float64
        assert np.array_equal(vec, [1.0, 2.0, 3.0])
        assert np.array_equal(zero_vector(2), [0.0, 0.0])


class TestSimulationParams:
    def test_defaults(self):
        p = SimulationParams()
        assert p.time_step == pytest.approx(1 / 60)
        assert p.max_velocity == 5.0
        assert p.gradient_scale == pytest.approx(1 / 60)
        assert p.divergence_scale == pytest.approx(60.0)

    @pytest.mark.parametrize("field, value", [
        ("density", 0.0), ("cell_size", -1.0), ("time_step", -0.1), ("max_velocity", -1.0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ConfigurationError):
            SimulationParams(**{field: value})

    def test_zero_time_step_drops_divergence_forcing(self):
        p = SimulationParams(time_step=0.0)
        assert p.gradient_scale == 0.0
        assert p.divergence_scale == 0.0

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(VectorWidthError, ValueError)

    def test_to_dict(self):
        d = SimulationParams(density=2.0).to_dict()
        assert d["density"] == 2.0
        assert set(d) == {"viscosity", "time_step", "density", "cell_size", "max_velocity"}
