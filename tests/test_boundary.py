"""
Tests for open edges and obstacle bounce-back.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.boundary import EdgeCondition, ObstacleBounceBack, apply_open_boundaries
from cylinder_lbm.errors import InvalidDomain
from cylinder_lbm.field import initialize, uniform_field
from cylinder_lbm.geometry import create_cylinder_mask, disk
from cylinder_lbm.lattice import Q
from cylinder_lbm.observables import total_mass
from cylinder_lbm.solver import step
from cylinder_lbm.streaming import stream_periodic

RIGHT = [1, 5, 8]
LEFT = [3, 6, 7]


@pytest.fixture
def random_f():
    rng = np.random.default_rng(0)
    return rng.random((Q, 4, 6))


class TestOpenBoundaries:

    def test_zero_gradient_inlet_copies_rightward(self, random_f):
        f = random_f.copy()
        apply_open_boundaries(f, inlet=EdgeCondition.ZERO_GRADIENT, outlet=EdgeCondition.PERIODIC)

        np.testing.assert_array_equal(f[RIGHT, :, 0], random_f[RIGHT, :, 1])
        # Everything else untouched
        f[RIGHT, :, 0] = random_f[RIGHT, :, 0]
        np.testing.assert_array_equal(f, random_f)

    def test_zero_gradient_outlet_copies_leftward(self, random_f):
        f = random_f.copy()
        apply_open_boundaries(f, inlet=EdgeCondition.PERIODIC, outlet=EdgeCondition.ZERO_GRADIENT)

        np.testing.assert_array_equal(f[LEFT, :, -1], random_f[LEFT, :, -2])
        f[LEFT, :, -1] = random_f[LEFT, :, -1]
        np.testing.assert_array_equal(f, random_f)

    def test_periodic_is_noop(self, random_f):
        f = random_f.copy()
        apply_open_boundaries(f, EdgeCondition.PERIODIC, EdgeCondition.PERIODIC)
        np.testing.assert_array_equal(f, random_f)

    def test_accepts_string_values(self, random_f):
        f = random_f.copy()
        apply_open_boundaries(f, "zero_gradient", "periodic")
        np.testing.assert_array_equal(f[RIGHT, :, 0], random_f[RIGHT, :, 1])

    def test_narrow_domain_rejected(self):
        with pytest.raises(InvalidDomain):
            apply_open_boundaries(np.ones((Q, 4, 2)))


class TestObstacleOnEdge:
    """A disk centred on column 0 cuts through the inlet edge."""

    def test_inlet_patch_skips_obstacle_cells(self):
        field = initialize(20, 10, disk(0, 5, 2), seed=0)
        mask = field.obstacle_mask
        f = field.f

        apply_open_boundaries(f, "zero_gradient", "periodic", obstacle_mask=mask)

        assert f[:, mask].sum() == 0.0
        fluid_rows = ~mask[:, 0]
        np.testing.assert_array_equal(f[RIGHT][:, fluid_rows, 0], f[RIGHT][:, fluid_rows, 1])

    def test_outlet_patch_skips_obstacle_cells(self):
        field = initialize(20, 10, disk(19, 5, 2), seed=0)
        mask = field.obstacle_mask

        apply_open_boundaries(field.f, "periodic", "zero_gradient", obstacle_mask=mask)

        assert field.f[:, mask].sum() == 0.0

    def test_step_keeps_mass_at_rest(self):
        """Open edges on a rest field add no mass, even with a solid on the edge."""
        mask = create_cylinder_mask(20, 10, 0, 5, 2)
        field = uniform_field(20, 10, obstacle_mask=mask)
        mass_before = total_mass(field.f)

        result = step(field, tau=0.8, inlet="zero_gradient", outlet="zero_gradient")

        assert np.isclose(total_mass(result.f), mass_before, rtol=1e-12)
        np.testing.assert_array_equal(result.f[:, mask], 0.0)


class TestObstacleBounceBack:

    @pytest.fixture
    def single_cell(self):
        mask = np.zeros((5, 5), dtype=bool)
        mask[2, 2] = True
        return mask

    def test_population_returns_to_source(self, single_cell):
        """A population that streamed +x into the obstacle comes back moving -x."""
        f = np.zeros((Q, 5, 5))
        f[1, 2, 2] = 0.7  # arrived from (x=1, y=2)

        handler = ObstacleBounceBack(single_cell)
        handler.reflect(f)

        assert f[3, 2, 1] == pytest.approx(0.7)
        assert np.all(f[:, 2, 2] == 0.0)
        assert np.sum(f) == pytest.approx(0.7)
        assert handler.last_force == pytest.approx((1.4, 0.0))

    def test_diagonal_population(self, single_cell):
        f = np.zeros((Q, 5, 5))
        f[5, 2, 2] = 0.2  # moving (+1, +1), arrived from (1, 1)

        ObstacleBounceBack(single_cell).reflect(f)

        assert f[7, 1, 1] == pytest.approx(0.2)

    def test_wall_stops_stream(self):
        """Stream then reflect: the fluid next to the wall gets its own population back."""
        mask = create_cylinder_mask(12, 10, 6, 5, 2)
        rng = np.random.default_rng(1)
        f = rng.random((Q, 10, 12))
        f[:, mask] = 0.0
        mass = np.sum(f)

        streamed = stream_periodic(f)
        ObstacleBounceBack(mask).reflect(streamed)

        assert np.sum(streamed) == pytest.approx(mass, rel=1e-14)
        assert np.all(streamed[:, mask] == 0.0)
        # Fluid cell left of the obstacle: its +x population is returned as -x
        y, x = 5, 3
        assert mask[y, x + 1]
        assert streamed[3, y, x] == pytest.approx(f[1, y, x])

    def test_fast_matches_numpy(self):
        mask = create_cylinder_mask(16, 12, 8, 6, 3)
        rng = np.random.default_rng(2)
        f = rng.random((Q, 12, 16))
        f[:, mask] = 0.0
        streamed = stream_periodic(f)

        slow = ObstacleBounceBack(mask)
        fast = ObstacleBounceBack(mask)
        a = slow.reflect(streamed.copy())
        b = fast.reflect_fast(streamed.copy())

        np.testing.assert_allclose(b, a, rtol=1e-14, atol=1e-15)
        np.testing.assert_allclose(fast.last_force, slow.last_force, rtol=1e-12)

    def test_restore_zeroes_obstacle(self, single_cell):
        f = np.ones((Q, 5, 5))
        ObstacleBounceBack(single_cell).restore(f)
        assert np.all(f[:, 2, 2] == 0.0)
        assert np.sum(f) == Q * 24

    def test_empty_mask_is_noop(self, random_f):
        f = random_f.copy()
        handler = ObstacleBounceBack(np.zeros((4, 6), dtype=bool))
        handler.reflect(f)
        handler.restore(f)
        np.testing.assert_array_equal(f, random_f)
        assert handler.last_force == (0.0, 0.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
