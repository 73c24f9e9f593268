"""
Tests for the D2Q9 lattice descriptor.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.lattice import D2Q9, EX, EY, OPPOSITE, Q, W, Lattice


class TestD2Q9Constants:

    def test_weights_sum_to_one(self):
        assert np.sum(W) == pytest.approx(1.0, abs=1e-15)
        assert np.sum(D2Q9.weights) == pytest.approx(1.0, abs=1e-15)

    def test_weights_positive(self):
        assert np.all(D2Q9.weights > 0)

    def test_rest_direction_first(self):
        assert tuple(D2Q9.directions[0]) == (0, 0)
        assert D2Q9.weights[0] == pytest.approx(4 / 9)

    def test_canonical_velocity_set(self):
        """1 rest, 4 axis-aligned and 4 diagonal velocities."""
        speeds_sq = EX ** 2 + EY ** 2
        assert Q == 9
        assert np.count_nonzero(speeds_sq == 0) == 1
        assert np.count_nonzero(speeds_sq == 1) == 4
        assert np.count_nonzero(speeds_sq == 2) == 4
        assert len({tuple(d) for d in D2Q9.directions}) == 9

    def test_opposite_is_involution(self):
        for i in range(Q):
            assert OPPOSITE[OPPOSITE[i]] == i

    def test_opposite_reverses_direction(self):
        for i in range(Q):
            np.testing.assert_array_equal(D2Q9.directions[D2Q9.opposite[i]], -D2Q9.directions[i])

    def test_edge_direction_groups(self):
        assert sorted(D2Q9.right) == [1, 5, 8]
        assert sorted(D2Q9.left) == [3, 6, 7]

    def test_arrays_are_read_only(self):
        with pytest.raises(ValueError):
            D2Q9.weights[0] = 0.5


class TestLatticeValidation:

    def _parts(self):
        return np.stack([EX, EY], axis=1), W.copy(), OPPOSITE.copy()

    def test_rejects_weights_not_summing_to_one(self):
        directions, weights, opposite = self._parts()
        weights[0] += 0.01
        with pytest.raises(ValueError, match="sum to 1"):
            Lattice(directions, weights, opposite)

    def test_rejects_moving_rest_vector(self):
        directions, weights, opposite = self._parts()
        directions = directions[[1, 0, 2, 3, 4, 5, 6, 7, 8]]
        with pytest.raises(ValueError, match="rest vector"):
            Lattice(directions, weights, opposite)

    def test_rejects_bad_opposite(self):
        directions, weights, _ = self._parts()
        with pytest.raises(ValueError):
            Lattice(directions, weights, np.arange(9))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
