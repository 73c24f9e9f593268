"""
Tests for checkpoint save/restore.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.checkpoint import load_checkpoint, save_checkpoint
from cylinder_lbm.errors import InvalidParameter
from cylinder_lbm.field import initialize
from cylinder_lbm.geometry import disk
from cylinder_lbm.solver import step


class TestCheckpoint:

    @pytest.fixture
    def field(self):
        return step(initialize(20, 12, disk(6, 6, 2), reference_density=1.3, seed=5),
                    tau=0.7, n_iterations=5)

    def test_restore_equals_saved(self, field, tmp_path):
        path = tmp_path / "state.npz"
        save_checkpoint(path, field, tau=0.7, reference_density=1.3)

        restored, meta = load_checkpoint(path)

        np.testing.assert_array_equal(restored.f, field.f)
        np.testing.assert_array_equal(restored.obstacle_mask, field.obstacle_mask)
        assert meta == {"tau": 0.7, "reference_density": 1.3, "nx": 20, "ny": 12}

    def test_resume_matches_uninterrupted_run(self, field, tmp_path):
        path = tmp_path / "state.npz"
        save_checkpoint(path, field, tau=0.7, reference_density=1.3)
        restored, meta = load_checkpoint(path)

        resumed = step(restored, tau=meta["tau"], n_iterations=5)
        direct = step(field, tau=0.7, n_iterations=5)

        np.testing.assert_array_equal(resumed.f, direct.f)

    def test_populations_stored_flat(self, field, tmp_path):
        path = tmp_path / "state.npz"
        save_checkpoint(path, field, tau=0.7, reference_density=1.3)

        with np.load(path) as data:
            assert data["populations"].shape == (9 * 12 * 20,)

    def test_missing_entries(self, tmp_path):
        path = tmp_path / "broken.npz"
        np.savez(path, populations=np.zeros(9))

        with pytest.raises(InvalidParameter, match="missing"):
            load_checkpoint(path)

    def test_size_mismatch(self, field, tmp_path):
        path = tmp_path / "bad.npz"
        np.savez(path, populations=field.flat[:-1], nx=20, ny=12, q=9, tau=0.7,
                 reference_density=1.3, obstacle_mask=field.obstacle_mask)

        with pytest.raises(InvalidParameter):
            load_checkpoint(path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
