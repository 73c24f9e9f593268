"""
Tests for equilibrium distribution functions.

Validates mass and momentum conservation, and physical consistency.
"""

import pytest
import numpy as np
import sys
import os

# Add package root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.lattice import EX, EY, W, CS2, Q
from cylinder_lbm.equilibrium import (
    compute_equilibrium,
    compute_equilibrium_fast,
    equilibrium_single_site
)
from cylinder_lbm.observables import compute_density, compute_velocity


class TestEquilibriumSingleSite:
    """Test equilibrium distribution at a single lattice site."""

    def test_mass_conservation_moving(self):
        """Verify sum of f_eq equals rho for moving fluid."""
        rho = 1.5
        ux, uy = 0.1, -0.05

        f_eq = equilibrium_single_site(rho, ux, uy)

        assert np.isclose(np.sum(f_eq), rho, rtol=1e-14)

    def test_momentum_conservation_moving(self):
        """Verify momentum of f_eq equals rho*u for moving fluid."""
        rho = 1.2
        ux, uy = 0.15, 0.08

        f_eq = equilibrium_single_site(rho, ux, uy)

        assert np.isclose(np.sum(f_eq * EX), rho * ux, rtol=1e-12)
        assert np.isclose(np.sum(f_eq * EY), rho * uy, rtol=1e-12)

    def test_rest_equilibrium_is_weighted_density(self):
        """At u = 0 the equilibrium is w_i * rho with no velocity terms."""
        rho = 2.7

        f_eq = equilibrium_single_site(rho, 0.0, 0.0)

        np.testing.assert_allclose(f_eq, W * rho, rtol=1e-15)

    def test_explicit_coefficients(self):
        """Matches w_i rho (1 + 3 eu + 4.5 eu^2 - 1.5 u^2)."""
        rho, ux, uy = 0.9, 0.04, -0.02
        eu = EX * ux + EY * uy
        expected = W * rho * (1.0 + 3.0 * eu + 4.5 * eu ** 2 - 1.5 * (ux ** 2 + uy ** 2))

        np.testing.assert_allclose(equilibrium_single_site(rho, ux, uy), expected, rtol=1e-13)

    def test_positivity_low_velocity(self):
        """Verify all f_eq are positive for low Mach number."""
        f_eq = equilibrium_single_site(1.0, 0.05, 0.03)

        assert np.all(f_eq > 0), f"Negative equilibrium values: {f_eq}"


class TestEquilibriumField:
    """Test equilibrium distribution for entire field."""

    @pytest.fixture
    def varying_field(self):
        """Create spatially varying field."""
        nx, ny = 32, 24
        X, Y = np.meshgrid(np.arange(nx), np.arange(ny))

        rho = 1.0 + 0.1 * np.sin(2 * np.pi * X / nx)
        ux = 0.1 * np.cos(2 * np.pi * Y / ny)
        uy = 0.05 * np.sin(2 * np.pi * X / nx)

        return rho, ux, uy

    def test_rest_field(self):
        """Zero velocity everywhere gives w_i * rho at every cell."""
        rho = np.full((6, 5), 3.0)
        zeros = np.zeros_like(rho)

        f_eq = compute_equilibrium(rho, zeros, zeros)

        for i in range(Q):
            np.testing.assert_allclose(f_eq[i], W[i] * rho, rtol=1e-15)

    def test_mass_conservation_varying(self, varying_field):
        rho, ux, uy = varying_field

        f_eq = compute_equilibrium(rho, ux, uy)

        np.testing.assert_allclose(compute_density(f_eq), rho, rtol=1e-14)

    def test_momentum_conservation_varying(self, varying_field):
        rho, ux, uy = varying_field

        f_eq = compute_equilibrium(rho, ux, uy)
        ux_computed, uy_computed = compute_velocity(f_eq, rho)

        np.testing.assert_allclose(ux_computed, ux, rtol=1e-12, atol=1e-15)
        np.testing.assert_allclose(uy_computed, uy, rtol=1e-12, atol=1e-15)

    def test_fast_equals_standard(self, varying_field):
        """Verify Numba implementation matches standard."""
        rho, ux, uy = varying_field

        f_eq_std = compute_equilibrium(rho, ux, uy)
        f_eq_fast = compute_equilibrium_fast(rho, ux, uy)

        np.testing.assert_allclose(f_eq_fast, f_eq_std, rtol=1e-14)

    def test_output_shape(self, varying_field):
        rho, ux, uy = varying_field
        ny, nx = rho.shape

        assert compute_equilibrium(rho, ux, uy).shape == (Q, ny, nx)


class TestEquilibriumStressTensor:
    """Test second-order moment (stress tensor) properties."""

    def test_stress_tensor_isotropy_at_rest(self):
        """For rest fluid: Pi_xx = Pi_yy = rho * c_s^2, Pi_xy = 0."""
        rho = 1.0

        f_eq = equilibrium_single_site(rho, 0.0, 0.0)

        assert np.isclose(np.sum(f_eq * EX * EX), rho * CS2, rtol=1e-12)
        assert np.isclose(np.sum(f_eq * EY * EY), rho * CS2, rtol=1e-12)
        assert np.isclose(np.sum(f_eq * EX * EY), 0.0, atol=1e-14)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
