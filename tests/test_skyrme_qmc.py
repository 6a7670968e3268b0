"""Tests for the Skyrme functionals and the QMC neutron-matter energy."""

import numpy as np
import pytest

from general_thermodynamic_derivatives import five_point_derivative
from qmc_eos import (
    get_qmc_default, qmc_from_saturation, qmc_energy_density,
    qmc_energy_per_neutron, qmc_chemical_potential
)
from skyrme_parameters import (
    get_skyrme_chiral, skyrme_from_saturation, skyrme_saturation_from_table,
    effective_masses
)
from skyrme_thermodynamics import (
    compute_skyrme_thermo, energy_per_baryon, EffectiveMassError
)


class TestQMC:
    def test_default_parameters(self) -> None:
        p = get_qmc_default()
        assert (p.alpha, p.beta, p.a, p.b, p.n0) == (0.48, 3.45, 12.7, 2.12, 0.16)

    def test_saturation_value(self) -> None:
        p = get_qmc_default()
        assert qmc_energy_per_neutron(p.n0, p) == pytest.approx(p.a + p.b)

    def test_chemical_potential_is_derivative(self) -> None:
        p = get_qmc_default()
        n = 0.23
        d = five_point_derivative(lambda x: qmc_energy_density(x, p), n, 1e-4)
        assert qmc_chemical_potential(n, p) == pytest.approx(d, rel=1e-9)

    def test_coefficients_from_symmetry_energy(self) -> None:
        S, L, EoA = 32.0, 50.0, -16.0
        p = qmc_from_saturation(S, L, EoA)
        # E/N(n0) = S + E/A and L = 3 n0 d(E/N)/dn at n0
        assert qmc_energy_per_neutron(p.n0, p) == pytest.approx(S + EoA)
        slope = five_point_derivative(lambda x: qmc_energy_per_neutron(x, p), p.n0, 1e-4)
        assert 3.0 * p.n0 * slope == pytest.approx(L, rel=1e-8)

    def test_large_slope_gives_large_beta(self) -> None:
        assert qmc_from_saturation(32.0, 78.0, -16.0).beta > 5.0


class TestSkyrmeFromSaturation:
    @pytest.fixture
    def sat(self):
        return dict(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.2, S=32.0, L=50.0,
                    Crdr0=-75.0, Crdr1=15.0)

    def test_reproduces_saturation_point(self, sat, skyrme_params) -> None:
        rho0 = sat["rho0"]
        assert energy_per_baryon(rho0 / 2, rho0 / 2, skyrme_params) == pytest.approx(-16.0, abs=1e-4)
        # P = ρ² d(E/A)/dρ = 0
        slope = five_point_derivative(
            lambda x: energy_per_baryon(x / 2, x / 2, skyrme_params), rho0, 1e-4)
        assert slope == pytest.approx(0.0, abs=1e-2)

    def test_reproduces_incompressibility(self, sat, skyrme_params) -> None:
        rho0 = sat["rho0"]
        h = 1e-3

        def e(x):
            return energy_per_baryon(x / 2, x / 2, skyrme_params)

        curv = (e(rho0 + h) - 2 * e(rho0) + e(rho0 - h)) / h**2
        assert 9.0 * rho0**2 * curv == pytest.approx(230.0, rel=1e-4)

    def test_reproduces_symmetry_energy(self, sat, skyrme_params) -> None:
        rho0 = sat["rho0"]

        def esym(x):
            return energy_per_baryon(x, 0.0, skyrme_params) - energy_per_baryon(x / 2, x / 2, skyrme_params)

        # δ² coefficient; the n/p mass splitting adds a term odd in δ
        delta = 1e-3

        def s2(x):
            plus = energy_per_baryon(x * (1 + delta) / 2, x * (1 - delta) / 2, skyrme_params)
            minus = energy_per_baryon(x * (1 - delta) / 2, x * (1 + delta) / 2, skyrme_params)
            zero = energy_per_baryon(x / 2, x / 2, skyrme_params)
            return (plus + minus - 2.0 * zero) / (2.0 * delta**2)

        assert s2(rho0) == pytest.approx(32.0, rel=1e-4)
        slope = five_point_derivative(s2, rho0, 1e-4)
        assert 3.0 * rho0 * slope == pytest.approx(50.0, rel=1e-3)
        assert esym(rho0) > 0.0

    def test_effective_mass_at_saturation(self, sat, skyrme_params) -> None:
        rho0 = sat["rho0"]
        ms_n, ms_p = effective_masses(rho0 / 2, rho0 / 2, skyrme_params)
        m = 0.5 * (skyrme_params.m_n + skyrme_params.m_p)
        assert m / (0.5 * (ms_n + ms_p)) == pytest.approx(1.2, rel=2e-3)

    def test_invalid_exponent_raises(self, sat) -> None:
        sat["K"] = 150.0
        with pytest.raises(ValueError):
            skyrme_from_saturation(**sat)


class TestSkyrmeTable:
    def test_reads_row(self, skyrme_table) -> None:
        row = skyrme_saturation_from_table(skyrme_table, 1)
        assert row.Ms_inv == 1.0
        assert row.Vp == 0.0

    def test_out_of_range_row(self, skyrme_table) -> None:
        with pytest.raises(ValueError):
            skyrme_saturation_from_table(skyrme_table, 5)

    def test_missing_column(self, skyrme_table) -> None:
        table = {k: v for k, v in skyrme_table.items() if k != "K"}
        with pytest.raises(ValueError):
            skyrme_saturation_from_table(table, 0)


class TestSkyrmeThermodynamics:
    @pytest.mark.parametrize("T", [0.0, 2.0, 15.0])
    def test_chemical_potentials_are_derivatives(self, T) -> None:
        params = get_skyrme_chiral()
        n_n, n_p = 0.09, 0.04
        th = compute_skyrme_thermo(n_n, n_p, T, params)
        dfdnn = five_point_derivative(
            lambda x: compute_skyrme_thermo(x, n_p, T, params).f, n_n, 1e-4)
        dfdnp = five_point_derivative(
            lambda x: compute_skyrme_thermo(n_n, x, T, params).f, n_p, 1e-4)
        assert th.mu_n == pytest.approx(dfdnn, rel=1e-6, abs=1e-4)
        assert th.mu_p == pytest.approx(dfdnp, rel=1e-6, abs=1e-4)

    def test_entropy_is_temperature_derivative(self) -> None:
        params = get_skyrme_chiral()
        th = compute_skyrme_thermo(0.1, 0.0, 8.0, params)
        dfdT = five_point_derivative(
            lambda x: compute_skyrme_thermo(0.1, 0.0, x, params).f, 8.0, 1e-3)
        assert th.s == pytest.approx(-dfdT, rel=1e-6)
        assert th.s > 0.0

    def test_degenerate_entropy_at_low_temperature(self) -> None:
        params = get_skyrme_chiral()
        n, T = 0.82, 0.1
        th = compute_skyrme_thermo(n, 0.0, T, params)
        dfdT = five_point_derivative(
            lambda x: compute_skyrme_thermo(n, 0.0, x, params).f, T, 5e-3)
        assert th.s == pytest.approx(-dfdT, rel=1e-4)

    def test_low_temperature_approaches_zero_temperature(self) -> None:
        params = get_skyrme_chiral()
        cold = compute_skyrme_thermo(0.08, 0.08, 0.0, params)
        warm = compute_skyrme_thermo(0.08, 0.08, 0.05, params)
        assert warm.f == pytest.approx(cold.f, rel=1e-4, abs=1e-3)
        assert warm.mu_n == pytest.approx(cold.mu_n, rel=1e-4, abs=1e-2)

    def test_thermodynamic_identity(self) -> None:
        th = compute_skyrme_thermo(0.12, 0.05, 6.0, get_skyrme_chiral())
        assert th.P == pytest.approx(th.mu_n * th.n_n + th.mu_p * th.n_p - th.f)
        assert th.f == pytest.approx(th.e - th.T * th.s)

    def test_absent_species(self) -> None:
        th = compute_skyrme_thermo(0.1, 0.0, 5.0, get_skyrme_chiral())
        assert th.tau_p == 0.0
        assert np.isfinite(th.mu_p)

    def test_negative_effective_mass_at_finite_temperature(self) -> None:
        params = skyrme_from_saturation(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.0,
                                        S=32.0, L=50.0, Crdr0=-75.0, Crdr1=15.0)
        with pytest.raises(EffectiveMassError):
            compute_skyrme_thermo(2.0, 0.0, 5.0, params)

    def test_rejects_negative_density(self) -> None:
        with pytest.raises(ValueError):
            compute_skyrme_thermo(-0.1, 0.1, 1.0, get_skyrme_chiral())
