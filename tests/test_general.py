"""Tests for constants, Fermi integrals, lepton gas and sound-speed formulas."""

import numpy as np
import pytest

from general_physics_constants import hc, hc3, PI2, m_neutron, m_proton, thermal_wavelength
from general_fermi_integrals import (
    fermi_integral, fermi_half, fermi_three_half, invert_fermi_integral,
    ETA_SERIES_MAX, ETA_SOMMERFELD_MIN
)
from general_thermodynamics_leptons import (
    electron_thermo, electron_thermo_from_density, photon_thermo
)
from general_thermodynamic_derivatives import (
    compute_free_energy_hessian, cs2_fixed_ye_from_hessian, five_point_derivative
)
from scipy.special import gamma


class TestConstants:
    def test_thermal_wavelength(self) -> None:
        T = 10.0
        expected = np.sqrt(4.0 * np.pi * hc**2 / ((m_neutron + m_proton) * T))
        assert thermal_wavelength(T) == pytest.approx(expected, rel=1e-14)

    def test_thermal_wavelength_scales_as_inverse_sqrt_T(self) -> None:
        assert thermal_wavelength(1.0) / thermal_wavelength(4.0) == pytest.approx(2.0)


class TestFermiIntegrals:
    def test_value_at_zero(self) -> None:
        # F_{1/2}(0) = Γ(3/2) (1 - 2^{-1/2}) ζ(3/2)
        assert fermi_half(0.0) == pytest.approx(0.678093895, rel=1e-8)

    def test_non_degenerate_limit(self) -> None:
        eta = -20.0
        for j in (0.5, 1.5):
            assert fermi_integral(j, eta) == pytest.approx(gamma(j + 1) * np.exp(eta), rel=1e-8)

    def test_degenerate_limit(self) -> None:
        eta = 200.0
        assert fermi_three_half(eta) == pytest.approx(eta**2.5 / 2.5, rel=1e-3)

    @pytest.mark.parametrize("boundary", [ETA_SERIES_MAX, ETA_SOMMERFELD_MIN])
    def test_continuous_across_regimes(self, boundary) -> None:
        for j in (0.5, 1.5):
            below = fermi_integral(j, boundary - 1e-9)
            above = fermi_integral(j, boundary + 1e-9)
            assert above == pytest.approx(below, rel=1e-8)

    def test_derivative_relation(self) -> None:
        # dF_{3/2}/dη = (3/2) F_{1/2}
        eta = 3.0
        d = five_point_derivative(fermi_three_half, eta, 1e-3)
        assert d == pytest.approx(1.5 * fermi_half(eta), rel=1e-7)

    @pytest.mark.parametrize("eta", [-8.0, 1.3, 45.0])
    def test_inversion(self, eta) -> None:
        assert invert_fermi_integral(0.5, fermi_half(eta)) == pytest.approx(eta, abs=1e-9)

    @pytest.mark.parametrize("eta", [35.0, 1500.0])
    def test_degenerate_inversion_to_machine_precision(self, eta) -> None:
        assert invert_fermi_integral(0.5, fermi_half(eta)) == pytest.approx(eta, rel=1e-14)

    def test_degenerate_inversion_is_smooth(self) -> None:
        targets = fermi_half(800.0) * (1.0 + 1e-7 * np.arange(6))
        etas = np.array([invert_fermi_integral(0.5, t) for t in targets])
        second = etas[2:] - 2.0 * etas[1:-1] + etas[:-2]
        assert np.all(np.diff(etas) > 0.0)
        assert np.max(np.abs(second)) < 1e-11

    def test_inversion_rejects_non_positive_target(self) -> None:
        with pytest.raises(ValueError):
            invert_fermi_integral(0.5, 0.0)


class TestLeptons:
    def test_photon_gas(self) -> None:
        T = 10.0
        ph = photon_thermo(T)
        assert ph.P == pytest.approx(PI2 * T**4 / (45.0 * hc3))
        assert ph.e == pytest.approx(3.0 * ph.P)
        assert ph.s == pytest.approx(4.0 * ph.P / T)

    def test_photon_gas_vanishes_at_zero_temperature(self) -> None:
        ph = photon_thermo(0.0)
        assert (ph.P, ph.e, ph.s) == (0.0, 0.0, 0.0)

    def test_density_inversion(self) -> None:
        el = electron_thermo_from_density(0.01, 5.0)
        assert el.n == pytest.approx(0.01, rel=1e-8)

    def test_degenerate_chemical_potential(self) -> None:
        n_e = 0.05
        k_F = hc * (3.0 * PI2 * n_e)**(1.0 / 3.0)
        el = electron_thermo_from_density(n_e, 0.1)
        assert el.mu == pytest.approx(np.sqrt(k_F**2 + 0.51099895**2), rel=1e-4)

    def test_pressure_derivative_is_density(self) -> None:
        mu, T, h = 20.0, 3.0, 1e-3
        dP = (electron_thermo(mu + h, T).P - electron_thermo(mu - h, T).P) / (2 * h)
        assert dP == pytest.approx(electron_thermo(mu, T).n, rel=1e-6)

    def test_zero_net_density(self) -> None:
        el = electron_thermo_from_density(0.0, 5.0)
        assert el.mu == 0.0
        assert el.n == pytest.approx(0.0, abs=1e-15)
        assert el.s > 0.0

    def test_rejects_non_positive_temperature(self) -> None:
        with pytest.raises(ValueError):
            electron_thermo(1.0, 0.0)


class TestSoundSpeed:
    """Classical ideal gas with rest mass m: cs² = (5/3) T / (m + 5T/2)."""

    m = 939.0

    def _dfdn(self, n_n, n_p, T):
        return self.m + T * np.log((n_n + n_p) / T**1.5)

    def _entropy(self, n_n, n_p, T):
        nb = n_n + n_p
        return -nb * (np.log(nb / T**1.5) - 1.0) + 1.5 * nb

    def _energy(self, n_n, n_p, T):
        return (n_n + n_p) * (self.m + 1.5 * T)

    def test_ideal_gas_fixed_ye(self) -> None:
        T = 10.0
        h = compute_free_energy_hessian(self._dfdn, self._dfdn, self._entropy,
                                        self._energy, 0.07, 0.03, T)
        assert h.P == pytest.approx(0.1 * T, rel=1e-8)
        expected = (5.0 / 3.0) * T / (self.m + 2.5 * T)
        assert cs2_fixed_ye_from_hessian(h) == pytest.approx(expected, rel=1e-6)
