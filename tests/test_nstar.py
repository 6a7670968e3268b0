"""Tests for the neutron-star fit and its causal continuation."""

import numpy as np
import pytest

from general_physics_constants import m_neutron
from general_thermodynamic_derivatives import five_point_derivative
from nstar_fit import (
    NSFitSettings, fit_ns_row, ns_row_from_table, ns_energy_per_baryon,
    ns_energy_density, ns_chemical_potential, ns_dmu_dn, ns_cs2, ns_cs2_range
)
from nstar_causal_extrapolation import (
    CausalityBranch, N_REFERENCE, build_causal_extrapolation,
    causal_ns_energy_density, extrapolated_cs2
)


class TestNSFit:
    def test_reproduces_table(self, ns_table, stiff_fit) -> None:
        _, nbs, EoAs = ns_row_from_table(ns_table, 0)
        fitted = np.array([ns_energy_per_baryon(nb, stiff_fit) for nb in nbs])
        np.testing.assert_allclose(fitted, EoAs, rtol=1e-6)
        assert stiff_fit.chi2 < 1e-6

    def test_small_entries_skipped(self, ns_table) -> None:
        settings = NSFitSettings()
        _, nbs, EoAs = ns_row_from_table(ns_table, 0, settings)
        assert np.all(np.abs(EoAs) > settings.min_abs_EoA)
        assert nbs[0] > settings.nb_start

    def test_causal_limit_lowers_nb_max(self, stiff_fit) -> None:
        assert stiff_fit.nb_max_table == 0.8
        assert stiff_fit.nb_max == pytest.approx(0.5395, abs=2e-3)
        assert ns_cs2(stiff_fit.nb_max, stiff_fit) == pytest.approx(1.0, abs=1e-2)

    def test_table_limit_kept_when_causal(self, ns_table) -> None:
        fit = fit_ns_row(ns_table, 1)
        assert fit.nb_max == 0.45
        assert ns_cs2(fit.nb_max, fit) < 1.0

    def test_chemical_potential_is_derivative(self, stiff_fit) -> None:
        nb = 0.3
        d = five_point_derivative(lambda x: ns_energy_density(x, stiff_fit), nb, 1e-4)
        assert ns_chemical_potential(nb, stiff_fit) == pytest.approx(d, rel=1e-8)
        d2 = five_point_derivative(lambda x: ns_chemical_potential(x, stiff_fit), nb, 1e-4)
        assert ns_dmu_dn(nb, stiff_fit) == pytest.approx(d2, rel=1e-8)

    def test_polynomial_form(self, ns_table) -> None:
        fit = fit_ns_row(ns_table, 0, NSFitSettings(old_form=False,
                                                    initial_params=(1.0, 1.0, 1.0, 1.0, 1.0)))
        assert not fit.old_form
        assert fit.params[1] == pytest.approx(500.0, rel=1e-4)
        assert fit.params[2] == pytest.approx(400.0, rel=1e-4)

    def test_negative_sound_speed_detected(self, ns_table) -> None:
        cs2_min, cs2_max = ns_cs2_range(fit_ns_row(ns_table, 2))
        assert cs2_min < 0.0
        assert cs2_max < 1.0

    def test_row_out_of_range(self, ns_table) -> None:
        with pytest.raises(ValueError):
            fit_ns_row(ns_table, 3)

    def test_too_few_points(self, ns_table) -> None:
        table = dict(ns_table)
        table["nb_max"] = np.array([0.08, 0.08, 0.08])
        with pytest.raises(ValueError):
            fit_ns_row(table, 0)


class TestCausalExtrapolation:
    @pytest.fixture(scope="class")
    def causal_fit(self, ns_table):
        return fit_ns_row(ns_table, 1)

    @pytest.fixture(scope="class", params=["decreasing", "increasing", "constant"])
    def case(self, request, ns_table, stiff_fit, causal_fit):
        if request.param == "decreasing":
            return stiff_fit, build_causal_extrapolation(stiff_fit, 0.5)
        if request.param == "increasing":
            return causal_fit, build_causal_extrapolation(causal_fit, 0.9)
        return causal_fit, build_causal_extrapolation(causal_fit, ns_cs2(causal_fit.nb_max, causal_fit))

    def test_branch_selection(self, stiff_fit, causal_fit) -> None:
        assert build_causal_extrapolation(stiff_fit, 0.5).branch is CausalityBranch.DECREASING
        assert build_causal_extrapolation(causal_fit, 0.9).branch is CausalityBranch.INCREASING
        phi = ns_cs2(causal_fit.nb_max, causal_fit)
        assert build_causal_extrapolation(causal_fit, phi).branch is CausalityBranch.CONSTANT

    @pytest.mark.parametrize("phi", [-0.1, 1.2])
    def test_rejects_phi_outside_unit_interval(self, stiff_fit, phi) -> None:
        with pytest.raises(ValueError):
            build_causal_extrapolation(stiff_fit, phi)

    def test_continuous_at_matching_point(self, case) -> None:
        fit, ext = case
        e, mu = causal_ns_energy_density(fit.nb_max, fit, ext)
        assert e == pytest.approx(ns_energy_density(fit.nb_max, fit), rel=1e-9)
        assert mu == pytest.approx(ns_chemical_potential(fit.nb_max, fit), rel=1e-9)

    def test_raw_fit_below_matching_point(self, case) -> None:
        fit, ext = case
        nb = 0.5 * fit.nb_max
        assert causal_ns_energy_density(nb, fit, ext) == (
            ns_energy_density(nb, fit), ns_chemical_potential(nb, fit))

    @pytest.mark.parametrize("nb", [0.9, 1.4, 2.5])
    def test_chemical_potential_is_derivative(self, case, nb) -> None:
        fit, ext = case
        d = five_point_derivative(lambda x: causal_ns_energy_density(x, fit, ext)[0], nb, 1e-4)
        assert causal_ns_energy_density(nb, fit, ext)[1] == pytest.approx(d, rel=1e-7)

    @pytest.mark.parametrize("nb", [0.9, 1.4, 2.5])
    def test_sound_speed_matches_energy_density(self, case, nb) -> None:
        fit, ext = case

        def deps(x):
            return causal_ns_energy_density(x, fit, ext)[1] + m_neutron

        cs2 = nb * five_point_derivative(deps, nb, 1e-4) / deps(nb)
        assert extrapolated_cs2(nb, ext) == pytest.approx(cs2, rel=1e-6)

    def test_causal_and_hits_target(self, case) -> None:
        fit, ext = case
        grid = np.linspace(fit.nb_max, 4.0, 50)
        cs2 = np.array([extrapolated_cs2(nb, ext) for nb in grid])
        assert np.all(cs2 <= 1.0 + 1e-10)
        assert np.all(cs2 >= 0.0)
        assert extrapolated_cs2(fit.nb_max, ext) == pytest.approx(ext.cs2_last, abs=1e-9)
        assert extrapolated_cs2(N_REFERENCE, ext) == pytest.approx(ext.phi, abs=1e-9)
