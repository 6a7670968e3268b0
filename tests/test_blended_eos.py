"""Tests for the blended nucleon EOS, its sound speeds and solvers."""

import dataclasses

import numpy as np
import pytest

from general_physics_constants import m_neutron, m_proton
from blended_eos import BlendSettings, qmc_ns_weight, virial_weight
from blended_compute_tables import check_derivatives
from virial_thermodynamics import compute_virial_state
from skyrme_thermodynamics import compute_skyrme_thermo
from qmc_eos import qmc_energy_density


class TestBlendWeights:
    def test_qmc_weight_centered(self) -> None:
        bs = BlendSettings()
        h, dh = qmc_ns_weight(bs.h_center, bs)
        assert h == pytest.approx(0.5)
        assert dh == pytest.approx(-0.25 * bs.h_steepness)

    def test_qmc_weight_limits(self) -> None:
        bs = BlendSettings()
        assert qmc_ns_weight(0.0, bs)[0] > 0.99
        assert qmc_ns_weight(1.0, bs)[0] < 1e-6

    def test_virial_weight(self) -> None:
        bs = BlendSettings()
        assert virial_weight(0.0, 0.0, bs) == 1.0
        assert virial_weight(1.0, 1.0, bs) == pytest.approx(1.0 / 7.0)


class TestEvaluate:
    @pytest.mark.parametrize("nb", [1e-6, 1e-3, 0.05, 0.16, 0.6, 1.2])
    def test_weights_in_range(self, blended_model, nb) -> None:
        th = blended_model.evaluate(0.7 * nb, 0.3 * nb, 5.0)
        assert 0.0 < th.g <= 1.0
        assert 0.0 < th.h < 1.0
        assert np.isfinite(th.f) and np.isfinite(th.P) and np.isfinite(th.s)

    def test_dilute_limit_is_virial(self, blended_model) -> None:
        th = blended_model.evaluate(7e-9, 3e-9, 5.0)
        assert th.g == pytest.approx(1.0, abs=1e-10)
        assert th.f == pytest.approx(th.f_virial, rel=1e-8)

    def test_dense_limit_is_degenerate(self, blended_model) -> None:
        th = blended_model.evaluate(0.7, 0.3, 5.0)
        assert th.g < 1e-2

    def test_thermodynamic_identities(self, blended_model) -> None:
        th = blended_model.evaluate(0.1, 0.05, 8.0)
        assert th.P == pytest.approx(-th.f + th.mu_n * th.n_n + th.mu_p * th.n_p)
        assert th.e == pytest.approx(th.f + th.T * th.s)

    def test_evaluation_is_repeatable(self, blended_model) -> None:
        first = blended_model.evaluate(0.1, 0.05, 8.0)
        second = blended_model.evaluate(0.1, 0.05, 8.0)
        assert first == second

    def test_model_is_immutable(self, blended_model) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            blended_model.blend = BlendSettings(a_virial=1.0)

    def test_vacuum(self, blended_model) -> None:
        th = blended_model.evaluate(0.0, 0.0, 5.0)
        assert (th.f, th.P, th.s, th.mu_n, th.mu_p) == (0.0, 0.0, 0.0, 0.0, 0.0)
        assert th.g == 1.0

    @pytest.mark.parametrize("args", [(0.1, 0.0, 5.0), (0.0, 0.1, 5.0)])
    def test_single_species_rejected(self, blended_model, args) -> None:
        with pytest.raises(ValueError):
            blended_model.evaluate(*args)

    @pytest.mark.parametrize("args", [(-0.1, 0.1, 5.0), (0.1, 0.1, 0.0), (0.1, 0.1, -1.0)])
    def test_invalid_input_rejected(self, blended_model, args) -> None:
        with pytest.raises(ValueError):
            blended_model.evaluate(*args)


class TestLimitingBranches:
    """Blend collapse onto single sub-models at n_B = 0.16 fm⁻³."""

    T = 0.5

    @pytest.fixture
    def degenerate_model(self, blended_model):
        # g ~ 1e-14 and h = 1 - 1e-7 at n_B = 0.16
        return dataclasses.replace(blended_model, blend=BlendSettings(
            a_virial=1e12, b_virial=0.0, h_steepness=200.0))

    def test_virial_weight_one_is_pure_virial(self, blended_model) -> None:
        model = dataclasses.replace(blended_model,
                                    blend=BlendSettings(a_virial=0.0, b_virial=0.0))
        th = model.evaluate(0.08, 0.08, self.T)
        vir = compute_virial_state(0.08, 0.08, self.T, model.virial)
        assert th.g == 1.0
        assert th.f == pytest.approx(vir.f, rel=1e-12)
        assert th.mu_n == pytest.approx(vir.mu_n, rel=1e-12)
        assert th.mu_p == pytest.approx(vir.mu_p, rel=1e-12)
        assert th.s == pytest.approx(vir.s, rel=1e-12)

    def test_symmetric_matter_is_skyrme(self, degenerate_model) -> None:
        n, T = 0.08, self.T
        th = degenerate_model.evaluate(n, n, T)
        sk0 = compute_skyrme_thermo(n, n, 0.0, degenerate_model.skyrme)
        ch_T = compute_skyrme_thermo(n, n, T, degenerate_model.chiral)
        ch_0 = compute_skyrme_thermo(n, n, 0.0, degenerate_model.chiral)

        assert th.g < 1e-10
        assert th.f == pytest.approx(sk0.f + ch_T.f - ch_0.f, rel=1e-9)
        mu = 0.5 * (sk0.mu_n + sk0.mu_p + ch_T.mu_n + ch_T.mu_p - ch_0.mu_n - ch_0.mu_p)
        assert th.mu_n == pytest.approx(mu, rel=1e-9)
        assert th.mu_p == pytest.approx(mu, rel=1e-9)
        assert th.s == pytest.approx(ch_T.s, rel=1e-9)

    def test_neutron_rich_matter_follows_qmc(self, degenerate_model) -> None:
        nb, Ye, T = 0.16, 0.1, self.T
        th = degenerate_model.evaluate(nb * (1 - Ye), nb * Ye, T)
        delta2 = (1.0 - 2.0 * Ye)**2
        sk0 = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, 0.0, degenerate_model.skyrme)
        chs_T = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, T, degenerate_model.chiral)
        chs_0 = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, 0.0, degenerate_model.chiral)
        chn_T = compute_skyrme_thermo(nb, 0.0, T, degenerate_model.chiral)
        chn_0 = compute_skyrme_thermo(nb, 0.0, 0.0, degenerate_model.chiral)
        e_qmc = qmc_energy_density(nb, degenerate_model.qmc)
        expected = (sk0.f + delta2 * (e_qmc - sk0.f)
                    + delta2 * (chn_T.f - chn_0.f) + (1.0 - delta2) * (chs_T.f - chs_0.f))

        assert th.h > 1.0 - 1e-6
        assert th.f == pytest.approx(expected, abs=1e-5)
        assert th.s == pytest.approx(delta2 * chn_T.s + (1.0 - delta2) * chs_T.s, rel=1e-9)


class TestDerivatives:
    @pytest.mark.parametrize("Ye, T", [(0.3, 5.0), (0.1, 20.0)])
    def test_analytic_matches_numeric(self, blended_model, Ye, T) -> None:
        chk = check_derivatives(blended_model, Ye=Ye, T=T,
                                nb_values=np.array([1e-3, 0.01, 0.1, 0.3, 0.8]))
        np.testing.assert_allclose(chk.mun_analytic, chk.mun_numeric, rtol=1e-4, atol=1e-3)
        np.testing.assert_allclose(chk.mup_analytic, chk.mup_numeric, rtol=1e-4, atol=1e-3)
        np.testing.assert_allclose(chk.s_analytic, chk.s_numeric, rtol=1e-4, atol=1e-8)

    def test_total_chemical_potentials(self, blended_model) -> None:
        n_n, n_p, T = 0.1, 0.05, 8.0
        th = blended_model.evaluate(n_n, n_p, T)
        assert blended_model.dfdnn_total(n_n, n_p, T) == pytest.approx(th.mu_n + m_neutron)
        assert blended_model.dfdnp_total(n_n, n_p, T) > th.mu_p + m_proton

    def test_total_energy_includes_rest_mass(self, blended_model) -> None:
        n_n, n_p, T = 0.1, 0.05, 8.0
        th = blended_model.evaluate(n_n, n_p, T)
        rest = m_neutron * n_n + m_proton * n_p
        assert blended_model.energy_density(n_n, n_p, T) > th.e + rest
        assert blended_model.entropy(n_n, n_p, T) > th.s


class TestSoundSpeed:
    @pytest.mark.parametrize("nb", [0.16, 0.32])
    def test_fixed_ye_causal(self, blended_model, nb) -> None:
        cs2 = blended_model.cs2_fixed_ye(0.7 * nb, 0.3 * nb, 10.0)
        assert 0.0 < cs2 < 1.0

    def test_fixed_lepton_chemical_potential_finite(self, blended_model) -> None:
        assert np.isfinite(blended_model.cs2_fixed_mul(0.112, 0.048, 10.0))


class TestSolvers:
    def test_beta_equilibrium(self, blended_model) -> None:
        sol = blended_model.solve_ye(0.16, 1.0)
        assert sol.converged
        assert 0.0 < sol.Ye < 0.5
        assert blended_model.beta_residual(sol.Ye, 0.16, 1.0) == pytest.approx(0.0, abs=1e-6)

    def test_lepton_chemical_potential_raises_ye(self, blended_model) -> None:
        cold = blended_model.solve_ye(0.16, 1.0)
        trapped = blended_model.solve_ye(0.16, 1.0, mu_L=50.0)
        assert trapped.converged
        assert trapped.Ye > cold.Ye

    def test_isentropic_temperature(self, blended_model) -> None:
        nb, Ye, T = 0.16, 0.3, 8.0
        s = blended_model.entropy(nb * (1 - Ye), nb * Ye, T) / nb
        sol = blended_model.solve_temperature(nb, Ye, s, T_guess=15.0)
        assert sol.converged
        assert sol.T == pytest.approx(T, rel=1e-6)

    def test_temperature_rejects_bad_entropy(self, blended_model) -> None:
        with pytest.raises(ValueError):
            blended_model.solve_temperature(0.16, 0.3, -1.0)
