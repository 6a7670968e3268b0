"""
blended_eos.py
==============
Finite-temperature nucleon EOS obtained by blending asymptotic models.

The free energy density of nucleons (without rest masses) is

    f = f_vir g + f_deg (1 - g)

with the virial weight

    g = 1 / (a z_n² + a z_p² + b z_n z_p + 1)

so that g → 1 in the non-degenerate limit (z → 0) and g → 0 when the
fugacities grow. The degenerate part is built from zero-temperature energies
plus a thermal correction from the chiral Skyrme functional:

    f_deg = f_sk(SNM, 0) + δ² e_sym
            + δ² [f_ch(PNM, T) - f_ch(PNM, 0)]
            + (1 - δ²) [f_ch(SNM, T) - f_ch(SNM, 0)]

    e_sym = e_QMC h + e_NS (1 - h) - f_sk(SNM, 0)
    h     = 1 / (1 + exp(γ (n_B - 1.5 n0)))
    δ     = 1 - 2 Y_e

where f_sk is the saturation-fitted Skyrme functional, f_ch the chiral one,
e_QMC the neutron-matter QMC energy and e_NS the causal neutron-star EOS.
Chemical potentials and the entropy are propagated analytically; pressure and
energy density follow from P = -f + Σ μ_i n_i and e = f + T s.

Units:
- Densities: fm⁻³
- T, μ: MeV (μ without rest mass in BlendedThermo)
- f, e, P: MeV/fm³, s: fm⁻³

References:
- X. Du, A. W. Steiner, J. W. Holt, Phys. Rev. C 99 (2019) 025803
- C. J. Horowitz, A. Schwenk, Nucl. Phys. A 776 (2006) 55
"""
import numpy as np
import warnings
from dataclasses import dataclass, field
from scipy.optimize import root, brentq
from scipy.special import expit

from general_physics_constants import m_neutron, m_proton, n0_default
from general_thermodynamics_leptons import electron_thermo_from_density, photon_thermo
from general_thermodynamic_derivatives import (
    FreeEnergyHessian, compute_free_energy_hessian,
    cs2_fixed_ye_from_hessian, cs2_fixed_mul_from_hessian
)
from virial_parameters import VirialCoefficientFit, get_virial_default
from virial_thermodynamics import compute_virial_state, VirialConvergenceError
from qmc_eos import QMCParams, qmc_energy_density, qmc_chemical_potential
from skyrme_parameters import SkyrmeParams, get_skyrme_chiral, effective_masses
from skyrme_thermodynamics import compute_skyrme_thermo, EffectiveMassError
from nstar_fit import NSFit
from nstar_causal_extrapolation import CausalExtrapolation, causal_ns_energy_density


# =============================================================================
# BLEND WEIGHTS
# =============================================================================
@dataclass(frozen=True)
class BlendSettings:
    """Coefficients of the two blend functions."""
    a_virial: float = 3.0                    # z² coefficient in g
    b_virial: float = 0.0                    # z_n z_p coefficient in g
    h_steepness: float = 20.0                # γ of the QMC/NS switch (fm³)
    h_center: float = 1.5 * n0_default       # fm⁻³


def qmc_ns_weight(nb: float, settings: BlendSettings):
    """Return (h, dh/dn_B); h = 1 is pure QMC, h = 0 pure neutron-star EOS."""
    h = expit(-settings.h_steepness * (nb - settings.h_center))
    return h, -settings.h_steepness * h * (1.0 - h)


def virial_weight(z_n: float, z_p: float, settings: BlendSettings) -> float:
    """g in (0, 1]; g = 1 is the pure virial EOS."""
    return 1.0 / (settings.a_virial * (z_n * z_n + z_p * z_p)
                  + settings.b_virial * z_n * z_p + 1.0)


# =============================================================================
# RESULT DATACLASSES
# =============================================================================
@dataclass
class BlendedThermo:
    """Nucleon thermodynamics of the blended EOS at one point."""
    # Inputs
    n_n: float = 0.0          # fm⁻³
    n_p: float = 0.0          # fm⁻³
    T: float = 0.0            # MeV

    # Thermodynamics (no rest masses)
    f: float = 0.0            # Free energy density (MeV/fm³)
    e: float = 0.0            # Energy density (MeV/fm³)
    P: float = 0.0            # Pressure (MeV/fm³)
    s: float = 0.0            # Entropy density (fm⁻³)
    mu_n: float = 0.0         # MeV
    mu_p: float = 0.0         # MeV

    # Blend diagnostics
    g: float = 1.0            # Virial weight
    h: float = 1.0            # QMC weight
    f_virial: float = 0.0
    f_deg: float = 0.0


@dataclass
class YeSolution:
    """Result of a beta-equilibrium solve."""
    converged: bool = False
    Ye: float = 0.0
    nb: float = 0.0
    T: float = 0.0
    mu_L: float = 0.0
    residual: float = np.inf  # MeV
    message: str = ""


@dataclass
class TemperatureSolution:
    """Result of an isentropic temperature solve."""
    converged: bool = False
    T: float = 0.0
    nb: float = 0.0
    Ye: float = 0.0
    s_per_baryon: float = 0.0
    residual: float = np.inf
    message: str = ""


# =============================================================================
# BLENDED EOS
# =============================================================================
@dataclass(frozen=True)
class BlendedEOS:
    """
    One fully specified blended EOS.

    All components are immutable; every evaluation returns a new result
    object and leaves the model untouched.
    """
    skyrme: SkyrmeParams
    qmc: QMCParams
    ns_fit: NSFit
    extrapolation: CausalExtrapolation
    virial: VirialCoefficientFit = field(default_factory=get_virial_default)
    chiral: SkyrmeParams = field(default_factory=get_skyrme_chiral)
    blend: BlendSettings = field(default_factory=BlendSettings)

    # -------------------------------------------------------------------------
    # Nucleons
    # -------------------------------------------------------------------------
    def evaluate(self, n_n: float, n_p: float, T: float) -> BlendedThermo:
        """
        Free energy, chemical potentials, entropy, pressure and energy density.

        Args:
            n_n, n_p: Neutron and proton densities (fm⁻³); both > 0, or both 0
            T: Temperature (MeV), > 0

        Returns:
            BlendedThermo

        Raises:
            ValueError: for negative input, T ≤ 0 or a single vanishing species
            VirialConvergenceError: if the fugacity solve fails
            EffectiveMassError: if the chiral functional has m* ≤ 0
        """
        if n_n < 0 or n_p < 0 or T <= 0:
            raise ValueError(f"Invalid state n_n={n_n}, n_p={n_p}, T={T}")
        nb = n_n + n_p
        bs = self.blend
        if nb == 0.0:
            h, _ = qmc_ns_weight(0.0, bs)
            return BlendedThermo(T=T, g=1.0, h=h)
        if n_n == 0.0 or n_p == 0.0:
            raise ValueError(
                f"Both species must be present (n_n={n_n}, n_p={n_p})"
            )
        ye = n_p / nb

        # Virial
        vir = compute_virial_state(n_n, n_p, T, self.virial)
        zn, zp = vir.z_n, vir.z_p
        g = virial_weight(zn, zp, bs)
        g2 = g * g
        a, b = bs.a_virial, bs.b_virial

        # Fitted Skyrme, symmetric matter at T = 0
        sk0 = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, 0.0, self.skyrme)
        f_sk0 = sk0.f
        dfsk0 = 0.5 * (sk0.mu_n + sk0.mu_p)

        # Chiral Skyrme thermal parts
        chs_T = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, T, self.chiral)
        chs_0 = compute_skyrme_thermo(0.5 * nb, 0.5 * nb, 0.0, self.chiral)
        chn_T = compute_skyrme_thermo(nb, 0.0, T, self.chiral)
        chn_0 = compute_skyrme_thermo(nb, 0.0, 0.0, self.chiral)

        # Neutron matter at T = 0
        e_qmc = qmc_energy_density(nb, self.qmc)
        mu_qmc = qmc_chemical_potential(nb, self.qmc)
        e_ns, mu_ns = causal_ns_energy_density(nb, self.ns_fit, self.extrapolation)

        # Degenerate free energy
        h, dh = qmc_ns_weight(nb, bs)
        e_sym = e_qmc * h + e_ns * (1.0 - h) - f_sk0
        delta2 = (1.0 - 2.0 * ye)**2
        thermal_n = chn_T.f - chn_0.f
        thermal_s = chs_T.f - chs_0.f
        f_deg = f_sk0 + delta2 * e_sym + delta2 * thermal_n + (1.0 - delta2) * thermal_s
        f_vir = vir.f
        f_total = f_vir * g + f_deg * (1.0 - g)

        # Density derivatives
        ddelta2_dnn = 2.0 * (1.0 - 2.0 * ye) * (-2.0 * (-n_p / nb**2))
        ddelta2_dnp = 2.0 * (1.0 - 2.0 * ye) * (-2.0 * (n_n / nb**2))
        desym_dn = (mu_qmc * h + e_qmc * dh + mu_ns * (1.0 - h) - e_ns * dh - dfsk0)

        dmu_thermal_n = chn_T.mu_n - chn_0.mu_n
        dmu_thermal_s = 0.5 * (chs_T.mu_n + chs_T.mu_p - chs_0.mu_n - chs_0.mu_p)
        common = dfsk0 + delta2 * desym_dn + delta2 * dmu_thermal_n + (1.0 - delta2) * dmu_thermal_s
        dfdeg_dnn = common + ddelta2_dnn * (e_sym + thermal_n - thermal_s)
        dfdeg_dnp = common + ddelta2_dnp * (e_sym + thermal_n - thermal_s)

        wn = 2.0 * a * zn * zn + b * zn * zp
        wp = 2.0 * a * zp * zp + b * zn * zp
        dg_dnn = -g2 * (wn * vir.dmun_dnn + wp * vir.dmup_dnn) / T
        dg_dnp = -g2 * (wn * vir.dmun_dnp + wp * vir.dmup_dnp) / T

        mu_n = vir.mu_n * g + f_vir * dg_dnn + dfdeg_dnn * (1.0 - g) - f_deg * dg_dnn
        mu_p = vir.mu_p * g + f_vir * dg_dnp + dfdeg_dnp * (1.0 - g) - f_deg * dg_dnp

        # Temperature derivatives
        dg_dT = -g2 * (wn * (vir.dmun_dT / T - vir.mu_n / T**2)
                       + wp * (vir.dmup_dT / T - vir.mu_p / T**2))
        dfdeg_dT = -delta2 * chn_T.s - (1.0 - delta2) * chs_T.s
        s = -(-vir.s * g + f_vir * dg_dT + dfdeg_dT * (1.0 - g) - f_deg * dg_dT)

        P = -f_total + mu_n * n_n + mu_p * n_p
        return BlendedThermo(
            n_n=n_n, n_p=n_p, T=T,
            f=f_total, e=f_total + T * s, P=P, s=s, mu_n=mu_n, mu_p=mu_p,
            g=g, h=h, f_virial=f_vir, f_deg=f_deg,
        )

    def free_energy_density(self, n_n: float, n_p: float, T: float) -> float:
        return self.evaluate(n_n, n_p, T).f

    # -------------------------------------------------------------------------
    # Nucleons + electrons + photons (n_e = n_p)
    # -------------------------------------------------------------------------
    def entropy(self, n_n: float, n_p: float, T: float) -> float:
        """Total entropy density including e⁻/e⁺ pairs and photons (fm⁻³)."""
        th = self.evaluate(n_n, n_p, T)
        el = electron_thermo_from_density(n_p, T)
        return th.s + el.s + photon_thermo(T).s

    def energy_density(self, n_n: float, n_p: float, T: float) -> float:
        """Total energy density including rest masses (MeV/fm³)."""
        th = self.evaluate(n_n, n_p, T)
        el = electron_thermo_from_density(n_p, T)
        return th.e + el.e + photon_thermo(T).e + m_neutron * n_n + m_proton * n_p

    def dfdnn_total(self, n_n: float, n_p: float, T: float) -> float:
        """∂f_total/∂n_n with rest mass (MeV)."""
        return self.evaluate(n_n, n_p, T).mu_n + m_neutron

    def dfdnp_total(self, n_n: float, n_p: float, T: float) -> float:
        """∂f_total/∂n_p at n_e = n_p, including μ_e and rest mass (MeV)."""
        th = self.evaluate(n_n, n_p, T)
        el = electron_thermo_from_density(n_p, T)
        return th.mu_p + el.mu + m_proton

    # -------------------------------------------------------------------------
    # Sound speeds
    # -------------------------------------------------------------------------
    def free_energy_hessian(self, n_n: float, n_p: float, T: float,
                            rel_step: float = 1e-4) -> FreeEnergyHessian:
        return compute_free_energy_hessian(
            self.dfdnn_total, self.dfdnp_total, self.entropy, self.energy_density,
            n_n, n_p, T, rel_step
        )

    def cs2_fixed_ye(self, n_n: float, n_p: float, T: float) -> float:
        """Adiabatic squared sound speed at fixed Y_e."""
        return cs2_fixed_ye_from_hessian(self.free_energy_hessian(n_n, n_p, T))

    def cs2_fixed_mul(self, n_n: float, n_p: float, T: float) -> float:
        """Adiabatic squared sound speed at fixed lepton chemical potential."""
        return cs2_fixed_mul_from_hessian(self.free_energy_hessian(n_n, n_p, T))

    # -------------------------------------------------------------------------
    # Solvers
    # -------------------------------------------------------------------------
    def beta_residual(self, Ye: float, nb: float, T: float, mu_L: float = 0.0) -> float:
        """
        μ_n - μ_p - μ_e + μ_L with rest masses (MeV).

        Raises:
            EffectiveMassError: if the fitted functional has m* < 0 at this point
        """
        n_n, n_p = nb * (1.0 - Ye), nb * Ye
        ms_n, ms_p = effective_masses(n_n, n_p, self.skyrme)
        if ms_n < 0.0 or ms_p < 0.0:
            raise EffectiveMassError(
                f"Negative effective mass at n_n={n_n:.4f}, n_p={n_p:.4f}"
            )
        th = self.evaluate(n_n, n_p, T)
        el = electron_thermo_from_density(n_p, T)
        return th.mu_n - th.mu_p - el.mu + mu_L + m_neutron - m_proton

    def solve_ye(self, nb: float, T: float, mu_L: float = 0.0,
                 ye_guess: float = 0.05, verbose: bool = False) -> YeSolution:
        """
        Electron fraction in beta equilibrium at fixed (n_B, T, μ_L).

        scipy.optimize.root (hybr) from ye_guess; if the Newton-type search
        leaves the physical range or fails, brentq on a bracket in (0, 1).
        """
        result = YeSolution(nb=nb, T=T, mu_L=mu_L)
        failures = (ValueError, EffectiveMassError, VirialConvergenceError)

        def residual(x):
            return [self.beta_residual(x[0], nb, T, mu_L)]

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                sol = root(residual, [ye_guess], method='hybr')
            if sol.success and abs(sol.fun[0]) < 1e-6:
                result.converged = True
                result.Ye = float(sol.x[0])
                result.residual = float(sol.fun[0])
                result.message = "hybr"
                return result
            result.message = sol.message
        except failures as exc:
            result.message = str(exc)

        # Bracketing fallback
        lo, hi = 1e-6, 1.0 - 1e-6
        try:
            r_lo = self.beta_residual(lo, nb, T, mu_L)
            r_hi = self.beta_residual(hi, nb, T, mu_L)
            if r_lo * r_hi > 0:
                result.message += "; residual does not change sign in (0, 1)"
            else:
                Ye = brentq(lambda y: self.beta_residual(y, nb, T, mu_L), lo, hi,
                            xtol=1e-12)
                result.converged = True
                result.Ye = Ye
                result.residual = self.beta_residual(Ye, nb, T, mu_L)
                result.message = "brentq"
        except failures as exc:
            result.message += f"; {exc}"

        if verbose:
            status = "converged" if result.converged else "FAILED"
            print(f"  solve_ye nb={nb:.3f} T={T:.2f}: {status} Ye={result.Ye:.5f} "
                  f"({result.message})")
        return result

    def solve_temperature(self, nb: float, Ye: float, s_per_baryon: float,
                          T_guess: float = 10.0) -> TemperatureSolution:
        """
        Temperature at which the total entropy per baryon equals s_per_baryon.

        Solved in ln T so that trial points stay at T > 0.
        """
        result = TemperatureSolution(nb=nb, Ye=Ye, s_per_baryon=s_per_baryon)
        if nb <= 0 or s_per_baryon <= 0:
            raise ValueError(f"Need nb > 0 and s/n_B > 0, got {nb}, {s_per_baryon}")
        n_n, n_p = nb * (1.0 - Ye), nb * Ye

        def residual(x):
            T = np.exp(x[0])
            return [self.entropy(n_n, n_p, T) / nb - s_per_baryon]

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                sol = root(residual, [np.log(T_guess)], method='hybr')
        except (ValueError, EffectiveMassError, VirialConvergenceError) as exc:
            result.message = str(exc)
            return result

        result.T = float(np.exp(sol.x[0]))
        result.residual = float(sol.fun[0])
        result.converged = bool(sol.success) and abs(result.residual) < 1e-7
        result.message = sol.message
        return result


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from qmc_eos import get_qmc_default
    from skyrme_parameters import skyrme_from_saturation
    from nstar_fit import fit_ns_row
    from nstar_causal_extrapolation import build_causal_extrapolation

    nb_grid = 0.04 + 0.012 * np.arange(100)
    tab = {"nb_max": np.array([0.8])}
    for i, x in enumerate(nb_grid):
        tab[f"EoA_{i}"] = np.array([500.0 * x**2 + 400.0 * x**3])
    fit = fit_ns_row(tab, 0)
    model = BlendedEOS(
        skyrme=skyrme_from_saturation(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.2,
                                      S=32.0, L=50.0, Crdr0=-75.0, Crdr1=15.0),
        qmc=get_qmc_default(),
        ns_fit=fit,
        extrapolation=build_causal_extrapolation(fit, 0.5),
    )

    print("Blended EOS")
    print("=" * 70)
    for nb, ye, T in [(1e-6, 0.3, 1.0), (0.01, 0.3, 5.0), (0.16, 0.3, 10.0), (1.0, 0.1, 10.0)]:
        th = model.evaluate(nb * (1 - ye), nb * ye, T)
        print(f"nB={nb:.1e} Ye={ye:.2f} T={T:5.1f}  g={th.g:.3e} h={th.h:.3f}  "
              f"F/A={th.f / nb:9.3f} P={th.P:.4e} s/nB={th.s / nb:.4f}")

    sol = model.solve_ye(0.16, 1.0)
    print(f"beta equilibrium at n0, T=1 MeV: Ye={sol.Ye:.5f} ({sol.message})")
