"""
skyrme_thermodynamics.py
========================
Uniform-matter Skyrme thermodynamics at T = 0 and at finite temperature.

For each nucleon q the quasi-particle spectrum is B_q k² + U_q with

    B_q = ℏ²/(2m_q) + a ρ + b ρ_q          (= ℏ²/(2m*_q))

and the energy density (without rest masses) is

    ε = Σ_q B_q τ_q + H0 + H3
    H0 = (t0/4) [(2+x0) ρ² - (2x0+1)(ρ_n² + ρ_p²)]
    H3 = (t3/24) ρ^α [(2+x3) ρ² - (2x3+1)(ρ_n² + ρ_p²)]

At finite T the kinetic densities follow from non-relativistic Fermi
integrals with degeneracy η_q = ν_q/T:

    n_q = (1/2π²) (T/B_q)^{3/2} F_{1/2}(η_q)
    τ_q = (1/2π²) (T/B_q)^{5/2} F_{3/2}(η_q)
    s_q = ((5/3) B_q τ_q - ν_q n_q) / T

and the chemical potentials are μ_q = ν_q + a τ + b τ_q + ∂(H0+H3)/∂ρ_q.
At T = 0, τ_q = (3/5) k_Fq² ρ_q and ν_q = B_q k_Fq².

A species with zero density contributes nothing; its reported μ is the
potential part only (ν_q = 0).

Units:
- Densities: fm⁻³, τ: fm⁻⁵
- Energies, μ, T: MeV
- ε, f, P: MeV/fm³, s: fm⁻³

References:
- E. Chabanat et al., Nucl. Phys. A 627 (1997) 710
- C. Constantinou, B. Muccioli, M. Prakash, J. M. Lattimer, Phys. Rev. C 89 (2014) 065802
"""
import numpy as np
from dataclasses import dataclass

from general_physics_constants import hc2, PI2
from general_fermi_integrals import fermi_half, fermi_three_half, invert_fermi_integral
from skyrme_parameters import SkyrmeParams, effective_mass_coefficients


class EffectiveMassError(ValueError):
    """Raised when a finite-temperature evaluation meets m* ≤ 0."""


# =============================================================================
# RESULT DATACLASS
# =============================================================================
@dataclass
class SkyrmeThermo:
    """Skyrme thermodynamics at one (n_n, n_p, T) point."""
    n_n: float = 0.0       # Neutron density (fm⁻³)
    n_p: float = 0.0       # Proton density (fm⁻³)
    T: float = 0.0         # Temperature (MeV)

    e: float = 0.0         # Energy density (MeV/fm³)
    f: float = 0.0         # Free energy density (MeV/fm³)
    s: float = 0.0         # Entropy density (fm⁻³)
    P: float = 0.0         # Pressure (MeV/fm³)
    mu_n: float = 0.0      # Neutron chemical potential (MeV)
    mu_p: float = 0.0      # Proton chemical potential (MeV)

    tau_n: float = 0.0     # Kinetic densities (fm⁻⁵)
    tau_p: float = 0.0
    ms_n: float = 0.0      # Effective masses (MeV)
    ms_p: float = 0.0


# =============================================================================
# POTENTIAL TERMS
# =============================================================================
def _potential(n_n: float, n_p: float, params: SkyrmeParams):
    """Return (H0 + H3, ∂/∂n_n, ∂/∂n_p)."""
    rho = n_n + n_p
    t0, x0, t3, x3, alpha = params.t0, params.x0, params.t3, params.x3, params.alpha
    sq = n_n * n_n + n_p * n_p

    H0 = 0.25 * t0 * ((2.0 + x0) * rho * rho - (2.0 * x0 + 1.0) * sq)
    dH0_dn = 0.25 * t0 * (2.0 * (2.0 + x0) * rho - 2.0 * (2.0 * x0 + 1.0) * n_n)
    dH0_dp = 0.25 * t0 * (2.0 * (2.0 + x0) * rho - 2.0 * (2.0 * x0 + 1.0) * n_p)

    if rho > 0.0:
        bracket = (2.0 + x3) * rho * rho - (2.0 * x3 + 1.0) * sq
        ra = rho**alpha
        H3 = t3 / 24.0 * ra * bracket
        common = t3 / 24.0 * alpha * rho**(alpha - 1.0) * bracket
        dH3_dn = common + t3 / 24.0 * ra * (2.0 * (2.0 + x3) * rho
                                            - 2.0 * (2.0 * x3 + 1.0) * n_n)
        dH3_dp = common + t3 / 24.0 * ra * (2.0 * (2.0 + x3) * rho
                                            - 2.0 * (2.0 * x3 + 1.0) * n_p)
    else:
        H3 = dH3_dn = dH3_dp = 0.0

    return H0 + H3, dH0_dn + dH3_dn, dH0_dp + dH3_dp


# =============================================================================
# SINGLE-SPECIES KINETIC PART
# =============================================================================
def _kinetic_zero_T(n: float, B: float):
    """Return (τ, ν, s) of a T=0 Fermi sea with spectrum B k²."""
    if n <= 0.0:
        return 0.0, 0.0, 0.0
    kf2 = (3.0 * PI2 * n)**(2.0 / 3.0)
    return 0.6 * kf2 * n, B * kf2, 0.0


def _kinetic_finite_T(n: float, B: float, T: float):
    """Return (τ, ν, s) of a non-relativistic Fermi gas with spectrum B k²."""
    if n <= 0.0:
        return 0.0, 0.0, 0.0
    if B <= 0.0:
        raise EffectiveMassError(f"Non-positive ℏ²/2m* = {B:.4g} MeV fm² at n={n:.4g}")
    scale = T / B
    target = 2.0 * PI2 * n / scale**1.5
    eta = invert_fermi_integral(0.5, target)
    tau = scale**2.5 * fermi_three_half(eta) / (2.0 * PI2)
    nu = eta * T
    s = ((5.0 / 3.0) * B * tau - nu * n) / T
    return tau, nu, s


# =============================================================================
# MAIN EVALUATION
# =============================================================================
def compute_skyrme_thermo(n_n: float, n_p: float, T: float,
                          params: SkyrmeParams) -> SkyrmeThermo:
    """
    Compute Skyrme thermodynamics at (n_n, n_p, T).

    Args:
        n_n, n_p: Densities (fm⁻³), non-negative
        T: Temperature (MeV); T = 0 selects the zero-temperature closed form
        params: Skyrme parametrization

    Returns:
        SkyrmeThermo

    Raises:
        EffectiveMassError: if T > 0 and an occupied species has m* ≤ 0
    """
    if n_n < 0 or n_p < 0 or T < 0:
        raise ValueError(f"Invalid Skyrme input n_n={n_n}, n_p={n_p}, T={T}")

    a, b = effective_mass_coefficients(params)
    rho = n_n + n_p
    B_n = hc2 / (2.0 * params.m_n) + a * rho + b * n_n
    B_p = hc2 / (2.0 * params.m_p) + a * rho + b * n_p

    if T == 0.0:
        tau_n, nu_n, s_n = _kinetic_zero_T(n_n, B_n)
        tau_p, nu_p, s_p = _kinetic_zero_T(n_p, B_p)
    else:
        tau_n, nu_n, s_n = _kinetic_finite_T(n_n, B_n, T)
        tau_p, nu_p, s_p = _kinetic_finite_T(n_p, B_p, T)

    H, dH_dn, dH_dp = _potential(n_n, n_p, params)
    tau = tau_n + tau_p

    e = B_n * tau_n + B_p * tau_p + H
    s = s_n + s_p
    f = e - T * s
    mu_n = nu_n + a * tau + b * tau_n + dH_dn
    mu_p = nu_p + a * tau + b * tau_p + dH_dp
    P = mu_n * n_n + mu_p * n_p - f

    return SkyrmeThermo(
        n_n=n_n, n_p=n_p, T=T,
        e=e, f=f, s=s, P=P, mu_n=mu_n, mu_p=mu_p,
        tau_n=tau_n, tau_p=tau_p,
        ms_n=hc2 / (2.0 * B_n), ms_p=hc2 / (2.0 * B_p),
    )


def energy_per_baryon(n_n: float, n_p: float, params: SkyrmeParams) -> float:
    """T = 0 energy per baryon without rest mass (MeV)."""
    rho = n_n + n_p
    return compute_skyrme_thermo(n_n, n_p, 0.0, params).e / rho


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from skyrme_parameters import get_skyrme_chiral, skyrme_from_saturation

    sk = skyrme_from_saturation(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.2,
                                S=32.0, L=50.0, Crdr0=-75.0, Crdr1=15.0)
    print("Skyrme thermodynamics")
    print("=" * 60)
    print(f"E/A(SNM, n0) = {energy_per_baryon(0.08, 0.08, sk):.4f} MeV")
    print(f"E/A(PNM, n0) = {energy_per_baryon(0.16, 0.0, sk):.4f} MeV")
    ch = get_skyrme_chiral()
    for T in [0.0, 1.0, 10.0]:
        th = compute_skyrme_thermo(0.1, 0.0, T, ch)
        print(f"chiral PNM n=0.1 T={T:5.1f}: f={th.f:10.4f} s={th.s:.5f} μn={th.mu_n:9.3f}")
