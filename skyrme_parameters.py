"""
skyrme_parameters.py
====================
Skyrme energy-density functional parameters.

Contains:
- SkyrmeParams: (t_i, x_i, α) parametrization used by skyrme_thermodynamics.py
- A fixed "chiral" parametrization fitted to chiral effective field theory
  neutron and nuclear matter; it supplies the finite-temperature
  (effective mass) corrections of the blended EOS
- The mapping from saturation properties (n0, E/A, K, m*/m, S, L, m_v*/m,
  C^{Δρ}_0, C^{Δρ}_1) to (t_i, x_i, α)
- Row access for the tabulated Skyrme saturation parameter sets

The uniform-matter energy density in terms of isoscalar/isovector coupling
constants (ρ1 = n_n - n_p, τ1 = τ_n - τ_p):

    ε = Σ_q ℏ²/(2m) τ_q + C0ρ(ρ) ρ² + C1ρ(ρ) ρ1² + C0τ ρ τ + C1τ ρ1 τ1
    Ct_ρ(ρ) = Ct_ρ0 + Ct_ρD ρ^α

Units:
- t0: MeV fm³, t1, t2: MeV fm⁵, t3: MeV fm^(3+3α)
- x_i, α: dimensionless
- Surface coefficients C^{Δρ}, C^{∇J}: MeV fm⁵

References:
- M. Bender, P.-H. Heenen, P.-G. Reinhard, Rev. Mod. Phys. 75 (2003) 121
- X. Du, A. W. Steiner, J. W. Holt, Phys. Rev. C 99 (2019) 025803
"""
import numpy as np
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from general_physics_constants import hc, hc2, PI2, m_neutron, m_proton


# =============================================================================
# PARAMETER DATACLASSES
# =============================================================================
@dataclass(frozen=True)
class SkyrmeParams:
    """
    Skyrme (t_i, x_i, α) parametrization.

    Attributes:
        name: Parameter set identifier
        t0, t1, t2, t3: Skyrme strengths (MeV fm^k)
        x0, x1, x2, x3: Spin-exchange parameters
        alpha: Density-dependence exponent
        m_n, m_p: Bare nucleon masses (MeV)
    """
    name: str = "skyrme"
    t0: float = 0.0
    t1: float = 0.0
    t2: float = 0.0
    t3: float = 0.0
    x0: float = 0.0
    x1: float = 0.0
    x2: float = 0.0
    x3: float = 0.0
    alpha: float = 1.0 / 6.0
    m_n: float = m_neutron
    m_p: float = m_proton


@dataclass(frozen=True)
class SkyrmeSaturation:
    """One row of the Skyrme saturation table (MeV, fm units)."""
    rho0: float            # Saturation density (fm⁻³)
    EoA: float             # Binding energy per nucleon (MeV)
    K: float               # Incompressibility (MeV)
    Ms_inv: float          # m/m* at saturation
    Crdr0: float           # C^{Δρ}_0 (MeV fm⁵)
    Crdr1: float           # C^{Δρ}_1 (MeV fm⁵)
    CrdJ0: float           # C^{∇J}_0 (MeV fm⁵)
    CrdJ1: float           # C^{∇J}_1 (MeV fm⁵)
    Vp: float = 0.0        # Proton potential depth (MeV)
    Vn: float = 0.0        # Neutron potential depth (MeV)


SKYRME_TABLE_COLUMNS = ("rho0", "EoA", "K", "Ms_inv", "Crdr0", "Crdr1",
                        "CrdJ0", "CrdJ1", "Vp", "Vn")

# m/m_v* used when mapping saturation properties to t_i, x_i
MV_INV_DEFAULT = 1.249


# =============================================================================
# FIXED PARAMETRIZATIONS
# =============================================================================
def get_skyrme_chiral() -> SkyrmeParams:
    """
    Skyrme fit to chiral EFT matter at finite temperature.

    Only its thermal part F(T) - F(T=0) enters the blended EOS, so the large
    t0/x0 and t3/x3 values (which cancel in the zero-temperature energy) are
    irrelevant there.
    """
    return SkyrmeParams(
        name="chiral",
        t0=5.067286719233e+03 * hc,
        t1=1.749251370992e+00 * hc,
        t2=-4.721193938990e-01 * hc,
        t3=-1.945964529505e+05 * hc,
        x0=4.197555064408e+01,
        x1=-6.947915483747e-02,
        x2=4.192016722695e-01,
        x3=-2.877974634128e+01,
        alpha=0.144165,
    )


# =============================================================================
# COUPLING CONSTANTS
# =============================================================================
def effective_mass_coefficients(params: SkyrmeParams) -> Tuple[float, float]:
    """
    Return (a, b) with ℏ²/(2m*_q) = ℏ²/(2m_q) + a ρ + b ρ_q  (MeV fm⁵).
    """
    a = 0.125 * (params.t1 * (2.0 + params.x1) + params.t2 * (2.0 + params.x2))
    b = 0.125 * (params.t2 * (2.0 * params.x2 + 1.0)
                 - params.t1 * (2.0 * params.x1 + 1.0))
    return a, b


def effective_masses(n_n: float, n_p: float, params: SkyrmeParams) -> Tuple[float, float]:
    """Neutron and proton Landau effective masses (MeV) at (n_n, n_p)."""
    a, b = effective_mass_coefficients(params)
    rho = n_n + n_p
    ms_n = params.m_n / (1.0 + 2.0 * params.m_n * (a * rho + b * n_n) / hc2)
    ms_p = params.m_p / (1.0 + 2.0 * params.m_p * (a * rho + b * n_p) / hc2)
    return ms_n, ms_p


# =============================================================================
# SATURATION PROPERTIES → SKYRME PARAMETERS
# =============================================================================
def skyrme_from_saturation(
    rho0: float, EoA: float, K: float, Ms_inv: float, S: float, L: float,
    Crdr0: float, Crdr1: float, Mv_inv: float = MV_INV_DEFAULT,
    name: str = "skyrme_saturation"
) -> SkyrmeParams:
    """
    Build (t_i, x_i, α) from nuclear saturation properties.

    The symmetric-matter conditions E/A(ρ0) = EoA, P(ρ0) = 0 and K fix
    C0ρ0, C0ρD and α; S and L then fix C1ρ0, C1ρD linearly. The effective
    masses m/m* and m/m_v* fix C0τ, C1τ and, together with the surface
    coefficients C0Δρ, C1Δρ, the four combinations t1, t1 x1, t2, t2 x2.

    Args:
        rho0: Saturation density (fm⁻³)
        EoA: Energy per nucleon at saturation (MeV, negative)
        K: Incompressibility (MeV)
        Ms_inv: m/m* (isoscalar) at saturation
        S, L: Symmetry energy and slope (MeV)
        Crdr0, Crdr1: Surface coefficients C^{Δρ}_0, C^{Δρ}_1 (MeV fm⁵)
        Mv_inv: m/m_v* (isovector) at saturation
        name: Parameter set name

    Returns:
        SkyrmeParams

    Raises:
        ValueError: if the saturation point gives no positive density exponent
    """
    m = 0.5 * (m_neutron + m_proton)
    h2m = hc2 / (2.0 * m)
    c = 0.6 * (1.5 * PI2)**(2.0 / 3.0)

    C0tau = h2m * (Ms_inv - 1.0) / rho0
    C1tau = h2m * (Ms_inv - Mv_inv) / rho0

    # Kinetic + effective-mass part of E/A(ρ) = u ρ^{2/3} + v ρ^{5/3}
    u = c * h2m
    v = c * C0tau
    r23 = rho0**(2.0 / 3.0)
    r53 = rho0**(5.0 / 3.0)
    kin = u * r23 + v * r53
    rho_dkin = (2.0 / 3.0) * u * r23 + (5.0 / 3.0) * v * r53
    rho2_d2kin = -(2.0 / 9.0) * u * r23 + (10.0 / 9.0) * v * r53

    denom = kin - EoA - rho_dkin
    gamma = (K - 9.0 * rho2_d2kin) / (9.0 * denom) - 1.0
    if not np.isfinite(gamma) or gamma <= 0.0:
        raise ValueError(
            f"Saturation point (n0={rho0}, E/A={EoA}, K={K}, m/m*={Ms_inv}) "
            f"gives density exponent α={gamma:.4g}"
        )

    # Scaled symmetric couplings A = C0ρ0 ρ0, B = C0ρD ρ0^{1+α}
    B_sc = denom / gamma
    A_sc = EoA - kin - B_sc
    C0rho0 = A_sc / rho0
    C0rhoD = B_sc / rho0**(1.0 + gamma)

    # Symmetry energy S(ρ) = s1 ρ^{2/3} + s2 ρ^{5/3} + C1ρ0 ρ + C1ρD ρ^{1+α}
    s1 = (5.0 / 9.0) * c * h2m
    s2 = (5.0 / 9.0) * c * C0tau + (5.0 / 3.0) * c * C1tau
    R1 = S - s1 * r23 - s2 * r53
    R2 = L / 3.0 - (2.0 / 3.0) * s1 * r23 - (5.0 / 3.0) * s2 * r53
    Y_sc = (R2 - R1) / gamma
    X_sc = R1 - Y_sc
    C1rho0 = X_sc / rho0
    C1rhoD = Y_sc / rho0**(1.0 + gamma)

    t0 = 8.0 / 3.0 * C0rho0
    t3 = 16.0 * C0rhoD
    x0 = -4.0 * C1rho0 / t0 - 0.5
    x3 = -24.0 * C1rhoD / t3 - 0.5

    # Unknowns (t1, t1 x1, t2, t2 x2)
    M = np.array([
        [3.0 / 16.0, 0.0, 5.0 / 16.0, 1.0 / 4.0],
        [-1.0 / 16.0, -1.0 / 8.0, 1.0 / 16.0, 1.0 / 8.0],
        [-9.0 / 64.0, 0.0, 5.0 / 64.0, 1.0 / 16.0],
        [3.0 / 64.0, 3.0 / 32.0, 1.0 / 64.0, 1.0 / 32.0],
    ])
    t1, y1, t2, y2 = np.linalg.solve(M, np.array([C0tau, C1tau, Crdr0, Crdr1]))

    return SkyrmeParams(
        name=name,
        t0=t0, t1=t1, t2=t2, t3=t3,
        x0=x0, x1=y1 / t1, x2=y2 / t2, x3=x3,
        alpha=gamma,
    )


# =============================================================================
# TABLE ACCESS
# =============================================================================
def skyrme_saturation_from_table(table: Mapping[str, np.ndarray],
                                 row: int) -> SkyrmeSaturation:
    """
    Read one row of a Skyrme saturation table (dict of equal-length columns).

    Raises:
        ValueError: if the row is out of range or a column is missing
    """
    missing = [col for col in SKYRME_TABLE_COLUMNS[:8] if col not in table]
    if missing:
        raise ValueError(f"Skyrme table is missing columns {missing}")
    n_rows = len(table["rho0"])
    if not 0 <= row < n_rows:
        raise ValueError(f"Skyrme table row {row} out of range [0, {n_rows})")
    values: Dict[str, float] = {
        col: float(table[col][row]) for col in SKYRME_TABLE_COLUMNS if col in table
    }
    return SkyrmeSaturation(**values)


def print_params_summary(params: SkyrmeParams) -> None:
    """Print a summary of the parametrization."""
    a, b = effective_mass_coefficients(params)
    print(f"Parametrization: {params.name}")
    print("=" * 60)
    print(f"  t0 = {params.t0:12.4f} MeV fm³     x0 = {params.x0:10.5f}")
    print(f"  t1 = {params.t1:12.4f} MeV fm⁵     x1 = {params.x1:10.5f}")
    print(f"  t2 = {params.t2:12.4f} MeV fm⁵     x2 = {params.x2:10.5f}")
    print(f"  t3 = {params.t3:12.4f}             x3 = {params.x3:10.5f}")
    print(f"  α  = {params.alpha:.6f}")
    print(f"  effective mass coefficients a = {a:.4f}, b = {b:.4f} MeV fm⁵")


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print_params_summary(get_skyrme_chiral())
    print()
    sk = skyrme_from_saturation(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.2,
                                S=32.0, L=50.0, Crdr0=-75.0, Crdr1=15.0)
    print_params_summary(sk)
    for nn, np_ in [(1.0, 1.0), (2.0, 0.0), (0.0, 2.0)]:
        ms_n, ms_p = effective_masses(nn, np_, sk)
        print(f"  m*(n={nn}, p={np_}) = ({ms_n:.2f}, {ms_p:.2f}) MeV")
