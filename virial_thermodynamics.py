"""
virial_thermodynamics.py
========================
Second-order virial EOS for neutron/proton matter at given (n_n, n_p, T).

Grand potential (pressure) in terms of fugacities z_i = exp(μ_i/T):

    P = (2T/λ³) [z_n + z_p + (z_n² + z_p²) b_n(T) + 2 z_n z_p b_pn(T)]

Densities follow from n_i = z_i ∂(P/T)/∂z_i:

    n_n = (2/λ³) [z_n + 2 b_n z_n² + 2 b_pn z_n z_p]
    n_p = (2/λ³) [z_p + 2 b_n z_p² + 2 b_pn z_n z_p]

Given densities, the fugacities are found with scipy.optimize.root in
(ln z_n, ln z_p). When both n_i λ³ are below CLASSICAL_THRESHOLD the virial
corrections are dropped and the classical ideal gas closed form is used. All
derivatives go through the same Jacobian J_ij = ∂n_i/∂μ_j, so the two regimes
share one code path with the virial coefficients switched off.

Chemical potentials exclude the rest mass.

Units:
- Densities: fm⁻³, T and μ: MeV
- Free energy density, pressure: MeV/fm³
- Entropy density: fm⁻³

References:
- C. J. Horowitz, A. Schwenk, Nucl. Phys. A 776 (2006) 55
"""
import numpy as np
from dataclasses import dataclass
from scipy.optimize import root

from general_physics_constants import m_neutron, m_proton, thermal_wavelength
from virial_parameters import (
    VirialCoefficientFit, get_virial_default, b_n, b_pn, db_n_dT, db_pn_dT
)


# =============================================================================
# CONSTANTS
# =============================================================================
CLASSICAL_THRESHOLD = 1.0e-5   # n λ³ below which the classical gas is used
NEWTON_POLISH_STEPS = 2


class VirialConvergenceError(RuntimeError):
    """Raised when the fugacity equations cannot be solved."""


# =============================================================================
# RESULT DATACLASS
# =============================================================================
@dataclass
class VirialState:
    """Virial EOS at one (n_n, n_p, T) point."""
    # Inputs
    n_n: float = 0.0          # Neutron density (fm⁻³)
    n_p: float = 0.0          # Proton density (fm⁻³)
    T: float = 0.0            # Temperature (MeV)
    classical: bool = False   # True if the classical closed form was used

    # Fugacities and chemical potentials (MeV)
    z_n: float = 0.0
    z_p: float = 0.0
    mu_n: float = 0.0
    mu_p: float = 0.0

    # Thermodynamics
    f: float = 0.0            # Free energy density (MeV/fm³)
    P: float = 0.0            # Pressure (MeV/fm³)
    s: float = 0.0            # Entropy density (fm⁻³)
    e: float = 0.0            # Energy density (MeV/fm³)

    # Chemical potential derivatives
    dmun_dnn: float = 0.0     # MeV fm³
    dmun_dnp: float = 0.0
    dmup_dnn: float = 0.0
    dmup_dnp: float = 0.0
    dmun_dT: float = 0.0      # dimensionless
    dmup_dT: float = 0.0


# =============================================================================
# REGIME CHECK
# =============================================================================
def is_classical(n_n: float, n_p: float, T: float) -> bool:
    """True when both species are non-degenerate enough to drop virial terms."""
    lam3 = thermal_wavelength(T, m_neutron, m_proton)**3
    return n_n * lam3 <= CLASSICAL_THRESHOLD and n_p * lam3 <= CLASSICAL_THRESHOLD


# =============================================================================
# FUGACITY SOLVER
# =============================================================================
def _single_species_guess(x: float, b: float) -> float:
    """Root of 2 b z² + z = x, the fugacity ignoring the other species."""
    if b <= 0.0 or x < 1e-8:
        return x
    return (-1.0 + np.sqrt(1.0 + 8.0 * b * x)) / (4.0 * b)


def solve_fugacities(n_n: float, n_p: float, lam3: float,
                     bn: float, bpn: float) -> tuple:
    """
    Solve the two density equations for (z_n, z_p).

    Args:
        n_n, n_p: Densities (fm⁻³), both > 0
        lam3: λ³ (fm³)
        bn, bpn: Virial coefficients at this temperature

    Returns:
        (z_n, z_p)

    Raises:
        VirialConvergenceError: if scipy.optimize.root fails
    """
    x_n = 0.5 * n_n * lam3
    x_p = 0.5 * n_p * lam3

    def residuals(u):
        zn, zp = np.exp(u)
        return [(zn + 2.0 * bn * zn * zn + 2.0 * bpn * zn * zp) / x_n - 1.0,
                (zp + 2.0 * bn * zp * zp + 2.0 * bpn * zn * zp) / x_p - 1.0]

    def jacobian(u):
        zn, zp = np.exp(u)
        cross = 2.0 * bpn * zn * zp
        return [[(zn + 4.0 * bn * zn * zn + cross) / x_n, cross / x_n],
                [cross / x_p, (zp + 4.0 * bn * zp * zp + cross) / x_p]]

    u0 = np.log([_single_species_guess(x_n, bn), _single_species_guess(x_p, bn)])
    sol = root(residuals, u0, jac=jacobian, method='hybr', options={'xtol': 1e-14})
    if not sol.success:
        sol = root(residuals, u0, jac=jacobian, method='lm', options={'xtol': 1e-14})
    if sol.success:
        # Newton polish to machine precision
        u = sol.x
        for _ in range(NEWTON_POLISH_STEPS):
            u = u - np.linalg.solve(jacobian(u), residuals(u))
    if not sol.success or not np.max(np.abs(residuals(u))) <= 1e-10:
        raise VirialConvergenceError(
            f"Fugacity solve failed at n_n={n_n:.4e}, n_p={n_p:.4e}: {sol.message}"
        )
    zn, zp = np.exp(u)
    return zn, zp


# =============================================================================
# MAIN EVALUATION
# =============================================================================
def compute_virial_state(n_n: float, n_p: float, T: float,
                         fit: VirialCoefficientFit = None) -> VirialState:
    """
    Compute the virial free energy, entropy and μ derivatives.

    Args:
        n_n: Neutron density (fm⁻³), > 0
        n_p: Proton density (fm⁻³), > 0
        T: Temperature (MeV), > 0
        fit: Virial coefficient parametrization (default if None)

    Returns:
        VirialState
    """
    if fit is None:
        fit = get_virial_default()
    if n_n <= 0 or n_p <= 0 or T <= 0:
        raise ValueError(
            f"Virial EOS needs positive n_n, n_p, T; got {n_n}, {n_p}, {T}"
        )

    lam3 = thermal_wavelength(T, m_neutron, m_proton)**3
    pref = 2.0 / lam3
    classical = is_classical(n_n, n_p, T)

    if classical:
        bn = bpn = dbn = dbpn = 0.0
        zn = 0.5 * n_n * lam3
        zp = 0.5 * n_p * lam3
    else:
        bn, bpn = b_n(T, fit), b_pn(T, fit)
        dbn, dbpn = db_n_dT(T, fit), db_pn_dT(T, fit)
        zn, zp = solve_fugacities(n_n, n_p, lam3, bn, bpn)

    mu_n = T * np.log(zn)
    mu_p = T * np.log(zp)

    P = pref * T * (zn + zp + (zn * zn + zp * zp) * bn + 2.0 * zn * zp * bpn)
    f = mu_n * n_n + mu_p * n_p - P
    s = (2.5 * P / T - n_n * np.log(zn) - n_p * np.log(zp)
         + pref * T * ((zn * zn + zp * zp) * dbn + 2.0 * zn * zp * dbpn))

    # J_ij = ∂n_i/∂μ_j at fixed T
    cross = 2.0 * bpn * zn * zp
    J = pref / T * np.array([
        [zn + 4.0 * bn * zn * zn + cross, cross],
        [cross, zp + 4.0 * bn * zp * zp + cross],
    ])
    # ∂n_i/∂T at fixed μ
    mu = np.array([mu_n, mu_p])
    n = np.array([n_n, n_p])
    dn_dT_mu = (1.5 / T * n - J @ mu / T
                + pref * np.array([2.0 * zn * zn * dbn + 2.0 * zn * zp * dbpn,
                                   2.0 * zp * zp * dbn + 2.0 * zn * zp * dbpn]))

    dmu_dn = np.linalg.inv(J)
    dmu_dT = -dmu_dn @ dn_dT_mu

    return VirialState(
        n_n=n_n, n_p=n_p, T=T, classical=classical,
        z_n=zn, z_p=zp, mu_n=mu_n, mu_p=mu_p,
        f=f, P=P, s=s, e=f + T * s,
        dmun_dnn=dmu_dn[0, 0], dmun_dnp=dmu_dn[0, 1],
        dmup_dnn=dmu_dn[1, 0], dmup_dnp=dmu_dn[1, 1],
        dmun_dT=dmu_dT[0], dmup_dT=dmu_dT[1],
    )


if __name__ == "__main__":
    print("Virial EOS")
    print("=" * 60)
    for nb, ye, T in [(1e-8, 0.5, 1.0), (1e-4, 0.3, 5.0), (1e-3, 0.1, 10.0)]:
        st = compute_virial_state(nb * (1 - ye), nb * ye, T)
        print(f"nB={nb:.1e} Ye={ye:.2f} T={T:5.1f}  classical={st.classical}  "
              f"μn={st.mu_n:9.3f} μp={st.mu_p:9.3f} P={st.P:.4e} s={st.s:.4e}")
