"""
nstar_causal_extrapolation.py
=============================
Causal continuation of the neutron-star EOS fit above nb_max.

Below nb_max the fitted energy density is used as is. Above it the total
energy density ε(n) = e(n) + m_n n is replaced by a closed form whose squared
sound speed cs² = n ε''/ε' interpolates between the fit value at nb_max
(cs2_last) and a target value phi at n = 2 fm⁻³, and never exceeds 1.

Matching value and slope at nb_max uses W = ε(nb_max) + P(nb_max) = nb_max μ_tot.

Three branches:

INCREASING (phi > cs2_last), cs² = 1 - a1/(1 + a2 n^a1):
    ε(n) = c1 [a2 n²/2 + n^{2-a1}/(2-a1)] + c2
    c1 = W / (nb_max² (a2 + nb_max^{-a1}))

DECREASING (phi < cs2_last), cs² = a1/(1 + a2 n^a1):
    ε'(n) = c1 n^a1 / (1 + a2 n^a1)
    ε(n)  = c1 n H(n) / a2 + c2
    H(n)  = 2F1(1, 1; 1 - 1/a1; z/(1+z)) / (1+z),  z = n^{-a1}/a2
    (the Pfaff transform of 2F1(1, -1/a1; 1 - 1/a1; -z) keeps the argument in [0, 1))
    c1 = nb_max^{-a1-1} (a2 nb_max^a1 + 1) W

CONSTANT (phi == cs2_last), cs² = cs2_last:
    ε(n) = W/(1+cs²) (n/nb_max)^{1+cs²} + (cs² ε_last - P_last)/(1+cs²)

(a1, a2) are found with scipy.optimize.root from the two conditions
cs²(nb_max) = cs2_last and cs²(2) = phi.

Units:
- Densities: fm⁻³, energies: MeV, energy densities: MeV/fm³
"""
import numpy as np
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Tuple
from scipy.optimize import root
from scipy.special import hyp2f1

from general_physics_constants import m_neutron
from nstar_fit import NSFit, ns_energy_density, ns_chemical_potential, ns_cs2


# =============================================================================
# CONSTANTS
# =============================================================================
N_REFERENCE = 2.0           # fm⁻³, density where cs² = phi
NB_MAX_TOLERANCE = 1e-6     # fm⁻³, raw fit used below nb_max - tolerance


class ExtrapolationError(RuntimeError):
    """Raised when the branch parameters (a1, a2) cannot be found."""


class CausalityBranch(Enum):
    """Shape of the sound speed above nb_max."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    CONSTANT = "constant"


# =============================================================================
# BRANCH PARAMETERS
# =============================================================================
@dataclass(frozen=True)
class CausalExtrapolation:
    """Closed-form continuation of one neutron-star fit."""
    branch: CausalityBranch
    a1: float = 0.0
    a2: float = 0.0
    c1: float = 0.0
    c2: float = 0.0

    # Matching point
    nb_max: float = 0.0         # fm⁻³
    cs2_last: float = 0.0       # cs² of the fit at nb_max
    phi: float = 0.0            # cs² target at N_REFERENCE
    eps_last: float = 0.0       # ε(nb_max) with rest mass (MeV/fm³)
    P_last: float = 0.0         # P(nb_max) (MeV/fm³)
    m: float = m_neutron        # Rest mass used in ε (MeV)


def pfaff_hypergeometric(n: float, a1: float, a2: float) -> float:
    """
    H(n) = 2F1(1, 1; 1 - 1/a1; z/(1+z)) / (1+z) with z = n^{-a1}/a2.

    n H(n) / a2 is the antiderivative (up to a constant) of n^a1/(1 + a2 n^a1).
    """
    z = n**(-a1) / a2
    return hyp2f1(1.0, 1.0, 1.0 - 1.0 / a1, z / (1.0 + z)) / (1.0 + z)


def _cs2_increasing(n, a1, a2):
    return 1.0 - a1 / (1.0 + a2 * n**a1)


def _cs2_decreasing(n, a1, a2):
    return a1 / (1.0 + a2 * n**a1)


def extrapolated_cs2(nb: float, ext: CausalExtrapolation) -> float:
    """Squared sound speed of the continuation at nb ≥ nb_max."""
    if ext.branch is CausalityBranch.INCREASING:
        return _cs2_increasing(nb, ext.a1, ext.a2)
    if ext.branch is CausalityBranch.DECREASING:
        return _cs2_decreasing(nb, ext.a1, ext.a2)
    return ext.cs2_last


def _solve_shape(cs2_func, guess, nb_max, cs2_last, phi) -> Tuple[float, float]:
    """Solve cs²(nb_max) = cs2_last, cs²(N_REFERENCE) = phi for (a1, a2)."""
    def residuals(x):
        a1, a2 = x
        return [cs2_func(nb_max, a1, a2) - cs2_last,
                cs2_func(N_REFERENCE, a1, a2) - phi]

    with warnings.catch_warnings():
        # Trial steps may visit negative a2 and overflow powers
        warnings.simplefilter("ignore")
        sol = root(residuals, guess, method='hybr')
        if sol.success:
            res = np.max(np.abs(residuals(sol.x)))
        else:
            res = np.inf
    if not sol.success or not np.all(np.isfinite(sol.x)) or res > 1e-10:
        raise ExtrapolationError(
            f"Could not find branch parameters for nb_max={nb_max:.4f}, "
            f"cs2_last={cs2_last:.4f}, phi={phi:.4f}: {sol.message}"
        )
    a1, a2 = sol.x
    if a1 <= 0.0 or a2 <= 0.0:
        raise ExtrapolationError(
            f"Branch parameters a1={a1:.4g}, a2={a2:.4g} are not positive"
        )
    return a1, a2


def build_causal_extrapolation(fit: NSFit, phi: float,
                               m: float = m_neutron) -> CausalExtrapolation:
    """
    Construct the causal continuation of a neutron-star fit.

    Args:
        fit: Neutron-star fit (provides nb_max and the fit functions)
        phi: Target cs² at N_REFERENCE, in [0, 1]
        m: Rest mass added to the fit energy density (MeV)

    Returns:
        CausalExtrapolation

    Raises:
        ValueError: if phi is outside [0, 1]
        ExtrapolationError: if the (a1, a2) system has no acceptable solution
    """
    if not 0.0 <= phi <= 1.0:
        raise ValueError(f"phi must be a squared sound speed in [0, 1], got {phi}")

    nb_max = fit.nb_max
    e_last = ns_energy_density(nb_max, fit)
    mu_last = ns_chemical_potential(nb_max, fit)
    P_last = mu_last * nb_max - e_last
    eps_last = e_last + m * nb_max
    W = eps_last + P_last
    cs2_last = ns_cs2(nb_max, fit)

    common = dict(nb_max=nb_max, cs2_last=cs2_last, phi=phi,
                  eps_last=eps_last, P_last=P_last, m=m)

    if phi > cs2_last:
        a1, a2 = _solve_shape(_cs2_increasing, [1.0, 1.0], nb_max, cs2_last, phi)
        if abs(a1 - 2.0) < 1e-12:
            raise ExtrapolationError("Increasing branch is singular at a1 = 2")
        x = nb_max**a1
        c1 = W / (nb_max**2 * (a2 + nb_max**(-a1)))
        c2 = 0.5 * (eps_last - P_last + a1 * W / ((a1 - 2.0) * (1.0 + a2 * x)))
        return CausalExtrapolation(CausalityBranch.INCREASING, a1, a2, c1, c2, **common)

    if phi < cs2_last:
        a1, a2 = _solve_shape(_cs2_decreasing, [2.5, 1.0], nb_max, cs2_last, phi)
        c1 = nb_max**(-a1 - 1.0) * (a2 * nb_max**a1 + 1.0) * W
        c2 = eps_last - c1 * nb_max * pfaff_hypergeometric(nb_max, a1, a2) / a2
        if not (np.isfinite(c1) and np.isfinite(c2)):
            raise ExtrapolationError(
                f"Hypergeometric matching failed for a1={a1:.4g}, a2={a2:.4g}"
            )
        return CausalExtrapolation(CausalityBranch.DECREASING, a1, a2, c1, c2, **common)

    return CausalExtrapolation(CausalityBranch.CONSTANT, **common)


# =============================================================================
# EVALUATION
# =============================================================================
def _total_energy_above(nb: float, ext: CausalExtrapolation) -> Tuple[float, float]:
    """(ε, dε/dn) with rest mass from the continuation."""
    a1, a2, c1, c2 = ext.a1, ext.a2, ext.c1, ext.c2
    if ext.branch is CausalityBranch.INCREASING:
        eps = c1 * (a2 * nb * nb / 2.0 + nb**(2.0 - a1) / (2.0 - a1)) + c2
        deps = c1 * (a2 * nb + nb**(1.0 - a1))
        return eps, deps
    if ext.branch is CausalityBranch.DECREASING:
        eps = c1 * nb * pfaff_hypergeometric(nb, a1, a2) / a2 + c2
        x = nb**a1
        deps = c1 * x / (1.0 + a2 * x)
        return eps, deps

    cs2 = ext.cs2_last
    W = ext.eps_last + ext.P_last
    ratio = nb / ext.nb_max
    eps = W / (1.0 + cs2) * ratio**(cs2 + 1.0) + (cs2 * ext.eps_last - ext.P_last) / (1.0 + cs2)
    deps = W * ratio**cs2 / ext.nb_max
    return eps, deps


def causal_ns_energy_density(nb: float, fit: NSFit,
                             ext: CausalExtrapolation) -> Tuple[float, float]:
    """
    Neutron-star energy density and its density derivative (no rest mass).

    Returns:
        (e, de/dn) in (MeV/fm³, MeV)
    """
    if nb < fit.nb_max - NB_MAX_TOLERANCE:
        return ns_energy_density(nb, fit), ns_chemical_potential(nb, fit)
    eps, deps = _total_energy_above(nb, ext)
    return eps - ext.m * nb, deps - ext.m


if __name__ == "__main__":
    from nstar_fit import fit_ns_row

    nb_grid = 0.04 + 0.012 * np.arange(100)
    tab = {"nb_max": np.array([0.8, 0.45])}
    for i, nb in enumerate(nb_grid):
        tab[f"EoA_{i}"] = np.full(2, 500.0 * nb**2 + 400.0 * nb**3)

    for row, phi in [(0, 0.5), (1, 0.9)]:
        fit = fit_ns_row(tab, row)
        ext = build_causal_extrapolation(fit, phi)
        print(f"row {row}: nb_max={fit.nb_max:.4f} cs2_last={ext.cs2_last:.4f} "
              f"branch={ext.branch.value} a1={ext.a1:.4f} a2={ext.a2:.4f}")
        for nb in [fit.nb_max, 1.0, 1.5, 2.0]:
            e, mu = causal_ns_energy_density(nb, fit, ext)
            print(f"   nb={nb:.3f} e={e:10.3f} μ={mu:9.3f} cs²={extrapolated_cs2(nb, ext):.4f}")
