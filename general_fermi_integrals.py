"""
general_fermi_integrals.py
==========================
Complete Fermi-Dirac integrals for non-relativistic quasi-particles.

    F_j(η) = ∫_0^∞ x^j / (1 + exp(x - η)) dx

(no 1/Γ(j+1) normalization). Used by the finite-temperature Skyrme
thermodynamics, where for a species with kinetic coefficient B = ℏ²/(2m*)
(MeV·fm²):

    n   = (1/2π²) (T/B)^{3/2} F_{1/2}(η)
    τ   = (1/2π²) (T/B)^{5/2} F_{3/2}(η)

Three regimes are used:
    - η < -2  : alternating fugacity series
    - η > 30  : Sommerfeld expansion (inverted by Newton iteration)
    - otherwise: adaptive quadrature with x = u² substitution

References:
- J. S. Blakemore, Solid-State Electronics 25 (1982) 1067
- M. Goano, ACM Trans. Math. Softw. 21 (1995) 221
"""
import numpy as np
from scipy import integrate
from scipy.optimize import brentq
from scipy.special import expit, gamma

from general_physics_constants import PI2


# =============================================================================
# REGIME BOUNDARIES
# =============================================================================
ETA_SERIES_MAX = -2.0
ETA_SOMMERFELD_MIN = 30.0
N_SERIES_TERMS = 40
NEWTON_MAX_ITER = 50


# =============================================================================
# FERMI INTEGRALS
# =============================================================================
def _fermi_series(j: float, eta: float) -> float:
    """Non-degenerate series Γ(j+1) Σ (-1)^{k+1} e^{kη} / k^{j+1}."""
    k = np.arange(1, N_SERIES_TERMS + 1)
    terms = (-1.0)**(k + 1) * np.exp(k * eta) / k**(j + 1)
    return gamma(j + 1) * np.sum(terms)


def _fermi_sommerfeld(j: float, eta: float) -> float:
    """Degenerate Sommerfeld expansion up to η^{j-5}."""
    c2 = PI2 / 6.0 * j * (j + 1)
    c4 = 7.0 * PI2**2 / 360.0 * (j + 1) * j * (j - 1) * (j - 2)
    c6 = 31.0 * PI2**3 / 15120.0 * (j + 1) * j * (j - 1) * (j - 2) * (j - 3) * (j - 4)
    return eta**(j + 1) / (j + 1) * (1.0 + c2 / eta**2 + c4 / eta**4 + c6 / eta**6)


def _fermi_quadrature(j: float, eta: float) -> float:
    """Quadrature of 2 u^{2j+1} / (1 + exp(u² - η)) on [0, u_max]."""
    u_max = np.sqrt(max(eta, 0.0) + 60.0)

    def integrand(u):
        return 2.0 * u**(2 * j + 1) * expit(eta - u * u)

    points = [np.sqrt(eta)] if eta > 0 else None
    value, _ = integrate.quad(integrand, 0.0, u_max, points=points,
                              epsabs=0.0, epsrel=1e-12, limit=200)
    return value


def fermi_integral(j: float, eta: float) -> float:
    """
    Compute the complete Fermi-Dirac integral F_j(η).

    Args:
        j: Index (j > -1), typically 1/2 or 3/2
        eta: Degeneracy parameter (μ - U)/T

    Returns:
        F_j(η) (dimensionless)
    """
    if eta < ETA_SERIES_MAX:
        return _fermi_series(j, eta)
    if eta > ETA_SOMMERFELD_MIN:
        return _fermi_sommerfeld(j, eta)
    return _fermi_quadrature(j, eta)


def fermi_half(eta: float) -> float:
    """F_{1/2}(η)."""
    return fermi_integral(0.5, eta)


def fermi_three_half(eta: float) -> float:
    """F_{3/2}(η)."""
    return fermi_integral(1.5, eta)


# =============================================================================
# INVERSION
# =============================================================================
def _initial_eta(j: float, target: float) -> float:
    """Asymptotic estimate of η from the limiting forms of F_j."""
    g = gamma(j + 1)
    if target < g:
        return np.log(target / g)
    return ((j + 1) * target)**(1.0 / (j + 1))


def _newton_sommerfeld(j: float, target: float, eta: float) -> float:
    """
    Newton iteration on the Sommerfeld form, converged to machine precision.

    Starts from the leading-order estimate, which lies above the root, so the
    iterates decrease monotonically. Returns NaN if they leave the degenerate
    regime.
    """
    eps = np.finfo(float).eps
    for _ in range(NEWTON_MAX_ITER):
        step = ((_fermi_sommerfeld(j, eta) - target)
                / (j * _fermi_sommerfeld(j - 1.0, eta)))
        eta -= step
        if eta <= ETA_SOMMERFELD_MIN:
            return np.nan
        if abs(step) <= 2.0 * eps * eta:
            break
    return eta


def invert_fermi_integral(j: float, target: float, tol: float = 1e-13) -> float:
    """
    Find η such that F_j(η) = target.

    In the degenerate regime the Sommerfeld form is inverted by Newton
    iteration, so η is a smooth function of target there. Elsewhere brentq is
    used on a bracket around the asymptotic estimate that is widened until the
    sign of F_j(η) - target changes.

    Raises:
        ValueError: if target is not positive
    """
    if target <= 0.0:
        raise ValueError(f"Fermi integral inversion needs target > 0, got {target}")

    guess = _initial_eta(j, target)
    if j > 0.0 and guess > ETA_SOMMERFELD_MIN:
        eta = _newton_sommerfeld(j, target, guess)
        if np.isfinite(eta):
            return eta
    width = 2.0 + 0.1 * abs(guess)
    lo, hi = guess - width, guess + width
    f_lo = fermi_integral(j, lo) - target
    f_hi = fermi_integral(j, hi) - target
    while f_lo > 0:
        lo -= width
        width *= 2.0
        f_lo = fermi_integral(j, lo) - target
    while f_hi < 0:
        hi += width
        width *= 2.0
        f_hi = fermi_integral(j, hi) - target

    return brentq(lambda eta: fermi_integral(j, eta) - target, lo, hi,
                  xtol=tol, rtol=4 * np.finfo(float).eps, maxiter=200)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Fermi-Dirac Integrals")
    print("=" * 50)
    for eta in [-10.0, -2.5, -1.5, 0.0, 5.0, 29.0, 31.0, 100.0]:
        f12 = fermi_half(eta)
        f32 = fermi_three_half(eta)
        back = invert_fermi_integral(0.5, f12)
        print(f"η={eta:7.2f}  F_1/2={f12:.8e}  F_3/2={f32:.8e}  inv={back:.10f}")
