"""
nstar_fit.py
============
Analytic fit of a tabulated high-density neutron-star EOS.

Each row of the neutron-star table holds a maximum density `nb_max` and the
energy per baryon E/A (MeV, without rest mass) on the grid
nb_i = 0.04 + 0.012 i (i = 0..99). The row is fitted with a five-term
expansion of E/A in nb:

    default form : E/A = p0 √n + p1 n + p2 n^{3/2} + p3 n² + p4 n³
    polynomial   : E/A = p0 n + p1 n² + p2 n³ + p3 n⁴ + p4 n⁵

and nb_max is lowered to the density where the fitted sound speed

    cs² = n (dμ/dn) / (μ + m_n)

first crosses the speed of light (linear interpolation between grid points).

Units:
- Densities: fm⁻³
- E/A, μ: MeV; e: MeV/fm³

References:
- A. W. Steiner, J. M. Lattimer, E. F. Brown, ApJ 765 (2013) L5
- X. Du, A. W. Steiner, J. W. Holt, Phys. Rev. C 99 (2019) 025803
"""
import numpy as np
import warnings
from dataclasses import dataclass
from typing import Mapping, Tuple
from scipy.optimize import curve_fit

from general_physics_constants import hc, m_neutron


# =============================================================================
# SETTINGS AND RESULT DATACLASSES
# =============================================================================
@dataclass
class NSFitSettings:
    """Configuration of the neutron-star EOS fit."""
    old_form: bool = True                  # √n series (True) or n..n⁵ polynomial
    initial_params: Tuple[float, ...] = (
        -6.102748e3, 3.053497e3, 4.662834e3, -8.371958e2, -5.228209e2
    )
    n_grid: int = 100                      # Number of E/A columns
    nb_start: float = 0.04                 # fm⁻³
    nb_step: float = 0.012                 # fm⁻³
    min_abs_EoA: float = 1e-2 * hc         # MeV, smaller entries are skipped
    error_fraction: float = 0.01           # Relative E/A uncertainty
    cs2_seed_density: float = 0.08         # fm⁻³, first point of the cs² scan
    cs2_scan_start: float = 0.04           # fm⁻³
    cs2_scan_step: float = 0.02            # fm⁻³
    min_nb_max: float = 0.01               # fm⁻³, lower bound for a crossing


@dataclass(frozen=True)
class NSFit:
    """Result of fitting one neutron-star table row."""
    params: Tuple[float, ...]              # Five fit coefficients (MeV)
    old_form: bool = True
    nb_max: float = 0.0                    # Causal limit of the fit (fm⁻³)
    nb_max_table: float = 0.0              # nb_max stored in the table (fm⁻³)
    chi2: float = 0.0
    row: int = -1


# =============================================================================
# FIT FUNCTIONS
# =============================================================================
def _EoA_old(nb, p0, p1, p2, p3, p4):
    sq = np.sqrt(nb)
    return sq * p0 + nb * p1 + nb * sq * p2 + nb**2 * p3 + nb**3 * p4


def _EoA_poly(nb, p0, p1, p2, p3, p4):
    return nb * p0 + nb**2 * p1 + nb**3 * p2 + nb**4 * p3 + nb**5 * p4


def ns_energy_per_baryon(nb: float, fit: NSFit) -> float:
    """Fitted E/A (MeV)."""
    if fit.old_form:
        return _EoA_old(nb, *fit.params)
    return _EoA_poly(nb, *fit.params)


def ns_energy_density(nb: float, fit: NSFit) -> float:
    """Fitted energy density without rest mass (MeV/fm³)."""
    return ns_energy_per_baryon(nb, fit) * nb


def ns_chemical_potential(nb: float, fit: NSFit) -> float:
    """d(e)/dn of the fit, without rest mass (MeV)."""
    p = fit.params
    if fit.old_form:
        sq = np.sqrt(nb)
        return (1.5 * sq * p[0] + 2.0 * nb * p[1] + 2.5 * nb * sq * p[2]
                + 3.0 * nb**2 * p[3] + 4.0 * nb**3 * p[4])
    return (2.0 * nb * p[0] + 3.0 * nb**2 * p[1] + 4.0 * nb**3 * p[2]
            + 5.0 * nb**4 * p[3] + 6.0 * nb**5 * p[4])


def ns_dmu_dn(nb: float, fit: NSFit) -> float:
    """d²(e)/dn² of the fit (MeV fm³)."""
    p = fit.params
    if fit.old_form:
        sq = np.sqrt(nb)
        return (0.75 / sq * p[0] + 2.0 * p[1] + 3.75 * sq * p[2]
                + 6.0 * nb * p[3] + 12.0 * nb**2 * p[4])
    return (2.0 * p[0] + 6.0 * nb * p[1] + 12.0 * nb**2 * p[2]
            + 20.0 * nb**3 * p[3] + 30.0 * nb**4 * p[4])


def ns_cs2(nb: float, fit: NSFit) -> float:
    """Squared sound speed of the fit at T = 0."""
    return ns_dmu_dn(nb, fit) * nb / (ns_chemical_potential(nb, fit) + m_neutron)


def ns_cs2_range(fit: NSFit, settings: NSFitSettings = None) -> Tuple[float, float]:
    """
    Minimum and maximum of the fitted cs² below nb_max.

    Scans nb = cs2_scan_start, +cs2_scan_step, ... < nb_max, seeded with the
    value at cs2_seed_density.
    """
    if settings is None:
        settings = NSFitSettings()
    cs2 = ns_cs2(settings.cs2_seed_density, fit)
    cs2_min = cs2_max = cs2
    nb = settings.cs2_scan_start
    while nb < fit.nb_max:
        cs2 = ns_cs2(nb, fit)
        cs2_min = min(cs2_min, cs2)
        cs2_max = max(cs2_max, cs2)
        nb += settings.cs2_scan_step
    return cs2_min, cs2_max


# =============================================================================
# TABLE ACCESS
# =============================================================================
def ns_row_from_table(table: Mapping[str, np.ndarray], row: int,
                      settings: NSFitSettings = None):
    """
    Extract (nb_max, nb_grid, EoA) of one neutron-star table row.

    Only grid points up to nb_max whose |E/A| exceeds settings.min_abs_EoA
    are returned.

    Raises:
        ValueError: if the row is out of range or nb_max is missing
    """
    if settings is None:
        settings = NSFitSettings()
    if "nb_max" not in table:
        raise ValueError("Neutron star table has no 'nb_max' column")
    n_rows = len(table["nb_max"])
    if not 0 <= row < n_rows:
        raise ValueError(f"Neutron star table row {row} out of range [0, {n_rows})")

    nb_max = float(table["nb_max"][row])
    nbs, EoAs = [], []
    for i in range(settings.n_grid):
        nb = settings.nb_start + i * settings.nb_step
        if nb >= nb_max + 1e-6:
            break
        key = f"EoA_{i}"
        if key not in table:
            break
        EoA = float(table[key][row])
        if abs(EoA) > settings.min_abs_EoA:
            nbs.append(nb)
            EoAs.append(EoA)
    return nb_max, np.array(nbs), np.array(EoAs)


# =============================================================================
# FIT
# =============================================================================
def _find_causal_limit(nbs: np.ndarray, cs2: np.ndarray) -> float:
    """Last upward crossing of cs² = 1 between grid points, or 0 if none."""
    nb_new = 0.0
    for j in range(len(nbs) - 1):
        if cs2[j] < 1.0 and cs2[j + 1] > 1.0:
            nb_new = nbs[j] + (nbs[j + 1] - nbs[j]) * (1.0 - cs2[j]) / (cs2[j + 1] - cs2[j])
    return nb_new


def fit_ns_row(table: Mapping[str, np.ndarray], row: int,
               settings: NSFitSettings = None, verbose: bool = False) -> NSFit:
    """
    Fit one neutron-star table row and determine its causal limit.

    Args:
        table: Neutron star table (columns 'nb_max', 'EoA_0'..'EoA_99')
        row: Row index
        settings: Fit configuration
        verbose: Print fit parameters and χ²

    Returns:
        NSFit

    Raises:
        ValueError: if the row is out of range or has too few points
        RuntimeError: if the fit does not converge
    """
    if settings is None:
        settings = NSFitSettings()

    nb_max_table, nbs, EoAs = ns_row_from_table(table, row, settings)
    if len(nbs) < len(settings.initial_params):
        raise ValueError(
            f"Neutron star row {row} has only {len(nbs)} usable points below nb_max"
        )

    model = _EoA_old if settings.old_form else _EoA_poly
    sigma = np.abs(EoAs) * settings.error_fraction

    with warnings.catch_warnings():
        # Covariance warnings for an exactly representable row are harmless
        warnings.simplefilter("ignore")
        best, _ = curve_fit(model, nbs, EoAs, p0=settings.initial_params,
                            sigma=sigma, absolute_sigma=True, maxfev=20000,
                            ftol=1e-14, xtol=1e-14)
    chi2 = float(np.sum(((model(nbs, *best) - EoAs) / sigma)**2))

    fit = NSFit(params=tuple(float(x) for x in best), old_form=settings.old_form,
                nb_max=nb_max_table, nb_max_table=nb_max_table, chi2=chi2, row=row)

    cs2 = np.array([ns_cs2(nb, fit) for nb in nbs])
    nb_new = _find_causal_limit(nbs, cs2)
    if nb_new > settings.min_nb_max:
        fit = NSFit(params=fit.params, old_form=fit.old_form, nb_max=nb_new,
                    nb_max_table=nb_max_table, chi2=chi2, row=row)

    if verbose:
        print(f"NS row {row}: params = {[f'{p:.6e}' for p in fit.params]}")
        print(f"  χ² = {chi2:.4e}, nb_max = {fit.nb_max:.4f} fm⁻³ "
              f"(table {nb_max_table:.4f})")
    return fit


if __name__ == "__main__":
    # Synthetic row: E/A = 500 n² + 400 n³
    nb_grid = 0.04 + 0.012 * np.arange(100)
    tab = {"nb_max": np.array([0.8])}
    for i, nb in enumerate(nb_grid):
        tab[f"EoA_{i}"] = np.array([500.0 * nb**2 + 400.0 * nb**3])
    f = fit_ns_row(tab, 0, verbose=True)
    print(f"cs²(nb_max) = {ns_cs2(f.nb_max, f):.5f}")
    print(f"cs² range below nb_max: {ns_cs2_range(f)}")
