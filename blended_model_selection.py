"""
blended_model_selection.py
==========================
Validation and selection of blended EOS models.

A model is specified by a ModelSelection: the QMC two-body parameters
(qmc_alpha, qmc_a), the symmetry energy S and its slope L, the high-density
sound-speed target phi, and row indices into the neutron-star and Skyrme
tables. select_model() builds every component, runs the physics checks in a
fixed order and returns the first failing RejectionCode (or OK together with
the immutable BlendedEOS).

Checks, in order:
 1. NS_CS2_NEGATIVE      the raw neutron-star fit has cs² < 0 below nb_max
 2. SYMMETRY_CORRIDOR    (S, L) outside 9.17 S - 266 ≤ L ≤ 14.3 S - 379
 3. QMC_OUT_OF_RANGE     qmc_b < 0 or qmc_beta > 5
11. INVALID_FUNCTIONAL   saturation properties admit no Skyrme functional
 4. DINEUTRON_BOUND      E/A < 0 in neutron matter for 0.01 ≤ n < 0.16
 5-7. EFFECTIVE_MASS_*   m* < 0 at (n_n, n_p) = (1, 1), (2, 0), (0, 2)
10. EXTRAPOLATION_FAILED causal continuation cannot be constructed
 8. BETA_NONCONVERGENCE  beta equilibrium at T = 1 MeV not found
 9. BETA_YE_RANGE        beta-equilibrium Y_e outside [0, 1]

An optional fixed-Y_e sound-speed grid check raises CausalityViolationError.

Units:
- S, L, qmc_a: MeV; densities: fm⁻³; T: MeV
"""
import numpy as np
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Mapping, Optional, Tuple

from general_physics_constants import n0_default
from virial_parameters import VirialCoefficientFit, get_virial_default
from qmc_eos import QMCParams, qmc_from_saturation
from skyrme_parameters import (
    SkyrmeParams, MV_INV_DEFAULT, effective_masses,
    skyrme_from_saturation, skyrme_saturation_from_table
)
from skyrme_thermodynamics import energy_per_baryon
from nstar_fit import NSFit, NSFitSettings, fit_ns_row, ns_cs2_range
from nstar_causal_extrapolation import build_causal_extrapolation, ExtrapolationError
from blended_eos import BlendedEOS, BlendSettings


# =============================================================================
# CODES AND ERRORS
# =============================================================================
class RejectionCode(IntEnum):
    """Outcome of select_model(); OK means the model is usable."""
    OK = 0
    NS_CS2_NEGATIVE = 1
    SYMMETRY_CORRIDOR = 2
    QMC_OUT_OF_RANGE = 3
    DINEUTRON_BOUND = 4
    EFFECTIVE_MASS_SYMMETRIC = 5
    EFFECTIVE_MASS_NEUTRON = 6
    EFFECTIVE_MASS_PROTON = 7
    BETA_NONCONVERGENCE = 8
    BETA_YE_RANGE = 9
    EXTRAPOLATION_FAILED = 10
    INVALID_FUNCTIONAL = 11


EFFECTIVE_MASS_CODES = (
    RejectionCode.EFFECTIVE_MASS_SYMMETRIC,
    RejectionCode.EFFECTIVE_MASS_NEUTRON,
    RejectionCode.EFFECTIVE_MASS_PROTON,
)


class CausalityViolationError(RuntimeError):
    """Raised when the validated model has cs² < 0 on the test grid."""


# =============================================================================
# SETTINGS AND DATACLASSES
# =============================================================================
@dataclass
class SelectionSettings:
    """Thresholds, grids and random ranges used by the selector."""
    # Symmetry energy corridor: low_slope S + low_intercept ≤ L ≤ high_slope S + high_intercept
    corridor_low_slope: float = 9.17
    corridor_low_intercept: float = -266.0     # MeV
    corridor_high_slope: float = 14.3
    corridor_high_intercept: float = -379.0    # MeV

    qmc_beta_max: float = 5.0
    qmc_n0: float = n0_default                 # fm⁻³

    # Dineutron check on n in [min, max) (fm⁻³)
    dineutron_nb_min: float = 0.01
    dineutron_nb_max: float = 0.16
    dineutron_nb_step: float = 0.001

    effective_mass_points: Tuple[Tuple[float, float], ...] = (
        (1.0, 1.0), (2.0, 0.0), (0.0, 2.0)
    )
    Mv_inv: float = MV_INV_DEFAULT

    # Beta-equilibrium check
    beta_T: float = 1.0                        # MeV
    beta_nb_min: float = 0.1
    beta_nb_max: float = 2.0
    beta_nb_step: float = 0.05
    beta_ye_guess: float = 0.05

    # Optional fixed-Ye cs² grid, off by default (several hundred Hessian
    # evaluations per model)
    cs2_test: bool = False
    cs2_nb_min: float = 0.1
    cs2_nb_max: float = 2.0
    cs2_nb_step: float = 0.05
    cs2_ye_values: Tuple[float, ...] = (0.05, 0.15, 0.25, 0.35, 0.45)
    cs2_T_values: Tuple[float, ...] = (1.0, 10.0)

    # Random selection ranges (low, high)
    qmc_alpha_range: Tuple[float, float] = (0.47, 0.53)
    qmc_a_range: Tuple[float, float] = (12.5, 13.5)        # MeV
    L_range: Tuple[float, float] = (44.0, 65.0)            # MeV
    S_range: Tuple[float, float] = (29.5, 36.1)            # MeV
    phi_range: Tuple[float, float] = (0.0, 1.0)
    max_attempts: int = 1000

    # Component configuration
    ns_fit: NSFitSettings = field(default_factory=NSFitSettings)
    blend: BlendSettings = field(default_factory=BlendSettings)
    virial: VirialCoefficientFit = field(default_factory=get_virial_default)


def get_selection_default() -> SelectionSettings:
    return SelectionSettings()


@dataclass(frozen=True)
class ModelSelection:
    """Free parameters of one blended model."""
    qmc_alpha: float = 0.48
    qmc_a: float = 12.7        # MeV
    S: float = 32.0            # MeV
    L: float = 50.0            # MeV
    phi: float = 0.5           # cs² target at 2 fm⁻³
    i_ns: int = 0
    i_skyrme: int = 0


@dataclass
class SelectionResult:
    """Outcome of validating one ModelSelection."""
    selection: ModelSelection
    code: RejectionCode = RejectionCode.OK
    message: str = ""
    model: Optional[BlendedEOS] = None     # Set only when code is OK

    # Derived quantities (filled as far as the checks got)
    qmc: Optional[QMCParams] = None
    skyrme: Optional[SkyrmeParams] = None
    ns_fit: Optional[NSFit] = None
    ns_cs2_min: float = np.nan
    ns_cs2_max: float = np.nan
    beta_ye: np.ndarray = None             # Y_e on the beta-equilibrium grid

    @property
    def valid(self) -> bool:
        return self.code is RejectionCode.OK


# =============================================================================
# GRIDS
# =============================================================================
def _inclusive_grid(lo: float, hi: float, step: float) -> np.ndarray:
    return np.arange(lo, hi + 1e-5, step)


def in_symmetry_corridor(S: float, L: float, settings: SelectionSettings) -> bool:
    """True if L lies inside the (S, L) corridor."""
    L_low = settings.corridor_low_slope * S + settings.corridor_low_intercept
    L_high = settings.corridor_high_slope * S + settings.corridor_high_intercept
    return L_low <= L <= L_high


def dineutron_bound(skyrme: SkyrmeParams, settings: SelectionSettings) -> bool:
    """True if neutron matter is bound somewhere on the dineutron grid."""
    grid = np.arange(settings.dineutron_nb_min, settings.dineutron_nb_max,
                     settings.dineutron_nb_step)
    return any(energy_per_baryon(nb, 0.0, skyrme) < 0.0 for nb in grid)


def check_effective_masses(skyrme: SkyrmeParams,
                           settings: SelectionSettings) -> RejectionCode:
    """First effective-mass code whose composition gives m* < 0, or OK."""
    for code, (n_n, n_p) in zip(EFFECTIVE_MASS_CODES, settings.effective_mass_points):
        ms_n, ms_p = effective_masses(n_n, n_p, skyrme)
        if ms_n < 0.0 or ms_p < 0.0:
            return code
    return RejectionCode.OK


def check_cs2_grid(model: BlendedEOS, settings: SelectionSettings,
                   verbose: bool = False) -> None:
    """
    Fixed-Y_e sound speed on the validation grid.

    Raises:
        CausalityViolationError: at the first point with cs² < 0
    """
    for nb in _inclusive_grid(settings.cs2_nb_min, settings.cs2_nb_max,
                              settings.cs2_nb_step):
        for ye in settings.cs2_ye_values:
            for T in settings.cs2_T_values:
                cs2 = model.cs2_fixed_ye(nb * (1.0 - ye), nb * ye, T)
                if verbose:
                    print(f"  cs² test nb={nb:.3f} Ye={ye:.2f} T={T:5.1f}: {cs2:.5f}")
                if not cs2 >= 0.0:
                    raise CausalityViolationError(
                        f"Negative speed of sound cs²={cs2:.4g} at nb={nb:.3f}, "
                        f"Ye={ye:.2f}, T={T:.1f} MeV"
                    )


# =============================================================================
# SELECTION
# =============================================================================
def _reject(result: SelectionResult, code: RejectionCode, message: str,
            verbose: bool) -> SelectionResult:
    result.code = code
    result.message = message
    if verbose:
        print(f"  rejected ({int(code)} {code.name}): {message}")
    return result


def select_model(selection: ModelSelection,
                 ns_table: Mapping[str, np.ndarray],
                 skyrme_table: Mapping[str, np.ndarray],
                 settings: SelectionSettings = None,
                 verbose: bool = False) -> SelectionResult:
    """
    Build and validate the blended EOS for one parameter selection.

    Args:
        selection: Free model parameters
        ns_table: Neutron star table ('nb_max', 'EoA_0'..)
        skyrme_table: Skyrme saturation table (one column per property)
        settings: Thresholds and grids
        verbose: Print progress

    Returns:
        SelectionResult; result.model is set only if result.code is OK

    Raises:
        ValueError: if a table row is out of range or phi is outside [0, 1]
        CausalityViolationError: if settings.cs2_test finds cs² < 0
    """
    if settings is None:
        settings = get_selection_default()
    if not 0.0 <= selection.phi <= 1.0:
        raise ValueError(f"phi must lie in [0, 1], got {selection.phi}")

    result = SelectionResult(selection=selection)
    if verbose:
        print(f"Selecting model {selection}")

    # Neutron star EOS
    fit = fit_ns_row(ns_table, selection.i_ns, settings.ns_fit, verbose=verbose)
    result.ns_fit = fit
    result.ns_cs2_min, result.ns_cs2_max = ns_cs2_range(fit, settings.ns_fit)
    if result.ns_cs2_min < 0.0:
        return _reject(result, RejectionCode.NS_CS2_NEGATIVE,
                       f"raw fit cs² reaches {result.ns_cs2_min:.4g}", verbose)

    # Symmetry energy
    if not in_symmetry_corridor(selection.S, selection.L, settings):
        return _reject(result, RejectionCode.SYMMETRY_CORRIDOR,
                       f"(S, L) = ({selection.S:.2f}, {selection.L:.2f}) MeV", verbose)

    # QMC
    sat = skyrme_saturation_from_table(skyrme_table, selection.i_skyrme)
    qmc = qmc_from_saturation(selection.S, selection.L, sat.EoA,
                              a=selection.qmc_a, alpha=selection.qmc_alpha,
                              n0=settings.qmc_n0)
    result.qmc = qmc
    if qmc.b < 0.0 or qmc.beta > settings.qmc_beta_max:
        return _reject(result, RejectionCode.QMC_OUT_OF_RANGE,
                       f"qmc_b={qmc.b:.4g}, qmc_beta={qmc.beta:.4g}", verbose)

    # Skyrme
    try:
        skyrme = skyrme_from_saturation(
            sat.rho0, sat.EoA, sat.K, sat.Ms_inv, selection.S, selection.L,
            sat.Crdr0, sat.Crdr1, Mv_inv=settings.Mv_inv,
            name=f"skyrme_row{selection.i_skyrme}"
        )
    except ValueError as exc:
        return _reject(result, RejectionCode.INVALID_FUNCTIONAL, str(exc), verbose)
    result.skyrme = skyrme

    if dineutron_bound(skyrme, settings):
        return _reject(result, RejectionCode.DINEUTRON_BOUND,
                       "neutron matter is bound", verbose)

    code = check_effective_masses(skyrme, settings)
    if code is not RejectionCode.OK:
        return _reject(result, code, "negative effective mass", verbose)

    # Causal continuation
    try:
        ext = build_causal_extrapolation(fit, selection.phi)
    except ExtrapolationError as exc:
        return _reject(result, RejectionCode.EXTRAPOLATION_FAILED, str(exc), verbose)

    model = BlendedEOS(skyrme=skyrme, qmc=qmc, ns_fit=fit, extrapolation=ext,
                       virial=settings.virial, blend=settings.blend)

    # Beta equilibrium
    nb_grid = _inclusive_grid(settings.beta_nb_min, settings.beta_nb_max,
                              settings.beta_nb_step)
    ye_values = np.zeros_like(nb_grid)
    for i, nb in enumerate(nb_grid):
        sol = model.solve_ye(nb, settings.beta_T, ye_guess=settings.beta_ye_guess)
        if not sol.converged:
            return _reject(result, RejectionCode.BETA_NONCONVERGENCE,
                           f"nb={nb:.3f}: {sol.message}", verbose)
        if sol.Ye < 0.0 or sol.Ye > 1.0:
            return _reject(result, RejectionCode.BETA_YE_RANGE,
                           f"nb={nb:.3f}: Ye={sol.Ye:.4g}", verbose)
        ye_values[i] = sol.Ye
    result.beta_ye = ye_values

    if settings.cs2_test:
        check_cs2_grid(model, settings, verbose)

    result.model = model
    if verbose:
        print(f"  accepted: nb_max={fit.nb_max:.4f} branch={ext.branch.value} "
              f"qmc_beta={qmc.beta:.4f}")
    return result


def select_random_model(ns_table: Mapping[str, np.ndarray],
                        skyrme_table: Mapping[str, np.ndarray],
                        rng: np.random.Generator = None,
                        settings: SelectionSettings = None,
                        verbose: bool = False) -> SelectionResult:
    """
    Draw selections uniformly from the settings ranges until one is accepted.

    Raises:
        RuntimeError: if no accepted model is found in settings.max_attempts draws
    """
    if settings is None:
        settings = get_selection_default()
    if rng is None:
        rng = np.random.default_rng()
    n_ns = len(ns_table["nb_max"])
    n_sk = len(skyrme_table["rho0"])

    def uniform(bounds):
        lo, hi = bounds
        return lo + (hi - lo) * rng.random()

    codes = []
    for attempt in range(settings.max_attempts):
        selection = ModelSelection(
            qmc_alpha=uniform(settings.qmc_alpha_range),
            qmc_a=uniform(settings.qmc_a_range),
            S=uniform(settings.S_range),
            L=uniform(settings.L_range),
            phi=uniform(settings.phi_range),
            i_ns=int(rng.integers(n_ns)),
            i_skyrme=int(rng.integers(n_sk)),
        )
        result = select_model(selection, ns_table, skyrme_table, settings)
        if verbose:
            status = "OK" if result.valid else f"failed ({int(result.code)})"
            print(f"Attempt {attempt + 1}: {status}")
        if result.valid:
            return result
        codes.append(int(result.code))

    counts = {c: codes.count(c) for c in sorted(set(codes))}
    raise RuntimeError(
        f"No valid model after {settings.max_attempts} attempts (rejections {counts})"
    )


if __name__ == "__main__":
    nb_grid = 0.04 + 0.012 * np.arange(100)
    ns_tab = {"nb_max": np.array([0.8])}
    for i, x in enumerate(nb_grid):
        ns_tab[f"EoA_{i}"] = np.array([500.0 * x**2 + 400.0 * x**3])
    sk_tab = {"rho0": [0.16], "EoA": [-16.0], "K": [230.0], "Ms_inv": [1.2],
              "Crdr0": [-75.0], "Crdr1": [15.0], "CrdJ0": [-80.0], "CrdJ1": [-40.0]}

    res = select_model(ModelSelection(), ns_tab, sk_tab, verbose=True)
    print(f"code = {int(res.code)} ({res.code.name})")
    print(select_model(ModelSelection(L=78.0), ns_tab, sk_tab).code.name)
