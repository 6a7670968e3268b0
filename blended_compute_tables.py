"""
blended_compute_tables.py
=========================
Grid evaluation of a selected blended EOS and a derivative consistency check.

compute_table() evaluates the model on a (n_B, Y_e, T) grid and returns the
per-baryon free energy, energy and entropy, the pressure and the nucleon
chemical potentials, each with ("F", "E", "P", "S") and without ("Fint",
"Eint", "Pint", "Sint") the electron-positron and photon contributions. Any
non-finite value aborts the calculation.

check_derivatives() compares the analytic μ_n, μ_p and s of
BlendedEOS.evaluate() with five-point finite differences of the free energy
along n_B = 1e-10 · 1.3^k.

Usage:
    from blended_compute_tables import compute_table, TableSettings
    tables = compute_table(model, TableSettings(nb_values=..., ...))

Units:
- n_B: fm⁻³, T, F, E, μ: MeV, P: MeV/fm³, S: per baryon
"""
import numpy as np
import time
from dataclasses import dataclass, field
from typing import Dict

from general_thermodynamics_leptons import electron_thermo_from_density, photon_thermo
from general_thermodynamic_derivatives import five_point_derivative
from blended_eos import BlendedEOS


class NonFiniteResultError(RuntimeError):
    """Raised when a grid point yields NaN or inf."""


class NegativeEntropyError(RuntimeError):
    """Raised when the total entropy is negative at positive pressure."""


# =============================================================================
# SETTINGS DATACLASS
# =============================================================================
@dataclass
class TableSettings:
    """Grid and output control for compute_table()."""
    nb_values: np.ndarray = field(
        default_factory=lambda: 2.0 * 10.0**(0.04 * np.arange(301) - 12.0))
    Ye_values: np.ndarray = field(default_factory=lambda: 0.01 * (np.arange(99) + 1))
    T_values: np.ndarray = field(default_factory=lambda: 0.2 + 0.81 * np.arange(160))

    check_entropy: bool = True     # Abort if S < 0 where P > 0
    print_progress: bool = False
    print_timing: bool = True


# =============================================================================
# TABLE
# =============================================================================
TABLE_QUANTITIES = ("Fint", "F", "Eint", "E", "Pint", "P", "Sint", "S", "mun", "mup")


def _require_finite(name: str, values: Dict[str, float], nb: float, Ye: float,
                    T: float) -> None:
    bad = {k: v for k, v in values.items() if not np.isfinite(v)}
    if bad:
        raise NonFiniteResultError(
            f"{name} not finite at n_B={nb:.4e}, Y_e={Ye:.3f}, T={T:.3f} MeV: {bad}"
        )


def compute_table(model: BlendedEOS, settings: TableSettings = None) -> Dict[str, np.ndarray]:
    """
    Evaluate the model on the settings grid.

    Returns:
        Dict with the grids 'nb', 'Ye', 'T' and arrays of shape
        (n_nb, n_Ye, n_T) for each of TABLE_QUANTITIES

    Raises:
        NonFiniteResultError: at the first non-finite nucleon or lepton value
        NegativeEntropyError: if settings.check_entropy and S < 0 with P > 0
    """
    if settings is None:
        settings = TableSettings()
    nb_arr = np.asarray(settings.nb_values, dtype=float)
    ye_arr = np.asarray(settings.Ye_values, dtype=float)
    T_arr = np.asarray(settings.T_values, dtype=float)
    shape = (len(nb_arr), len(ye_arr), len(T_arr))
    out = {name: np.zeros(shape) for name in TABLE_QUANTITIES}

    start = time.time()
    for i in range(len(nb_arr) - 1, -1, -1):
        nb = nb_arr[i]
        if settings.print_progress:
            print(f"n_B [{len(nb_arr) - 1 - i + 1}/{len(nb_arr)}] = {nb:.4e} fm⁻³")
        for j, Ye in enumerate(ye_arr):
            for k, T in enumerate(T_arr):
                th = model.evaluate(nb * (1.0 - Ye), nb * Ye, T)
                _require_finite("Nucleon thermodynamics",
                                {"e": th.e, "P": th.P, "s": th.s}, nb, Ye, T)

                el = electron_thermo_from_density(nb * Ye, T)
                ph = photon_thermo(T)
                lep_e, lep_P, lep_s = el.e + ph.e, el.P + ph.P, el.s + ph.s
                _require_finite("Lepton thermodynamics",
                                {"e": lep_e, "P": lep_P, "s": lep_s}, nb, Ye, T)

                if settings.check_entropy and th.s + lep_s < 0.0 and th.P > 0.0:
                    raise NegativeEntropyError(
                        f"Entropy {th.s + lep_s:.4e} < 0 at P={th.P:.4e} "
                        f"(n_B={nb:.4e}, Y_e={Ye:.3f}, T={T:.3f} MeV)"
                    )

                out["Fint"][i, j, k] = th.f / nb
                out["F"][i, j, k] = (th.f + lep_e - T * lep_s) / nb
                out["Eint"][i, j, k] = th.e / nb
                out["E"][i, j, k] = (th.e + lep_e) / nb
                out["Pint"][i, j, k] = th.P
                out["P"][i, j, k] = th.P + lep_P
                out["Sint"][i, j, k] = th.s / nb
                out["S"][i, j, k] = (th.s + lep_s) / nb
                out["mun"][i, j, k] = th.mu_n
                out["mup"][i, j, k] = th.mu_p

    if settings.print_timing:
        elapsed = time.time() - start
        n_points = int(np.prod(shape))
        print(f"Computed {n_points} points in {elapsed:.2f} s "
              f"({elapsed * 1000 / max(n_points, 1):.1f} ms/point)")

    out["nb"] = nb_arr
    out["Ye"] = ye_arr
    out["T"] = T_arr
    return out


# =============================================================================
# DERIVATIVE CONSISTENCY
# =============================================================================
@dataclass
class DerivativeCheck:
    """Analytic vs numerical derivatives of f along a density sweep."""
    Ye: float
    T: float
    nb: np.ndarray
    mun_analytic: np.ndarray
    mun_numeric: np.ndarray
    mup_analytic: np.ndarray
    mup_numeric: np.ndarray
    s_analytic: np.ndarray
    s_numeric: np.ndarray

    @staticmethod
    def _deviation(analytic, numeric):
        return np.abs(analytic - numeric) / np.maximum(np.abs(numeric), 1e-300)

    @property
    def mun_deviation(self) -> np.ndarray:
        return self._deviation(self.mun_analytic, self.mun_numeric)

    @property
    def mup_deviation(self) -> np.ndarray:
        return self._deviation(self.mup_analytic, self.mup_numeric)

    @property
    def s_deviation(self) -> np.ndarray:
        return self._deviation(self.s_analytic, self.s_numeric)

    @property
    def max_deviation(self) -> float:
        return float(max(self.mun_deviation.max(), self.mup_deviation.max(),
                         self.s_deviation.max()))


def density_sweep(nb_start: float = 1e-10, factor: float = 1.3,
                  nb_stop: float = 1.6) -> np.ndarray:
    """n_B = nb_start · factor^k below nb_stop."""
    n = int(np.ceil(np.log(nb_stop / nb_start) / np.log(factor)))
    grid = nb_start * factor**np.arange(n)
    return grid[grid < nb_stop]


def check_derivatives(model: BlendedEOS, Ye: float = 0.01, T: float = 0.1,
                      nb_values: np.ndarray = None, rel_step: float = 1e-2,
                      T_rel_step: float = 5e-2,
                      verbose: bool = False) -> DerivativeCheck:
    """
    Compare analytic μ_n, μ_p, s with finite differences of f(n_n, n_p, T).

    Args:
        model: Selected blended EOS
        Ye: Proton fraction of the sweep
        T: Temperature (MeV)
        nb_values: Densities (default density_sweep())
        rel_step: Density step relative to the varied density
        T_rel_step: Temperature step relative to T (the five-point stencil is
            exact for the T² and T⁴ terms of degenerate matter)
        verbose: Print every tenth point

    Returns:
        DerivativeCheck
    """
    if nb_values is None:
        nb_values = density_sweep()
    nb_values = np.asarray(nb_values, dtype=float)
    n = len(nb_values)
    cols = {key: np.zeros(n) for key in
            ("mun_a", "mun_n", "mup_a", "mup_n", "s_a", "s_n")}

    f = model.free_energy_density
    for i, nb in enumerate(nb_values):
        n_n, n_p = nb * (1.0 - Ye), nb * Ye
        th = model.evaluate(n_n, n_p, T)
        cols["mun_a"][i], cols["mup_a"][i], cols["s_a"][i] = th.mu_n, th.mu_p, th.s
        cols["mun_n"][i] = five_point_derivative(lambda x: f(x, n_p, T), n_n, n_n * rel_step)
        cols["mup_n"][i] = five_point_derivative(lambda x: f(n_n, x, T), n_p, n_p * rel_step)
        cols["s_n"][i] = -five_point_derivative(lambda x: f(n_n, n_p, x), T, T * T_rel_step)

        if verbose and i % 10 == 0:
            print(f"nb={nb:.3e}  μn {cols['mun_a'][i]:.6e} / {cols['mun_n'][i]:.6e}  "
                  f"μp {cols['mup_a'][i]:.6e} / {cols['mup_n'][i]:.6e}  "
                  f"s {cols['s_a'][i]:.6e} / {cols['s_n'][i]:.6e}")

    return DerivativeCheck(
        Ye=Ye, T=T, nb=nb_values,
        mun_analytic=cols["mun_a"], mun_numeric=cols["mun_n"],
        mup_analytic=cols["mup_a"], mup_numeric=cols["mup_n"],
        s_analytic=cols["s_a"], s_numeric=cols["s_n"],
    )


# =============================================================================
# CONFIGURATION
# =============================================================================
if __name__ == "__main__":
    from blended_model_selection import select_model, ModelSelection

    nb_grid = 0.04 + 0.012 * np.arange(100)
    ns_tab = {"nb_max": np.array([0.8])}
    for i, x in enumerate(nb_grid):
        ns_tab[f"EoA_{i}"] = np.array([500.0 * x**2 + 400.0 * x**3])
    sk_tab = {"rho0": [0.16], "EoA": [-16.0], "K": [230.0], "Ms_inv": [1.2],
              "Crdr0": [-75.0], "Crdr1": [15.0], "CrdJ0": [-80.0], "CrdJ1": [-40.0]}

    res = select_model(ModelSelection(), ns_tab, sk_tab)
    print(f"Selection code: {res.code.name}")
    if res.valid:
        settings = TableSettings(nb_values=np.array([1e-4, 0.01, 0.16, 0.5]),
                                 Ye_values=np.array([0.1, 0.4]),
                                 T_values=np.array([1.0, 10.0]))
        tab = compute_table(res.model, settings)
        print("P [MeV/fm³] at Ye=0.1, T=1:", tab["P"][:, 0, 0])

        chk = check_derivatives(res.model, Ye=0.3, T=5.0,
                                nb_values=np.array([1e-3, 1e-2, 0.1, 0.5]),
                                verbose=True)
        print(f"max relative deviation: {chk.max_deviation:.3e}")
