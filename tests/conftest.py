"""Shared fixtures for the blended EOS test suite."""

import numpy as np
import pytest

from nstar_fit import NSFitSettings, fit_ns_row
from nstar_causal_extrapolation import build_causal_extrapolation
from qmc_eos import qmc_from_saturation
from skyrme_parameters import skyrme_from_saturation
from blended_eos import BlendedEOS
from blended_model_selection import SelectionSettings


def _ns_grid():
    settings = NSFitSettings()
    return settings.nb_start + settings.nb_step * np.arange(settings.n_grid)


def _stiff_EoA(nb):
    """E/A = 500 n² + 400 n³ (exactly representable by both fit forms)."""
    return 500.0 * nb**2 + 400.0 * nb**3


def _soft_EoA(nb):
    """E/A = -300 n^1.5 + 500 n², with dμ/dn < 0 below 0.14 fm⁻³."""
    return -300.0 * nb**1.5 + 500.0 * nb**2


@pytest.fixture(scope="session")
def ns_table():
    """
    Rows: 0 stiff, causal limit found at ≈ 0.54 fm⁻³;
          1 stiff, table nb_max 0.45 below the causal limit;
          2 negative raw-fit sound speed.
    """
    grid = _ns_grid()
    table = {"nb_max": np.array([0.8, 0.45, 0.8])}
    for i, nb in enumerate(grid):
        table[f"EoA_{i}"] = np.array([_stiff_EoA(nb), _stiff_EoA(nb), _soft_EoA(nb)])
    return table


@pytest.fixture(scope="session")
def single_row_ns_table(ns_table):
    return {key: values[:1] for key, values in ns_table.items()}


@pytest.fixture(scope="session")
def skyrme_table():
    """
    Rows: 0 acceptable; 1 m/m* = 1.0 (negative m* in neutron matter at 2 fm⁻³);
          2 m/m* = 0.8 (negative m* in symmetric matter); 3 K = 200 MeV
          (bound neutron matter for S = 36, L = 125); 4 K = 150 MeV (no
          positive density exponent).
    """
    n_rows = 5
    table = {
        "rho0": np.full(n_rows, 0.16),
        "EoA": np.full(n_rows, -16.0),
        "K": np.array([230.0, 230.0, 230.0, 200.0, 150.0]),
        "Ms_inv": np.array([1.2, 1.0, 0.8, 1.2, 1.2]),
        "Crdr0": np.full(n_rows, -75.0),
        "Crdr1": np.full(n_rows, 15.0),
        "CrdJ0": np.full(n_rows, -80.0),
        "CrdJ1": np.full(n_rows, -40.0),
    }
    return table


@pytest.fixture(scope="session")
def skyrme_params():
    return skyrme_from_saturation(rho0=0.16, EoA=-16.0, K=230.0, Ms_inv=1.2,
                                  S=32.0, L=50.0, Crdr0=-75.0, Crdr1=15.0)


@pytest.fixture(scope="session")
def stiff_fit(ns_table):
    return fit_ns_row(ns_table, 0)


@pytest.fixture(scope="session")
def blended_model(skyrme_params, stiff_fit):
    """Blended EOS assembled directly from the acceptable components."""
    return BlendedEOS(
        skyrme=skyrme_params,
        qmc=qmc_from_saturation(S=32.0, L=50.0, EoA=-16.0),
        ns_fit=stiff_fit,
        extrapolation=build_causal_extrapolation(stiff_fit, 0.5),
    )


@pytest.fixture
def fast_selection_settings():
    """Selection settings with a three-point beta-equilibrium grid."""
    return SelectionSettings(beta_nb_min=0.1, beta_nb_max=2.0, beta_nb_step=0.95)
