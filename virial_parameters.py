"""
virial_parameters.py
====================
Temperature-dependent second virial coefficients for nucleon matter.

Closed forms (T in MeV):
    b_n(T)  = p0 + p1 T + p2 T² + p3 T³ + p4 exp(-p5 (T-p6)²) + p7 exp(-p8 (T-p9))
    b_pn(T) = q0 exp(-q1 (T+q2)²) + q3 exp(-q4 (T+q5))

b_n is the neutron-neutron (equal to proton-proton) coefficient, b_pn the
neutron-proton coefficient with the deuteron bound-state pole removed.

The default parameters come from a fit to the phase-shift based coefficients
of Horowitz and Schwenk; `fit_virial_coefficients` reproduces that fit from the
reference data stored below.

References:
- C. J. Horowitz, A. Schwenk, Nucl. Phys. A 776 (2006) 55
- C. J. Horowitz, A. Schwenk, Phys. Lett. B 638 (2006) 153
- X. Du, A. W. Steiner, J. W. Holt, Phys. Rev. C 99 (2019) 025803
"""
import numpy as np
from dataclasses import dataclass
from typing import Tuple
from scipy.optimize import curve_fit

from general_physics_constants import B_deuteron, SQRT2


# =============================================================================
# PARAMETER DATACLASS
# =============================================================================
@dataclass(frozen=True)
class VirialCoefficientFit:
    """
    Frozen parameters of the virial coefficient closed forms.

    Attributes:
        name: Parameter set identifier
        bn_params: 10 coefficients of b_n(T)
        bpn_params: 6 coefficients of b_pn(T)
    """
    name: str = "virial_default"
    bn_params: Tuple[float, ...] = (
        2.874487202922e-01, 2.200575070883e-03, -2.621025627694e-05,
        -6.061665959200e-08, 1.059451872186e-02, 5.673374476876e-02,
        3.492489364849e+00, -2.710552654167e-03, 3.140521199464e+00,
        1.200987113605e+00,
    )
    bpn_params: Tuple[float, ...] = (
        1.527316309589e+00, 1.748834077357e-04, 1.754991542102e+01,
        4.510380054238e-01, 2.751333759925e-01, -1.125035495140e+00,
    )

    def __post_init__(self):
        if len(self.bn_params) != 10:
            raise ValueError(f"b_n needs 10 parameters, got {len(self.bn_params)}")
        if len(self.bpn_params) != 6:
            raise ValueError(f"b_pn needs 6 parameters, got {len(self.bpn_params)}")


def get_virial_default() -> VirialCoefficientFit:
    """Get the default virial coefficient parametrization."""
    return VirialCoefficientFit()


# =============================================================================
# CLOSED FORMS
# =============================================================================
def bn_function(T, p0, p1, p2, p3, p4, p5, p6, p7, p8, p9):
    """b_n(T) for explicit parameters (also the curve_fit model)."""
    return (p0 + p1 * T + p2 * T**2 + p3 * T**3
            + p4 * np.exp(-p5 * (T - p6)**2) + p7 * np.exp(-p8 * (T - p9)))


def bpn_function(T, q0, q1, q2, q3, q4, q5):
    """b_pn(T) for explicit parameters (also the curve_fit model)."""
    return q0 * np.exp(-q1 * (T + q2)**2) + q3 * np.exp(-q4 * (T + q5))


def b_n(T: float, fit: VirialCoefficientFit) -> float:
    """Neutron-neutron virial coefficient at T (MeV)."""
    return bn_function(T, *fit.bn_params)


def b_pn(T: float, fit: VirialCoefficientFit) -> float:
    """Neutron-proton virial coefficient at T (MeV)."""
    return bpn_function(T, *fit.bpn_params)


def db_n_dT(T: float, fit: VirialCoefficientFit) -> float:
    """db_n/dT (MeV⁻¹)."""
    p = fit.bn_params
    return (p[1] + 2.0 * p[2] * T + 3.0 * p[3] * T**2
            - 2.0 * p[4] * p[5] * (T - p[6]) * np.exp(-p[5] * (T - p[6])**2)
            - p[7] * p[8] * np.exp(-p[8] * (T - p[9])))


def db_pn_dT(T: float, fit: VirialCoefficientFit) -> float:
    """db_pn/dT (MeV⁻¹)."""
    q = fit.bpn_params
    return (-2.0 * q[0] * q[1] * (T + q[2]) * np.exp(-q[1] * (T + q[2])**2)
            - q[3] * q[4] * np.exp(-q[4] * (T + q[5])))


# =============================================================================
# REFERENCE DATA
# =============================================================================
# Neutron coefficient; the T=150 MeV point is the free-Fermi-gas value -2^(-5/2)
T_NEUTRON_DATA = np.array([
    0.1, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0,
    12.0, 14.0, 16.0, 18.0, 20.0, 22.0, 24.0, 25.0, 30.0, 35.0,
    40.0, 45.0, 50.0, 150.0,
])
BN_DATA = np.array([
    0.207, 0.272, 0.288, 0.303, 0.306, 0.306, 0.306, 0.306, 0.307, 0.307,
    0.308, 0.309, 0.310, 0.313, 0.315, 0.318, 0.320, 0.322, 0.324, 0.325,
    0.329, 0.330, 0.330, 0.328, 0.324, -2.0**(-2.5),
])

# Neutron-proton coefficient including the deuteron; T=0.1 MeV from the
# effective range expansion, T=150 MeV set to zero
T_NP_DATA = np.array([
    0.1, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0,
    12.0, 14.0, 16.0, 18.0, 20.0, 150.0,
])
BPN_DATA_WITH_DEUTERON = np.array([
    2.046, 19.4, 6.1, 4.018, 3.19, 2.74, 2.46, 2.26, 2.11, 2.00, 1.91,
    1.76, 1.66, 1.57, 1.51, 1.45, 0.0,
])


def deuteron_contribution(T):
    """Bound-state term 3/√2 (exp(B_d/T) - 1) of the np virial coefficient."""
    return 3.0 / SQRT2 * (np.exp(B_deuteron / T) - 1.0)


def get_reference_data():
    """
    Return the reference data used by the fit.

    Returns:
        (T_n, b_n, err_n, T_np, b_pn, err_np), with the deuteron removed from
        the tabulated np points (not from the effective-range and
        high-temperature points) and 1% uncertainties (0.04 at T=150 MeV for np)
    """
    bpn = BPN_DATA_WITH_DEUTERON.copy()
    bpn[1:16] -= deuteron_contribution(T_NP_DATA[1:16])

    err_n = np.abs(BN_DATA) / 100.0
    err_np = np.abs(bpn) / 100.0
    err_np[16] = 0.04
    return T_NEUTRON_DATA, BN_DATA.copy(), err_n, T_NP_DATA, bpn, err_np


# =============================================================================
# FIT
# =============================================================================
def fit_virial_coefficients(initial: VirialCoefficientFit = None,
                            verbose: bool = False) -> VirialCoefficientFit:
    """
    Refit both virial coefficients to the reference data.

    Args:
        initial: Starting parameters (default parametrization if None)
        verbose: Print initial/final chi-squared

    Returns:
        New VirialCoefficientFit with the best-fit parameters

    Raises:
        RuntimeError: if the least-squares fit does not converge
    """
    if initial is None:
        initial = get_virial_default()

    T_n, bn, err_n, T_np, bpn, err_np = get_reference_data()

    def chi2(model, T, data, err, params):
        return float(np.sum(((model(T, *params) - data) / err)**2))

    if verbose:
        print(f"Initial χ²: b_n {chi2(bn_function, T_n, bn, err_n, initial.bn_params):.4e}, "
              f"b_pn {chi2(bpn_function, T_np, bpn, err_np, initial.bpn_params):.4e}")

    bn_best, _ = curve_fit(bn_function, T_n, bn, p0=initial.bn_params,
                           sigma=err_n, absolute_sigma=True, maxfev=20000)
    bpn_best, _ = curve_fit(bpn_function, T_np, bpn, p0=initial.bpn_params,
                            sigma=err_np, absolute_sigma=True, maxfev=20000)

    if verbose:
        print(f"Final χ²:   b_n {chi2(bn_function, T_n, bn, err_n, bn_best):.4e}, "
              f"b_pn {chi2(bpn_function, T_np, bpn, err_np, bpn_best):.4e}")

    return VirialCoefficientFit(
        name=f"{initial.name}_refit",
        bn_params=tuple(float(x) for x in bn_best),
        bpn_params=tuple(float(x) for x in bpn_best),
    )


if __name__ == "__main__":
    fit = get_virial_default()
    print("Virial coefficients")
    print("=" * 50)
    print(f"{'T':>6s} {'b_n':>10s} {'db_n/dT':>12s} {'b_pn':>10s} {'db_pn/dT':>12s}")
    for T in [0.5, 1.0, 4.0, 10.0, 20.0, 50.0]:
        print(f"{T:6.1f} {b_n(T, fit):10.5f} {db_n_dT(T, fit):12.4e} "
              f"{b_pn(T, fit):10.5f} {db_pn_dT(T, fit):12.4e}")
    print()
    refit = fit_virial_coefficients(verbose=True)
