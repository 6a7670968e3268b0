#!/usr/bin/env python3
"""
general_thermodynamic_derivatives.py
====================================
Second derivatives of the free energy density and the adiabatic sound speed.

The total free energy density f(n_B, n_e, T) of charge-neutral matter
(nucleons + electrons + photons) is differentiated numerically through its
first derivatives:
    ∂f/∂n_n = μ_n + m_n                 (neutron, with rest mass)
    ∂f/∂n_p = μ_p + m_p + μ_e           (proton plus neutralizing electron)
    ∂f/∂T   = -s
Changing variables (n_n, n_p) → (n_B = n_n + n_p, n_e = n_p) gives the
Hessian in (n_B, n_e, T) used by the sound speed formulas.

This module computes:
    - cs² at fixed electron fraction Y_e (s/n_B and Y_e held constant)
    - cs² at fixed lepton chemical potential μ_L (s/n_B and μ_L held constant)

Units:
    - f derivatives: MeV·fm³ (second derivatives in n), fm⁻³/MeV (in T)
    - cs²: in units of c²
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable


# =============================================================================
# DATACLASSES
# =============================================================================

@dataclass
class FreeEnergyHessian:
    """Second derivatives of f(n_B, n_e, T) plus the state they are taken at."""
    # Second derivatives
    f_bb: float = 0.0     # ∂²f/∂n_B²
    f_be: float = 0.0     # ∂²f/∂n_B∂n_e
    f_ee: float = 0.0     # ∂²f/∂n_e²
    f_bT: float = 0.0     # ∂²f/∂n_B∂T
    f_eT: float = 0.0     # ∂²f/∂n_e∂T
    f_TT: float = 0.0     # ∂²f/∂T²

    # State
    n_B: float = 0.0      # Baryon density (fm⁻³)
    n_e: float = 0.0      # Electron density (fm⁻³)
    T: float = 0.0        # Temperature (MeV)
    mu_B: float = 0.0     # ∂f/∂n_B (MeV)
    mu_L: float = 0.0     # ∂f/∂n_e (MeV)
    s: float = 0.0        # Entropy density (fm⁻³)
    e: float = 0.0        # Energy density with rest masses (MeV/fm³)
    P: float = 0.0        # Pressure (MeV/fm³)


# =============================================================================
# NUMERICAL DIFFERENTIATION HELPERS
# =============================================================================

def _central_step(x: float, rel_step: float) -> float:
    """Step for a central difference at x, relative with an absolute floor."""
    return max(abs(x) * rel_step, 1e-300)


def _first_derivative_nn(func: Callable, n_n: float, n_p: float, T: float,
                         rel_step: float = 1e-4) -> float:
    """∂func/∂n_n by central difference."""
    h = _central_step(n_n, rel_step)
    return (func(n_n + h, n_p, T) - func(n_n - h, n_p, T)) / (2 * h)


def _first_derivative_np(func: Callable, n_n: float, n_p: float, T: float,
                         rel_step: float = 1e-4) -> float:
    """∂func/∂n_p by central difference."""
    h = _central_step(n_p, rel_step)
    return (func(n_n, n_p + h, T) - func(n_n, n_p - h, T)) / (2 * h)


def _first_derivative_T(func: Callable, n_n: float, n_p: float, T: float,
                        rel_step: float = 1e-4) -> float:
    """∂func/∂T by central difference."""
    h = _central_step(T, rel_step)
    return (func(n_n, n_p, T + h) - func(n_n, n_p, T - h)) / (2 * h)


def five_point_derivative(func: Callable[[float], float], x: float, h: float) -> float:
    """Fourth-order central difference of a one-variable function."""
    return (-func(x + 2 * h) + 8 * func(x + h) - 8 * func(x - h) + func(x - 2 * h)) / (12 * h)


# =============================================================================
# HESSIAN
# =============================================================================

def compute_free_energy_hessian(
    dfdnn: Callable, dfdnp: Callable, entropy: Callable, energy: Callable,
    n_n: float, n_p: float, T: float, rel_step: float = 1e-4
) -> FreeEnergyHessian:
    """
    Build the (n_B, n_e, T) Hessian of the total free energy density.

    Args:
        dfdnn: Function(n_n, n_p, T) -> ∂f/∂n_n including rest mass (MeV)
        dfdnp: Function(n_n, n_p, T) -> ∂f/∂n_p including rest mass and μ_e (MeV)
        entropy: Function(n_n, n_p, T) -> total entropy density (fm⁻³)
        energy: Function(n_n, n_p, T) -> total energy density (MeV/fm³)
        n_n, n_p: Neutron and proton densities (fm⁻³), both > 0
        T: Temperature (MeV), > 0
        rel_step: Relative central-difference step

    Returns:
        FreeEnergyHessian
    """
    d_nn_dnn = _first_derivative_nn(dfdnn, n_n, n_p, T, rel_step)
    d_nn_dnp = _first_derivative_np(dfdnn, n_n, n_p, T, rel_step)
    d_nn_dT = _first_derivative_T(dfdnn, n_n, n_p, T, rel_step)
    d_np_dnn = _first_derivative_nn(dfdnp, n_n, n_p, T, rel_step)
    d_np_dnp = _first_derivative_np(dfdnp, n_n, n_p, T, rel_step)
    d_np_dT = _first_derivative_T(dfdnp, n_n, n_p, T, rel_step)
    ds_dT = _first_derivative_T(entropy, n_n, n_p, T, rel_step)

    h = FreeEnergyHessian()
    h.f_bT = d_nn_dT
    h.f_eT = d_np_dT - d_nn_dT
    h.f_be = d_nn_dnp - d_nn_dnn
    h.f_TT = -ds_dT
    h.f_bb = d_nn_dnn
    h.f_ee = d_np_dnp + d_nn_dnn - d_np_dnn - d_nn_dnp

    mu_n = dfdnn(n_n, n_p, T)
    mu_p = dfdnp(n_n, n_p, T)
    h.n_B = n_n + n_p
    h.n_e = n_p
    h.T = T
    h.mu_B = mu_n
    h.mu_L = mu_p - mu_n
    h.s = entropy(n_n, n_p, T)
    h.e = energy(n_n, n_p, T)
    h.P = h.mu_L * h.n_e + h.mu_B * h.n_B + T * h.s - h.e
    return h


# =============================================================================
# SOUND SPEEDS
# =============================================================================

def cs2_fixed_ye_from_hessian(h: FreeEnergyHessian) -> float:
    """
    Adiabatic sound speed at fixed Y_e.

    Along the adiabat dn_e = Y_e dn_B and ds = (s/n_B) dn_B, so that
        cs² = n_B (dP/dn_B)|_{s/n_B, Y_e} / (e + P)
    """
    nb, ne, s = h.n_B, h.n_e, h.s
    dPdnb = h.f_bb * nb + h.f_be * ne
    dPdne = h.f_be * nb + h.f_ee * ne
    dPdT = h.f_bT * nb + h.f_eT * ne + s

    num = (-nb * dPdnb * h.f_TT - ne * dPdne * h.f_TT
           + dPdT * (h.f_bT * nb + h.f_eT * ne + s))
    den = (h.P + h.e) * (-h.f_TT)
    return num / den


def cs2_fixed_mul_from_hessian(h: FreeEnergyHessian) -> float:
    """
    Adiabatic sound speed at fixed lepton chemical potential μ_L.

    Derivatives are per unit volume at fixed total baryon number; the electron
    number adjusts to keep μ_L constant.
    """
    nb, ne, s = h.n_B, h.n_e, h.s
    f_bb, f_be, f_ee = h.f_bb, h.f_be, h.f_ee
    f_bT, f_eT, f_TT = h.f_bT, h.f_eT, h.f_TT

    dSdT = (-f_TT * f_ee + f_eT * f_eT) / f_ee
    dSdV = (s * f_ee + f_eT * f_ee * ne + f_bT * f_ee * nb
            - f_eT * f_ee * ne - f_eT * f_be * nb) / f_ee
    dPdV = (-f_bb * f_ee + f_be * f_be) * nb * nb / f_ee
    dPdT = dSdV

    dPdV_S = (dPdV * dSdT - dPdT * dSdV) / dSdT
    dNedV_S = ((f_TT * (f_ee * ne + f_be * nb) - (f_eT * ne + f_bT * nb) * f_eT)
               / (-f_eT * f_eT + f_TT * f_ee))

    deps_dV_S = -h.P - h.e + h.mu_L * dNedV_S
    return dPdV_S / deps_dV_S


if __name__ == "__main__":
    # Ideal classical gas check: f = n T (ln(n λ³) - 1), e = 3/2 n T, cs² ≈ 5T/3m
    m = 939.0
    lam3 = 1.0

    def _f(nb, T):
        return nb * T * (np.log(nb * lam3 / T**1.5) - 1.0)

    def dfdnn(n_n, n_p, T):
        return m + T * np.log((n_n + n_p) * lam3 / T**1.5)

    def dfdnp(n_n, n_p, T):
        return dfdnn(n_n, n_p, T)

    def entropy(n_n, n_p, T):
        nb = n_n + n_p
        return -(_f(nb, T + 1e-6) - _f(nb, T - 1e-6)) / 2e-6

    def energy(n_n, n_p, T):
        nb = n_n + n_p
        return _f(nb, T) + T * entropy(n_n, n_p, T) + m * nb

    h = compute_free_energy_hessian(dfdnn, dfdnp, entropy, energy, 0.05, 0.05, 10.0)
    print(f"cs²(fixed Ye) = {cs2_fixed_ye_from_hessian(h):.5f}   "
          f"ideal gas ≈ {5 * 10.0 / (3 * m):.5f}")
