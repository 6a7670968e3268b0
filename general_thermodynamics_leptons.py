"""
general_thermodynamics_leptons.py
=================================
Electron-positron pair gas and photon blackbody.

The electron gas is a relativistic ideal Fermi gas with antiparticles
(positrons) in chemical equilibrium, μ_{e+} = -μ_{e-}. The conserved quantity
is the net lepton number n_e = n_{e-} - n_{e+}, which in charge-neutral
nucleonic matter equals the proton density.

Units:
- Energy/mass/chemical potentials: MeV
- Densities: fm⁻³
- Pressure/energy density: MeV/fm³ (energy density includes rest mass)
- Entropy density: fm⁻³
"""
import numpy as np
from dataclasses import dataclass
from scipy import integrate
from scipy.optimize import brentq
from scipy.special import expit

from general_physics_constants import hc, hc3, PI2, m_electron


# =============================================================================
# CONSTANTS
# =============================================================================
G_ELECTRON = 2.0  # spin degeneracy
G_PHOTON = 2.0    # polarizations


# =============================================================================
# RESULT DATACLASSES
# =============================================================================
@dataclass
class LeptonThermo:
    """Thermodynamic result for the e⁻/e⁺ pair gas."""
    mu: float = 0.0     # Chemical potential (MeV)
    n: float = 0.0      # Net number density (fm⁻³)
    P: float = 0.0      # Pressure (MeV/fm³)
    e: float = 0.0      # Energy density (MeV/fm³)
    s: float = 0.0      # Entropy density (fm⁻³)


@dataclass
class PhotonThermo:
    """Thermodynamic result for the photon gas."""
    P: float = 0.0      # Pressure (MeV/fm³)
    e: float = 0.0      # Energy density (MeV/fm³)
    s: float = 0.0      # Entropy density (fm⁻³)


# =============================================================================
# ELECTRONS
# =============================================================================
def _momentum_integrals(mu: float, T: float, m: float,
                        include_antiparticles: bool):
    """
    Return (n, P, e) in MeV-based units from momentum-space quadrature.

    Momenta are in MeV; the 1/(π² (ℏc)³) prefactor converts to fm⁻³.
    """
    prefactor = G_ELECTRON / (2.0 * PI2 * hc3)
    p_max = np.sqrt((abs(mu) + 60.0 * T)**2 + m * m)
    points = None
    if abs(mu) > m:
        points = [np.sqrt(mu * mu - m * m)]

    def occupation(E):
        f_part = expit(-(E - mu) / T)
        f_anti = expit(-(E + mu) / T) if include_antiparticles else 0.0
        return f_part, f_anti

    def n_integrand(p):
        E = np.sqrt(p * p + m * m)
        f_part, f_anti = occupation(E)
        return p * p * (f_part - f_anti)

    def P_integrand(p):
        E = np.sqrt(p * p + m * m)
        f_part, f_anti = occupation(E)
        return p**4 / (3.0 * E) * (f_part + f_anti)

    def e_integrand(p):
        E = np.sqrt(p * p + m * m)
        f_part, f_anti = occupation(E)
        return p * p * E * (f_part + f_anti)

    opts = dict(points=points, epsabs=0.0, epsrel=1e-11, limit=200)
    n = integrate.quad(n_integrand, 0.0, p_max, **opts)[0] * prefactor
    P = integrate.quad(P_integrand, 0.0, p_max, **opts)[0] * prefactor
    e = integrate.quad(e_integrand, 0.0, p_max, **opts)[0] * prefactor
    return n, P, e


def electron_thermo(mu_e: float, T: float,
                    include_antiparticles: bool = True) -> LeptonThermo:
    """
    Compute electron (and positron) thermodynamics at given μ_e and T.

    Args:
        mu_e: Electron chemical potential including rest mass (MeV)
        T: Temperature (MeV), must be positive
        include_antiparticles: Include the positron contribution

    Returns:
        LeptonThermo with net density, pressure, energy density, entropy
    """
    if T <= 0:
        raise ValueError(f"electron_thermo requires T > 0, got T={T}")
    n, P, e = _momentum_integrals(mu_e, T, m_electron, include_antiparticles)
    s = (e + P - mu_e * n) / T
    return LeptonThermo(mu=mu_e, n=n, P=P, e=e, s=s)


def electron_thermo_from_density(n_e: float, T: float,
                                 include_antiparticles: bool = True) -> LeptonThermo:
    """
    Compute electron thermodynamics at fixed net density n_e.

    Inverts n(μ_e) with brentq. At n_e = 0 the pair gas has μ_e = 0.
    """
    if n_e < 0:
        raise ValueError(f"Net electron density must be non-negative, got {n_e}")
    if n_e == 0.0:
        return electron_thermo(0.0, T, include_antiparticles)

    k_F = hc * (3.0 * PI2 * n_e)**(1.0 / 3.0)
    mu_hi = np.sqrt(k_F**2 + m_electron**2) + 10.0 * T

    def residual(mu):
        return _momentum_integrals(mu, T, m_electron, include_antiparticles)[0] - n_e

    while residual(mu_hi) < 0:
        mu_hi *= 2.0
    mu_lo = 0.0 if include_antiparticles else -mu_hi

    mu_e = brentq(residual, mu_lo, mu_hi, xtol=1e-14, rtol=4 * np.finfo(float).eps,
                  maxiter=300)
    return electron_thermo(mu_e, T, include_antiparticles)


# =============================================================================
# PHOTONS
# =============================================================================
def photon_thermo(T: float) -> PhotonThermo:
    """Blackbody photon gas: P = π² T⁴ / (45 (ℏc)³), e = 3P, s = 4P/T."""
    if T <= 0:
        return PhotonThermo()
    P = G_PHOTON * PI2 * T**4 / (90.0 * hc3)
    return PhotonThermo(P=P, e=3.0 * P, s=4.0 * P / T)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Lepton and photon gas")
    print("=" * 50)
    for n_e, T in [(1e-6, 1.0), (0.01, 10.0), (0.05, 1.0)]:
        el = electron_thermo_from_density(n_e, T)
        print(f"n_e={n_e:.1e} T={T:5.1f}  μ_e={el.mu:10.4f} MeV  "
              f"P={el.P:.4e}  s={el.s:.4e}")
    ph = photon_thermo(10.0)
    print(f"photons T=10 MeV: P={ph.P:.4e} MeV/fm³ e={ph.e:.4e} s={ph.s:.4e}")
