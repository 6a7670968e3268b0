"""
general_physics_constants.py
============================
Constants shared by the blended nucleonic EOS modules.

Natural units throughout: energies and masses in MeV, lengths in fm,
densities in fm⁻³, pressures and energy densities in MeV/fm³, T in MeV.

Masses and ℏc from the Particle Data Group.
"""
import numpy as np

# =============================================================================
# ℏc AND POWERS
# =============================================================================
hc = 197.3269804              # MeV·fm
hc2 = hc**2                   # (MeV·fm)²
hc3 = hc**3                   # (MeV·fm)³

# =============================================================================
# MASSES (MeV)
# =============================================================================
m_neutron = 939.56542052
m_proton = 938.27208816
m_electron = 0.51099895000

B_deuteron = 2.224            # Deuteron binding energy (MeV)

# =============================================================================
# REFERENCE DENSITY
# =============================================================================
n0_default = 0.16             # fm⁻³

# =============================================================================
# NUMBERS
# =============================================================================
PI2 = np.pi**2
SQRT2 = np.sqrt(2.0)


def thermal_wavelength(T: float, m1: float = m_neutron, m2: float = m_proton) -> float:
    """
    Nucleon thermal wavelength λ = sqrt(4π (ℏc)² / ((m1 + m2) T)) in fm.

    With the average of the two nucleon masses this is the usual
    λ = sqrt(2π (ℏc)² / (m T)).
    """
    return np.sqrt(4.0 * np.pi * hc2 / ((m1 + m2) * T))


if __name__ == "__main__":
    print("Blended EOS constants")
    print("=" * 40)
    print(f"ℏc  = {hc:.7f} MeV fm")
    print(f"m_n = {m_neutron:.8f} MeV, m_p = {m_proton:.8f} MeV, m_e = {m_electron:.8f} MeV")
    print(f"n0  = {n0_default} fm⁻³")
    for T in (1.0, 10.0, 50.0):
        print(f"λ(T={T:4.1f} MeV) = {thermal_wavelength(T):.4f} fm")
