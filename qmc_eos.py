"""
qmc_eos.py
==========
Quantum Monte Carlo inspired energy of pure neutron matter at T = 0.

    E/N(n) = a (n/n0)^α + b (n/n0)^β          (MeV, without rest mass)
    e(n)   = n · E/N(n)                       (MeV/fm³)
    μ(n)   = de/dn = a(α+1)(n/n0)^α + b(β+1)(n/n0)^β

The two power-law terms can be tied to the symmetric-matter saturation point:
at n0 the neutron matter energy is E/A(n0) + S and its slope gives L, so that

    b = S + E/A - a
    β = (L/3 - a α) / b

References:
- S. Gandolfi, J. Carlson, S. Reddy, Phys. Rev. C 85 (2012) 032801
- X. Du, A. W. Steiner, J. W. Holt, Phys. Rev. C 99 (2019) 025803
"""
from dataclasses import dataclass

from general_physics_constants import n0_default


# =============================================================================
# PARAMETERS
# =============================================================================
@dataclass(frozen=True)
class QMCParams:
    """
    Parameters of the neutron matter power law.

    Attributes:
        alpha, beta: Exponents of the two terms
        a, b: Coefficients (MeV)
        n0: Reference density (fm⁻³)
    """
    alpha: float = 0.48
    beta: float = 3.45
    a: float = 12.7      # MeV
    b: float = 2.12      # MeV
    n0: float = n0_default


def get_qmc_default() -> QMCParams:
    """Default QMC parameters (Gandolfi et al. central values)."""
    return QMCParams()


def qmc_from_saturation(S: float, L: float, EoA: float,
                        a: float = 12.7, alpha: float = 0.48,
                        n0: float = n0_default) -> QMCParams:
    """
    Fix (b, β) from the symmetry energy S, its slope L and the binding E/A.

    The result is returned unchecked; a negative b or a large β marks an
    unphysical combination and is rejected by the model selection.
    """
    b = S + EoA - a
    beta = (L / 3.0 - a * alpha) / b if b != 0.0 else float("inf")
    return QMCParams(alpha=alpha, beta=beta, a=a, b=b, n0=n0)


# =============================================================================
# ENERGY
# =============================================================================
def qmc_energy_per_neutron(n: float, params: QMCParams) -> float:
    """E/N of neutron matter (MeV)."""
    x = n / params.n0
    return params.a * x**params.alpha + params.b * x**params.beta


def qmc_energy_density(n: float, params: QMCParams) -> float:
    """Energy density of neutron matter at baryon density n (MeV/fm³)."""
    return n * qmc_energy_per_neutron(n, params)


def qmc_chemical_potential(n: float, params: QMCParams) -> float:
    """de/dn (MeV)."""
    x = n / params.n0
    return (params.a * (params.alpha + 1.0) * x**params.alpha
            + params.b * (params.beta + 1.0) * x**params.beta)


if __name__ == "__main__":
    p = get_qmc_default()
    print("QMC neutron matter")
    print("=" * 40)
    for n in [0.02, 0.08, 0.16, 0.32]:
        print(f"n={n:.2f}  E/N={qmc_energy_per_neutron(n, p):8.3f} MeV  "
              f"μ={qmc_chemical_potential(n, p):8.3f} MeV")
    print(qmc_from_saturation(S=32.0, L=50.0, EoA=-16.0))
