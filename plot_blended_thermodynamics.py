"""
plot_blended_thermodynamics.py
==============================
Figures of a selected blended EOS.

This script generates:
1. P, E/A, S/A, F/A vs n_B/n0 at several temperatures (fixed Y_e)
2. The virial weight g and the QMC weight h vs n_B
3. The fixed-Y_e sound speed and the beta-equilibrium Y_e vs n_B

All quantities are evaluated in memory with blended_compute_tables.

Usage:
    python plot_blended_thermodynamics.py

Or import and call specific functions:
    from plot_blended_thermodynamics import plot_thermodynamic_quantities
    fig, axes = plot_thermodynamic_quantities(model, Ye=0.3)
"""
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

from general_plotting_info import (
    set_global_style, setup_figure, add_panel_labels, apply_style, get_T_color,
    save_figure, STYLE, LABELS, COMPONENT_COLORS
)
from general_physics_constants import n0_default
from blended_eos import BlendedEOS
from blended_compute_tables import compute_table, TableSettings
from blended_model_selection import ModelSelection, select_model

# =============================================================================
# CONSTANTS
# =============================================================================
TEMPERATURES = (1.0, 10.0, 30.0, 50.0)     # MeV
NB_THERMO = np.geomspace(1e-4, 1.5, 60)     # fm⁻³
NB_CS2 = np.linspace(0.05, 1.5, 30)         # fm⁻³


# =============================================================================
# PLOTTING FUNCTIONS
# =============================================================================
def plot_thermodynamic_quantities(model: BlendedEOS, Ye=0.3, T_values=TEMPERATURES,
                                  nb_values=NB_THERMO, save_path=None):
    """
    Plot P, E/A, S/A and F/A (with leptons and photons) vs n_B/n0 in a 2x2 grid.

    One curve per temperature.
    """
    set_global_style()
    tab = compute_table(model, TableSettings(
        nb_values=np.asarray(nb_values), Ye_values=np.array([Ye]),
        T_values=np.asarray(T_values), print_timing=False))

    fig, axes = setup_figure(2, 2)
    axes = axes.flatten()
    x = tab['nb'] / n0_default
    for ax, key in zip(axes, ('P', 'E', 'S', 'F')):
        for k, T in enumerate(tab['T']):
            ax.plot(x, tab[key][:, 0, k], color=get_T_color(T), lw=STYLE['linewidth'],
                    label=f'$T = {T:g}$ MeV')
        ax.set_xscale('log')
        ax.set_xlabel(LABELS['nB_n0'])
        ax.set_ylabel(LABELS[key])
        apply_style(ax, legend=(key == 'P'))
    axes[0].set_yscale('symlog', linthresh=1e-3)
    axes[0].set_title(f'$Y_e = {Ye:g}$')

    add_panel_labels(axes)
    plt.tight_layout()
    if save_path:
        save_figure(fig, save_path)
    return fig, axes


def plot_blend_weights(model: BlendedEOS, Ye=0.3, T_values=TEMPERATURES,
                       nb_values=NB_THERMO, save_path=None):
    """Plot g(n_B, T) per temperature and h(n_B) side by side."""
    set_global_style()
    fig, axes = setup_figure(1, 2)
    nb_values = np.asarray(nb_values)

    for T in T_values:
        g = [model.evaluate(nb * (1.0 - Ye), nb * Ye, T).g for nb in nb_values]
        axes[0].plot(nb_values, g, color=get_T_color(T), lw=STYLE['linewidth'],
                     label=f'$T = {T:g}$ MeV')
    axes[0].set_xscale('log')
    axes[0].set_ylabel(LABELS['g'])

    T_ref = T_values[0]
    h = [model.evaluate(nb * (1.0 - Ye), nb * Ye, T_ref).h for nb in nb_values]
    axes[1].plot(nb_values, h, color=COMPONENT_COLORS['qmc'], lw=STYLE['linewidth'],
                 label='QMC')
    axes[1].plot(nb_values, 1.0 - np.asarray(h), color=COMPONENT_COLORS['ns'],
                 lw=STYLE['linewidth'], ls='--', label='neutron star')
    axes[1].axvline(model.ns_fit.nb_max, color=COMPONENT_COLORS['total'], lw=1.0, ls=':')
    axes[1].set_ylabel(LABELS['h'])

    for ax in axes:
        ax.set_xlabel(LABELS['nB'])
        apply_style(ax)

    add_panel_labels(axes)
    plt.tight_layout()
    if save_path:
        save_figure(fig, save_path)
    return fig, axes


def plot_sound_speed(model: BlendedEOS, Ye=0.3, T_values=TEMPERATURES,
                     nb_values=NB_CS2, T_beta=1.0, save_path=None):
    """
    Plot the fixed-Y_e sound speed per temperature and Y_e in beta equilibrium.

    Densities where the beta-equilibrium solve fails are left blank.
    """
    set_global_style()
    fig, axes = setup_figure(1, 2)
    nb_values = np.asarray(nb_values)

    for T in T_values:
        cs2 = [model.cs2_fixed_ye(nb * (1.0 - Ye), nb * Ye, T) for nb in nb_values]
        axes[0].plot(nb_values, cs2, color=get_T_color(T), lw=STYLE['linewidth'],
                     label=f'$T = {T:g}$ MeV')
    axes[0].axhline(1.0, color=COMPONENT_COLORS['total'], lw=1.0, ls=':')
    axes[0].set_ylabel(LABELS['cs2'])
    axes[0].set_title(f'$Y_e = {Ye:g}$')

    ye_beta = np.full(len(nb_values), np.nan)
    for i, nb in enumerate(nb_values):
        sol = model.solve_ye(nb, T_beta)
        if sol.converged:
            ye_beta[i] = sol.Ye
    axes[1].plot(nb_values, ye_beta, color=get_T_color(T_beta), lw=STYLE['linewidth'],
                 label=f'$T = {T_beta:g}$ MeV')
    axes[1].set_ylabel(LABELS['Ye'])

    for ax in axes:
        ax.set_xlabel(LABELS['nB'])
        apply_style(ax)

    add_panel_labels(axes)
    plt.tight_layout()
    if save_path:
        save_figure(fig, save_path)
    return fig, axes


# =============================================================================
# DEMO MODEL
# =============================================================================
def build_demo_model(selection: ModelSelection = None, verbose=False) -> BlendedEOS:
    """
    Select a model from a one-row synthetic neutron-star table
    (E/A = 500 n² + 400 n³ MeV) and a one-row Skyrme table.

    Raises:
        RuntimeError: if the selection is rejected
    """
    if selection is None:
        selection = ModelSelection()
    nb_grid = 0.04 + 0.012 * np.arange(100)
    ns_tab = {"nb_max": np.array([0.8])}
    for i, x in enumerate(nb_grid):
        ns_tab[f"EoA_{i}"] = np.array([500.0 * x**2 + 400.0 * x**3])
    sk_tab = {"rho0": [0.16], "EoA": [-16.0], "K": [230.0], "Ms_inv": [1.2],
              "Crdr0": [-75.0], "Crdr1": [15.0], "CrdJ0": [-80.0], "CrdJ1": [-40.0]}

    res = select_model(selection, ns_tab, sk_tab, verbose=verbose)
    if not res.valid:
        raise RuntimeError(f"Demo selection rejected: {res.code.name} ({res.message})")
    return res.model


# =============================================================================
# MAIN EXECUTION
# =============================================================================
def main():
    """Generate all figures for the demo model."""
    print("Selecting demo model...")
    model = build_demo_model(verbose=True)

    output_dir = Path('blended_plots')
    output_dir.mkdir(exist_ok=True)

    print("\nGenerating thermodynamic plots...")
    plot_thermodynamic_quantities(model, save_path=str(output_dir / 'thermo_P_E_S_F'))

    print("Generating blend weight plots...")
    plot_blend_weights(model, save_path=str(output_dir / 'blend_weights'))

    print("Generating sound speed plots...")
    plot_sound_speed(model, save_path=str(output_dir / 'sound_speed_beta_ye'))

    print(f"\nPlots saved to {output_dir}/")
    plt.show()


if __name__ == '__main__':
    main()
