"""
general_plotting_info.py
========================
Shared matplotlib styling for the blended EOS figures.

Provides:
1. Serif font and figure-size presets
2. Temperature and component color maps
3. Axis labels for the tabulated quantities
4. Helpers for panel labels, axis styling and saving

Usage:
    from general_plotting_info import set_global_style, setup_figure, LABELS

    set_global_style()
    fig, axes = setup_figure(2, 2)
"""
import matplotlib.pyplot as plt
import numpy as np

# =============================================================================
# FONTS AND SIZES
# =============================================================================
FONTS = {
    'family': 'serif',
    'serif': ['CMU Serif', 'DejaVu Serif'],
    'mathtext': 'cm',
    'title': 13,
    'label': 12,
    'tick': 10,
    'legend': 9,
    'panel_label': 13,
}

STYLE = {
    'figsize': {
        (1, 1): (6, 5),
        (1, 2): (10, 4.5),
        (2, 2): (9, 8),
        (1, 3): (14, 4),
    },
    'figsize_default': (8, 6),
    'dpi': 150,
    'linewidth': 1.8,
    'grid_alpha': 0.3,
    'grid_linewidth': 0.5,
}

# =============================================================================
# COLORS
# =============================================================================
PALETTE = {
    'red': (0.8, 0.25, 0.33),
    'green': (0.24, 0.6, 0.44),
    'blue': (0.24, 0.6, 0.8),
    'gray': (0.4, 0.4, 0.4),
    'orange': (0.9, 0.4, 0.0),
    'purple': (0.5, 0.35, 0.65),
}

T_COLORS = {
    1.0: PALETTE['gray'],
    10.0: PALETTE['purple'],
    30.0: PALETTE['orange'],
    50.0: PALETTE['red'],
}

# Blend components
COMPONENT_COLORS = {
    'virial': PALETTE['green'],
    'qmc': PALETTE['blue'],
    'ns': PALETTE['red'],
    'total': PALETTE['gray'],
}

# =============================================================================
# LABELS
# =============================================================================
LABELS = {
    'nB': r'$n_B$ [fm$^{-3}$]',
    'nB_n0': r'$n_B/n_0$',
    'P': r'$P$ [MeV fm$^{-3}$]',
    'E': r'$E/A$ [MeV]',
    'F': r'$F/A$ [MeV]',
    'S': r'$S/A$',
    'mun': r'$\mu_n$ [MeV]',
    'mup': r'$\mu_p$ [MeV]',
    'cs2': r'$c_s^2$',
    'g': r'virial weight $g$',
    'h': r'QMC weight $h$',
    'Ye': r'$Y_e$',
}


# =============================================================================
# STYLE HELPERS
# =============================================================================
def set_global_style():
    """Configure matplotlib rcParams once per session."""
    plt.rcParams.update({
        'font.family': FONTS['family'],
        'font.serif': FONTS['serif'],
        'mathtext.fontset': FONTS['mathtext'],
        'font.size': FONTS['label'],
        'axes.labelsize': FONTS['label'],
        'axes.titlesize': FONTS['title'],
        'xtick.labelsize': FONTS['tick'],
        'ytick.labelsize': FONTS['tick'],
        'legend.fontsize': FONTS['legend'],
        'axes.formatter.use_mathtext': True,
        'figure.dpi': STYLE['dpi'],
        'savefig.dpi': STYLE['dpi'],
        'savefig.bbox': 'tight',
    })


def setup_figure(nrows=1, ncols=1, figsize=None, sharex=False):
    """Create a figure with a preset size for the (nrows, ncols) layout."""
    if figsize is None:
        figsize = STYLE['figsize'].get((nrows, ncols), STYLE['figsize_default'])
    return plt.subplots(nrows, ncols, figsize=figsize, sharex=sharex, dpi=STYLE['dpi'])


def get_T_color(T):
    """Color of the tabulated temperature closest to T."""
    closest = min(T_COLORS, key=lambda t: abs(t - T))
    return T_COLORS[closest]


def add_panel_labels(axes):
    """Write (a), (b), ... in the upper-left corner of each panel."""
    for i, ax in enumerate(np.atleast_1d(axes).flat):
        ax.text(0.04, 0.95, f'({chr(ord("a") + i)})', transform=ax.transAxes,
                fontsize=FONTS['panel_label'], fontweight='bold', ha='left', va='top')


def apply_style(ax, legend=True):
    ax.grid(True, alpha=STYLE['grid_alpha'], linewidth=STYLE['grid_linewidth'])
    if legend and ax.get_legend_handles_labels()[0]:
        ax.legend(fontsize=FONTS['legend'], framealpha=0.9)


def save_figure(fig, filename, formats=('png', 'pdf')):
    """Save fig as filename.<fmt> for every format."""
    for fmt in formats:
        fig.savefig(f'{filename}.{fmt}', dpi=STYLE['dpi'], facecolor='white')
    print(f"Saved: {filename}.{{{', '.join(formats)}}}")
