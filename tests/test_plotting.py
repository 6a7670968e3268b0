"""Smoke tests for the figure helpers (non-interactive backend)."""

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from general_plotting_info import get_T_color, save_figure, setup_figure, T_COLORS
from blended_model_selection import ModelSelection
from plot_blended_thermodynamics import (
    plot_thermodynamic_quantities, plot_blend_weights, plot_sound_speed, build_demo_model
)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestStyle:
    def test_closest_temperature_color(self) -> None:
        assert get_T_color(12.0) == T_COLORS[10.0]

    def test_save_figure(self, tmp_path) -> None:
        fig, _ = setup_figure()
        save_figure(fig, str(tmp_path / "empty"), formats=("png",))
        assert (tmp_path / "empty.png").exists()


class TestPlots:
    def test_thermodynamic_quantities(self, blended_model) -> None:
        fig, axes = plot_thermodynamic_quantities(
            blended_model, T_values=(1.0, 10.0), nb_values=np.array([1e-3, 0.16]))
        assert len(axes) == 4
        assert all(len(ax.get_lines()) == 2 for ax in axes)

    def test_blend_weights(self, blended_model) -> None:
        fig, axes = plot_blend_weights(
            blended_model, T_values=(1.0, 10.0), nb_values=np.array([1e-3, 0.1, 0.5]))
        assert len(axes[0].get_lines()) == 2
        g = axes[0].get_lines()[0].get_ydata()
        assert np.all((g > 0.0) & (g <= 1.0))

    def test_sound_speed(self, blended_model) -> None:
        fig, axes = plot_sound_speed(
            blended_model, T_values=(10.0,), nb_values=np.array([0.16, 0.32]))
        cs2 = axes[0].get_lines()[0].get_ydata()
        assert np.all((cs2 > 0.0) & (cs2 < 1.0))
        ye = axes[1].get_lines()[0].get_ydata()
        assert np.all(np.isfinite(ye))

    def test_demo_model_rejection(self) -> None:
        with pytest.raises(RuntimeError, match="SYMMETRY_CORRIDOR"):
            build_demo_model(ModelSelection(L=20.0))
