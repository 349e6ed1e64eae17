"""Tests for hitstand/analysis/heat_maps.py.

Matrix builders are checked for shape and value invariants; plot functions are
rendered with the Agg backend and closed after each test.
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np
import pytest

from hitstand.analysis.heat_maps import (
    build_action_heatmap_data,
    build_probability_heatmap_data,
    plot_action_heatmap,
    plot_probability_heatmap,
    plot_strategy_comparison,
)
from hitstand.solvers.baseline_dp import OptionsReport, compute_options

# Row index of player total t is t - 4.
_ROW_21 = 17
_ROW_12 = 8


# ─── build_action_heatmap_data ────────────────────────────────────────────────


class TestBuildActionHeatmapData:
    @pytest.mark.parametrize("source", ["label", "policy"])
    def test_shape(self, options_table, source) -> None:
        assert build_action_heatmap_data(source, options_table).shape == (18, 10)

    def test_label_values(self, options_table) -> None:
        data = build_action_heatmap_data("label", options_table)
        assert set(np.unique(data)) <= {0.0, 0.5, 1.0}

    def test_policy_values(self, options_table) -> None:
        data = build_action_heatmap_data("policy", options_table)
        assert set(np.unique(data)) <= {0.0, 1.0}

    @pytest.mark.parametrize("source", ["label", "policy"])
    def test_21_row_is_stand(self, options_table, source) -> None:
        data = build_action_heatmap_data(source, options_table)
        assert np.all(data[_ROW_21] == 0.0)

    def test_12_vs_6_is_hit(self, options_table) -> None:
        assert build_action_heatmap_data("policy", options_table)[_ROW_12, 5] == 1.0
        assert build_action_heatmap_data("label", options_table)[_ROW_12, 5] == 1.0

    def test_no_nan_for_full_table(self, options_table) -> None:
        assert not np.isnan(build_action_heatmap_data("label", options_table)).any()

    def test_missing_reports_are_nan(self) -> None:
        data = build_action_heatmap_data("policy", [compute_options(12, 6)])
        assert data[_ROW_12, 5] == 1.0
        assert np.isnan(data).sum() == 18 * 10 - 1

    def test_degenerate_report_is_nan(self) -> None:
        data = build_action_heatmap_data("label", [OptionsReport.empty(12, 6)])
        assert np.isnan(data).all()

    def test_builds_table_when_not_given(self) -> None:
        assert build_action_heatmap_data("label").shape == (18, 10)

    def test_unknown_source_raises(self, options_table) -> None:
        with pytest.raises(ValueError, match="source"):
            build_action_heatmap_data("dp", options_table)


# ─── build_probability_heatmap_data ───────────────────────────────────────────


class TestBuildProbabilityHeatmapData:
    @pytest.mark.parametrize("kind", ["stand", "hit", "opt"])
    @pytest.mark.parametrize("field", ["win", "loss"])
    def test_bounded(self, options_table, kind, field) -> None:
        data = build_probability_heatmap_data(kind, field, options_table)
        assert data.shape == (18, 10)
        assert np.all(data >= -1e-12)
        assert np.all(data <= 1.0 + 1e-12)

    def test_values_match_reports(self, options_table) -> None:
        data = build_probability_heatmap_data("opt", "win", options_table)
        assert data[_ROW_12, 5] == compute_options(12, 6).optimal.win

    def test_optimal_dominates_stand(self, options_table) -> None:
        opt = build_probability_heatmap_data("opt", "win", options_table)
        stand = build_probability_heatmap_data("stand", "win", options_table)
        assert np.all(opt >= stand)

    def test_unknown_kind_raises(self, options_table) -> None:
        with pytest.raises(ValueError, match="kind"):
            build_probability_heatmap_data("double", "win", options_table)

    def test_unknown_field_raises(self, options_table) -> None:
        with pytest.raises(ValueError, match="field"):
            build_probability_heatmap_data("opt", "push", options_table)


# ─── Plot functions ───────────────────────────────────────────────────────────


class TestPlotFunctions:
    def test_plot_action_heatmap(self, options_table) -> None:
        data = build_action_heatmap_data("label", options_table)
        fig = plot_action_heatmap(data, "Best action", show=False)
        assert isinstance(fig, matplotlib.figure.Figure)
        plt.close(fig)

    def test_plot_action_heatmap_with_nan(self) -> None:
        data = build_action_heatmap_data("policy", [compute_options(12, 6)])
        fig = plot_action_heatmap(data, "Sparse", show=False)
        assert isinstance(fig, matplotlib.figure.Figure)
        plt.close(fig)

    def test_plot_probability_heatmap(self, options_table) -> None:
        data = build_probability_heatmap_data("opt", "win", options_table)
        fig = plot_probability_heatmap(data, "Optimal P(win)", show=False)
        assert isinstance(fig, matplotlib.figure.Figure)
        plt.close(fig)

    def test_plot_strategy_comparison_has_three_panels(self) -> None:
        fig = plot_strategy_comparison(show=False)
        # Three heatmap panels plus one colorbar axis.
        assert len(fig.axes) == 4
        plt.close(fig)

    def test_save_path(self, tmp_path, options_table) -> None:
        out = tmp_path / "policy.png"
        data = build_action_heatmap_data("policy", options_table)
        fig = plot_action_heatmap(data, "Policy", show=False, save_path=str(out))
        assert out.exists()
        assert out.stat().st_size > 0
        plt.close(fig)
