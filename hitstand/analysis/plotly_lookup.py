"""Interactive Plotly strategy lookup for the hit/stand solver.

Public functions:

    build_lookup_figure(rules)
        — Label and policy heatmaps; hover shows every probability and ratio.
    build_probability_figure(kind, rules)
        — Win and loss heatmaps for one of stand / hit / opt.
    save_lookup_html(fig, path)
        — Export any figure to a self-contained HTML file.

Hovering over a cell shows player total, upcard, stand / hit / optimal
win and loss probabilities, their win/loss ratios and both action labels.
"""

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from hitstand.analysis.heat_maps import (
    build_action_heatmap_data,
    build_probability_heatmap_data,
)
from hitstand.analysis.strategy_report import build_options_table, format_ratio
from hitstand.engine.rules import DEFAULT_RULES, PLAYER_TOTALS, TableRules
from hitstand.solvers.baseline_dp import OptionsReport

# ─── Constants ────────────────────────────────────────────────────────────────

_ROW_LABELS: list[str] = [str(t) for t in PLAYER_TOTALS]

# 0.0 = STAND (red), 0.5 = equal (yellow), 1.0 = HIT (green).
_ACTION_COLORSCALE: list[list] = [
    [0.0, "#d62728"],
    [0.33, "#d62728"],
    [0.34, "#ffdd57"],
    [0.66, "#ffdd57"],
    [0.67, "#2ca02c"],
    [1.0, "#2ca02c"],
]

_PROBABILITY_COLORSCALE: str = "RdYlGn"


def _col_labels(rules: TableRules) -> list[str]:
    return ["A" if u == 1 else str(u) for u in rules.card_values]


# ─── Hover text ───────────────────────────────────────────────────────────────


def _report_hover(report: OptionsReport) -> str:
    label = report.best_action.value if report.best_action is not None else "—"
    policy = report.optimal_action.value if report.optimal_action is not None else "—"
    lines = [
        f"Total: <b>{report.player_total}</b>  Upcard: <b>{report.dealer_upcard}</b>",
        f"Stand: win {report.stand.win:.4f} / loss {report.stand.loss:.4f}"
        f" (ratio {format_ratio(report.stand.win, report.stand.loss)})",
        f"Hit:   win {report.hit.win:.4f} / loss {report.hit.loss:.4f}"
        f" (ratio {format_ratio(report.hit.win, report.hit.loss)})",
        f"Opt:   win {report.optimal.win:.4f} / loss {report.optimal.loss:.4f}"
        f" (ratio {format_ratio(report.optimal.win, report.optimal.loss)})",
        f"Best action: <b>{label}</b>",
        f"Policy: <b>{policy}</b>",
    ]
    return "<br>".join(lines)


def _build_hover(reports: list[OptionsReport], rules: TableRules) -> list[list[str]]:
    """Return an 18×10 grid of hover strings (empty for absent cells)."""
    by_key = {(r.player_total, r.dealer_upcard): r for r in reports}
    rows: list[list[str]] = []
    for total in PLAYER_TOTALS:
        row: list[str] = []
        for upcard in rules.card_values:
            report = by_key.get((total, upcard))
            row.append(_report_hover(report) if report is not None else "")
        rows.append(row)
    return rows


# ─── Trace builder ────────────────────────────────────────────────────────────


def _make_heatmap_trace(
    data: np.ndarray,
    hover_text: list[list[str]],
    x_labels: list[str],
    *,
    colorscale: list[list] | str,
    name: str,
    showscale: bool = True,
    colorbar_title: str = "",
    colorbar_x: float = 1.02,
) -> go.Heatmap:
    """Build one go.Heatmap trace; NaN cells are sent as None (blank)."""
    z = [[None if np.isnan(v) else v for v in row] for row in data.tolist()]
    return go.Heatmap(
        z=z,
        x=x_labels,
        y=_ROW_LABELS,
        colorscale=colorscale,
        zmin=0.0,
        zmax=1.0,
        text=hover_text,
        hovertemplate="%{text}<extra></extra>",
        showscale=showscale,
        colorbar={"title": colorbar_title, "x": colorbar_x},
        name=name,
    )


# ─── Public figure builders ───────────────────────────────────────────────────


def build_lookup_figure(rules: TableRules = DEFAULT_RULES) -> go.Figure:
    """Build the stand-vs-hit label and optimal-policy panels side by side.

    Returns:
        go.Figure with two heatmap traces (label, policy) in a 1×2 layout.
    """
    reports = build_options_table(rules=rules)
    hover = _build_hover(reports, rules)
    x_labels = _col_labels(rules)

    fig = make_subplots(
        rows=1,
        cols=2,
        subplot_titles=["Stand vs one hit", "Optimal policy"],
        horizontal_spacing=0.12,
    )
    fig.add_trace(
        _make_heatmap_trace(
            build_action_heatmap_data("label", reports, rules),
            hover,
            x_labels,
            colorscale=_ACTION_COLORSCALE,
            name="Label",
            colorbar_title="STAND / = / HIT",
        ),
        row=1,
        col=1,
    )
    fig.add_trace(
        _make_heatmap_trace(
            build_action_heatmap_data("policy", reports, rules),
            hover,
            x_labels,
            colorscale=_ACTION_COLORSCALE,
            name="Policy",
            showscale=False,
        ),
        row=1,
        col=2,
    )

    fig.update_layout(
        title_text="Hit/Stand Strategy Lookup",
        title_font_size=15,
        height=620,
        width=980,
    )
    fig.update_yaxes(title_text="Player total", col=1)
    fig.update_xaxes(title_text="Dealer upcard")
    return fig


def build_probability_figure(
    kind: str = "opt",
    rules: TableRules = DEFAULT_RULES,
) -> go.Figure:
    """Build win and loss heatmaps for one outcome kind.

    Args:
        kind:  ``"stand"``, ``"hit"`` or ``"opt"``.
        rules: Rule set.

    Returns:
        go.Figure with two heatmap traces (win, loss).
    """
    reports = build_options_table(rules=rules)
    hover = _build_hover(reports, rules)
    x_labels = _col_labels(rules)

    fig = make_subplots(
        rows=1,
        cols=2,
        subplot_titles=[f"{kind} P(win)", f"{kind} P(loss)"],
        horizontal_spacing=0.12,
    )
    for col, field in enumerate(("win", "loss"), start=1):
        fig.add_trace(
            _make_heatmap_trace(
                build_probability_heatmap_data(kind, field, reports, rules),
                hover,
                x_labels,
                colorscale=_PROBABILITY_COLORSCALE,
                name=f"{kind} {field}",
                showscale=col == 1,
                colorbar_title="Probability",
            ),
            row=1,
            col=col,
        )

    fig.update_layout(
        title_text=f"Outcome probabilities — {kind}",
        title_font_size=15,
        height=620,
        width=980,
    )
    fig.update_yaxes(title_text="Player total", col=1)
    fig.update_xaxes(title_text="Dealer upcard")
    return fig


# ─── HTML export ──────────────────────────────────────────────────────────────


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Save a figure to HTML; Plotly JS is loaded from the CDN."""
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    save_lookup_html(build_lookup_figure(), "strategy_lookup.html")
    save_lookup_html(build_probability_figure("opt"), "optimal_probabilities.html")
    print("Saved: strategy_lookup.html, optimal_probabilities.html")
