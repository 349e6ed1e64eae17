"""Strategy heat maps for the hit/stand solver.

Data builders return NumPy matrices usable on their own or by the plot helpers:

    build_action_heatmap_data(source)          — 1.0 HIT / 0.0 STAND / 0.5 equal
    build_probability_heatmap_data(kind, field) — win or loss probabilities

Plot functions render matplotlib figures:

    plot_action_heatmap(data, title, ...)       — discrete stand/hit grid
    plot_probability_heatmap(data, title, ...)  — continuous probability grid
    plot_strategy_comparison(...)               — label vs policy vs optimal win

Matrix convention:
    Shape  : (18, 10) — rows = player totals 4–21, cols = upcards 1–10
    np.nan : degenerate report (no label / no action)
"""

from __future__ import annotations

import matplotlib
import matplotlib.axes
import matplotlib.colors
import matplotlib.figure
import matplotlib.image
import matplotlib.pyplot as plt
import numpy as np

from hitstand.analysis.strategy_report import build_options_table
from hitstand.engine.rules import DEFAULT_RULES, PLAYER_TOTALS, TableRules
from hitstand.solvers.baseline_dp import Action, BestAction, OptionsReport

# ─── Constants ────────────────────────────────────────────────────────────────

_TOTALS: list[int] = list(PLAYER_TOTALS)
_NAN_COLOR: str = "#cccccc"

_LABEL_VALUES: dict[BestAction, float] = {
    BestAction.STAND: 0.0,
    BestAction.EQUAL: 0.5,
    BestAction.HIT: 1.0,
}
_POLICY_VALUES: dict[Action, float] = {Action.STAND: 0.0, Action.HIT: 1.0}


def _upcard_labels(upcards: list[int]) -> list[str]:
    return ["A" if u == 1 else str(u) for u in upcards]


# ─── Colormaps ────────────────────────────────────────────────────────────────


def _make_action_cmap() -> matplotlib.colors.ListedColormap:
    """Red=STAND (0), yellow=equal (0.5), green=HIT (1), grey=absent (NaN)."""
    cmap = matplotlib.colors.ListedColormap(["#d62728", "#ffdd57", "#2ca02c"])
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


def _make_probability_cmap() -> matplotlib.colors.Colormap:
    cmap = matplotlib.colormaps["RdYlGn"].copy()
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


_ACTION_CMAP: matplotlib.colors.Colormap = _make_action_cmap()
_PROBABILITY_CMAP: matplotlib.colors.Colormap = _make_probability_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def _grid(
    reports: list[OptionsReport],
    value_of,
    upcards: list[int],
) -> np.ndarray:
    by_key = {(r.player_total, r.dealer_upcard): r for r in reports}
    data = np.full((len(_TOTALS), len(upcards)), np.nan)
    for row, total in enumerate(_TOTALS):
        for col, upcard in enumerate(upcards):
            report = by_key.get((total, upcard))
            if report is None:
                continue
            value = value_of(report)
            if value is not None:
                data[row, col] = value
    return data


def build_action_heatmap_data(
    source: str = "label",
    reports: list[OptionsReport] | None = None,
    rules: TableRules = DEFAULT_RULES,
) -> np.ndarray:
    """Return the (18, 10) action matrix.

    Args:
        source:  ``"label"`` for the stand-vs-one-hit label (1.0 hit, 0.0 stand,
                 0.5 equal) or ``"policy"`` for the optimal policy's action.
        reports: Precomputed reports; built with ``build_options_table`` if None.
        rules:   Rule set used when *reports* is None.

    Raises:
        ValueError: If *source* is unknown.
    """
    if source not in ("label", "policy"):
        raise ValueError(f"source must be 'label' or 'policy', got {source!r}")

    def value_of(report: OptionsReport) -> float | None:
        if source == "label":
            return _LABEL_VALUES.get(report.best_action)
        return _POLICY_VALUES.get(report.optimal_action)

    if reports is None:
        reports = build_options_table(rules=rules)
    return _grid(reports, value_of, list(rules.card_values))


def build_probability_heatmap_data(
    kind: str = "opt",
    field: str = "win",
    reports: list[OptionsReport] | None = None,
    rules: TableRules = DEFAULT_RULES,
) -> np.ndarray:
    """Return the (18, 10) matrix of one probability.

    Args:
        kind:    ``"stand"``, ``"hit"`` or ``"opt"``.
        field:   ``"win"`` or ``"loss"``.
        reports: Precomputed reports; built if None.
        rules:   Rule set used when *reports* is None.

    Raises:
        ValueError: If *kind* or *field* is unknown.
    """
    attr = {"stand": "stand", "hit": "hit", "opt": "optimal"}.get(kind)
    if attr is None:
        raise ValueError(f"kind must be 'stand', 'hit' or 'opt', got {kind!r}")
    if field not in ("win", "loss"):
        raise ValueError(f"field must be 'win' or 'loss', got {field!r}")

    if reports is None:
        reports = build_options_table(rules=rules)
    return _grid(
        reports,
        lambda r: getattr(getattr(r, attr), field),
        list(rules.card_values),
    )


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    data: np.ndarray,
    discrete: bool,
) -> matplotlib.image.AxesImage:
    """Render one panel onto *ax*; the caller sets titles and axis labels."""
    cmap = _ACTION_CMAP if discrete else _PROBABILITY_CMAP
    im = ax.imshow(np.ma.masked_invalid(data), cmap=cmap, vmin=0.0, vmax=1.0, aspect="auto")

    ax.set_xticks(range(data.shape[1]))
    ax.set_xticklabels(_upcard_labels(list(range(1, data.shape[1] + 1))), fontsize=8)
    ax.set_yticks(range(len(_TOTALS)))
    ax.set_yticklabels([str(t) for t in _TOTALS], fontsize=8)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            val = data[r, c]
            if np.isnan(val):
                continue
            if discrete:
                text = "H" if val > 0.75 else ("S" if val < 0.25 else "=")
                color = "black" if text == "=" else "white"
            else:
                text = f"{val:.2f}"
                color = "black" if 0.25 < val < 0.75 else "white"
            ax.text(c, r, text, ha="center", va="center", fontsize=7, color=color)

    return im


def _finish(
    fig: matplotlib.figure.Figure,
    show: bool,
    save_path: str | None,
) -> matplotlib.figure.Figure:
    plt.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()
    return fig


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_action_heatmap(
    data: np.ndarray,
    title: str,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot an action matrix (from :func:`build_action_heatmap_data`).

    Args:
        data:      (18, 10) array: 1.0=HIT, 0.0=STAND, 0.5=equal, NaN=absent.
        title:     Figure title.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path.
    """
    fig, ax = plt.subplots(figsize=(7, 8))
    _render_panel(ax, data, discrete=True)
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_xlabel("Dealer upcard", fontsize=9)
    ax.set_ylabel("Player total", fontsize=9)
    return _finish(fig, show, save_path)


def plot_probability_heatmap(
    data: np.ndarray,
    title: str,
    *,
    colorbar_label: str = "P(win)",
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot a probability matrix (from :func:`build_probability_heatmap_data`)."""
    fig, ax = plt.subplots(figsize=(8, 8))
    im = _render_panel(ax, data, discrete=False)
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_xlabel("Dealer upcard", fontsize=9)
    ax.set_ylabel("Player total", fontsize=9)
    plt.colorbar(im, ax=ax, label=colorbar_label, fraction=0.046, pad=0.04)
    return _finish(fig, show, save_path)


def plot_strategy_comparison(
    rules: TableRules = DEFAULT_RULES,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Side by side: best-action label, optimal policy action, optimal P(win).

    The first two panels differ wherever the one-hit label and the policy
    disagree (including ``equal`` labels).
    """
    reports = build_options_table(rules=rules)
    panels = [
        ("Stand vs one hit", build_action_heatmap_data("label", reports, rules), True),
        ("Optimal policy", build_action_heatmap_data("policy", reports, rules), True),
        ("Optimal P(win)", build_probability_heatmap_data("opt", "win", reports, rules), False),
    ]

    fig, axes = plt.subplots(1, 3, figsize=(18, 8))
    fig.suptitle("Hit/Stand Strategy Comparison", fontsize=14, fontweight="bold")

    for ax, (title, data, discrete) in zip(axes, panels):
        im = _render_panel(ax, data, discrete)
        ax.set_title(title, fontsize=10, fontweight="bold")
        ax.set_xlabel("Dealer upcard", fontsize=9)
        if not discrete:
            plt.colorbar(im, ax=ax, label="P(win)", fraction=0.046, pad=0.04)
    axes[0].set_ylabel("Player total", fontsize=9)

    return _finish(fig, show, save_path)


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    matplotlib.use("Agg")

    table = build_options_table()
    plot_action_heatmap(
        build_action_heatmap_data("label", table),
        "Best action (stand vs one hit)",
        show=False,
        save_path="best_action.png",
    )
    plot_action_heatmap(
        build_action_heatmap_data("policy", table),
        "Optimal policy action",
        show=False,
        save_path="optimal_policy.png",
    )
    plot_probability_heatmap(
        build_probability_heatmap_data("opt", "win", table),
        "Optimal P(win)",
        show=False,
        save_path="optimal_win.png",
    )
    plot_strategy_comparison(show=False, save_path="strategy_comparison.png")
    print("Saved: best_action.png, optimal_policy.png, optimal_win.png, strategy_comparison.png")
