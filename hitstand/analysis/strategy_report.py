"""Results table and strategy chart for the hit/stand solver.

Public functions:

    format_ratio(win, loss)          — win/loss ratio string, "inf" when loss is 0
    format_options_row(report)       — one CSV record as a list of strings
    build_options_table(...)         — OptionsReport for every (total, upcard)
    options_dataframe(reports)       — numeric pandas DataFrame of the table
    write_results_csv(path, ...)     — write the results CSV
    print_strategy_chart(reports)    — terminal grid of labels and policy actions

CSV layout (one row per player total 4–21 × upcard 1–10)::

    player_score,dealer_upcard,stand_win,stand_loss,stand_win_loss_ratio,
    hit_win,hit_loss,hit_win_loss_ratio,best_action,opt_win,opt_loss,
    opt_win_loss_ratio

Probabilities and ratios are written with 6 decimal places.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from hitstand.engine.rules import DEFAULT_RULES, PLAYER_TOTALS, TableRules
from hitstand.solvers.baseline_dp import Action, BestAction, OptionsReport, compute_options

logger = logging.getLogger(__name__)

CSV_COLUMNS: list[str] = [
    "player_score",
    "dealer_upcard",
    "stand_win",
    "stand_loss",
    "stand_win_loss_ratio",
    "hit_win",
    "hit_loss",
    "hit_win_loss_ratio",
    "best_action",
    "opt_win",
    "opt_loss",
    "opt_win_loss_ratio",
]

_CHART_SYMBOLS: dict[BestAction | Action, str] = {
    BestAction.STAND: "S",
    BestAction.HIT: "H",
    BestAction.EQUAL: "=",
    Action.STAND: "S",
    Action.HIT: "H",
}


# ─── Formatting ───────────────────────────────────────────────────────────────


def format_ratio(win: float, loss: float) -> str:
    """Format ``win / loss`` with 6 decimals, or ``"inf"`` when loss is not positive.

    Examples:
        >>> format_ratio(0.5, 0.25)
        '2.000000'
        >>> format_ratio(0.9, 0.0)
        'inf'
    """
    if loss <= 0.0:
        return "inf"
    return f"{win / loss:.6f}"


def _ratio_value(win: float, loss: float) -> float:
    return math.inf if loss <= 0.0 else win / loss


def format_options_row(report: OptionsReport) -> list[str]:
    """Return the CSV fields for one report, in ``CSV_COLUMNS`` order.

    A degenerate report (no best action) writes an empty label.
    """
    label = report.best_action.value if report.best_action is not None else ""
    return [
        str(report.player_total),
        str(report.dealer_upcard),
        f"{report.stand.win:.6f}",
        f"{report.stand.loss:.6f}",
        format_ratio(report.stand.win, report.stand.loss),
        f"{report.hit.win:.6f}",
        f"{report.hit.loss:.6f}",
        format_ratio(report.hit.win, report.hit.loss),
        label,
        f"{report.optimal.win:.6f}",
        f"{report.optimal.loss:.6f}",
        format_ratio(report.optimal.win, report.optimal.loss),
    ]


# ─── Table builders ───────────────────────────────────────────────────────────


def build_options_table(
    player_totals: Iterable[int] = PLAYER_TOTALS,
    upcards: Iterable[int] | None = None,
    rules: TableRules = DEFAULT_RULES,
) -> list[OptionsReport]:
    """Compute an OptionsReport for every (player total, upcard) pair.

    Rows are ordered by player total, then upcard.

    Args:
        player_totals: Player totals to cover (default 4–21).
        upcards:       Upcards to cover (default 1 – max_card).
        rules:         Rule set.
    """
    upcard_list = list(upcards) if upcards is not None else list(rules.card_values)
    return [
        compute_options(total, upcard, rules)
        for total in player_totals
        for upcard in upcard_list
    ]


def options_dataframe(reports: Iterable[OptionsReport]) -> pd.DataFrame:
    """Return the table as a DataFrame with numeric probability columns.

    Ratio columns hold floats with ``inf`` where the loss is zero; the label
    column holds ``None`` for degenerate reports.
    """
    rows = []
    for r in reports:
        rows.append(
            {
                "player_score": r.player_total,
                "dealer_upcard": r.dealer_upcard,
                "stand_win": r.stand.win,
                "stand_loss": r.stand.loss,
                "stand_win_loss_ratio": _ratio_value(r.stand.win, r.stand.loss),
                "hit_win": r.hit.win,
                "hit_loss": r.hit.loss,
                "hit_win_loss_ratio": _ratio_value(r.hit.win, r.hit.loss),
                "best_action": r.best_action.value if r.best_action is not None else None,
                "opt_win": r.optimal.win,
                "opt_loss": r.optimal.loss,
                "opt_win_loss_ratio": _ratio_value(r.optimal.win, r.optimal.loss),
                "policy_action": (
                    r.optimal_action.value if r.optimal_action is not None else None
                ),
            }
        )
    return pd.DataFrame(rows, columns=CSV_COLUMNS + ["policy_action"])


def results_frame(reports: Iterable[OptionsReport]) -> pd.DataFrame:
    """Return the CSV records (all string columns) as a DataFrame."""
    return pd.DataFrame([format_options_row(r) for r in reports], columns=CSV_COLUMNS)


def write_results_csv(
    path: str | Path = "results.csv",
    reports: Iterable[OptionsReport] | None = None,
    rules: TableRules = DEFAULT_RULES,
) -> Path:
    """Write the results CSV.

    Args:
        path:    Destination file.
        reports: Reports to write; defaults to :func:`build_options_table`.
        rules:   Rule set used when *reports* is None.

    Returns:
        The path written.
    """
    if reports is None:
        reports = build_options_table(rules=rules)
    frame = results_frame(reports)
    out = Path(path)
    frame.to_csv(out, index=False, lineterminator="\n")
    logger.info("wrote %d rows to %s", len(frame), out)
    return out


# ─── Terminal chart ───────────────────────────────────────────────────────────


def print_strategy_chart(reports: Iterable[OptionsReport]) -> None:
    """Print the best-action label grid and the optimal-policy grid.

    Rows are player totals, columns are upcards.  Cells: ``S`` stand,
    ``H`` hit, ``=`` equal win probability, ``-`` absent or degenerate.
    """
    reports = list(reports)
    by_key = {(r.player_total, r.dealer_upcard): r for r in reports}
    totals = sorted({r.player_total for r in reports})
    upcards = sorted({r.dealer_upcard for r in reports})

    col_w = 4
    header = "".join(f"{'A' if u == 1 else str(u):>{col_w}}" for u in upcards)
    divider = "─" * (8 + col_w * len(upcards))

    for title, pick in [
        ("Best action (stand vs one hit)", lambda r: r.best_action),
        ("Optimal policy action", lambda r: r.optimal_action),
    ]:
        print(f"\n{title}")
        print(f"{'Total':<8}{header}")
        print(divider)
        for total in totals:
            cells = ""
            for upcard in upcards:
                report = by_key.get((total, upcard))
                choice = pick(report) if report is not None else None
                cells += f"{_CHART_SYMBOLS.get(choice, '-'):>{col_w}}"
            print(f"{total:<8}{cells}")


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    target = sys.argv[1] if len(sys.argv) > 1 else "results.csv"
    table = build_options_table()
    written = write_results_csv(target, table)
    print_strategy_chart(table)
    print(f"\nWrote {written} (player scores 4..21 vs dealer upcards 1..10)")
