"""Tests for hitstand/analysis/strategy_report.py — results CSV and chart."""

from __future__ import annotations

import math
import re

import pandas as pd
import pytest

from hitstand.analysis.strategy_report import (
    CSV_COLUMNS,
    build_options_table,
    format_options_row,
    format_ratio,
    options_dataframe,
    print_strategy_chart,
    results_frame,
    write_results_csv,
)
from hitstand.solvers.baseline_dp import OptionsReport, compute_options

_SIX_DECIMALS = re.compile(r"^\d+\.\d{6}$")


def report_for(reports, total, upcard):
    return next(r for r in reports if r.player_total == total and r.dealer_upcard == upcard)


# ─── format_ratio ─────────────────────────────────────────────────────────────


class TestFormatRatio:
    def test_simple_ratio(self) -> None:
        assert format_ratio(0.5, 0.25) == "2.000000"

    def test_six_decimals(self) -> None:
        assert format_ratio(1.0, 3.0) == "0.333333"

    def test_zero_loss_is_inf(self) -> None:
        assert format_ratio(0.9, 0.0) == "inf"

    def test_zero_win_and_loss_is_inf(self) -> None:
        assert format_ratio(0.0, 0.0) == "inf"

    def test_negative_loss_is_inf(self) -> None:
        assert format_ratio(0.5, -1e-18) == "inf"


# ─── format_options_row ───────────────────────────────────────────────────────


class TestFormatOptionsRow:
    def test_field_count(self) -> None:
        assert len(format_options_row(compute_options(12, 6))) == len(CSV_COLUMNS)

    def test_values(self) -> None:
        report = compute_options(12, 6)
        row = dict(zip(CSV_COLUMNS, format_options_row(report)))
        assert row["player_score"] == "12"
        assert row["dealer_upcard"] == "6"
        assert row["best_action"] == "hit"
        assert row["stand_win"] == f"{report.stand.win:.6f}"
        assert row["opt_loss"] == f"{report.optimal.loss:.6f}"
        assert row["hit_win_loss_ratio"] == format_ratio(report.hit.win, report.hit.loss)

    def test_probabilities_have_six_decimals(self) -> None:
        row = format_options_row(compute_options(18, 9))
        for field in row[2:4] + row[5:7] + row[9:11]:
            assert _SIX_DECIMALS.match(field), field

    def test_degenerate_report(self) -> None:
        row = format_options_row(OptionsReport.empty(12, 0))
        assert row == [
            "12",
            "0",
            "0.000000",
            "0.000000",
            "inf",
            "0.000000",
            "0.000000",
            "inf",
            "",
            "0.000000",
            "0.000000",
            "inf",
        ]


# ─── Table builders ───────────────────────────────────────────────────────────


class TestBuildOptionsTable:
    def test_size(self, options_table) -> None:
        assert len(options_table) == 18 * 10

    def test_ordering(self, options_table) -> None:
        keys = [(r.player_total, r.dealer_upcard) for r in options_table]
        assert keys == sorted(keys)
        assert keys[0] == (4, 1)
        assert keys[-1] == (21, 10)

    def test_subset(self) -> None:
        table = build_options_table(player_totals=[12, 13], upcards=[6])
        assert [(r.player_total, r.dealer_upcard) for r in table] == [(12, 6), (13, 6)]

    def test_reports_match_compute_options(self, options_table) -> None:
        assert report_for(options_table, 20, 10) == compute_options(20, 10)


class TestDataFrames:
    def test_options_dataframe_columns(self, options_table) -> None:
        frame = options_dataframe(options_table)
        assert list(frame.columns) == CSV_COLUMNS + ["policy_action"]
        assert len(frame) == 180

    def test_options_dataframe_numeric(self, options_table) -> None:
        frame = options_dataframe(options_table)
        row = frame[(frame.player_score == 12) & (frame.dealer_upcard == 6)].iloc[0]
        report = compute_options(12, 6)
        assert row["opt_win"] == report.optimal.win
        assert row["policy_action"] == "HIT"

    def test_options_dataframe_inf_ratio(self) -> None:
        frame = options_dataframe([OptionsReport.empty(12, 0)])
        assert math.isinf(frame.loc[0, "stand_win_loss_ratio"])
        assert pd.isna(frame.loc[0, "best_action"])

    def test_results_frame_is_strings(self, options_table) -> None:
        frame = results_frame(options_table[:3])
        assert list(frame.columns) == CSV_COLUMNS
        assert frame.loc[0, "player_score"] == "4"


# ─── write_results_csv ────────────────────────────────────────────────────────


class TestWriteResultsCsv:
    @pytest.fixture
    def csv_lines(self, tmp_path, options_table):
        path = write_results_csv(tmp_path / "results.csv", options_table)
        return path.read_text().splitlines()

    def test_returns_path(self, tmp_path, options_table) -> None:
        path = write_results_csv(tmp_path / "out.csv", options_table)
        assert path.exists()

    def test_header(self, csv_lines) -> None:
        assert csv_lines[0] == ",".join(CSV_COLUMNS)

    def test_row_count(self, csv_lines) -> None:
        assert len(csv_lines) == 1 + 180

    def test_rows_have_twelve_fields(self, csv_lines) -> None:
        for line in csv_lines[1:]:
            assert len(line.split(",")) == 12

    def test_first_and_last_rows(self, csv_lines) -> None:
        assert csv_lines[1].startswith("4,1,")
        assert csv_lines[-1].startswith("21,10,")

    def test_labels(self, csv_lines) -> None:
        labels = {line.split(",")[8] for line in csv_lines[1:]}
        assert labels <= {"stand", "hit", "equal"}

    def test_builds_table_when_not_given(self, tmp_path) -> None:
        path = write_results_csv(tmp_path / "default.csv")
        assert len(path.read_text().splitlines()) == 181

    def test_degenerate_row_written(self, tmp_path) -> None:
        path = write_results_csv(tmp_path / "bad.csv", [OptionsReport.empty(12, 11)])
        lines = path.read_text().splitlines()
        assert lines[1] == "12,11,0.000000,0.000000,inf,0.000000,0.000000,inf,,0.000000,0.000000,inf"


# ─── print_strategy_chart ─────────────────────────────────────────────────────


class TestPrintStrategyChart:
    def test_titles(self, options_table, capsys) -> None:
        print_strategy_chart(options_table)
        out = capsys.readouterr().out
        assert "Best action (stand vs one hit)" in out
        assert "Optimal policy action" in out

    def test_header_shows_ace(self, options_table, capsys) -> None:
        print_strategy_chart(options_table)
        out = capsys.readouterr().out
        assert "   A   2   3" in out

    def test_twenty_one_row_stands(self, options_table, capsys) -> None:
        print_strategy_chart(options_table)
        out = capsys.readouterr().out
        assert out.count("21      " + "   S" * 10) == 2

    def test_missing_cells(self, capsys) -> None:
        table = build_options_table(player_totals=[12, 13], upcards=[6, 7])
        print_strategy_chart(table[:3])
        out = capsys.readouterr().out
        assert "   -" in out


# ─── Reference rows ───────────────────────────────────────────────────────────

# Probability and label fields of known results.csv rows, keyed by (total, upcard):
# stand_win, stand_loss, hit_win, hit_loss, best_action, opt_win, opt_loss.
_REFERENCE_ROWS: dict[tuple[int, int], list[str]] = {
    (12, 6): ["0.313639", "0.686361", "0.448610", "0.460035", "hit", "0.448610", "0.460035"],
    (20, 10): ["0.745688", "0.077156", "0.092284", "0.900000", "stand", "0.745688", "0.077156"],
    (4, 1): ["0.260633", "0.739367", "0.407454", "0.505224", "hit", "0.407454", "0.505224"],
}


def _probability_fields(row: list[str]) -> list[str]:
    return [row[2], row[3], row[5], row[6], row[8], row[9], row[10]]


class TestReferenceRows:
    @pytest.mark.parametrize("key", sorted(_REFERENCE_ROWS))
    def test_formatted_fields(self, key) -> None:
        row = format_options_row(compute_options(*key))
        assert row[:2] == [str(key[0]), str(key[1])]
        assert _probability_fields(row) == _REFERENCE_ROWS[key]

    @pytest.mark.parametrize("key", sorted(_REFERENCE_ROWS))
    def test_ratios(self, key) -> None:
        row = format_options_row(compute_options(*key))
        expected = _REFERENCE_ROWS[key]
        pairs = [
            (4, expected[0], expected[1]),
            (7, expected[2], expected[3]),
            (11, expected[5], expected[6]),
        ]
        for ratio_field, win, loss in pairs:
            assert float(row[ratio_field]) == pytest.approx(float(win) / float(loss), rel=1e-4)

    @pytest.mark.parametrize("key", sorted(_REFERENCE_ROWS))
    def test_csv_lines(self, tmp_path, options_table, key) -> None:
        path = write_results_csv(tmp_path / "results.csv", options_table)
        prefix = f"{key[0]},{key[1]},"
        line = next(text for text in path.read_text().splitlines() if text.startswith(prefix))
        assert _probability_fields(line.split(",")) == _REFERENCE_ROWS[key]
