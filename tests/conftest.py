"""
Shared pytest fixtures for the hit/stand solver tests.

The full results table (18 player totals × 10 upcards) is cheap to build but
is shared per session so the reporting and plotting tests reuse one copy.
"""

from __future__ import annotations

import pytest

from hitstand.analysis.strategy_report import build_options_table
from hitstand.solvers.baseline_dp import OptionsReport


@pytest.fixture(scope="session")
def options_table() -> list[OptionsReport]:
    """OptionsReport for every player total 4–21 against every upcard 1–10."""
    return build_options_table()

