"""Smoke test for the Streamlit dashboard (app.py).

Uses streamlit.testing.v1.AppTest to verify the initial render (results table,
heat maps, Plotly lookup and a Monte Carlo check at the default slider values)
completes without exceptions within the timeout.
"""

import pytest

try:
    from streamlit.testing.v1 import AppTest

    _STREAMLIT_AVAILABLE = True
except ImportError:
    _STREAMLIT_AVAILABLE = False

# Resolved relative to this test file.
_APP_PATH = "../app.py"


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_app_runs_without_exception():
    """App renders all four tabs without raising an exception."""
    at = AppTest.from_file(_APP_PATH)
    at.run(timeout=120)
    assert not at.exception, f"App raised an exception: {at.exception}"


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_app_has_expected_tabs():
    """App exposes the four expected tab labels."""
    at = AppTest.from_file(_APP_PATH)
    at.run(timeout=120)
    tab_labels = [t.label for t in at.tabs]
    assert "Results Table" in tab_labels
    assert "Strategy Heat Maps" in tab_labels
    assert "Interactive Lookup" in tab_labels
    assert "Monte Carlo Check" in tab_labels


@pytest.mark.skipif(not _STREAMLIT_AVAILABLE, reason="streamlit not installed")
def test_app_shows_selected_pair_metrics():
    """The results tab shows the metrics for the default 12 vs 6 selection."""
    at = AppTest.from_file(_APP_PATH)
    at.run(timeout=120)
    labels = [m.label for m in at.metric]
    assert "Best action" in labels
    best = next(m for m in at.metric if m.label == "Best action")
    assert best.value == "hit"
