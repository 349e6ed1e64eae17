"""Hit/Stand Solver — Streamlit Dashboard.

Four-tab dashboard for exploring the infinite-deck solver:
  Tab 1 — Results Table      (pandas, CSV download)
  Tab 2 — Strategy Heat Maps (matplotlib)
  Tab 3 — Interactive Lookup (Plotly, hover for every probability)
  Tab 4 — Monte Carlo Check  (simulation vs exact probabilities)

Run:
    PYTHONPATH=. streamlit run app.py
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Hit/Stand Solver",
    page_icon="🃏",
    layout="wide",
)


@st.cache_resource
def _load_analysis_modules():
    """Import analysis modules once (cached for the process lifetime)."""
    from hitstand.analysis.heat_maps import (
        build_action_heatmap_data,
        build_probability_heatmap_data,
        plot_probability_heatmap,
        plot_strategy_comparison,
    )
    from hitstand.analysis.plotly_lookup import build_lookup_figure, build_probability_figure
    from hitstand.analysis.simulator import run_validation
    from hitstand.analysis.strategy_report import (
        build_options_table,
        options_dataframe,
        results_frame,
    )
    from hitstand.solvers.baseline_dp import compute_options

    return {
        "build_action_heatmap_data": build_action_heatmap_data,
        "build_probability_heatmap_data": build_probability_heatmap_data,
        "plot_probability_heatmap": plot_probability_heatmap,
        "plot_strategy_comparison": plot_strategy_comparison,
        "build_lookup_figure": build_lookup_figure,
        "build_probability_figure": build_probability_figure,
        "run_validation": run_validation,
        "build_options_table": build_options_table,
        "options_dataframe": options_dataframe,
        "results_frame": results_frame,
        "compute_options": compute_options,
    }


@st.cache_resource
def _options_table():
    return _load_analysis_modules()["build_options_table"]()


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Hit/Stand Solver")
    st.markdown("---")

    player_total = st.slider("Player total", min_value=4, max_value=21, value=12)
    dealer_upcard = st.selectbox(
        "Dealer upcard",
        options=list(range(1, 11)),
        format_func=lambda u: "A (1)" if u == 1 else str(u),
        index=5,
    )
    probability_kind = st.selectbox("Probability heat map", options=["opt", "stand", "hit"])

    st.markdown("---")
    n_mc_hands = st.slider(
        "MC hands",
        min_value=5_000,
        max_value=200_000,
        value=20_000,
        step=5_000,
    )

    st.markdown("---")
    st.caption("Infinite deck · cards 1–10 · dealer stands on 17")

m = _load_analysis_modules()
reports = _options_table()

tab1, tab2, tab3, tab4 = st.tabs(
    [
        "Results Table",
        "Strategy Heat Maps",
        "Interactive Lookup",
        "Monte Carlo Check",
    ]
)

# ── Tab 1: Results Table ──────────────────────────────────────────────────────

with tab1:
    st.header("Results Table")

    selected = m["compute_options"](player_total, dealer_upcard)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Stand P(win)", f"{selected.stand.win:.4f}")
    col2.metric("Hit P(win)", f"{selected.hit.win:.4f}")
    col3.metric("Optimal P(win)", f"{selected.optimal.win:.4f}")
    col4.metric("Best action", selected.best_action.value if selected.best_action else "—")

    st.dataframe(m["options_dataframe"](reports), use_container_width=True, hide_index=True)
    st.download_button(
        "Download results.csv",
        data=m["results_frame"](reports).to_csv(index=False, lineterminator="\n"),
        file_name="results.csv",
        mime="text/csv",
    )

# ── Tab 2: Strategy Heat Maps ─────────────────────────────────────────────────

with tab2:
    st.header("Strategy Heat Maps")
    st.caption("Rows = player total (4–21) | Cols = dealer upcard | Green = HIT, Red = STAND")

    st.pyplot(m["plot_strategy_comparison"](show=False))

    st.subheader(f"{probability_kind} P(win)")
    st.pyplot(
        m["plot_probability_heatmap"](
            m["build_probability_heatmap_data"](probability_kind, "win", reports),
            f"{probability_kind} P(win)",
            show=False,
        )
    )

# ── Tab 3: Interactive Lookup ─────────────────────────────────────────────────

with tab3:
    st.header("Interactive Strategy Lookup")
    st.caption("Hover over any cell to see every probability, ratio and label.")
    st.plotly_chart(m["build_lookup_figure"](), use_container_width=True)
    st.plotly_chart(m["build_probability_figure"](probability_kind), use_container_width=True)

# ── Tab 4: Monte Carlo Check ──────────────────────────────────────────────────

with tab4:
    st.header("Monte Carlo Check")
    st.caption(f"Total {player_total} vs upcard {dealer_upcard}, {n_mc_hands:,} hands per policy.")

    with st.spinner(f"Simulating {n_mc_hands:,} hands …"):
        validation = m["run_validation"](player_total, dealer_upcard, n_hands=n_mc_hands)

    import pandas as pd

    rows = []
    for name, (sim, exact) in validation.items():
        rows.append(
            {
                "Policy": name,
                "Sim P(win)": f"{sim.win_rate:.4f} ±{sim.ci_95(sim.win_rate):.4f}",
                "Exact P(win)": f"{exact.win:.4f}",
                "Sim P(loss)": f"{sim.loss_rate:.4f} ±{sim.ci_95(sim.loss_rate):.4f}",
                "Exact P(loss)": f"{exact.loss:.4f}",
                "Within 99.9% band": "yes" if sim.agrees_with(exact) else "no",
            }
        )
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
