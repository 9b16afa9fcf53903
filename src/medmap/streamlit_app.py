"""Streamlit frontend for the interaction map.

Streamlit is a Python library that turns scripts into web apps. This file
draws the search box, the selected-item chips, the interaction matrix and
the detail panel from a medmap Session.

How it works:
- Streamlit re-runs this entire script on every user interaction
- st.session_state keeps one Session per browser tab between reruns
- The Session is async, so each tab also gets its own event loop running
  in a background thread; every call into the Session is submitted to
  that loop (medmap.runner), which keeps all session mutation on one thread
- Lookups keep running between reruns; the matrix shows "…" for pairs
  that are still loading and a refresh button redraws it

Run locally with:
    streamlit run src/medmap/streamlit_app.py

The FastAPI backend (medmap.app) must be running at MEDMAP_API_BASE_URL.
"""

from __future__ import annotations

import logging

import streamlit as st

from medmap.config import MEDMAP_LOG_LEVEL, MEDMAP_SEARCH_DEBOUNCE_MS
from medmap.coordinator import RefreshState
from medmap.presentation import DISCLAIMER, DetailView, build_matrix, highest_severity
from medmap.runner import SessionRunner

logging.basicConfig(level=MEDMAP_LOG_LEVEL)
logger = logging.getLogger(__name__)

SEVERITY_ICONS = {
    "minor": "\U0001f7e2",
    "moderate": "\U0001f7e1",
    "major": "\U0001f534",
    "contraindicated": "⛔",
}
TYPE_ICONS = {"Drug": "\U0001f48a", "Supplement": "\U0001f33f", "Food": "\U0001f34e"}


def _runner() -> SessionRunner:
    if "runner" not in st.session_state:
        st.session_state.runner = SessionRunner()
    return st.session_state.runner


# --- Page config ---
st.set_page_config(page_title="Interaction Map", page_icon="\U0001f48a", layout="wide")

st.title("Medication & Supplement Interaction Map")
st.caption(
    "Search your real regimen and see pairwise interactions with direct "
    "source links (FDA / NIH / NCCIH)."
)

runner = _runner()
session = runner.session

# --- Search ---
query = st.text_input(
    "Search",
    placeholder='e.g., "warfarin", "simvastatin", "St. John\'s wort"',
    key="query",
    help=f"Suggestions appear {MEDMAP_SEARCH_DEBOUNCE_MS} ms after you stop typing.",
)

if query.strip():
    with st.spinner("Searching…"):
        suggestions = runner.search(query)
    if not suggestions:
        st.info("No suggestions.")
    for s in suggestions:
        if st.button(f"{TYPE_ICONS.get(s.type, '')} {s.display} ({s.type})", key=f"add-{s.id}"):
            runner.run(session.choose_item, s)
            del st.session_state["query"]
            st.rerun()

# --- Selected chips ---
selected = runner.run(lambda: list(session.selection))
if selected:
    chip_cols = st.columns(min(len(selected), 6))
    for i, item in enumerate(selected):
        with chip_cols[i % len(chip_cols)]:
            if st.button(f"✕ {item.display}", key=f"remove-{item.id}", help=f"Remove {item.display}"):
                runner.run(session.remove_item, item.id)
                st.rerun()

# --- Matrix ---
matrix = runner.run(build_matrix, session.selection, session.coordinator)
refreshing = runner.run(lambda: session.coordinator.state) is RefreshState.REFRESHING

if matrix:
    worst = runner.run(highest_severity, session.coordinator)
    if worst is not None:
        st.markdown(f"Highest severity: {SEVERITY_ICONS[worst.value]} **{worst.value}**")

    header = st.columns(len(matrix) + 1)
    header[0].markdown("**Item**")
    for col, cell in zip(header[1:], matrix[0]):
        col.markdown(f"**{cell.col.display}**")

    for row in matrix:
        cols = st.columns(len(row) + 1)
        cols[0].markdown(f"**{row[0].row.display}**")
        for col, cell in zip(cols[1:], row):
            if cell.key is None:
                col.write(cell.label)
                continue
            icon = SEVERITY_ICONS.get(cell.label, "")
            if col.button(
                f"{icon} {cell.label}".strip(),
                key=f"cell-{cell.row.id}-{cell.col.id}",
                help=cell.tooltip or None,
                disabled=not cell.clickable,
            ):
                runner.run(session.cell_clicked, cell.key)

    if refreshing and st.button("Refresh results"):
        st.rerun()

# --- Detail panel ---
active = runner.run(lambda: (session.active, session.active_pair))
if active[0] is not None:
    detail = DetailView.from_record(*active)
    with st.container(border=True):
        st.caption("Interaction")
        st.subheader(detail.title)
        st.markdown(f"{SEVERITY_ICONS[detail.severity.value]} `{detail.severity.value}` · `{detail.evidence}`")
        st.markdown(f"**Guidance:** {detail.guidance}")
        if detail.mechanism:
            st.markdown(f"**Mechanism:** {detail.mechanism}")
        st.markdown("**Sources**")
        for src in detail.sources:
            line = f"- [{src.name}]({src.url})"
            if src.retrieved:
                line += f" (retrieved {src.retrieved})"
            st.markdown(line)
        if st.button("Close"):
            runner.run(session.close_detail)
            st.rerun()

st.caption(DISCLAIMER)
