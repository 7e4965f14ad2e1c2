"""
WIST Student Level Analysis Dashboard

Interactive Streamlit dashboard over a single uploaded spreadsheet of
On Level / Below Level student counts per grade and subject.

Features:
- Upload .xlsx / .xls / .csv (first sheet only)
- Subject table of on/below level percentages
- Bar chart per subject and grade
- Analytic insights: strongest/weakest subjects, grade standing, priority classes
"""

import logging
from dataclasses import replace

import streamlit as st

from charts import (
    create_level_chart,
    format_subject_list,
    grade_performance_lines,
    priority_class_lines,
    subject_totals_frame,
)
from config import ACCEPTED_FILE_TYPES, APP_TITLE, PRIORITY_THRESHOLD
from view_state import UploadGate, ViewState, apply_upload, upload_digest

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title=APP_TITLE,
    page_icon="📊",
    layout="centered",
    initial_sidebar_state="collapsed"
)

# Custom CSS
st.markdown("""
<style>
    .block-container {
        max-width: 720px;
        padding-top: 1.5rem;
    }
    h4 {
        margin-top: 0.8rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== VIEW STATE ====================

def get_view_state() -> ViewState:
    """Return the session's view state, creating it (and the upload gate) on first run."""
    if "view_state" not in st.session_state:
        st.session_state.view_state = ViewState.idle()
        st.session_state.upload_gate = UploadGate()
    return st.session_state.view_state


def handle_upload(uploaded_file) -> None:
    """
    Analyze a newly selected file and swap in the resulting view state.

    Streamlit reruns the script on every interaction, so a file whose
    bytes were already analyzed is not processed again.
    """
    state = get_view_state()
    data = uploaded_file.getvalue()

    if state.source_digest == upload_digest(data):
        if state.error:
            st.session_state.view_state = replace(state, error=None)
        return

    gate: UploadGate = st.session_state.upload_gate
    with gate.upload_slot() as acquired:
        if not acquired:
            logger.warning("Rejected %s: another upload is still being processed", uploaded_file.name)
            st.warning("Another file is still being processed. Please try again in a moment.")
            return

        with st.spinner(f"Analyzing {uploaded_file.name}..."):
            st.session_state.view_state = apply_upload(state, data, uploaded_file.name)


# ==================== RENDERING ====================

def render_subject_table(state: ViewState) -> None:
    st.subheader("Subject Totals")
    st.dataframe(
        subject_totals_frame(state.analysis.subject_totals),
        use_container_width=True,
        hide_index=True,
        column_config={
            'On Level (%)': st.column_config.NumberColumn(format="%.1f%%"),
            'Below Level (%)': st.column_config.NumberColumn(format="%.1f%%")
        }
    )


def render_level_chart(state: ViewState) -> None:
    st.subheader("On Level vs Below Level by Subject and Grade")
    st.plotly_chart(create_level_chart(state.analysis.chart_rows), use_container_width=True)


def render_insights(state: ViewState) -> None:
    insights = state.analysis.insights

    st.subheader("Analytic Insights")

    st.markdown("#### 1. Subject Performance:")
    st.markdown(f"**Strongest:** {format_subject_list(insights.strongest_subjects)}")
    st.markdown(f"**Weakest:** {format_subject_list(insights.weakest_subjects)}")

    st.markdown("#### 2. Grade-Level Performance:")
    for line in grade_performance_lines(insights):
        st.markdown(f"- {line}")

    st.markdown("#### 3. Priority Classes Needing Support:")
    lines = priority_class_lines(insights)
    if lines:
        for line in lines:
            st.markdown(f"- {line}")
    else:
        st.success(f"No classes below {PRIORITY_THRESHOLD:.0f}% on level.")


# ==================== MAIN DASHBOARD ====================

def main():
    st.title(APP_TITLE)

    uploaded_file = st.file_uploader(
        "Upload student level data (first sheet: Grade, Subject, On Level, Below Level)",
        type=ACCEPTED_FILE_TYPES
    )

    if uploaded_file is not None:
        handle_upload(uploaded_file)

    state = get_view_state()

    if state.error:
        st.error(state.error)

    if not state.is_loaded:
        st.info("Upload a spreadsheet to see the analysis. Only the first sheet is read.")
        return

    st.caption(f"Showing: {state.source_name}")

    if not state.analysis.chart_rows:
        st.warning("The sheet has no grade/subject rows to analyze.")
        return

    render_subject_table(state)
    st.divider()
    render_level_chart(state)
    st.divider()
    render_insights(state)


if __name__ == "__main__":
    main()
