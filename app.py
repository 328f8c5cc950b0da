import time
from contextlib import contextmanager

import altair as alt
import streamlit as st

from gva.animator import PollingScheduler, YearAnimator
from gva.charts import build_chart
from gva.config import load_settings
from gva.dataset import DatasetSnapshot, load_snapshot
from gva.export import export_csv, export_filename
from gva.filters import SelectionError, SelectionState, default_selection
from gva.insights import GeminiInsightGenerator, InsightSession
from gva.projections import (
    NO_DATA,
    MultiYearChartProjection,
    SingleYearChartProjection,
    TableProjection,
    abbreviate_name,
    project_selection,
)

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(snapshot: DatasetSnapshot, selection: SelectionState) -> str:
    years = selection.table_years()
    year_chip = f"Year: {', '.join(snapshot.year_label(y) for y in years)}" if years else "Year: none"
    n = len(selection.selected_categories)
    div_chip = f"Divisions: {n} selected" if n else "Divisions: none"
    mode_chip = f"Chart: {selection.chart_mode}"
    play_chip = "Playing" if selection.playing else "Paused"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [year_chip, div_chip, mode_chip, play_chip]])


# ---------- Session state ----------
def get_session(snapshot: DatasetSnapshot):
    if "selection" not in st.session_state:
        settings = load_settings()
        selection = default_selection(snapshot, settings)
        scheduler = PollingScheduler()
        st.session_state["settings"] = settings
        st.session_state["selection"] = selection
        st.session_state["scheduler"] = scheduler
        st.session_state["animator"] = YearAnimator(selection, snapshot.years, scheduler, interval=settings.animation_interval)
        st.session_state["insights"] = InsightSession(GeminiInsightGenerator(settings))
    return (
        st.session_state["selection"],
        st.session_state["scheduler"],
        st.session_state["animator"],
        st.session_state["insights"],
    )


def render_sidebar(snapshot: DatasetSnapshot, selection: SelectionState, animator: YearAnimator):
    with st.sidebar:
        st.markdown("### Year")
        chosen_year = st.select_slider(
            "Fiscal Year",
            options=list(snapshot.years),
            value=selection.selected_year,
            format_func=snapshot.year_label,
        )
        if chosen_year != selection.selected_year:
            animator.select_year(chosen_year)

        st.markdown("### Industrial Divisions")
        c1, c2 = st.columns(2)
        if c1.button("Select all"):
            selection.selected_categories = list(snapshot.categories)
        if c2.button("Clear"):
            selection.selected_categories = []
        selection.selected_categories = st.multiselect(
            "Divisions",
            options=list(snapshot.categories),
            default=[c for c in selection.selected_categories if c in snapshot.categories],
            format_func=lambda name: name if len(name) <= 40 else abbreviate_name(name),
        )

        st.markdown("### Chart Type")
        chart_modes = ["bar", "line"]
        selection.chart_mode = st.radio(
            "Chart type",
            chart_modes,
            index=chart_modes.index(selection.chart_mode),
            format_func=lambda m: "Bar Chart" if m == "bar" else "Line Chart (all years)",
            horizontal=True,
        )

        st.markdown("---")
        if st.button("Pause" if animator.is_playing else "Play Animation", use_container_width=True):
            animator.toggle()
            st.rerun()


def render_visualization(snapshot: DatasetSnapshot, selection: SelectionState):
    view_cols = st.columns([1, 1, 4])
    if view_cols[0].button("Chart", type="primary" if selection.view_mode == "chart" else "secondary"):
        selection.view_mode = "chart"
    if view_cols[1].button("Table", type="primary" if selection.view_mode == "table" else "secondary"):
        selection.view_mode = "table"

    with card("Data Visualization"):
        if not selection.selected_categories:
            st.info("Please select industrial divisions from the sidebar to view data.")
            return
        projection = project_selection(snapshot, selection)
        if isinstance(projection, TableProjection):
            if not projection.rows:
                st.warning("There is no data available for the current combination of filters.")
                return
            frame = projection.to_frame().apply(lambda col: col.map(lambda v: v if v == NO_DATA else f"{v:,}"))
            frame.columns = [snapshot.year_label(y) for y in projection.years]
            st.dataframe(frame, use_container_width=True)
        elif isinstance(projection, (SingleYearChartProjection, MultiYearChartProjection)):
            if not projection.rows:
                st.warning("There is no data available for the current combination of filters.")
                return
            st.altair_chart(build_chart(projection, selection.chart_mode), use_container_width=True)


def render_export(snapshot: DatasetSnapshot, selection: SelectionState):
    years = [y for y in snapshot.years if y in set(selection.table_years())]
    try:
        csv_text = export_csv(snapshot, selection.selected_categories, years)
    except SelectionError as exc:
        st.button("Export CSV", disabled=True, help=str(exc))
        return
    st.download_button(
        "Export CSV",
        data=csv_text.encode("utf-8"),
        file_name=export_filename(years),
        mime="text/csv",
    )


def render_insights(snapshot: DatasetSnapshot, selection: SelectionState, insights: InsightSession):
    with card("AI-Driven Insights"):
        if st.button("Generate Insights", disabled=insights.loading):
            with st.spinner("Generating insights, please wait..."):
                insights.generate(snapshot, selection)
            if insights.summary is None and insights.error:
                st.warning(insights.error)
            elif insights.error:
                st.error("There was an error generating insights.")
        if insights.summary:
            st.markdown(f"**Summary for {insights.years_label}**")
            for paragraph in insights.summary.split("\n"):
                if paragraph.strip():
                    st.write(paragraph)
        elif not insights.loading:
            st.caption("Click the button above to generate AI-powered insights from the selected data.")


# ---------- UI setup ----------
st.set_page_config(page_title="Nepal GVA Visualizer", layout="wide")
inject_base_styles()

snapshot = load_snapshot()
selection, scheduler, animator, insights = get_session(snapshot)
scheduler.run_pending()

st.title("Nepal GVA Visualizer")
st.caption("Gross value added by industrial division, Rs. million.")

render_sidebar(snapshot, selection, animator)

header_cols = st.columns([6, 2])
with header_cols[0]:
    st.markdown(f"<div class='chip-row'>{format_filter_summary(snapshot, selection)}</div>", unsafe_allow_html=True)
with header_cols[1]:
    render_export(snapshot, selection)

render_visualization(snapshot, selection)
render_insights(snapshot, selection, insights)

if animator.is_playing:
    wait = scheduler.seconds_until_next()
    time.sleep(wait if wait is not None else animator.interval)
    st.rerun()
