"""
Station Prioritization Tool (Streamlit)

Modules:
- core.data_ingest for CSV/Excel parsing
- core.prioritization for supply dates, ranking and work-center tabs
- core.exports for Excel/CSV downloads
- core.upload_library for the "My Files" list
- visualization.supply_timeline for charts
"""

from __future__ import annotations

import logging
from typing import List

import streamlit as st

from core import data_ingest, exports, prioritization, telemetry
from core.upload_library import UploadLibrary
from visualization import supply_timeline
from config import prioritizer as config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("app")


@st.cache_resource
def get_upload_library():
    """Load upload library (cached across app sessions)."""
    return UploadLibrary()


@st.cache_data(show_spinner=False)
def prioritize_rows(rows: List[dict]) -> List[prioritization.Partition]:
    """Rank rows into partitions (recomputed only when the rows change)."""
    return prioritization.build_partitions(rows, log=logging.getLogger("core.prioritization"))


XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIME = "text/csv"


# ===========================
# Session State Management
# ===========================

def init_session_state():
    """Initialize session state with defaults."""
    defaults = {
        "show_results": False,
        "results_rows": None,
        "results_name": None,
        "selected_work_center": None,
        "selected_team": None,
        "column_status": None,
        "last_upload_key": None,
        "upload_notices": [],
    }

    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def reset_selection():
    """Forget which tab was active."""
    st.session_state["selected_work_center"] = None
    st.session_state["selected_team"] = None


def show_results(rows: List[dict], name: str):
    st.session_state["results_rows"] = rows
    st.session_state["results_name"] = name
    st.session_state["column_status"] = data_ingest.get_column_status(rows)
    st.session_state["show_results"] = True
    reset_selection()


def back_to_files():
    st.session_state["show_results"] = False


def upload_notices(file_name: str, row_count: int, save_error: Exception | None = None) -> List[tuple]:
    """Messages for the results page after an upload, as (streamlit call, text)."""
    notices = [("success", f"Loaded {row_count:,} rows from {file_name}")]
    if save_error is not None:
        notices.append(("warning", f"Results are shown but the file could not be saved: {save_error}"))
    return notices


def pop_upload_notices(state) -> List[tuple]:
    """Take the pending upload messages so each is shown once."""
    notices = state.get("upload_notices") or []
    state["upload_notices"] = []
    return notices


def current_selection() -> prioritization.TabSelection:
    return prioritization.TabSelection(
        work_center=st.session_state.get("selected_work_center") or "",
        team=st.session_state.get("selected_team"),
    )


def select_work_center(work_center: str):
    # Team is re-resolved (first TU team) on the next render
    st.session_state["selected_work_center"] = work_center
    st.session_state["selected_team"] = None


def select_team(team: str):
    st.session_state["selected_team"] = team


# ===========================
# Utility helpers
# ===========================

def download_buttons(partitions: List[prioritization.Partition], name: str):
    """Render Excel and CSV download buttons for all partitions."""
    base = name.rsplit(".", 1)[0] if name else config.EXPORT_BASENAME
    cols = st.columns(2)
    with cols[0]:
        clicked = st.download_button(
            label="Download Excel",
            data=exports.export_partitions_to_excel(partitions),
            file_name=f"{base}_{config.EXPORT_BASENAME}.xlsx",
            mime=XLSX_MIME,
            key="download_xlsx",
            use_container_width=True,
        )
        if clicked:
            telemetry.track_export("xlsx", len(partitions))
    with cols[1]:
        clicked = st.download_button(
            label="Download CSV",
            data=exports.export_partitions_to_csv(partitions),
            file_name=f"{config.EXPORT_BASENAME}.csv",
            mime=CSV_MIME,
            key="download_csv",
            use_container_width=True,
        )
        if clicked:
            telemetry.track_export("csv", len(partitions))


def render_column_status(status: dict | None):
    """One-line summary of which semantic columns were recognized."""
    if not status:
        return
    labels = {
        "work_center": "work center",
        "team": "team",
        "expected_completion": "expected completion",
        "quantity": "quantity",
        "remaining": "remaining",
        "priority_note": "priority note",
    }
    parts = [f"{'✓' if status.get(key) else '✗'} {label}" for key, label in labels.items()]
    st.caption(f"Columns: {' · '.join(parts)}")


# ===========================
# My Files
# ===========================

def render_files_tab():
    library = get_upload_library()
    try:
        uploads = library.list_uploads()
    except Exception as exc:
        logger.exception("Failed to list uploads")
        st.error(f"Failed to load files. Please try again. ({exc})")
        return

    if not uploads:
        st.info("No files uploaded yet")
        return

    header = st.columns([4, 3, 4, 1, 1])
    header[0].markdown("**File Name**")
    header[1].markdown("**Upload Date**")
    header[2].markdown("**Stations**")

    for upload in uploads:
        cols = st.columns([4, 3, 4, 1, 1])
        cols[0].write(upload["original_name"])
        cols[1].write(upload["uploaded_at"].replace("T", " "))
        cols[2].write(", ".join(upload["work_centers"]) or "—")
        if cols[3].button("Results", key=f"show_{upload['id']}"):
            rows = library.load_rows(upload["id"])
            if rows is None:
                st.error("File no longer exists.")
            else:
                show_results(rows, upload["original_name"])
                st.rerun()
        if cols[4].button("Delete", key=f"delete_{upload['id']}"):
            try:
                library.delete_upload(upload["id"])
                telemetry.track_file_delete(upload["original_name"])
            except Exception as exc:
                logger.exception("Failed to delete upload %s", upload["id"])
                st.error(f"Failed to delete file. Please try again. ({exc})")
            else:
                st.rerun()


# ===========================
# Upload
# ===========================

def render_upload_tab():
    uploaded_file = st.file_uploader(
        "Upload a CSV or Excel file",
        type=[ext.lstrip(".") for ext in config.ALLOWED_UPLOAD_EXTENSIONS],
    )
    if uploaded_file is None:
        return

    # Streamlit keeps the file across reruns; process each upload once
    upload_key = f"{uploaded_file.name}:{uploaded_file.size}"
    if st.session_state.get("last_upload_key") == upload_key:
        return

    try:
        rows = data_ingest.load_station_file(uploaded_file, filename=uploaded_file.name)
    except ValueError as exc:
        st.error(f"File error: {exc}")
        return

    st.session_state["last_upload_key"] = upload_key
    save_error = None
    try:
        get_upload_library().save_upload(uploaded_file.name, rows)
    except Exception as exc:
        logger.exception("Failed to store upload %s", uploaded_file.name)
        save_error = exc

    telemetry.track_file_upload(uploaded_file.name, len(rows))
    show_results(rows, uploaded_file.name)
    # Shown once by the results page after the rerun
    st.session_state["upload_notices"] = upload_notices(uploaded_file.name, len(rows), save_error)
    st.rerun()


# ===========================
# Results
# ===========================

def render_results_page():
    st.button("← Back", key="results_back", on_click=back_to_files)

    for kind, text in pop_upload_notices(st.session_state):
        getattr(st, kind)(text)

    rows = st.session_state.get("results_rows") or []
    name = st.session_state.get("results_name") or ""
    partitions = prioritize_rows(rows)

    title_cols = st.columns([3, 2])
    with title_cols[0]:
        st.subheader("Prioritized Results")
        if name:
            st.caption(name)
        render_column_status(st.session_state.get("column_status"))
    with title_cols[1]:
        if partitions:
            download_buttons(partitions, name)

    if not partitions:
        st.info(config.EMPTY_PARTITION_MESSAGE)
        return

    selection = prioritization.resolve_selection(partitions, current_selection())
    st.session_state["selected_work_center"] = selection.work_center
    st.session_state["selected_team"] = selection.team

    # First level: work center tabs
    work_centers = list(dict.fromkeys(p.work_center for p in partitions))
    wc_cols = st.columns(max(len(work_centers), 1))
    for idx, work_center in enumerate(work_centers):
        wc_cols[idx].button(
            work_center,
            key=f"wc_{work_center}",
            type="primary" if work_center == selection.work_center else "secondary",
            on_click=select_work_center,
            args=(work_center,),
            use_container_width=True,
        )

    # Second level: team tabs (TU only)
    teams = [p.team for p in partitions if p.work_center == selection.work_center and p.team]
    if teams:
        team_cols = st.columns(len(teams))
        for idx, team in enumerate(teams):
            team_cols[idx].button(
                team,
                key=f"team_{team}",
                type="primary" if team == selection.team else "secondary",
                on_click=select_team,
                args=(team,),
                use_container_width=True,
            )

    partition = prioritization.select_partition(partitions, selection)
    if partition is None or not partition.rows:
        st.info(config.EMPTY_PARTITION_MESSAGE)
        return

    telemetry.track_partition_view(partition.label, len(partition.rows))
    table = exports.partition_to_dataframe(partition, for_display=True)
    st.dataframe(table, hide_index=True, use_container_width=True, height=min(600, 40 + 35 * len(table)))

    with st.expander("Supply timeline", expanded=False):
        supply_timeline.render_supply_timeline(partition, partitions)

    with st.expander("Summary per work center", expanded=False):
        summary = exports.summarize_partitions(partitions)
        st.dataframe(summary, hide_index=True, use_container_width=True)


def main():
    st.set_page_config(page_title=config.APP_TITLE, layout="wide")
    init_session_state()

    if st.session_state["show_results"] and st.session_state["results_rows"] is not None:
        render_results_page()
        return

    st.title(config.APP_TITLE)
    st.caption(config.APP_TAGLINE)

    tab_files, tab_upload = st.tabs(["My Files", "Upload File"])
    with tab_files:
        render_files_tab()
    with tab_upload:
        render_upload_tab()


if __name__ == "__main__":
    main()
