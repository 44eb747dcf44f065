"""
Pharmacy Inventory Dashboard

A Streamlit dashboard for tracking medication stock and expiry risk.
Run with: streamlit run app.py
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import plotly.graph_objects as go

from clients.inventory_session import InvalidDeletionPassword, InventorySession, SyncStatus
from clients.local_cache import LocalInventoryCache
from clients.medication_store import StoreError, create_store, setup_sql
from clients.workbook_loader import WorkbookError, WorkbookLoader
from core.analysis import (
    STATUS_LABELS,
    expiry_breakdown,
    filter_by_expiry,
    search_medications,
    to_frame,
    top_stock,
)
from core.config import configure_logging, get_settings
from core.insights import InsightGenerator, InsightsUnavailableError
from core.models import ExpiryFilter
from core.reports import (
    expiry_report_title,
    generate_insight_report,
    generate_medication_report,
    insight_report_filename,
    report_filename,
)

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title=f"{settings.APP_NAME} Inventory",
    page_icon="💊",
    layout="wide",
)

PAGES = ["Dashboard", "Inventory", "AI Analysis"]
SETUP_PAGE = "Database Setup"

FILTER_LABELS = {
    ExpiryFilter.ALL: "All",
    ExpiryFilter.UPCOMING: "Expiring soon",
    ExpiryFilter.EXPIRED: "Expired",
}

STATUS_BADGES = {"EXPIRED": "🔴", "WARNING": "🟠", "SAFE": "🟢"}

SYNC_ICONS = {
    SyncStatus.IDLE: "⚪ Local only",
    SyncStatus.SYNCING: "🔄 Syncing",
    SyncStatus.SUCCESS: "☁️ Synced",
    SyncStatus.ERROR: "⚠️ Sync error",
}


def get_session() -> InventorySession:
    """One inventory session per browser session, synced on first load."""
    if "inventory" not in st.session_state:
        try:
            store = create_store(settings)
        except Exception as e:
            logger.error(f"Supabase client could not be created: {e}")
            st.error(f"Could not connect to Supabase, working locally: {e}")
            store = None

        session = InventorySession(
            LocalInventoryCache(settings.LOCAL_CACHE_PATH),
            store,
            settings.DELETE_PASSWORD,
            settings.EXPIRY_WARNING_MONTHS,
        )
        session.refresh()
        st.session_state.inventory = session
        st.session_state.page = SETUP_PAGE if session.table_missing else "Dashboard"
        st.session_state.expiry_filter = ExpiryFilter.ALL
        st.session_state.upload_key = 0
    return st.session_state.inventory


def show_table(expiry_filter: ExpiryFilter) -> None:
    """Jump to the inventory table narrowed to a subset."""
    st.session_state.page = "Inventory"
    st.session_state.expiry_filter = expiry_filter


@st.cache_data(show_spinner=False, max_entries=32)
def medication_pdf(title: str, records: list, stats, _generated_at: datetime) -> bytes:
    """Report bytes, rebuilt only when the title, records or stats change."""
    return generate_medication_report(
        title, records, stats, _generated_at,
        brand=settings.APP_NAME, subtitle=settings.APP_SUBTITLE,
    )


def verify_connection() -> None:
    """Retry the remote table once the setup SQL has been run."""
    session.refresh()
    if not session.table_missing:
        st.session_state.page = "Dashboard"


session = get_session()
today = date.today()
stats = session.stats(today)

# --- Sidebar ---
with st.sidebar:
    st.title(f"💊 {settings.APP_NAME}")
    st.caption(SYNC_ICONS[session.status])
    if session.status == SyncStatus.ERROR and session.error_message:
        st.caption(session.error_message)

    pages = PAGES + ([SETUP_PAGE] if session.table_missing else [])
    if st.session_state.page not in pages:
        st.session_state.page = "Dashboard"
    st.radio("Main menu", pages, key="page")

    st.divider()
    st.subheader("Data upload")
    uploaded = st.file_uploader(
        "Import Excel",
        type=WorkbookLoader.accepted_types(),
        key=f"upload_{st.session_state.upload_key}",
    )
    st.caption("Auto-detection: Code / ID · Name / Item · Lot / Batch · Stock / Qty · Expiry")

    if uploaded is not None:
        with st.spinner("Processing..."):
            try:
                result = WorkbookLoader(
                    max_scan_rows=settings.HEADER_SCAN_ROWS,
                    warning_months=settings.EXPIRY_WARNING_MONTHS,
                ).load(uploaded.name, uploaded.getvalue(), today)
            except WorkbookError as e:
                st.error(str(e))
                result = None

        if result is not None:
            if session.import_records(result.records):
                st.success(f"Imported {len(result.records)} medications")
            else:
                st.warning(f"Saved locally. Cloud error: {session.error_message}")

            report = result.quality_report
            if report.issues:
                with st.expander(f"Import checks ({len(report.issues)})"):
                    for issue in report.issues:
                        icon = "🔴" if issue.severity == "critical" else "🟡" if issue.severity == "warning" else "🔵"
                        st.markdown(f"{icon} {issue.column}: {issue.description}")
            if result.skipped_rows:
                st.caption(f"{result.skipped_rows} rows without name or code were skipped")

        # Reset the uploader so the same file is not imported again on rerun
        st.session_state.upload_key += 1
        stats = session.stats(today)

    st.divider()
    with st.expander("🗑️ Delete all", expanded=False):
        password = st.text_input("Deletion password", type="password")
        if st.button("Confirm", type="primary", disabled=not session.records):
            try:
                session.clear_all(password)
                st.session_state.pop("insight_report", None)
                st.session_state.expiry_filter = ExpiryFilter.ALL
                st.rerun()
            except InvalidDeletionPassword as e:
                st.error(str(e))
            except StoreError as e:
                st.error(f"Error deleting in the cloud: {e}")

# --- Header ---
header_col, sync_col = st.columns([6, 1])
with header_col:
    page = st.session_state.page
    st.title(
        {
            "Dashboard": "Control Panel",
            "Inventory": "Medication Inventory",
            "AI Analysis": "Predictive Analysis",
            SETUP_PAGE: "Database Configuration",
        }[page]
    )
    if session.table_missing:
        st.caption("⚠️ Supabase setup required")
    else:
        st.caption(f"{settings.APP_NAME} v{settings.APP_VERSION}")
with sync_col:
    if st.button("🔄 Sync now", disabled=not session.has_remote):
        session.refresh()
        st.rerun()


def render_dashboard() -> None:
    """Stat cards with per-subset PDFs, top stock and expiry status charts."""
    generated_at = datetime.now()

    def report_button(expiry_filter: ExpiryFilter, key: str) -> None:
        title = expiry_report_title(expiry_filter)
        subset = filter_by_expiry(session.records, expiry_filter, today, settings.EXPIRY_WARNING_MONTHS)
        st.download_button(
            "⬇️ PDF",
            data=medication_pdf(title, subset, stats, generated_at),
            file_name=report_filename(title, generated_at, settings.APP_NAME),
            mime="application/pdf",
            key=key,
        )

    cards = [
        ("Total Meds", stats.total_medications, "Inventory", ExpiryFilter.ALL),
        ("Stock", f"{stats.total_units:,}", "Units", ExpiryFilter.ALL),
        ("Expiring soon", stats.expiring_soon, "90 days", ExpiryFilter.UPCOMING),
        ("Expired", stats.expired, "Withdraw", ExpiryFilter.EXPIRED),
    ]
    for col, (label, value, hint, expiry_filter) in zip(st.columns(4), cards):
        with col:
            st.metric(label, value, delta=hint, delta_color="off")
            view_col, pdf_col = st.columns(2)
            with view_col:
                st.button("View", key=f"view_{label}", on_click=show_table, args=(expiry_filter,))
            with pdf_col:
                report_button(expiry_filter, key=f"pdf_{label}")

    st.divider()
    left_col, right_col = st.columns(2)

    with left_col:
        st.subheader("📦 Top Stock")
        top = top_stock(session.records)
        fig_top = go.Figure(
            data=[
                go.Bar(
                    x=top["short_name"],
                    y=top["quantity"],
                    hovertext=top["name"],
                    marker_color="#3b82f6",
                )
            ]
        )
        fig_top.update_layout(
            height=320,
            margin=dict(t=20, b=20, l=20, r=20),
            yaxis_title="Units",
        )
        st.plotly_chart(fig_top, use_container_width=True)

    with right_col:
        st.subheader("⏳ Status")
        slices = expiry_breakdown(stats)
        fig_status = go.Figure(
            data=[
                go.Pie(
                    labels=[s["name"] for s in slices],
                    values=[s["value"] for s in slices],
                    hole=0.5,
                    marker_colors=[s["color"] for s in slices],
                    sort=False,
                )
            ]
        )
        fig_status.update_layout(
            height=320,
            margin=dict(t=20, b=20, l=20, r=20),
            legend=dict(orientation="h", yanchor="bottom", y=-0.2),
        )
        st.plotly_chart(fig_status, use_container_width=True)
        for col, s in zip(st.columns(len(slices)), slices):
            with col:
                st.button(
                    f"{s['name']} ({s['value']})",
                    key=f"slice_{s['name']}",
                    on_click=show_table,
                    args=(s["filter"],),
                    use_container_width=True,
                )


def render_inventory() -> None:
    """Searchable, expiry-filtered table with CSV and PDF export."""
    search_col, filter_col = st.columns([3, 2])
    with search_col:
        term = st.text_input("Search medication", placeholder="Name, code or lot...")
    with filter_col:
        st.radio(
            "Show",
            list(FILTER_LABELS),
            format_func=FILTER_LABELS.get,
            key="expiry_filter",
            horizontal=True,
        )

    expiry_filter = st.session_state.expiry_filter
    visible = filter_by_expiry(
        search_medications(session.records, term),
        expiry_filter,
        today,
        settings.EXPIRY_WARNING_MONTHS,
    )
    st.caption(f"Showing {len(visible)} results")

    if not visible:
        st.info("No results")
        return

    df = to_frame(visible, today, settings.EXPIRY_WARNING_MONTHS)
    df["status"] = df["status"].apply(lambda s: f"{STATUS_BADGES[s]} {STATUS_LABELS[s]}")
    display_df = df[["code", "name", "lot", "expiry_date", "quantity", "status"]].copy()
    display_df.columns = ["Code", "Medication", "Lot", "Expiry", "Qty", "Status"]

    st.dataframe(
        display_df,
        use_container_width=True,
        hide_index=True,
        column_config={
            "Expiry": st.column_config.DateColumn(format="DD/MM/YYYY"),
            "Qty": st.column_config.NumberColumn(format="%d"),
        },
    )

    generated_at = datetime.now()
    title = expiry_report_title(expiry_filter)
    csv_col, pdf_col, _ = st.columns([1, 1, 4])
    with csv_col:
        st.download_button(
            "⬇️ CSV",
            data=display_df.to_csv(index=False).encode("utf-8"),
            file_name=report_filename(title, generated_at, settings.APP_NAME).replace(".pdf", ".csv"),
            mime="text/csv",
        )
    with pdf_col:
        st.download_button(
            "⬇️ PDF",
            data=medication_pdf(title, visible, stats, generated_at),
            file_name=report_filename(title, generated_at, settings.APP_NAME),
            mime="application/pdf",
        )


def render_ai_analysis() -> None:
    """Generate, show and download the AI analysis."""
    st.markdown(
        "Use AI to analyse trends in your inventory, detect expiry risks "
        "and optimise your stock."
    )

    if not settings.insights_configured:
        st.info("Configure your API key (OPENAI_API_KEY) to get insights.")
        return

    report = st.session_state.get("insight_report")
    label = "🔄 Refresh analysis" if report else "✨ Generate smart report"
    if st.button(label, type="primary", disabled=not session.records):
        with st.spinner("Analysing medical inventory..."):
            try:
                generator = InsightGenerator(
                    model=settings.OPENAI_MODEL,
                    api_key=settings.OPENAI_API_KEY,
                    max_items=settings.INSIGHT_MAX_ITEMS,
                )
                report = generator.generate_insights(session.records, stats, today)
                st.session_state.insight_report = report
            except InsightsUnavailableError as e:
                st.error(str(e))

    if report is None:
        st.caption("Click the button above to process the current data.")
        return

    st.subheader("Analysis results")
    st.markdown(report.to_markdown())

    generated_at = datetime.now()
    st.download_button(
        "⬇️ Download PDF",
        data=generate_insight_report(report.to_text(), generated_at, settings.APP_NAME),
        file_name=insight_report_filename(generated_at, settings.APP_NAME),
        mime="application/pdf",
    )
    st.caption(
        "* This analysis is AI-generated and must be verified by qualified staff "
        "before making critical supply decisions."
    )


def render_setup() -> None:
    """Walk the operator through creating the medications table."""
    st.warning(
        f"Table '{settings.SUPABASE_TABLE}' not found. Your Supabase project is "
        "connected, but the table needed to store the data is missing."
    )

    step1, step2, step3 = st.columns(3)
    with step1:
        st.markdown("**1. Open Supabase**  \nGo to your dashboard and open the SQL Editor.")
        if settings.SUPABASE_SQL_EDITOR_URL:
            st.link_button("Go to dashboard →", settings.SUPABASE_SQL_EDITOR_URL)
    with step2:
        st.markdown("**2. Paste the code**  \nCopy the script below into the editor.")
    with step3:
        st.markdown("**3. Run it**  \nPress 'Run' to create the table.")

    st.code(setup_sql(settings.SUPABASE_TABLE), language="sql")

    st.button("🔄 Verify connection now", type="primary", on_click=verify_connection)

    st.caption(
        "Don't want to set up Supabase? You can keep using the app, but data will "
        "only be saved on this machine."
    )


# --- Main content ---
page = st.session_state.page
if page == SETUP_PAGE:
    render_setup()
elif not session.records and page != "AI Analysis":
    st.info("**No medications yet.** Upload an Excel file to start managing the inventory.")
elif page == "Dashboard":
    render_dashboard()
elif page == "Inventory":
    render_inventory()
else:
    render_ai_analysis()

# --- Footer ---
st.divider()
st.caption(
    f"Built with Streamlit | {stats.total_medications} medications | "
    f"{stats.total_units:,} units | {stats.expired} expired"
)
