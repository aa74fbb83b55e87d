"""
Streamlit Dashboard
===================
Dashboard phân tích dữ liệu photometer:
    - Sidebar: chọn date range (giới hạn theo dữ liệu), cách nhóm đêm
    - Chart: MSAS cao nhất mỗi đêm lạnh trên nền Bortle scale
    - Bảng readings được chọn và thống kê theo đêm

Run:
    PHOTOMETER_DATA_DIR=data/ streamlit run dashboard/app.py
"""

import streamlit as st
import pandas as pd
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import LoaderConfig, NightConfig
from src.data.errors import PhotometerDataError
from src.pipeline import SkyBrightnessPipeline
from src.visualization import build_magnitude_figure, classify_msas

# Page config
st.set_page_config(
    page_title="Photometer Daten Analyse",
    page_icon="🌌",
    layout="wide",
    initial_sidebar_state="expanded"
)

# =============================================================================
# Data Loading Functions
# =============================================================================

@st.cache_resource
def load_pipeline(data_dir: str) -> SkyBrightnessPipeline:
    """Load toàn bộ log files một lần cho cả session."""
    return SkyBrightnessPipeline.from_config(
        LoaderConfig(data_dir=data_dir),
        show_progress=False
    )


GROUPING_OPTIONS = {
    'UTC date of reading': 'date',
    'Evening the night started': 'night_date'
}


# =============================================================================
# Render Functions
# =============================================================================

def render_sidebar(pipeline: SkyBrightnessPipeline):
    """Render sidebar và trả về (start, end, group_by)."""
    st.sidebar.title("🌌 Photometer")
    st.sidebar.markdown("---")

    min_date, max_date = pipeline.date_bounds()
    stats = pipeline.parse_stats
    st.sidebar.success(f"✓ Data loaded: {len(pipeline.records):,} records")
    if stats:
        st.sidebar.info(f"📁 {stats.get('files', 0)} files, {stats.get('failed', 0)} skipped lines")
    st.sidebar.info(f"📅 {min_date} → {max_date}")

    selected = st.sidebar.date_input(
        "Wähle Datum:",
        value=(min_date, max_date),
        min_value=min_date,
        max_value=max_date
    )

    # Khi người dùng mới chọn một ngày, date_input trả về tuple 1 phần tử
    if isinstance(selected, (tuple, list)):
        start = selected[0] if len(selected) > 0 else min_date
        end = selected[1] if len(selected) > 1 else start
    else:
        start = end = selected

    grouping = st.sidebar.radio(
        "Group night readings by",
        list(GROUPING_OPTIONS.keys()),
        help="Readings sau nửa đêm thuộc ngày UTC hôm sau khi nhóm theo ngày UTC"
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown("Made with Streamlit")

    return start, end, GROUPING_OPTIONS[grouping]


def render_plot(plot_df: pd.DataFrame):
    """Render chart MSAS."""
    if len(plot_df) == 0:
        st.info("Keine Nächte mit Durchschnitts-Temperatur unter 0°C im gewählten Zeitraum.")

    fig = build_magnitude_figure(plot_df)
    st.plotly_chart(fig, width='stretch')


def render_kpis(plot_df: pd.DataFrame, summaries):
    """Render KPIs."""
    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Nights", len(summaries), help="Số đêm có readings trong night window")

    with col2:
        st.metric("Cold nights", len(plot_df), help="Avg sky temperature < 0°C")

    with col3:
        if len(plot_df) > 0:
            darkest = float(plot_df['msas'].astype(float).max())
            st.metric("Darkest sky", f"{darkest:.2f}", help=classify_msas(darkest))
        else:
            st.metric("Darkest sky", "-")


def render_tables(plot_df: pd.DataFrame, summaries):
    """Render bảng readings được chọn và bảng tổng hợp theo đêm."""
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Selected readings")
        if len(plot_df) > 0:
            table = plot_df[['date', 'utc_datetime', 'msas', 'sky_temperature', 'avg_sky_temp']].copy()
            table['bortle'] = [classify_msas(v) for v in table['msas']]
            st.dataframe(table, hide_index=True)
        else:
            st.write("-")

    with col2:
        st.subheader("Nightly summary")
        if summaries:
            rows = [
                {
                    'date': s.date,
                    'avg_sky_temp': s.avg_sky_temp,
                    'max_msas': s.max_msas,
                    'max_msas_time': s.max_msas_reading.get('utc_datetime'),
                    'reading_count': s.reading_count,
                    'is_cold': s.is_cold
                }
                for s in summaries
            ]
            st.dataframe(pd.DataFrame(rows), hide_index=True)
        else:
            st.write("-")


# =============================================================================
# Main App
# =============================================================================

def main():
    """Main application."""
    st.title("Photometer Daten Analyse")

    data_dir = LoaderConfig().data_dir
    try:
        pipeline = load_pipeline(data_dir)
    except PhotometerDataError as e:
        st.error(f"Error loading data: {e}")
        st.stop()

    start, end, group_by = render_sidebar(pipeline)

    if group_by != pipeline.night_config.group_by:
        pipeline = pipeline.with_night_config(NightConfig(group_by=group_by))

    plot_df = pipeline.plot_table(start, end)
    summaries = pipeline.night_summaries(start, end)

    render_kpis(plot_df, summaries)
    st.markdown("---")
    render_plot(plot_df)
    render_tables(plot_df, summaries)


if __name__ == "__main__":
    main()
