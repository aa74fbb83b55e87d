"""
MSAS Charts
===========
Tạo Plotly figure cho bảng plot-ready:
    - x: ngày (YYYY-MM-DD) của reading có MSAS cao nhất
    - y: MSAS [mag/arcsec²]
    - màu: sky temperature (gradient xanh đậm → xanh nhạt → trắng, -10..10°C)
    - label: sky temperature làm tròn 2 chữ số
    - nền: Bortle scale + đường tham chiếu 21.3
"""

import pandas as pd
import plotly.graph_objects as go

from .bortle import BORTLE_BANDS, REFERENCE_MSAS, MSAS_LIMITS


# Colorscale cho sky temperature, 0°C nằm giữa (-10 → 10)
SKY_TEMP_COLORSCALE = [
    [0.0, '#132B43'],
    [0.5, '#56B1F7'],
    [1.0, 'white']
]
SKY_TEMP_RANGE = (-10, 10)

CHART_TITLE = "Maximale MSAS Werte für Nächte mit Durchschnitts-Temperatur unter 0°C"


def add_bortle_background(fig: go.Figure, opacity: float = 0.1) -> go.Figure:
    """
    Thêm các dải Bortle làm nền và legend tương ứng.

    Args:
        fig: Plotly figure
        opacity: Độ trong suốt của các dải

    Returns:
        Figure đã thêm nền
    """
    for band in BORTLE_BANDS:
        fig.add_hrect(
            y0=band.ymin, y1=band.ymax,
            fillcolor=band.color, opacity=opacity,
            line_width=0, layer='below'
        )
        # Trace rỗng chỉ để hiện legend
        fig.add_trace(go.Scatter(
            x=[None], y=[None],
            mode='markers',
            marker=dict(size=12, symbol='square', color=band.color, line=dict(width=1, color='grey')),
            name=band.name,
            legendgroup='bortle',
            legendgrouptitle_text='Bortle Scale' if band is BORTLE_BANDS[0] else None,
            hoverinfo='skip'
        ))

    fig.add_hline(y=REFERENCE_MSAS, line_color='red', line_dash='dash')
    return fig


def build_magnitude_figure(plot_df: pd.DataFrame, height: int = 700) -> go.Figure:
    """
    Tạo scatter chart MSAS cao nhất mỗi đêm lạnh.

    Args:
        plot_df: Output của NightlyAggregator.build_plot_table (có thể rỗng)
        height: Chiều cao chart (px)

    Returns:
        Plotly Figure
    """
    fig = go.Figure()
    add_bortle_background(fig)

    x = pd.to_datetime(plot_df['utc_timestamp'], utc=True).dt.strftime('%Y-%m-%d')
    msas = plot_df['msas'].astype(float)
    sky_temp = plot_df['sky_temperature'].astype(float)

    fig.add_trace(go.Scatter(
        x=x,
        y=msas,
        mode='markers+text',
        name='Max MSAS',
        marker=dict(
            size=10,
            color=sky_temp,
            colorscale=SKY_TEMP_COLORSCALE,
            cmin=SKY_TEMP_RANGE[0],
            cmax=SKY_TEMP_RANGE[1],
            colorbar=dict(title='Sky Temperature [°C]', x=1.15),
            line=dict(width=1, color='grey')
        ),
        text=sky_temp.round(2).astype(str),
        textposition='top center',
        textfont=dict(size=10),
        hovertemplate='%{x}<br>MSAS: %{y:.2f}<br>Sky temp: %{text}°C<extra></extra>',
        showlegend=False
    ))

    fig.update_layout(
        title=CHART_TITLE,
        xaxis_title="UTC Time",
        yaxis_title="MSAS [ mag/arcsec² ]",
        yaxis=dict(range=list(MSAS_LIMITS)),
        xaxis=dict(type='category', tickangle=-90),
        template='plotly_white',
        height=height
    )

    return fig
