"""
Visualization Module
====================
Bortle scale và Plotly charts cho bảng plot-ready.

Functions:
- build_magnitude_figure: Scatter MSAS theo đêm, màu theo sky temperature
- classify_msas: Xác định mức Bortle của một giá trị MSAS
"""

from .bortle import BortleBand, BORTLE_BANDS, REFERENCE_MSAS, MSAS_LIMITS, classify_msas, bortle_table
from .charts import build_magnitude_figure, add_bortle_background

__all__ = [
    'BortleBand',
    'BORTLE_BANDS',
    'REFERENCE_MSAS',
    'MSAS_LIMITS',
    'classify_msas',
    'bortle_table',
    'build_magnitude_figure',
    'add_bortle_background'
]
