"""
Bortle Scale
============
Bảng tham chiếu tĩnh: 8 mức Bortle theo độ sáng bầu trời (mag/arcsec²),
dùng làm nền cho chart MSAS.
"""

import pandas as pd
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class BortleBand:
    """Một mức Bortle với khoảng MSAS và màu nền."""
    name: str
    ymin: float
    ymax: float
    color: str

    def contains(self, msas: float) -> bool:
        return self.ymin <= msas < self.ymax


BORTLE_BANDS: List[BortleBand] = [
    BortleBand('Bortle 1', 21.90, 22.50, 'black'),
    BortleBand('Bortle 2', 21.50, 21.90, '#333333'),   # grey20
    BortleBand('Bortle 3', 21.30, 21.50, 'darkblue'),
    BortleBand('Bortle 4', 20.80, 21.30, 'darkgreen'),
    BortleBand('Bortle 5', 20.10, 20.80, 'yellow'),
    BortleBand('Bortle 6', 19.10, 20.10, 'orange'),
    BortleBand('Bortle 7', 18.00, 19.10, 'red'),
    BortleBand('Bortle 8', 17.50, 18.00, 'white'),
]

# Đường tham chiếu (ranh giới Bortle 3/4)
REFERENCE_MSAS = 21.3

# Giới hạn trục y
MSAS_LIMITS = (17.5, 22.5)


def classify_msas(msas: float) -> Optional[str]:
    """
    Xác định mức Bortle cho một giá trị MSAS.

    Args:
        msas: Độ sáng bầu trời (mag/arcsec²)

    Returns:
        Tên mức Bortle, None nếu nằm ngoài bảng
    """
    for band in BORTLE_BANDS:
        if band.contains(msas):
            return band.name
    # Biên trên của Bortle 1 cũng thuộc Bortle 1
    if msas == BORTLE_BANDS[0].ymax:
        return BORTLE_BANDS[0].name
    return None


def bortle_table() -> pd.DataFrame:
    """Bảng Bortle dưới dạng DataFrame (name, ymin, ymax, color)."""
    return pd.DataFrame([band.__dict__ for band in BORTLE_BANDS])
