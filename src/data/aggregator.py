"""
Nightly Aggregator
==================
Module tính thống kê theo từng đêm từ bảng records đã parse.

Chức năng chính:
    - Lọc theo date range (inclusive) do người dùng chọn
    - Lọc night window: 21:00 → 04:59 UTC (hour >= 21 hoặc hour <= 4)
    - Tính nhiệt độ bầu trời trung bình mỗi đêm
    - Chọn các đêm lạnh (avg sky temperature < 0°C, proxy cho trời quang)
    - Tìm reading có MSAS cao nhất mỗi đêm lạnh → bảng plot-ready

Tie-break:
    - Nhiều readings cùng max MSAS trong một đêm → giữ reading có
      utc_timestamp sớm nhất (rồi sequence_number nhỏ nhất)

Grouping:
    - group_by='date': nhóm theo ngày UTC của chính sample. Readings sau
      nửa đêm rơi vào ngày hôm sau.
    - group_by='night_date': nhóm theo ngày của buổi tối bắt đầu đêm.
"""

import pandas as pd
import numpy as np
from datetime import date
from typing import Dict, List, Optional, Tuple, Union, Any
from dataclasses import dataclass, field

from ..config import NightConfig
from .parser import COLUMNS


DateLike = Union[date, str, pd.Timestamp]

REQUIRED_COLUMNS = ['utc_timestamp', 'utc_date', 'hour', 'date', 'night_date',
                    'sky_temperature', 'msas', 'sequence_number']

PLOT_COLUMNS = COLUMNS + ['avg_sky_temp']


@dataclass(frozen=True)
class NightSummary:
    """
    Kết quả aggregate cho một đêm.

    Attributes:
        date: Ngày của đêm (theo group_by)
        avg_sky_temp: Sky temperature trung bình trong night window
        max_msas: MSAS lớn nhất của đêm
        reading_count: Số readings trong night window
        is_cold: avg_sky_temp < cold_threshold
        max_msas_reading: Toàn bộ fields của reading có MSAS lớn nhất
    """
    date: date
    avg_sky_temp: float
    max_msas: float
    reading_count: int
    is_cold: bool
    max_msas_reading: Dict[str, Any] = field(default_factory=dict, compare=False)


def in_night_window(hours, start_hour: int = 21, end_hour: int = 4) -> np.ndarray:
    """
    Kiểm tra các giờ có nằm trong night window hay không.

    Window bao gồm cả hai đầu. Nếu start_hour > end_hour thì window
    vắt qua nửa đêm (vd: 21 → 4).

    Args:
        hours: Array-like các giờ (0-23)
        start_hour: Giờ bắt đầu
        end_hour: Giờ kết thúc

    Returns:
        Boolean numpy array
    """
    hours = np.asarray(hours, dtype=int)

    if start_hour > end_hour:
        return (hours >= start_hour) | (hours <= end_hour)
    return (hours >= start_hour) & (hours <= end_hour)


def to_date(value: DateLike) -> date:
    """Chuyển date / string / Timestamp về datetime.date."""
    return pd.Timestamp(value).date()


class NightlyAggregator:
    """
    Aggregator tính bảng plot-ready từ bảng records.

    Bảng records không bao giờ bị thay đổi: mọi bước đều tạo DataFrame mới,
    nên gọi build_plot_table nhiều lần với cùng tham số cho cùng kết quả.

    Attributes:
        df: DataFrame từ PhotometerLogParser (read-only)
        config: NightConfig
        key: Cột dùng để nhóm theo đêm ('date' hoặc 'night_date')

    Usage:
        >>> aggregator = NightlyAggregator(records_df)
        >>> plot_df = aggregator.build_plot_table('2024-01-01', '2024-03-31')
        >>> summaries = aggregator.summarize_nights('2024-01-01', '2024-03-31')
    """

    def __init__(self, df: pd.DataFrame, config: Optional[NightConfig] = None):
        """
        Khởi tạo aggregator.

        Args:
            df: DataFrame với các cột trong parser.COLUMNS
            config: Cấu hình night window / cold threshold

        Raises:
            ValueError: Nếu thiếu cột bắt buộc
        """
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"DataFrame thiếu các cột: {missing}")

        self.df = df
        self.config = config or NightConfig()
        self.key = self.config.group_by

    def filter_date_range(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        """
        Lọc records theo ngày của đêm trong [start, end] (inclusive).

        Với group_by='date' lọc theo utc_date; với group_by='night_date'
        lọc theo night_date để một đêm không bị cắt đôi ở hai đầu range.

        Args:
            start: Ngày bắt đầu
            end: Ngày kết thúc

        Returns:
            DataFrame đã lọc (có thể rỗng)
        """
        start_date, end_date = to_date(start), to_date(end)
        column = 'night_date' if self.key == 'night_date' else 'utc_date'
        dates = self.df[column]
        mask = (dates >= start_date) & (dates <= end_date)
        return self.df[mask]

    def filter_night_window(self, df: pd.DataFrame) -> pd.DataFrame:
        """Giữ lại records có hour nằm trong night window."""
        mask = in_night_window(
            df['hour'].to_numpy(),
            self.config.night_start_hour,
            self.config.night_end_hour
        )
        return df[mask]

    def average_sky_temperature(self, night_df: pd.DataFrame) -> pd.DataFrame:
        """
        Tính sky temperature trung bình theo từng đêm.

        Args:
            night_df: Records đã lọc night window

        Returns:
            DataFrame với các cột: <key>, avg_sky_temp, reading_count
        """
        if len(night_df) == 0:
            return pd.DataFrame(columns=[self.key, 'avg_sky_temp', 'reading_count'])

        return (
            night_df.groupby(self.key, sort=True)['sky_temperature']
            .agg(avg_sky_temp='mean', reading_count='count')
            .reset_index()
        )

    def select_cold_nights(self, avg_df: pd.DataFrame) -> List[date]:
        """Lấy danh sách các đêm có avg_sky_temp < cold_threshold."""
        if len(avg_df) == 0:
            return []
        cold = avg_df[avg_df['avg_sky_temp'] < self.config.cold_threshold]
        return cold[self.key].tolist()

    def max_msas_per_night(self, cold_df: pd.DataFrame) -> pd.DataFrame:
        """
        Tìm giá trị MSAS lớn nhất của mỗi đêm.

        Returns:
            DataFrame với các cột: <key>, msas
        """
        if len(cold_df) == 0:
            return pd.DataFrame(columns=[self.key, 'msas'])

        return cold_df.groupby(self.key, sort=True)['msas'].max().reset_index()

    def join_max_readings(self, cold_df: pd.DataFrame, max_df: pd.DataFrame) -> pd.DataFrame:
        """
        Join max MSAS ngược lại records để lấy reading đầy đủ, một dòng mỗi đêm.

        Nếu có nhiều readings cùng (đêm, MSAS) thì giữ reading sớm nhất.

        Args:
            cold_df: Records night window của các đêm lạnh
            max_df: Output của max_msas_per_night

        Returns:
            DataFrame một dòng mỗi đêm, sort theo key
        """
        if len(cold_df) == 0 or len(max_df) == 0:
            return pd.DataFrame(columns=list(cold_df.columns))

        merged = cold_df.merge(max_df, on=[self.key, 'msas'], how='inner')

        merged = merged.sort_values(
            [self.key, 'utc_timestamp', 'sequence_number'], kind='mergesort'
        )
        merged = merged.drop_duplicates(subset=self.key, keep='first')

        return merged.reset_index(drop=True)

    def build_plot_table(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        """
        Chạy toàn bộ pipeline aggregate cho một date range.

        Steps:
            1. Date range filter
            2. Night window filter
            3. Avg sky temperature mỗi đêm
            4. Chọn cold nights
            5. Max MSAS mỗi cold night
            6. Join + dedupe

        Args:
            start: Ngày bắt đầu (inclusive)
            end: Ngày kết thúc (inclusive)

        Returns:
            DataFrame với PLOT_COLUMNS, một dòng mỗi cold night (có thể rỗng)
        """
        night_df = self.filter_night_window(self.filter_date_range(start, end))
        avg_df = self.average_sky_temperature(night_df)

        cold_nights = self.select_cold_nights(avg_df)
        if not cold_nights:
            return pd.DataFrame(columns=PLOT_COLUMNS)

        cold_df = night_df[night_df[self.key].isin(cold_nights)]
        max_df = self.max_msas_per_night(cold_df)

        plot_df = self.join_max_readings(cold_df, max_df)
        plot_df = plot_df.merge(avg_df[[self.key, 'avg_sky_temp']], on=self.key, how='left')

        return plot_df[PLOT_COLUMNS]

    def summarize_nights(self, start: DateLike, end: DateLike) -> List[NightSummary]:
        """
        Tạo NightSummary cho mọi đêm có readings trong night window.

        Args:
            start: Ngày bắt đầu (inclusive)
            end: Ngày kết thúc (inclusive)

        Returns:
            List NightSummary, sort theo ngày
        """
        night_df = self.filter_night_window(self.filter_date_range(start, end))
        avg_df = self.average_sky_temperature(night_df)

        if len(avg_df) == 0:
            return []

        max_df = self.max_msas_per_night(night_df)
        nights = avg_df.merge(max_df, on=self.key, how='inner')

        winners = self.join_max_readings(night_df, max_df)
        readings = {
            row[self.key]: {col: row[col] for col in COLUMNS}
            for _, row in winners.iterrows()
        }

        return [
            NightSummary(
                date=row[self.key],
                avg_sky_temp=float(row['avg_sky_temp']),
                max_msas=float(row['msas']),
                reading_count=int(row['reading_count']),
                is_cold=bool(row['avg_sky_temp'] < self.config.cold_threshold),
                max_msas_reading=readings[row[self.key]]
            )
            for _, row in nights.iterrows()
        ]

    def date_bounds(self) -> Tuple[date, date]:
        """Ngày UTC nhỏ nhất và lớn nhất trong dữ liệu."""
        return self.df['utc_date'].min(), self.df['utc_date'].max()

    def get_data_summary(self) -> Dict[str, Any]:
        """
        Lấy thống kê tổng quan về dữ liệu.

        Returns:
            Dict với các thống kê chính
        """
        df = self.df
        start, end = self.date_bounds()
        night_mask = in_night_window(
            df['hour'].to_numpy(),
            self.config.night_start_hour,
            self.config.night_end_hour
        )
        summaries = self.summarize_nights(start, end)

        return {
            'total_records': len(df),
            'night_records': int(night_mask.sum()),
            'files': int(df['source_file'].nunique()) if 'source_file' in df.columns else None,
            'date_range': {
                'start': start,
                'end': end,
                'duration_days': (end - start).days
            },
            'sky_temperature': {
                'mean': df['sky_temperature'].mean(),
                'min': df['sky_temperature'].min(),
                'max': df['sky_temperature'].max()
            },
            'msas': {
                'mean': df['msas'].mean(),
                'median': df['msas'].median(),
                'max': df['msas'].max()
            },
            'nights': len(summaries),
            'cold_nights': sum(1 for s in summaries if s.is_cold)
        }
