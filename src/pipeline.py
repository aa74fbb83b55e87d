"""
Sky Brightness Pipeline
=======================
Orchestrator: load photometer logs một lần, giữ bảng records read-only,
và tính bảng plot-ready mỗi khi date range thay đổi.

Usage:
    >>> pipeline = SkyBrightnessPipeline.from_config(LoaderConfig(data_dir='data/'))
    >>> start, end = pipeline.date_bounds()
    >>> plot_df = pipeline.plot_table(start, end)
"""

import pandas as pd
from datetime import date
from typing import List, Optional, Tuple

from .config import LoaderConfig, NightConfig
from .data.parser import PhotometerLogParser
from .data.aggregator import NightlyAggregator, NightSummary, DateLike
from .data.errors import NoInputDataError


class SkyBrightnessPipeline:
    """
    Pipeline gồm Ingestion Loader → Nightly Aggregator.

    Attributes:
        records: Bảng records gộp từ tất cả các file (không bị thay đổi sau khi load)
        night_config: Cấu hình mặc định cho aggregator
        parse_stats: Thống kê parsing lúc load (nếu load từ file)
    """

    def __init__(
        self,
        records: pd.DataFrame,
        night_config: Optional[NightConfig] = None,
        parse_stats: Optional[dict] = None
    ):
        if len(records) == 0:
            raise NoInputDataError("Bảng records rỗng")

        self.records = records
        self.night_config = night_config or NightConfig()
        self.parse_stats = parse_stats or {}
        self.aggregator = NightlyAggregator(records, self.night_config)

    @classmethod
    def from_config(
        cls,
        loader_config: Optional[LoaderConfig] = None,
        night_config: Optional[NightConfig] = None,
        show_progress: bool = True
    ) -> 'SkyBrightnessPipeline':
        """
        Load toàn bộ file trong thư mục và tạo pipeline.

        Raises:
            NoInputDataError: Không có file / record nào
            MalformedRecordError: Dòng lỗi khi on_error='raise'
            OSError: Không đọc được file
        """
        parser = PhotometerLogParser(loader_config)
        records = parser.parse_directory(show_progress=show_progress)
        return cls(records, night_config, parse_stats=parser.get_stats())

    def with_night_config(self, night_config: NightConfig) -> 'SkyBrightnessPipeline':
        """Tạo pipeline mới dùng chung bảng records với config khác."""
        return SkyBrightnessPipeline(self.records, night_config, self.parse_stats)

    def date_bounds(self) -> Tuple[date, date]:
        """Ngày UTC nhỏ nhất và lớn nhất, dùng làm giới hạn cho date picker."""
        return self.aggregator.date_bounds()

    def plot_table(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        """Bảng plot-ready cho date range [start, end]."""
        return self.aggregator.build_plot_table(start, end)

    def night_summaries(self, start: DateLike, end: DateLike) -> List[NightSummary]:
        return self.aggregator.summarize_nights(start, end)

    def get_data_summary(self) -> dict:
        return self.aggregator.get_data_summary()
