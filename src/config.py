"""
Configuration
=============
Cấu hình cho ingestion loader và nightly aggregator.

Usage:
    >>> loader_config = LoaderConfig(data_dir='data/')
    >>> night_config = NightConfig(cold_threshold=-1.0)
"""

import os
from dataclasses import dataclass


# Thư mục dữ liệu mặc định, có thể override bằng biến môi trường
DEFAULT_DATA_DIR = os.environ.get('PHOTOMETER_DATA_DIR', 'data')

ON_ERROR_CHOICES = ('raise', 'skip')
GROUP_BY_CHOICES = ('date', 'night_date')


@dataclass
class LoaderConfig:
    """
    Cấu hình cho PhotometerLogParser.

    Attributes:
        data_dir: Thư mục chứa các file .dat
        file_pattern: Glob pattern (instrument + năm), vd: stars927_2024-*.dat
        preamble_lines: Số dòng header cần bỏ qua ở đầu mỗi file
        delimiter: Ký tự phân cách các fields
        encoding: Encoding của file
        on_error: 'raise' (abort khi gặp dòng lỗi) hoặc 'skip' (bỏ qua và ghi lại)
    """
    data_dir: str = DEFAULT_DATA_DIR
    file_pattern: str = 'stars927_2024-*.dat'
    preamble_lines: int = 35
    delimiter: str = ';'
    encoding: str = 'latin-1'
    on_error: str = 'raise'

    def __post_init__(self):
        if self.on_error not in ON_ERROR_CHOICES:
            raise ValueError(f"on_error phải là một trong {ON_ERROR_CHOICES}, nhận được: {self.on_error!r}")
        if self.preamble_lines < 0:
            raise ValueError(f"preamble_lines không được âm: {self.preamble_lines}")
        if not self.delimiter:
            raise ValueError("delimiter không được rỗng")


@dataclass
class NightConfig:
    """
    Cấu hình night window và cold-night filter.

    Attributes:
        night_start_hour: Giờ UTC bắt đầu đêm (inclusive)
        night_end_hour: Giờ UTC kết thúc đêm (inclusive)
        cold_threshold: Ngưỡng nhiệt độ bầu trời trung bình (°C), đêm lạnh khi < ngưỡng
        group_by: Cột dùng để nhóm theo đêm:
            - 'date': ngày UTC của chính sample (mặc định)
            - 'night_date': ngày của buổi tối bắt đầu đêm
    """
    night_start_hour: int = 21
    night_end_hour: int = 4
    cold_threshold: float = 0.0
    group_by: str = 'date'

    def __post_init__(self):
        for name in ('night_start_hour', 'night_end_hour'):
            value = getattr(self, name)
            if not 0 <= value <= 23:
                raise ValueError(f"{name} phải nằm trong [0, 23], nhận được: {value}")
        if self.group_by not in GROUP_BY_CHOICES:
            raise ValueError(f"group_by phải là một trong {GROUP_BY_CHOICES}, nhận được: {self.group_by!r}")
