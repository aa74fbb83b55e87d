"""
Photometer Log Parser
=====================
Module parse log files của photometer (SQM-LE, instrument stars927).

Định dạng file:
    - 35 dòng preamble đầu file (comment, metadata) → bỏ qua
    - Các dòng dữ liệu phân cách bởi ';', 8 fields theo thứ tự cố định,
      không có header row

Ví dụ:
    2024-01-15T22:30:05.000;2024-01-15T23:30:05.000;-2.3;-15.4;12.34;19.60;20.00;1523

Edge cases xử lý:
    - Dòng trống sau preamble → Skip
    - Timestamp không có 'T' hoặc sai format → MalformedRecordError
    - Sai số lượng fields / số không hợp lệ → MalformedRecordError
    - Malformed lines → Raise (mặc định) hoặc skip và log lỗi (on_error='skip')
"""

import os
import glob
import pandas as pd
from datetime import datetime, date, timedelta, timezone
from typing import Optional, Dict, Any, List, Tuple, Callable
from dataclasses import dataclass
from tqdm import tqdm

from .errors import MalformedRecordError, NoInputDataError
from ..config import LoaderConfig


@dataclass(frozen=True)
class FieldSpec:
    """Khai báo một field trong record schema."""
    name: str
    label: str
    converter: Callable[[str], Any]


# Schema theo thứ tự cột trong file
SCHEMA: Tuple[FieldSpec, ...] = (
    FieldSpec('utc_datetime', 'UTC Date and Time', str),
    FieldSpec('local_datetime', 'Local Date and Time', str),
    FieldSpec('enclosure_temperature', 'Enclosure Temperature', float),
    FieldSpec('sky_temperature', 'Sky Temperature', float),
    FieldSpec('frequency', 'Frequency', float),
    FieldSpec('msas', 'MSAS', float),
    FieldSpec('zp', 'ZP', float),
    FieldSpec('sequence_number', 'Sequence Number', int),
)

# Các cột được tính một lần khi load
DERIVED_COLUMNS = ['utc_timestamp', 'utc_date', 'hour', 'date', 'night_date', 'source_file']

COLUMNS = [field.name for field in SCHEMA] + DERIVED_COLUMNS

# Giờ chia đêm: sample trước 12:00 UTC thuộc về đêm của ngày hôm trước
NIGHT_SPLIT_HOUR = 12


class PhotometerLogParser:
    """
    Parser cho photometer .dat log files.

    Xử lý các edge cases:
        - Preamble có độ dài cố định
        - Timestamp dạng YYYY-MM-DDTHH:MM:SS[.fff] (UTC)
        - Malformed entries (raise hoặc skip tùy config)

    Attributes:
        config (LoaderConfig): Cấu hình loader
        parse_errors (List): Danh sách (file, line_num, reason) các dòng lỗi
        stats (Dict): Thống kê parsing (files, total, success, failed)

    Usage:
        >>> parser = PhotometerLogParser(LoaderConfig(data_dir='data/'))
        >>> df = parser.parse_directory()
        >>> print(parser.stats)
    """

    def __init__(self, config: Optional[LoaderConfig] = None):
        """Khởi tạo parser với config và stats rỗng."""
        self.config = config or LoaderConfig()
        self.parse_errors: List[Tuple[str, int, str]] = []
        self.stats = {'files': 0, 'total': 0, 'success': 0, 'failed': 0}

    def reset_stats(self):
        """Reset thống kê về trạng thái ban đầu."""
        self.parse_errors = []
        self.stats = {'files': 0, 'total': 0, 'success': 0, 'failed': 0}

    @staticmethod
    def parse_timestamp(ts_str: str) -> datetime:
        """
        Parse UTC timestamp từ định dạng: 2024-01-15T22:30:05.000

        Chuỗi được tách theo 'T': phần date phải parse được với %Y-%m-%d,
        phần date + time phải parse được với %Y-%m-%d %H:%M:%S[.fraction].

        Args:
            ts_str: Chuỗi timestamp cần parse

        Returns:
            datetime có tzinfo=UTC

        Raises:
            MalformedRecordError: Nếu format không đúng
        """
        parts = ts_str.strip().split('T')
        if len(parts) != 2:
            raise MalformedRecordError(f"timestamp không có separator 'T': {ts_str!r}")

        date_part, time_part = parts
        try:
            datetime.strptime(date_part, '%Y-%m-%d')
        except ValueError:
            raise MalformedRecordError(f"date không hợp lệ: {date_part!r}") from None

        # %f chỉ nhận tối đa 6 chữ số thập phân
        if '.' in time_part:
            seconds, fraction = time_part.split('.', 1)
            time_part = f"{seconds}.{fraction[:6]}"
            fmt = '%Y-%m-%d %H:%M:%S.%f'
        else:
            fmt = '%Y-%m-%d %H:%M:%S'
        try:
            parsed = datetime.strptime(f"{date_part} {time_part}", fmt)
        except ValueError:
            raise MalformedRecordError(f"time không hợp lệ: {time_part!r}") from None

        return parsed.replace(tzinfo=timezone.utc)

    @staticmethod
    def derive_fields(ts: datetime) -> Dict[str, Any]:
        """
        Tính các fields phụ thuộc timestamp.

        Args:
            ts: UTC datetime

        Returns:
            Dict với utc_timestamp, utc_date, hour, date, night_date
        """
        utc_date = ts.date()
        night_date: date = utc_date - timedelta(days=1) if ts.hour < NIGHT_SPLIT_HOUR else utc_date

        return {
            'utc_timestamp': ts,
            'utc_date': utc_date,
            'hour': ts.hour,
            'date': utc_date,
            'night_date': night_date
        }

    def parse_line(self, line: str) -> Dict[str, Any]:
        """
        Parse một dòng dữ liệu thành dictionary theo SCHEMA.

        Args:
            line: Dòng dữ liệu cần parse

        Returns:
            Dict với các fields trong SCHEMA và các derived fields

        Raises:
            MalformedRecordError: Nếu số fields sai, số hoặc timestamp không hợp lệ
        """
        values = line.rstrip('\r\n').split(self.config.delimiter)

        if len(values) != len(SCHEMA):
            raise MalformedRecordError(
                f"cần {len(SCHEMA)} fields, nhận được {len(values)}"
            )

        record = {}
        for field, raw in zip(SCHEMA, values):
            raw = raw.strip()
            try:
                record[field.name] = field.converter(raw)
            except ValueError:
                raise MalformedRecordError(f"{field.label} không hợp lệ: {raw!r}") from None

        record.update(self.derive_fields(self.parse_timestamp(record['utc_datetime'])))
        return record

    def _handle_error(self, err: MalformedRecordError, source: str, line_num: int, line: str):
        """Ghi nhận lỗi; raise lại nếu on_error='raise'."""
        self.stats['failed'] += 1
        located = err.with_location(source, line_num, line.strip())
        self.parse_errors.append((source, line_num, err.reason))

        if self.config.on_error == 'raise':
            raise located

    def parse_file(self, filepath: str, verbose: bool = False) -> pd.DataFrame:
        """
        Parse toàn bộ một file .dat thành DataFrame.

        Args:
            filepath: Đường dẫn tới file
            verbose: In thống kê parsing của file

        Returns:
            DataFrame với các cột trong COLUMNS (theo thứ tự dòng trong file)

        Raises:
            MalformedRecordError: Nếu on_error='raise' và gặp dòng lỗi
            OSError: Nếu không đọc được file
        """
        source = os.path.basename(filepath)
        records = []
        failed_before = self.stats['failed']

        with open(filepath, 'r', encoding=self.config.encoding) as f:
            for line_num, line in enumerate(f, 1):
                # Bỏ qua preamble
                if line_num <= self.config.preamble_lines:
                    continue
                if not line.strip():
                    continue

                self.stats['total'] += 1
                try:
                    record = self.parse_line(line)
                except MalformedRecordError as err:
                    self._handle_error(err, source, line_num, line)
                    continue

                record['source_file'] = source
                records.append(record)
                self.stats['success'] += 1

        self.stats['files'] += 1

        if verbose:
            failed = self.stats['failed'] - failed_before
            print(f"  {source}: {len(records):,} records, {failed:,} lỗi")

        return pd.DataFrame(records, columns=COLUMNS)

    def discover_files(
        self,
        data_dir: Optional[str] = None,
        pattern: Optional[str] = None
    ) -> List[str]:
        """
        Tìm các file trong thư mục khớp với pattern.

        Args:
            data_dir: Thư mục dữ liệu (mặc định từ config)
            pattern: Glob pattern (mặc định từ config)

        Returns:
            List đường dẫn file, sort theo tên

        Raises:
            NoInputDataError: Nếu thư mục không tồn tại hoặc không có file nào
        """
        data_dir = data_dir if data_dir is not None else self.config.data_dir
        pattern = pattern or self.config.file_pattern

        if not os.path.isdir(data_dir):
            raise NoInputDataError(f"Thư mục dữ liệu không tồn tại: {data_dir}")

        files = sorted(
            path for path in glob.glob(os.path.join(data_dir, pattern))
            if os.path.isfile(path)
        )
        if not files:
            raise NoInputDataError(f"Không có file nào khớp '{pattern}' trong {data_dir}")

        return files

    def parse_directory(
        self,
        data_dir: Optional[str] = None,
        pattern: Optional[str] = None,
        show_progress: bool = True
    ) -> pd.DataFrame:
        """
        Parse tất cả các file khớp pattern và gộp thành một bảng duy nhất.

        Không deduplicate giữa các file: timestamps trùng được giữ nguyên.

        Args:
            data_dir: Thư mục dữ liệu (mặc định từ config)
            pattern: Glob pattern (mặc định từ config)
            show_progress: Hiển thị progress bar và thống kê

        Returns:
            DataFrame gộp, theo thứ tự file rồi thứ tự dòng

        Raises:
            NoInputDataError: Không có file hoặc không có record nào
            MalformedRecordError: Nếu on_error='raise' và gặp dòng lỗi
        """
        self.reset_stats()
        files = self.discover_files(data_dir, pattern)

        iterator = tqdm(files, desc="Parsing photometer logs") if show_progress else files
        frames = [self.parse_file(path) for path in iterator]
        frames = [frame for frame in frames if len(frame) > 0]

        if not frames:
            raise NoInputDataError(f"Không có record nào trong {len(files)} file(s)")

        df = pd.concat(frames, ignore_index=True)

        if show_progress:
            self.print_report()

        return df

    def print_report(self):
        """In thống kê parsing."""
        total = self.stats['total']
        print(f"\n{'='*50}")
        print(f"KẾT QUẢ PARSING")
        print(f"{'='*50}")
        print(f"Số file:          {self.stats['files']:>12,}")
        print(f"Tổng số dòng:     {total:>12,}")
        if total > 0:
            print(f"Parse thành công: {self.stats['success']:>12,} ({self.stats['success']/total*100:.2f}%)")
            print(f"Parse thất bại:   {self.stats['failed']:>12,} ({self.stats['failed']/total*100:.2f}%)")
        print(f"{'='*50}")

        if self.parse_errors:
            print(f"\nMẫu các dòng lỗi (tối đa 5 dòng đầu):")
            for source, line_num, reason in self.parse_errors[:5]:
                print(f"  {source}:{line_num}: {reason}")

    def get_parse_errors(self, max_errors: int = 100) -> List[Tuple[str, int, str]]:
        """
        Các dòng dữ liệu bị bỏ qua (on_error='skip') hoặc gây abort (on_error='raise')
        trong lần parse_directory gần nhất. Dòng preamble không bao giờ có ở đây.

        Args:
            max_errors: Giới hạn số entries

        Returns:
            List (tên file .dat, số dòng tính cả preamble, lý do lỗi)
        """
        return self.parse_errors[:max_errors]

    def get_stats(self) -> Dict[str, Any]:
        """
        Thống kê của lần load gần nhất, dùng cho sidebar của dashboard.

        total chỉ đếm các dòng dữ liệu sau preamble (không tính dòng trống).

        Returns:
            Dict với files (số file .dat), total, success, failed và
            success_rate (% dòng dữ liệu parse được, 0 nếu không có dòng nào)
        """
        success_rate = self.stats['success'] / self.stats['total'] * 100 if self.stats['total'] > 0 else 0
        return {
            **self.stats,
            'success_rate': success_rate
        }


if __name__ == "__main__":
    # Demo usage
    import sys

    data_dir = sys.argv[1] if len(sys.argv) > 1 else LoaderConfig().data_dir

    print(f"Parsing directory: {data_dir}")
    print("-" * 50)

    parser = PhotometerLogParser(LoaderConfig(data_dir=data_dir))
    df = parser.parse_directory()

    print(f"\nDataFrame shape: {df.shape}")
    print(f"\nSample data:\n{df.head()}")
    print(f"\nDate range: {df['utc_date'].min()} to {df['utc_date'].max()}")
