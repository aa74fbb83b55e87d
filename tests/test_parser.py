"""
Test Parser Module
==================
Unit tests cho PhotometerLogParser.
"""

import pytest
import pandas as pd
import sys
import os
from datetime import date, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.config import LoaderConfig
from src.data.parser import PhotometerLogParser, COLUMNS, SCHEMA
from src.data.errors import MalformedRecordError, NoInputDataError

from conftest import make_row, PREAMBLE_LINES


class TestParseTimestamp:
    """Test cases cho timestamp decomposition."""

    def test_timestamp_with_fraction(self):
        """Test parsing timestamp có phần thập phân của giây."""
        ts = PhotometerLogParser.parse_timestamp("2024-01-15T22:30:05.000")

        assert ts.date() == date(2024, 1, 15)
        assert ts.hour == 22
        assert ts.minute == 30
        assert ts.second == 5
        assert ts.tzinfo == timezone.utc

    def test_timestamp_without_fraction(self):
        """Test parsing timestamp không có phần thập phân."""
        ts = PhotometerLogParser.parse_timestamp("2024-03-02T03:04:59")

        assert ts.date() == date(2024, 3, 2)
        assert ts.hour == 3

    def test_derived_fields(self):
        """Test các derived fields: utc_date, hour, date."""
        parser = PhotometerLogParser()
        record = parser.parse_line(make_row("2024-01-15T22:30:05.000"))

        assert record['utc_date'] == date(2024, 1, 15)
        assert record['date'] == record['utc_date']
        assert record['hour'] == 22
        assert record['night_date'] == date(2024, 1, 15)

    def test_night_date_after_midnight(self):
        """Readings sau nửa đêm thuộc về đêm của ngày hôm trước."""
        parser = PhotometerLogParser()
        record = parser.parse_line(make_row("2024-01-16T02:15:00.000"))

        assert record['utc_date'] == date(2024, 1, 16)
        assert record['date'] == date(2024, 1, 16)
        assert record['night_date'] == date(2024, 1, 15)

    def test_timestamp_with_long_fraction(self):
        """Phần thập phân dài hơn 6 chữ số vẫn parse được."""
        ts = PhotometerLogParser.parse_timestamp("2024-01-15T22:30:05.1234567")

        assert ts.second == 5
        assert ts.microsecond == 123456
        assert ts.hour == 22

    @pytest.mark.parametrize("value", [
        "2024-01-15 22:30:05",        # không có 'T'
        "2024-13-01T22:00:00",        # tháng không hợp lệ
        "2024-01-15T25:00:00",        # giờ không hợp lệ
        "2024-01-15T22:30",           # thiếu giây
        "2024-01-15T22:30:05T00",     # nhiều 'T'
        "",
    ])
    def test_invalid_timestamps(self, value):
        """Test timestamp không hợp lệ raise MalformedRecordError."""
        with pytest.raises(MalformedRecordError):
            PhotometerLogParser.parse_timestamp(value)


class TestParseLine:
    """Test cases cho parse_line."""

    @pytest.fixture
    def parser(self):
        """Create parser instance."""
        return PhotometerLogParser()

    def test_parse_valid_line(self, parser):
        """Test parsing một dòng hợp lệ, fields theo đúng vị trí."""
        line = "2024-01-15T22:30:05.000;2024-01-15T23:30:05.000;3.5;-15.4;12.34;19.60;20.00;1523\n"
        result = parser.parse_line(line)

        assert result['utc_datetime'] == "2024-01-15T22:30:05.000"
        assert result['local_datetime'] == "2024-01-15T23:30:05.000"
        assert result['enclosure_temperature'] == 3.5
        assert result['sky_temperature'] == -15.4
        assert result['frequency'] == 12.34
        assert result['msas'] == 19.60
        assert result['zp'] == 20.00
        assert result['sequence_number'] == 1523

    def test_schema_has_eight_fields(self):
        assert len(SCHEMA) == 8

    def test_whitespace_around_fields(self, parser):
        line = "2024-01-15T22:30:05.000 ; 2024-01-15T23:30:05.000 ; 3.5 ; -1.0 ; 1 ; 18.5 ; 20 ; 7 \r\n"
        result = parser.parse_line(line)

        assert result['msas'] == 18.5
        assert result['sequence_number'] == 7

    def test_wrong_field_count(self, parser):
        """Test dòng thiếu fields."""
        with pytest.raises(MalformedRecordError, match="8 fields"):
            parser.parse_line("2024-01-15T22:30:05.000;3.5;-15.4")

    def test_invalid_number(self, parser):
        """Test field số không hợp lệ."""
        line = make_row("2024-01-15T22:30:05.000", msas="abc")

        with pytest.raises(MalformedRecordError, match="MSAS"):
            parser.parse_line(line)

    def test_malformed_error_is_value_error(self, parser):
        with pytest.raises(ValueError):
            parser.parse_line(make_row("not-a-timestamp"))


class TestParseFile:
    """Test cases cho parse_file."""

    def test_round_trip(self, write_log):
        """N dòng hợp lệ → đúng N records với giá trị theo vị trí."""
        rows = [
            make_row(f"2024-01-15T2{i}:00:00.000", sky_temp=-float(i), msas=18.0 + i / 10, seq=i)
            for i in range(4)
        ]
        path = write_log("stars927_2024-01-15.dat", rows)

        df = PhotometerLogParser().parse_file(path)

        assert len(df) == 4
        assert list(df.columns) == COLUMNS
        assert df['sequence_number'].tolist() == [0, 1, 2, 3]
        assert df['sky_temperature'].tolist() == [0.0, -1.0, -2.0, -3.0]
        assert df['msas'].tolist() == pytest.approx([18.0, 18.1, 18.2, 18.3])
        assert df['hour'].tolist() == [20, 21, 22, 23]
        assert (df['source_file'] == "stars927_2024-01-15.dat").all()

    def test_preamble_is_skipped(self, write_log):
        """Preamble (có cả dấu ';') không được parse."""
        path = write_log("stars927_2024-01-15.dat", [make_row("2024-01-15T22:00:00.000")])
        parser = PhotometerLogParser()

        df = parser.parse_file(path)

        assert len(df) == 1
        assert parser.stats['total'] == 1
        assert parser.stats['failed'] == 0

    def test_blank_lines_are_skipped(self, write_log):
        rows = [make_row("2024-01-15T22:00:00.000"), "", "   ", make_row("2024-01-15T23:00:00.000")]
        path = write_log("stars927_2024-01-15.dat", rows)

        df = PhotometerLogParser().parse_file(path)

        assert len(df) == 2

    def test_malformed_row_aborts_by_default(self, write_log):
        """on_error='raise': dòng lỗi dừng việc load với vị trí chính xác."""
        rows = [
            make_row("2024-01-15T22:00:00.000"),
            make_row("2024-01-15 23:00:00"),
            make_row("2024-01-15T23:30:00.000"),
        ]
        path = write_log("stars927_2024-01-15.dat", rows)

        with pytest.raises(MalformedRecordError) as exc_info:
            PhotometerLogParser().parse_file(path)

        err = exc_info.value
        assert err.source == "stars927_2024-01-15.dat"
        assert err.line_num == PREAMBLE_LINES + 2
        assert "stars927_2024-01-15.dat:37" in str(err)

    def test_malformed_row_skipped_when_configured(self, write_log):
        """on_error='skip': bỏ qua dòng lỗi và ghi lại."""
        rows = [
            make_row("2024-01-15T22:00:00.000"),
            make_row("2024-01-15 23:00:00"),
            make_row("2024-01-15T23:30:00.000"),
        ]
        path = write_log("stars927_2024-01-15.dat", rows)
        parser = PhotometerLogParser(LoaderConfig(on_error='skip'))

        df = parser.parse_file(path)

        assert len(df) == 2
        assert parser.stats['failed'] == 1
        assert parser.stats['success'] == 2

        errors = parser.get_parse_errors()
        assert len(errors) == 1
        assert errors[0][0] == "stars927_2024-01-15.dat"
        assert errors[0][1] == PREAMBLE_LINES + 2

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            PhotometerLogParser().parse_file(str(tmp_path / "missing.dat"))


class TestParseDirectory:
    """Test cases cho discovery + merge."""

    def test_merge_multiple_files(self, tmp_path, write_log):
        """Gộp các file, giữ duplicate timestamps giữa các file."""
        write_log("stars927_2024-01-15.dat", [
            make_row("2024-01-15T22:00:00.000", seq=1),
            make_row("2024-01-15T23:00:00.000", seq=2),
        ])
        write_log("stars927_2024-01-16.dat", [
            make_row("2024-01-15T23:00:00.000", seq=2),
            make_row("2024-01-16T22:00:00.000", seq=3),
        ])
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path)))

        df = parser.parse_directory(show_progress=False)

        assert len(df) == 4
        assert df['sequence_number'].tolist() == [1, 2, 2, 3]
        assert df['utc_datetime'].duplicated().sum() == 1
        assert parser.stats['files'] == 2

    def test_pattern_filters_files(self, tmp_path, write_log):
        """Chỉ các file khớp pattern được load."""
        write_log("stars927_2024-01-15.dat", [make_row("2024-01-15T22:00:00.000")])
        write_log("stars927_2023-12-31.dat", [make_row("2023-12-31T22:00:00.000")])
        write_log("other_2024-01-15.dat", [make_row("2024-01-15T22:00:00.000")])
        write_log("stars927_2024-01-15.txt", [make_row("2024-01-15T22:00:00.000")])
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path)))

        files = parser.discover_files()

        assert [os.path.basename(f) for f in files] == ["stars927_2024-01-15.dat"]

    def test_missing_directory(self, tmp_path):
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path / "nope")))

        with pytest.raises(NoInputDataError):
            parser.parse_directory(show_progress=False)

    def test_empty_directory(self, tmp_path):
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path)))

        with pytest.raises(NoInputDataError):
            parser.parse_directory(show_progress=False)

    def test_files_without_records(self, tmp_path, write_log):
        """Các file chỉ có preamble → không có dữ liệu."""
        write_log("stars927_2024-01-15.dat", [])
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path)))

        with pytest.raises(NoInputDataError):
            parser.parse_directory(show_progress=False)

    def test_stats_and_report(self, tmp_path, write_log, capsys):
        """Test tracking và in thống kê parsing."""
        write_log("stars927_2024-01-15.dat", [
            make_row("2024-01-15T22:00:00.000"),
            "garbage",
        ])
        parser = PhotometerLogParser(LoaderConfig(data_dir=str(tmp_path), on_error='skip'))

        parser.parse_directory(show_progress=True)

        stats = parser.get_stats()
        assert stats['total'] == 2
        assert stats['success'] == 1
        assert stats['failed'] == 1
        assert stats['success_rate'] == 50.0

        out = capsys.readouterr().out
        assert "KẾT QUẢ PARSING" in out
        assert "stars927_2024-01-15.dat:37" in out

    def test_stats_count_data_lines_only(self, write_log):
        """Preamble không được tính vào total hay parse_errors."""
        path = write_log("stars927_2024-01-15.dat", ["garbage", "garbage", make_row("2024-01-15T22:00:00.000")])
        parser = PhotometerLogParser(LoaderConfig(on_error='skip'))

        assert parser.get_stats()['success_rate'] == 0

        parser.parse_file(path)

        assert parser.get_stats()['total'] == 3
        assert [e[1] for e in parser.get_parse_errors()] == [PREAMBLE_LINES + 1, PREAMBLE_LINES + 2]
        assert len(parser.get_parse_errors(max_errors=1)) == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
