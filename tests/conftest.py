"""
Shared fixtures: tạo photometer .dat files và bảng records tổng hợp.
"""

import os
import sys

import pandas as pd
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.data.parser import PhotometerLogParser, COLUMNS


PREAMBLE_LINES = 35


def make_row(ts, sky_temp=-5.0, msas=19.0, seq=1, enclosure=3.5, freq=12.34, zp=20.0):
    """Tạo một dòng dữ liệu ';'-delimited theo thứ tự cột của file."""
    return f"{ts};{ts};{enclosure};{sky_temp};{freq};{msas};{zp};{seq}"


def make_preamble(n=PREAMBLE_LINES):
    lines = ["# Light Pollution Monitoring Data Format 1.0"]
    lines += [f"# Header line {i}; value {i}" for i in range(2, n)]
    lines.append("# END OF HEADER")
    return lines


@pytest.fixture
def write_log(tmp_path):
    """Return helper ghi một file .dat (preamble + rows) vào tmp_path."""

    def _write(name, rows, directory=None):
        directory = directory or tmp_path
        path = os.path.join(str(directory), name)
        with open(path, 'w', encoding='latin-1') as f:
            f.write("\n".join(make_preamble() + list(rows)) + "\n")
        return path

    return _write


@pytest.fixture
def make_records():
    """Return helper tạo bảng records từ list các (timestamp, sky_temp, msas)."""

    def _make(readings):
        parser = PhotometerLogParser()
        records = []
        for seq, (ts, sky_temp, msas) in enumerate(readings, 1):
            record = parser.parse_line(make_row(ts, sky_temp=sky_temp, msas=msas, seq=seq))
            record['source_file'] = 'synthetic.dat'
            records.append(record)

        return pd.DataFrame(records, columns=COLUMNS)

    return _make
