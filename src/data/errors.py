"""
Data Errors
===========
Các exception types cho quá trình load photometer data.

Hierarchy:
    PhotometerDataError
    ├── MalformedRecordError  (cũng là ValueError)
    └── NoInputDataError
"""

from typing import Optional


class PhotometerDataError(Exception):
    """Base exception cho mọi lỗi dữ liệu photometer."""


class MalformedRecordError(PhotometerDataError, ValueError):
    """
    Một dòng dữ liệu không parse được (timestamp sai, thiếu field, số sai).

    Attributes:
        reason: Mô tả lỗi
        source: Tên file chứa dòng lỗi (None nếu parse từ string)
        line_num: Số thứ tự dòng trong file (tính cả preamble)
        line: Nội dung dòng lỗi (tối đa 100 ký tự)
    """

    def __init__(
        self,
        reason: str,
        source: Optional[str] = None,
        line_num: Optional[int] = None,
        line: Optional[str] = None
    ):
        self.reason = reason
        self.source = source
        self.line_num = line_num
        self.line = line[:100] if line else line

        location = ''
        if source is not None:
            location = f"{source}"
        if line_num is not None:
            location = f"{location}:{line_num}" if location else f"line {line_num}"

        message = f"{location}: {reason}" if location else reason
        super().__init__(message)

    def with_location(self, source: str, line_num: int, line: str) -> 'MalformedRecordError':
        """Tạo bản sao của error với thông tin file và dòng."""
        return MalformedRecordError(self.reason, source=source, line_num=line_num, line=line)


class NoInputDataError(PhotometerDataError):
    """Không tìm thấy file nào hoặc không có record nào để load."""
