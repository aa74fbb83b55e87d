"""
Data Module
===========
Chứa các công cụ để parse và aggregate photometer log files.

Classes:
- PhotometerLogParser: Parse photometer .dat files (preamble + ';' rows)
- NightlyAggregator: Tính thống kê theo từng đêm (cold nights, max MSAS)
- NightSummary: Kết quả aggregate của một đêm

Exceptions:
- PhotometerDataError, MalformedRecordError, NoInputDataError
"""

from .errors import PhotometerDataError, MalformedRecordError, NoInputDataError
from .parser import PhotometerLogParser
from .aggregator import NightlyAggregator, NightSummary

__all__ = [
    'PhotometerLogParser',
    'NightlyAggregator',
    'NightSummary',
    'PhotometerDataError',
    'MalformedRecordError',
    'NoInputDataError'
]
