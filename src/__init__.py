"""
SKY BRIGHTNESS DASHBOARD
========================
Phân tích độ sáng bầu trời đêm từ log files của photometer (stars927),
lọc các đêm lạnh (trời quang) và hiển thị giá trị MSAS cao nhất mỗi đêm.

Modules:
- data: Parser cho photometer log files và nightly aggregator
- visualization: Bortle scale và Plotly charts
- pipeline: Orchestrator load dữ liệu một lần, tính toán theo date range
- config: Cấu hình loader và night window
"""

__version__ = "1.0.0"
__author__ = "Sky Brightness Analysis Team"
