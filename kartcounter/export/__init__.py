"""
결과 저장 모듈
- SQLite: 성공한 프로브만 servers 테이블에 저장
- CSV: 실행 단위 요약 (성공 + 실패)
"""

from .sqlite_store import ServerStore
from .csv_writer import CSVWriter, write_report_csv

__all__ = [
    "ServerStore",
    "CSVWriter",
    "write_report_csv",
]
