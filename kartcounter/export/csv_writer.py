import csv, os
from typing import Dict, List

from kartcounter.core.models import PollReport

REPORT_FIELDS = ["timestamp", "address", "ok", "server_name", "players", "max_players", "error"]

class CSVWriter:
    def __init__(self, path: str, fieldnames: List[str]):
        self.path = path
        self.fieldnames = fieldnames
        self.rows: List[Dict] = []

    def add(self, row: Dict):
        self.rows.append(row)

    def flush(self):
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=self.fieldnames)
            w.writeheader()
            for r in self.rows:
                w.writerow(r)

def write_report_csv(path: str, report: PollReport) -> str:
    # 서버 이름은 raw bytes → 표시용으로만 latin-1 디코딩
    writer = CSVWriter(path, REPORT_FIELDS)
    for s in report.successes:
        writer.add({
            "timestamp": report.timestamp,
            "address": s.address,
            "ok": True,
            "server_name": s.server_name_raw.decode("latin-1"),
            "players": s.players,
            "max_players": s.max_players,
            "error": "",
        })
    for f in report.failures:
        writer.add({
            "timestamp": report.timestamp,
            "address": f.address,
            "ok": False,
            "server_name": "",
            "players": "",
            "max_players": "",
            "error": f.error,
        })
    writer.flush()
    return path
