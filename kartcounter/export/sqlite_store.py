# kartcounter/export/sqlite_store.py
import os
import sqlite3
from typing import List, Tuple

from kartcounter.core.models import ProbeSuccess
from kartcounter.utils.log import get_logger

log = get_logger("sqlite_store")

SCHEMA = (
    "CREATE TABLE IF NOT EXISTS servers "
    "(timestamp INTEGER, name BLOB, players INTEGER, maxPlayers INTEGER);"
)


class ServerStore:
    """성공한 프로브 1건 = servers 테이블 1행. 한 실행의 행은 같은 timestamp 공유."""

    def __init__(self, path: str):
        self.path = path
        self.conn = None

    def open(self) -> "ServerStore":
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.ensure_schema()
        return self

    def ensure_schema(self) -> None:
        self.conn.execute(SCHEMA)

    def insert(self, timestamp: int, result: ProbeSuccess) -> None:
        self.conn.execute(
            "INSERT INTO servers VALUES (?, ?, ?, ?)",
            (timestamp, sqlite3.Binary(result.server_name_raw), result.players, result.max_players),
        )

    def rows(self) -> List[Tuple[int, bytes, int, int]]:
        cur = self.conn.execute("SELECT timestamp, name, players, maxPlayers FROM servers")
        return [(ts, bytes(name), p, mp) for ts, name, p, mp in cur.fetchall()]

    def close(self, commit: bool = True) -> None:
        if self.conn is None:
            return
        if commit:
            self.conn.commit()
        else:
            self.conn.rollback()
        self.conn.close()
        self.conn = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close(commit=exc_type is None)
        if exc_type is None:
            log.info("database saved: %s", self.path)
