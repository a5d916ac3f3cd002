from __future__ import annotations
import yaml
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Union
import os

from kartcounter.utils.errors import ConfigError

DEFAULT_MASTER_URL = "https://ms.kartkrew.org/ms/api/games/SRB2Kart"
DEFAULT_WORKERS = 16
DEFAULT_PROBE_TIMEOUT = 5.0

@dataclass
class AppConfig:
    master_url: str = DEFAULT_MASTER_URL
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_PROBE_TIMEOUT
    discovery_timeout: float = 10.0
    database_path: Optional[str] = None
    csv_path: Optional[str] = None
    log_dir: str = "logs"

    @staticmethod
    def load(path: Optional[str]):
        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"invalid config file {path}: {e}") from e
            if not isinstance(raw, dict):
                raise ConfigError(f"config file {path} must be a mapping")
            return AppConfig(
                master_url = raw.get("master_url", DEFAULT_MASTER_URL),
                workers = raw.get("workers", DEFAULT_WORKERS),
                timeout = raw.get("timeout", DEFAULT_PROBE_TIMEOUT),
                discovery_timeout = raw.get("discovery_timeout", 10.0),
                database_path = raw.get("database_path"),
                csv_path = raw.get("csv_path"),
                log_dir = raw.get("log_dir", "logs"),
            )
        return AppConfig()

    def validate(self) -> "AppConfig":
        if not isinstance(self.workers, int) or isinstance(self.workers, bool) or self.workers < 1:
            raise ConfigError(f"workers must be an integer >= 1 (got {self.workers!r})")
        for name in ("timeout", "discovery_timeout"):
            v = getattr(self, name)
            if not isinstance(v, (int, float)) or isinstance(v, bool) or v <= 0:
                raise ConfigError(f"{name} must be a positive number (got {v!r})")
        if not self.master_url:
            raise ConfigError("master_url must not be empty")
        return self

    def to_dict(self):
        return asdict(self)


# ========== 프로브 결과 데이터 모델 ==========

@dataclass(frozen=True)
class ProbeSuccess:
    """PT_SERVERINFO 응답에서 뽑은 값"""
    address: str
    server_name_raw: bytes = b""
    players: int = 0
    max_players: int = 0

    ok = True

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ProbeFailure:
    """프로브 실패 (transport / protocol / internal)"""
    address: str
    error: str
    kind: str = "transport"

    ok = False

    def to_dict(self):
        return asdict(self)


ProbeResult = Union[ProbeSuccess, ProbeFailure]


@dataclass
class PollReport:
    """한 번의 실행(run) 결과 종합"""
    timestamp: int
    successes: List[ProbeSuccess] = field(default_factory=list)
    failures: List[ProbeFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def total_players(self) -> int:
        return sum(s.players for s in self.successes)
