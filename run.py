from __future__ import annotations
import os
import sys
import logging
import sqlite3
import argparse
from typing import Optional

from kartcounter.core.models import AppConfig
from kartcounter.core.dispatcher import ServerPoller
from kartcounter.discovery.master import discover_servers
from kartcounter.export.csv_writer import write_report_csv
from kartcounter.export.sqlite_store import ServerStore
from kartcounter.service.kart_probe import KartProber
from kartcounter.utils.errors import ConfigError, DiscoveryError
from kartcounter.utils.log import setup_logging, get_logger

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(PROJECT_ROOT, "data")
DEFAULT_CONFIG = os.path.join(DATA_DIR, "defaults.yaml")

log = get_logger("run")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Count players on SRB2Kart servers listed by the master server."
    )
    parser.add_argument("-o", "--output", help="Sets the location of the database that will be written to.")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG, help="YAML config file")
    parser.add_argument("--master", help="master server API base URL")
    parser.add_argument("--workers", type=int, help="number of concurrent probe workers")
    parser.add_argument("--timeout", type=float, help="per-read UDP timeout in seconds")
    parser.add_argument("--csv", help="also write a CSV report of every probe")
    parser.add_argument("--log-dir", help="directory for usercounter.log")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    cfg = AppConfig.load(args.config)
    # CLI > 환경변수 > 설정 파일
    cfg.database_path = args.output or os.environ.get("DATABASE_PATH") or cfg.database_path
    if args.master:
        cfg.master_url = args.master
    if args.workers is not None:
        cfg.workers = args.workers
    if args.timeout is not None:
        cfg.timeout = args.timeout
    if args.csv:
        cfg.csv_path = args.csv
    if args.log_dir:
        cfg.log_dir = args.log_dir
    return cfg.validate()


def run_once(cfg: AppConfig) -> int:
    # 1) 서버 목록 조회 (실패 시 프로브 전에 종료)
    try:
        servers = discover_servers(cfg.master_url, timeout=cfg.discovery_timeout)
    except DiscoveryError as e:
        log.error("discovery failed: %s", e)
        return 1

    # 2) 프로브 + 3) 저장
    poller = ServerPoller(KartProber(timeout=cfg.timeout).probe, workers=cfg.workers)
    try:
        with ServerStore(cfg.database_path) as store:
            report = poller.run(servers, on_success=store.insert)
    except sqlite3.Error as e:
        log.error("database %s: %s", cfg.database_path, e)
        return 1

    if cfg.csv_path:
        write_report_csv(cfg.csv_path, report)
        log.info("CSV report saved: %s", cfg.csv_path)

    print(
        f"{report.total} servers polled: {len(report.successes)} ok, "
        f"{len(report.failures)} failed, {report.total_players} players online"
    )
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args)
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 2
    if not cfg.database_path:
        parser.print_usage(sys.stderr)
        print("error: no database path (-o, DATABASE_PATH or database_path in config)", file=sys.stderr)
        return 2

    setup_logging(cfg.log_dir, level=logging.DEBUG if args.verbose else logging.INFO)
    return run_once(cfg)


if __name__ == "__main__":
    sys.exit(main())
