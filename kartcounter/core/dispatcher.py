# kartcounter/core/dispatcher.py
from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Iterable, List, Optional

from kartcounter.core.models import (
    DEFAULT_WORKERS,
    PollReport,
    ProbeFailure,
    ProbeResult,
    ProbeSuccess,
)
from kartcounter.utils.errors import ConfigError
from kartcounter.utils.log import get_logger

log = get_logger("dispatcher")

ProbeFunc = Callable[[str], ProbeResult]
SuccessSink = Callable[[int, ProbeSuccess], None]

# 입력 큐 종료 표시 (워커 1개당 1개)
_CLOSED = object()


class ResultAggregator:
    """
    producer 가 알린 개수만큼 정확히 결과를 꺼내서 성공/실패로 분리.
    - 성공: on_success(timestamp, result) 로 전달 (DB 저장 등)
    - 실패: 진단 로그만 남기고 저장하지 않음
    """

    def __init__(self, timestamp: int, on_success: Optional[SuccessSink] = None):
        self.timestamp = timestamp
        self.on_success = on_success

    def collect(self, count_q: "queue.Queue[int]", out_q: "queue.Queue[ProbeResult]") -> PollReport:
        report = PollReport(timestamp=self.timestamp)
        count = count_q.get()
        log.info("waiting for %d results", count)

        received = 0
        try:
            for _ in range(count):
                res = out_q.get()
                received += 1
                if not res.ok:
                    log.warning("Error: %s: %s", res.address, res.error)
                    report.failures.append(res)
                    continue
                report.successes.append(res)
                if self.on_success:
                    self.on_success(self.timestamp, res)
        except Exception:
            # 저장 실패 등으로 중단돼도 남은 결과를 비워 워커가 put 에서 막히지 않게 함
            log.exception("aggregation aborted after %d/%d results, draining", received, count)
            for _ in range(count - received):
                out_q.get()
            raise
        return report


class ServerPoller:
    """
    고정 크기 워커 풀로 주소 목록을 프로브 (fan-out/fan-in)
    - producer 스레드: 개수를 먼저 알리고 주소를 입력 큐에 넣은 뒤 워커 수만큼 종료 표시
    - 워커 스레드: 주소 1개 → 결과 1개 (예외도 ProbeFailure 로 변환)
    - aggregator: 호출 스레드에서 정확히 N 개 수신
    두 큐 모두 bounded, 공유 상태/락 없음.
    """

    def __init__(self, probe: Optional[ProbeFunc] = None, workers: int = DEFAULT_WORKERS,
                 queue_size: Optional[int] = None):
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            raise ConfigError(f"workers must be an integer >= 1 (got {workers!r})")
        if probe is None:
            from kartcounter.service.kart_probe import KartProber
            probe = KartProber().probe
        self.probe = probe
        self.workers = workers
        self.queue_size = queue_size or workers

    # --------------------------------------------------------------------------
    # 스레드 본체
    # --------------------------------------------------------------------------
    def _producer(self, addresses: List[str], count_q: "queue.Queue[int]", in_q: queue.Queue) -> None:
        count_q.put(len(addresses))
        for addr in addresses:
            in_q.put(addr)
        for _ in range(self.workers):
            in_q.put(_CLOSED)

    def _worker(self, in_q: queue.Queue, out_q: "queue.Queue[ProbeResult]") -> None:
        while True:
            addr = in_q.get()
            if addr is _CLOSED:
                return
            try:
                res = self.probe(addr)
            except Exception as e:
                log.exception("probe crashed for %s", addr)
                res = ProbeFailure(address=addr, error=f"{type(e).__name__}: {e}", kind="internal")
            out_q.put(res)

    # --------------------------------------------------------------------------
    # 실행
    # --------------------------------------------------------------------------
    def run(self, addresses: Iterable[str], on_success: Optional[SuccessSink] = None,
            timestamp: Optional[int] = None) -> PollReport:
        addresses = list(addresses)
        if timestamp is None:
            timestamp = int(time.time())

        count_q: "queue.Queue[int]" = queue.Queue(maxsize=1)
        in_q: queue.Queue = queue.Queue(maxsize=self.queue_size)
        out_q: "queue.Queue[ProbeResult]" = queue.Queue(maxsize=self.queue_size)

        threads = [
            threading.Thread(target=self._producer, args=(addresses, count_q, in_q),
                             name="poll-producer", daemon=True)
        ]
        threads += [
            threading.Thread(target=self._worker, args=(in_q, out_q),
                             name=f"poll-worker-{i}", daemon=True)
            for i in range(self.workers)
        ]
        for t in threads:
            t.start()

        log.info("polling %d servers with %d workers", len(addresses), self.workers)
        try:
            report = ResultAggregator(timestamp, on_success).collect(count_q, out_q)
        finally:
            for t in threads:
                t.join()
        log.info(
            "poll finished: %d ok, %d failed, %d players online",
            len(report.successes), len(report.failures), report.total_players,
        )
        return report
