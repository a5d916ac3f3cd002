# tests/test_dispatcher.py
import threading
import time

import pytest

from kartcounter.core.dispatcher import ServerPoller
from kartcounter.core.models import ProbeFailure, ProbeSuccess
from kartcounter.utils.errors import ConfigError


class FakeProber:
    """
    script: address -> ProbeSuccess/ProbeFailure/Exception
    스크립트에 없는 주소는 timeout 실패
    """
    def __init__(self, script=None, delay: float = 0.0):
        self.script = dict(script or {})
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, address):
        with self._lock:
            self.calls.append(address)
        if self.delay:
            time.sleep(self.delay)
        res = self.script.get(address)
        if isinstance(res, Exception):
            raise res
        if res is None:
            return ProbeFailure(address=address, error="read 1/2: timed out")
        return res


def test_workers_must_be_positive():
    with pytest.raises(ConfigError):
        ServerPoller(FakeProber(), workers=0)
    with pytest.raises(ConfigError):
        ServerPoller(FakeProber(), workers=-3)


@pytest.mark.parametrize("count,workers", [(0, 4), (1, 16), (7, 3), (100, 16)])
def test_every_address_yields_exactly_one_result(count, workers):
    addrs = [f"10.0.0.{i}:5029" for i in range(count)]
    script = {a: ProbeSuccess(address=a, players=i % 3) for i, a in enumerate(addrs) if i % 2 == 0}
    fake = FakeProber(script)

    report = ServerPoller(fake, workers=workers).run(addrs, timestamp=1234)

    assert report.total == count
    assert len(report.successes) == len(script)
    assert len(report.failures) == count - len(script)
    assert sorted(fake.calls) == sorted(addrs)
    got = sorted(r.address for r in report.successes + report.failures)
    assert got == sorted(addrs)


def test_successes_forwarded_with_shared_timestamp():
    addrs = ["a:1", "b:2", "c:3"]
    fake = FakeProber({
        "a:1": ProbeSuccess("a:1", b"Arena", 5, 16),
        "b:2": ProbeSuccess("b:2", b"Empty", 0, 8),
    })
    rows = []

    report = ServerPoller(fake, workers=2).run(
        addrs, on_success=lambda ts, res: rows.append((ts, res)), timestamp=42
    )

    assert report.timestamp == 42
    assert {ts for ts, _ in rows} == {42}
    assert sorted(r.server_name_raw for _, r in rows) == [b"Arena", b"Empty"]
    assert [f.address for f in report.failures] == ["c:3"]
    assert report.total_players == 5


def test_crashing_probe_becomes_internal_failure():
    addrs = ["ok:1", "boom:2"]
    fake = FakeProber({"ok:1": ProbeSuccess("ok:1"), "boom:2": RuntimeError("kaboom")})

    report = ServerPoller(fake, workers=2).run(addrs)

    assert report.total == 2
    assert len(report.failures) == 1
    failure = report.failures[0]
    assert failure.kind == "internal"
    assert "kaboom" in failure.error


def test_probes_run_concurrently():
    addrs = [f"h{i}:1" for i in range(8)]
    fake = FakeProber({a: ProbeSuccess(a) for a in addrs}, delay=0.2)

    start = time.monotonic()
    report = ServerPoller(fake, workers=8).run(addrs)
    elapsed = time.monotonic() - start

    assert len(report.successes) == 8
    # 순차 실행이면 1.6초
    assert elapsed < 1.0


def test_default_timestamp_is_now():
    before = int(time.time())
    report = ServerPoller(FakeProber(), workers=1).run(["x:1"])
    assert before <= report.timestamp <= int(time.time())


def test_failing_sink_drains_results_and_joins_workers():
    addrs = [f"s{i}:1" for i in range(40)]
    fake = FakeProber({a: ProbeSuccess(a) for a in addrs})

    def sink(ts, res):
        raise RuntimeError("disk full")

    with pytest.raises(RuntimeError, match="disk full"):
        ServerPoller(fake, workers=4).run(addrs, on_success=sink)

    # 워커/producer 스레드가 큐에서 막히지 않고 모두 종료
    alive = [t.name for t in threading.enumerate() if t.name.startswith("poll-")]
    assert alive == []
    assert sorted(fake.calls) == sorted(addrs)
