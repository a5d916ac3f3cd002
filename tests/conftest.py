# tests/conftest.py
import socket
import threading
import time

import pytest

from kartcounter.protocol.packets import (
    MAX_FILENEEDED,
    MAX_MIRROR_LENGTH,
    MAXAPPLICATION,
    MAXSERVERNAME,
    PT_PLAYERINFO,
    ServerInfoPacket,
    encode_header,
    encode_server_info,
    write_checksum,
)


def make_server_info(name: bytes = b"Test Server", players: int = 0, max_players: int = 16,
                     **overrides) -> ServerInfoPacket:
    fields = dict(
        x255=255,
        packet_version=0,
        application=b"SRB2Kart".ljust(MAXAPPLICATION, b"\x00"),
        version=1,
        subversion=6,
        number_of_player=players,
        max_player=max_players,
        gametype=2,
        modified_game=0,
        cheats_enabled=0,
        kart_vars=0,
        file_needed_num=0,
        time=0,
        level_time=0,
        server_name=name.ljust(MAXSERVERNAME, b"\x00")[:MAXSERVERNAME],
        map_name=b"MAP01".ljust(8, b"\x00"),
        map_title=b"Green Hills".ljust(33, b"\x00"),
        map_md5=b"\x00" * 16,
        act_num=1,
        is_zone=1,
        http_source=b"\x00" * MAX_MIRROR_LENGTH,
        file_needed=b"\x00" * MAX_FILENEEDED,
    )
    fields.update(overrides)
    return ServerInfoPacket(**fields)


def server_info_packet(name: bytes = b"Test Server", players: int = 0, max_players: int = 16) -> bytes:
    return encode_server_info(make_server_info(name, players, max_players))


def player_info_packet() -> bytes:
    # PT_PLAYERINFO: 헤더만 의미 있음 (페이로드는 파싱하지 않음)
    return write_checksum(encode_header(PT_PLAYERINFO) + b"\x00" * 64)


class FakeKartServer:
    """ASKINFO 를 받을 때마다 replies 를 순서대로 돌려주는 로컬 UDP 서버"""

    def __init__(self, replies, pause: float = 0.0):
        self.replies = list(replies)
        self.pause = pause
        self.requests = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.05)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def address(self) -> str:
        host, port = self.sock.getsockname()
        return f"{host}:{port}"

    def _serve(self):
        while not self._stop.is_set():
            try:
                data, peer = self.sock.recvfrom(2048)
            except socket.timeout:
                continue
            except OSError:
                return
            self.requests.append(data)
            for reply in self.replies:
                if self.pause:
                    time.sleep(self.pause)
                self.sock.sendto(reply, peer)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self.sock.close()


@pytest.fixture
def kart_server():
    servers = []

    def _factory(*replies, pause: float = 0.0):
        srv = FakeKartServer(replies, pause=pause).start()
        servers.append(srv)
        return srv

    yield _factory
    for srv in servers:
        srv.stop()


@pytest.fixture
def silent_address():
    # 바인딩만 하고 응답하지 않음 (ICMP unreachable 방지)
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    s.bind(("127.0.0.1", 0))
    host, port = s.getsockname()
    yield f"{host}:{port}"
    s.close()
