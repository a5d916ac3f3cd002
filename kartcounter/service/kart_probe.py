# kartcounter/service/kart_probe.py
from __future__ import annotations
import socket
from typing import Optional

from kartcounter.core.models import DEFAULT_PROBE_TIMEOUT, ProbeFailure, ProbeResult, ProbeSuccess
from kartcounter.protocol.packets import (
    PT_SERVERINFO,
    RECV_BUFFER_SIZE,
    ServerInfoPacket,
    decode_packet,
    encode_ask_info,
)
from kartcounter.utils.addr import split_address
from kartcounter.utils.errors import ProtocolError, TransportError
from kartcounter.utils.log import get_logger

log = get_logger("kart_probe")

# 요청 1회 + 응답 최대 2회 (PT_PLAYERINFO 가 먼저 올 수 있음)
MAX_READS = 2


def _dial_udp(host: str, port: int, timeout: float) -> socket.socket:
    """
    connectionless UDP 소켓을 대상 주소에 connect.
    connect 된 UDP 소켓이므로 ICMP port unreachable 은 recv 에서 OSError 로 올라옴.
    """
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except socket.gaierror as e:
        raise TransportError(f"resolve {host}: {e}") from e
    last_err: Optional[OSError] = None
    for family, socktype, proto, _, sockaddr in infos:
        s = socket.socket(family, socktype, proto)
        try:
            s.settimeout(timeout)
            s.connect(sockaddr)
            return s
        except OSError as e:
            s.close()
            last_err = e
    raise TransportError(f"dial {host}:{port}: {last_err}")


class KartProber:
    """
    SRB2Kart 서버 1대에 PT_ASKINFO 를 보내고 PT_SERVERINFO 를 수집.
    - 읽기마다 독립적인 timeout (전체 예산이 아님)
    - PT_SERVERINFO 가 두 번 오면 마지막 것이 이김
    - 어느 단계든 실패하면 부분 결과 없이 ProbeFailure
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT, version: int = 0):
        self.timeout = timeout
        self.version = version

    def _exchange(self, address: str) -> ProbeSuccess:
        host, port = split_address(address)
        info: Optional[ServerInfoPacket] = None

        with _dial_udp(host, port, self.timeout) as s:
            try:
                s.send(encode_ask_info(self.version))
            except OSError as e:
                raise TransportError(f"send: {e}") from e

            for attempt in range(MAX_READS):
                s.settimeout(self.timeout)
                try:
                    data = s.recv(RECV_BUFFER_SIZE)
                except socket.timeout as e:
                    raise TransportError(f"read {attempt + 1}/{MAX_READS}: timed out") from e
                except OSError as e:
                    raise TransportError(f"read {attempt + 1}/{MAX_READS}: {e}") from e

                header, payload = decode_packet(data)
                if header.packet_type == PT_SERVERINFO:
                    info = payload

        if info is None:
            return ProbeSuccess(address=address)
        return ProbeSuccess(
            address=address,
            server_name_raw=info.server_name_raw,
            players=info.number_of_player,
            max_players=info.max_player,
        )

    def probe(self, address: str) -> ProbeResult:
        try:
            result = self._exchange(address)
        except TransportError as e:
            return ProbeFailure(address=address, error=str(e), kind="transport")
        except ProtocolError as e:
            return ProbeFailure(address=address, error=str(e), kind="protocol")
        log.debug("probe ok %s players=%d/%d", address, result.players, result.max_players)
        return result

    __call__ = probe


def probe_server(address: str, timeout: float = DEFAULT_PROBE_TIMEOUT) -> ProbeResult:
    return KartProber(timeout=timeout).probe(address)
