# kartcounter/utils/addr.py
"""
"host:port" 주소 파싱/정규화 유틸
- IPv4/호스트명: "1.2.3.4:5029", "kart.example.org:5029"
- IPv6: "[::1]:5029" 또는 마스터 서버가 주는 그대로 "::1:5029" (마지막 ':' 기준 분리)
"""
from __future__ import annotations
from typing import Tuple

from kartcounter.utils.errors import TransportError


def validate_port(p: int) -> bool:
    return isinstance(p, int) and 0 < p <= 65535


def format_address(host: str, port) -> str:
    # 마스터 서버 목록 "<address> <port>" → "<address>:<port>"
    return f"{host}:{port}"


def split_address(address: str) -> Tuple[str, int]:
    """
    "host:port" → (host, port)
    포트가 없거나 범위를 벗어나면 TransportError (dial 실패와 동일 취급)
    """
    if not address or ":" not in address:
        raise TransportError(f"missing port in address {address!r}")
    host, _, port_s = address.rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_s)
    except ValueError:
        raise TransportError(f"invalid port in address {address!r}") from None
    if not host or not validate_port(port):
        raise TransportError(f"invalid address {address!r}")
    return host, port
