# kartcounter/protocol/packets.py
"""
SRB2Kart 넷게임 패킷 코덱 (I/O 없음)
- 요청: PT_ASKINFO (헤더 8 + version 1 + time 4 = 13 bytes, little-endian, 패딩 없음)
- 응답: 헤더 8 + PT_SERVERINFO 고정 레이아웃 페이로드 (1297 bytes)
- 체크섬: seed 0x1234567 + sum(byte * (i+1)) over data[4:], uint32 wrap → int32
"""
from __future__ import annotations
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from kartcounter.utils.errors import ProtocolError

# 패킷 타입
PT_ASKINFO = 12
PT_SERVERINFO = 13
PT_PLAYERINFO = 14  # CLIENT_INFO: 인식만 하고 파싱하지 않음

MAXAPPLICATION = 16
MAXSERVERNAME = 32
MAX_MIRROR_LENGTH = 256
MAX_FILENEEDED = 915

RECV_BUFFER_SIZE = 2048
CHECKSUM_SEED = 0x1234567

# checksum, ack, ackreturn, packettype, reserved
HEADER_FMT = "<IBBBB"
HEADER_SIZE = struct.calcsize(HEADER_FMT)  # 8

# version, time
ASKINFO_FMT = "<BI"

SERVERINFO_FMT = (
    "<BB"                       # x255, packetversion
    f"{MAXAPPLICATION}s"        # application
    "BB"                        # version, subversion
    "BB"                        # numberofplayer, maxplayer
    "BBBBB"                     # gametype, modifiedgame, cheatsenabled, kartvars, fileneedednum
    "II"                        # time, leveltime
    f"{MAXSERVERNAME}s"         # servername
    "8s33s16s"                  # mapname, maptitle, mapmd5
    "BB"                        # actnum, iszone
    f"{MAX_MIRROR_LENGTH}s"     # httpsource
    f"{MAX_FILENEEDED}s"        # fileneeded
)
SERVERINFO_SIZE = struct.calcsize(SERVERINFO_FMT)  # 1297
# 서버는 fileneeded 중 사용한 부분만 보냄 → 그 앞까지는 반드시 있어야 함
SERVERINFO_MIN_SIZE = SERVERINFO_SIZE - MAX_FILENEEDED


@dataclass(frozen=True)
class PacketHeader:
    checksum: int
    ack: int
    ack_return: int
    packet_type: int
    reserved: int = 0


@dataclass(frozen=True)
class ServerInfoPacket:
    x255: int
    packet_version: int
    application: bytes
    version: int
    subversion: int
    number_of_player: int
    max_player: int
    gametype: int
    modified_game: int
    cheats_enabled: int
    kart_vars: int
    file_needed_num: int
    time: int
    level_time: int
    server_name: bytes
    map_name: bytes
    map_title: bytes
    map_md5: bytes
    act_num: int
    is_zone: int
    http_source: bytes
    file_needed: bytes

    @property
    def server_name_raw(self) -> bytes:
        return split_at_null(self.server_name)


# ---------------------------
# 체크섬
# ---------------------------
def generate_checksum(data: bytes) -> int:
    """data[4:]에 대한 가중합 체크섬 (signed 32-bit 로 반환)"""
    c = CHECKSUM_SEED
    for i, v in enumerate(data[4:]):
        c = (c + v * (i + 1)) & 0xFFFFFFFF
    return c - 0x100000000 if c & 0x80000000 else c


def write_checksum(data: bytes) -> bytes:
    """체크섬을 앞 4바이트(LE)에 기록한 새 버퍼 반환. 4바이트 이후는 그대로 복사."""
    return struct.pack("<i", generate_checksum(data)) + bytes(data[4:])


def verify_checksum(data: bytes) -> bool:
    if len(data) < 4:
        return False
    (stored,) = struct.unpack_from("<i", data, 0)
    return stored == generate_checksum(data)


# ---------------------------
# 인코딩
# ---------------------------
def encode_header(packet_type: int, ack: int = 0, ack_return: int = 0) -> bytes:
    return struct.pack(HEADER_FMT, 0, ack, ack_return, packet_type, 0)


def encode_ask_info(version: int = 0, time: int = 0) -> bytes:
    body = encode_header(PT_ASKINFO) + struct.pack(ASKINFO_FMT, version, time)
    return write_checksum(body)


def encode_server_info(info: ServerInfoPacket) -> bytes:
    """PT_SERVERINFO 응답 생성 (로컬 테스트 서버/재전송용)"""
    body = encode_header(PT_SERVERINFO) + struct.pack(
        SERVERINFO_FMT,
        info.x255, info.packet_version, info.application,
        info.version, info.subversion,
        info.number_of_player, info.max_player,
        info.gametype, info.modified_game, info.cheats_enabled,
        info.kart_vars, info.file_needed_num,
        info.time, info.level_time,
        info.server_name, info.map_name, info.map_title, info.map_md5,
        info.act_num, info.is_zone,
        info.http_source, info.file_needed,
    )
    return write_checksum(body)


# ---------------------------
# 디코딩
# ---------------------------
def decode_header(buf: bytes) -> PacketHeader:
    if len(buf) < HEADER_SIZE:
        raise ProtocolError(f"short packet: {len(buf)} bytes < header {HEADER_SIZE}")
    return PacketHeader(*struct.unpack_from(HEADER_FMT, buf, 0))


def decode_server_info(buf: bytes) -> ServerInfoPacket:
    """
    헤더 뒤의 PT_SERVERINFO 페이로드 파싱.
    fileneeded 이전 고정 필드까지는 길이 검사, 잘린 fileneeded 는 0으로 채움.
    """
    payload = bytes(buf[HEADER_SIZE:HEADER_SIZE + SERVERINFO_SIZE])
    if len(payload) < SERVERINFO_MIN_SIZE:
        raise ProtocolError(
            f"short server info: {len(payload)} bytes < {SERVERINFO_MIN_SIZE}"
        )
    payload = payload.ljust(SERVERINFO_SIZE, b"\x00")
    return ServerInfoPacket(*struct.unpack(SERVERINFO_FMT, payload))


def decode_packet(buf: bytes) -> Tuple[PacketHeader, Optional[ServerInfoPacket]]:
    header = decode_header(buf)
    if header.packet_type == PT_SERVERINFO:
        return header, decode_server_info(buf)
    # PT_PLAYERINFO 및 기타 타입은 무시
    return header, None


def split_at_null(field: bytes) -> bytes:
    i = field.find(b"\x00")
    return field if i < 0 else field[:i]
