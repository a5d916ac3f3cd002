"""
SRB2Kart 넷게임 프로토콜
- 패킷 레이아웃/체크섬/필드 추출 (순수 코덱, I/O 없음)
"""

from .packets import (
    PT_ASKINFO,
    PT_SERVERINFO,
    PT_PLAYERINFO,
    PacketHeader,
    ServerInfoPacket,
    generate_checksum,
    write_checksum,
    verify_checksum,
    encode_ask_info,
    encode_server_info,
    decode_header,
    decode_server_info,
    decode_packet,
    split_at_null,
)

__all__ = [
    "PT_ASKINFO",
    "PT_SERVERINFO",
    "PT_PLAYERINFO",
    "PacketHeader",
    "ServerInfoPacket",
    "generate_checksum",
    "write_checksum",
    "verify_checksum",
    "encode_ask_info",
    "encode_server_info",
    "decode_header",
    "decode_server_info",
    "decode_packet",
    "split_at_null",
]
