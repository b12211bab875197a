# mcprobe/modern.py - Netty-era JSON status ping (1.7+)
import json
import struct
from functools import partial

from mcprobe.codec import run_query
from mcprobe.config import JSON_PROTOCOL_VERSION
from mcprobe.logger import get_logger
from mcprobe.motd import raw_motd, sanitize_motd
from mcprobe.status import SlpProtocol, parse_int
from mcprobe.transport import tcp_exchange

log = get_logger("modern")

MAX_VARINT_BYTES = 5 # VarInts should not be longer than 5 bytes
MAX_PLAYER_NAMES = 20
STATUS_PACKET_ID = 0x00
NEXT_STATE_STATUS = 1

# --- Varint Helpers ---
def pack_varint(value):
    value &= 0xFFFFFFFF # Negative ints go out as their 32-bit two's complement
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value != 0:
            byte |= 0x80
        out.append(byte)
        if value == 0:
            break
    return bytes(out)

def unpack_varint(data, offset=0):
    """Decode a VarInt at ``offset``; returns ``(value, next_offset)``."""
    number = 0
    for i in range(MAX_VARINT_BYTES):
        if offset + i >= len(data):
            raise ValueError("truncated varint")
        val = data[offset + i]
        number |= (val & 0x7F) << (7 * i)
        if not (val & 0x80):
            if number & 0x80000000:
                number -= 1 << 32
            return number, offset + i + 1
    raise ValueError("varint exceeded 5 bytes")

def _pack_string(text):
    encoded = text.encode('utf-8')
    return pack_varint(len(encoded)) + encoded


def build_json_request(host, port, protocol_version=JSON_PROTOCOL_VERSION):
    """Handshake (next state: status) followed by an empty status request."""
    packet = bytearray()
    packet += pack_varint(0x00) # Packet ID: Handshake
    packet += pack_varint(protocol_version)
    packet += _pack_string(host)
    packet += struct.pack('>H', port) # Port (unsigned short)
    packet += pack_varint(NEXT_STATE_STATUS)

    request = pack_varint(len(packet)) + bytes(packet)
    request += pack_varint(1) + bytes([STATUS_PACKET_ID]) # Status Request
    return request


def json_frame_length(buf):
    """Total size of the length-prefixed response packet, once its prefix is in."""
    for byte in buf[:MAX_VARINT_BYTES]:
        if not byte & 0x80:
            length, offset = unpack_varint(buf)
            return offset + max(length, 0)
    return None if len(buf) < MAX_VARINT_BYTES else len(buf)


def parse_status_json(result):
    """Pull status fields out of a decoded status JSON object."""
    version_info = result["version"]
    players = result["players"]
    description = result.get("description", "")

    sample = players.get("sample") or []
    player_names = [p["name"] for p in sample if isinstance(p, dict) and isinstance(p.get("name"), str)]

    return {
        "version": str(version_info.get("name") or ""),
        "protocol_version": parse_int(version_info.get("protocol")),
        "motd": raw_motd(description),
        "stripped_motd": sanitize_motd(description),
        "current_players": str(players.get("online", 0)),
        "max_players": str(players.get("max", 0)),
        "player_names": tuple(player_names[:MAX_PLAYER_NAMES]),
        "favicon": result.get("favicon"),
    }


def parse_json_response(response):
    """Parse a Status Response packet: length, packet id 0, JSON string."""
    if not response:
        return None
    length, offset = unpack_varint(response)
    packet = response[offset:offset + length]
    if length < 3 or len(packet) < length:
        log.debug(f"JSON response truncated or too short: {len(packet)} of {length} bytes.")
        return None

    packet_id, pos = unpack_varint(packet)
    if packet_id != STATUS_PACKET_ID:
        log.debug(f"Unexpected packet ID received: {packet_id:#x}")
        return None

    json_length, pos = unpack_varint(packet, pos)
    json_data = packet[pos:pos + json_length]
    if json_length <= 0 or len(json_data) < json_length:
        log.debug(f"JSON payload truncated: {len(json_data)} of {json_length} bytes.")
        return None

    result = json.loads(json_data.decode('utf-8'))
    if not isinstance(result, dict):
        return None
    return parse_status_json(result)


def json_query(request):
    probe = build_json_request(request.address, request.tcp_port)
    exchange = partial(tcp_exchange, request=probe, frame_length=json_frame_length)
    return run_query(request, SlpProtocol.JSON, request.tcp_port, exchange, parse_json_response)
