# mcprobe/legacy.py - Pre-netty pings (Beta 1.8 to 1.6), all answered with a kick packet
import struct
from functools import partial

from mcprobe.codec import run_query
from mcprobe.config import EXTENDED_PROTOCOL_VERSION
from mcprobe.logger import get_logger
from mcprobe.status import SlpProtocol, parse_int
from mcprobe.transport import tcp_exchange

log = get_logger("legacy")

KICK_PACKET_ID = 0xFF
SECTION_SIGN = '\xa7' # § separates Beta fields

NUM_FIELDS = 6      # values expected from a 1.4+ server
NUM_FIELDS_BETA = 3 # values expected from a 1.8b/1.3 server
BETA_VERSION = "≥1.8b/1.3" # Beta ping carries no version

BETA_REQUEST = b'\xfe'
LEGACY_REQUEST = b'\xfe\x01'
PING_HOST_CHANNEL = "MC|PingHost"


def kick_frame_length(buf):
    """Bytes a kick packet needs: id, short length in UTF-16 units, payload.

    Anything that is not a kick packet is taken as-is.
    """
    if buf[0] != KICK_PACKET_ID:
        return len(buf)
    if len(buf) < 3:
        return None
    (units,) = struct.unpack('>H', buf[1:3])
    return 3 + units * 2


def _decode_field(raw):
    # UTF-16BE code units lose their zero high byte here; the rest is plain text
    raw = raw.replace(b'\x00', b'')
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        return raw.decode('latin-1')


# --- Beta (1.8b to 1.3) ---
def parse_beta_response(response):
    """Parse a Beta kick packet: motd§current§max after a 4 byte header."""
    if not response or response[0] != KICK_PACKET_ID:
        log.debug("Beta response is not a kick packet.")
        return None
    # latin-1 keeps the single 0xA7 byte intact, a multi-byte codec would not
    parts = response[4:].decode('latin-1').split(SECTION_SIGN)
    if len(parts) < NUM_FIELDS_BETA:
        log.debug(f"Beta response has {len(parts)} fields, expected {NUM_FIELDS_BETA}.")
        return None
    motd, current, maximum = (part.replace('\x00', '') for part in parts[:NUM_FIELDS_BETA])
    return {
        "version": BETA_VERSION,
        "motd": motd,
        "current_players": current,
        "max_players": maximum,
    }


def beta_query(request):
    exchange = partial(tcp_exchange, request=BETA_REQUEST, frame_length=kick_frame_length)
    return run_query(request, SlpProtocol.BETA, request.tcp_port, exchange, parse_beta_response)


# --- Legacy (1.4 to 1.5) ---
def parse_legacy_response(response):
    """Parse a 1.4/1.5 response split on runs of three NUL bytes.

    Fields 2 to 5 are version, motd, current and max players.
    """
    if not response:
        return None
    parts = response.split(b'\x00\x00\x00')
    if len(parts) < NUM_FIELDS:
        log.debug(f"Legacy response has {len(parts)} fields, expected {NUM_FIELDS}.")
        return None
    fields = [_decode_field(part) for part in parts[:NUM_FIELDS]]
    return {
        "protocol_version": parse_int(fields[1]),
        "version": fields[2],
        "motd": fields[3],
        "current_players": fields[4],
        "max_players": fields[5],
    }


def legacy_query(request):
    exchange = partial(tcp_exchange, request=LEGACY_REQUEST, frame_length=kick_frame_length)
    return run_query(request, SlpProtocol.LEGACY, request.tcp_port, exchange, parse_legacy_response)


# --- Extended (1.6) ---
def _utf16_string(text):
    encoded = text.encode('utf-16-be')
    return struct.pack('>h', len(encoded) // 2) + encoded


def build_extended_request(host, port, protocol_version=EXTENDED_PROTOCOL_VERSION):
    """FE 01 followed by an MC|PingHost plugin message (https://wiki.vg/Server_List_Ping#1.6)."""
    host_data = _utf16_string(host)
    packet = bytearray(b'\xfe\x01\xfa')
    packet += _utf16_string(PING_HOST_CHANNEL)
    packet += struct.pack('>h', 1 + len(host_data) + 4) # protocol byte, host, int port
    packet += struct.pack('>B', protocol_version)
    packet += host_data
    packet += struct.pack('>i', port)
    return bytes(packet)


def parse_kick_payload(response):
    """Parse a well-formed kick packet carrying "§1\\0proto\\0version\\0motd\\0cur\\0max"."""
    if len(response) < 3 or response[0] != KICK_PACKET_ID:
        log.debug("Extended response is not a kick packet.")
        return None
    (units,) = struct.unpack('>H', response[1:3])
    payload = response[3:3 + units * 2]
    if len(payload) < units * 2:
        log.debug(f"Kick packet truncated: {len(payload)} of {units * 2} bytes.")
        return None
    fields = payload.decode('utf-16-be').split('\x00')
    if len(fields) < NUM_FIELDS or not fields[0].startswith(SECTION_SIGN + '1'):
        log.debug(f"Kick packet is not a status reply: {fields[0][:30]!r}")
        return None
    return {
        "protocol_version": parse_int(fields[1]),
        "version": fields[2],
        "motd": fields[3],
        "current_players": fields[4],
        "max_players": fields[5],
    }


def extended_query(request):
    probe = build_extended_request(request.address, request.tcp_port)
    exchange = partial(tcp_exchange, request=probe, frame_length=kick_frame_length)
    return run_query(request, SlpProtocol.EXTENDED, request.tcp_port, exchange, parse_kick_payload)
