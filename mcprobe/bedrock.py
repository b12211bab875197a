# mcprobe/bedrock.py - RakNet Unconnected Ping for Bedrock/Pocket Edition
import random
import struct
import time
from functools import partial

from mcprobe.codec import run_query
from mcprobe.logger import get_logger
from mcprobe.status import SlpProtocol, parse_int
from mcprobe.transport import udp_exchange

log = get_logger("bedrock")

UNCONNECTED_PING = 0x01
UNCONNECTED_PONG = 0x1C
# Offline message data ID (https://wiki.vg/Raknet_Protocol#Data_types)
RAKNET_MAGIC = bytes.fromhex("00ffff00fefefefefdfdfdfd12345678")
PONG_HEADER = struct.Struct('>Bqq16sH') # id, timestamp, server GUID, magic, id string length
MIN_SERVER_ID_FIELDS = 6


def build_bedrock_request(timestamp_ms=None, client_guid=None):
    """Unconnected Ping: id, timestamp, magic, client GUID."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    if client_guid is None:
        client_guid = random.getrandbits(63)
    return struct.pack('>Bq', UNCONNECTED_PING, timestamp_ms) + RAKNET_MAGIC + struct.pack('>q', client_guid)


def parse_bedrock_response(response):
    """Parse an Unconnected Pong and its ;-separated server ID string.

    The ID string reads edition;motd;protocol;version;current;max;guid;
    level name;gamemode;... with the tail missing on older servers.
    """
    if len(response) < PONG_HEADER.size or response[0] != UNCONNECTED_PONG:
        log.debug("Bedrock response is not an Unconnected Pong.")
        return None
    _, _, _, magic, length = PONG_HEADER.unpack_from(response)
    if magic != RAKNET_MAGIC:
        log.debug("Bedrock response carries the wrong RakNet magic.")
        return None

    server_id = response[PONG_HEADER.size:PONG_HEADER.size + length].decode('utf-8')
    fields = server_id.split(';')
    if len(fields) < MIN_SERVER_ID_FIELDS:
        log.debug(f"Bedrock server ID has {len(fields)} fields: {server_id[:50]!r}")
        return None

    edition, motd, protocol, version, current, maximum = fields[:MIN_SERVER_ID_FIELDS]
    gamemode = fields[8] if len(fields) > 8 and fields[8] else None
    return {
        "version": f"{version} ({edition})",
        "protocol_version": parse_int(protocol),
        "motd": motd,
        "current_players": current,
        "max_players": maximum,
        "gamemode": gamemode,
    }


def bedrock_query(request):
    exchange = partial(udp_exchange, request=build_bedrock_request())
    return run_query(request, SlpProtocol.BEDROCK, request.udp_port, exchange, parse_bedrock_response)
