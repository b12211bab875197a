import struct

from mcprobe.bedrock import PONG_HEADER, RAKNET_MAGIC, UNCONNECTED_PONG
from mcprobe.modern import pack_varint

# --- Response builders, the way real servers frame them ---

def kick_packet(text):
    """0xFF, UTF-16 unit count, UTF-16BE text."""
    encoded = text.encode("utf-16-be")
    return b"\xff" + struct.pack(">H", len(encoded) // 2) + encoded


def legacy_kick(protocol="61", version="1.5.2", motd="A Minecraft Server", current="3", maximum="20"):
    return kick_packet("\x00".join(["\xa71", protocol, version, motd, current, maximum]))


def beta_kick(motd="A Beta Server", current="1", maximum="8"):
    return kick_packet("\xa7".join([motd, current, maximum]))


def json_status_packet(payload):
    data = payload if isinstance(payload, bytes) else payload.encode("utf-8")
    body = pack_varint(0x00) + pack_varint(len(data)) + data
    return pack_varint(len(body)) + body


def bedrock_pong(server_id, magic=RAKNET_MAGIC, packet_id=UNCONNECTED_PONG):
    encoded = server_id.encode("utf-8")
    return PONG_HEADER.pack(packet_id, 1234, 5678, magic, len(encoded)) + encoded
