"""mcprobe - Minecraft server status checker (Java Beta 1.8 to latest, Bedrock)."""
from mcprobe.bedrock import bedrock_query
from mcprobe.legacy import beta_query, extended_query, legacy_query
from mcprobe.mc_ping import ping_server
from mcprobe.modern import json_query
from mcprobe.status import ConnStatus, ProbeRequest, ServerStatus, SlpProtocol
from mcprobe.transport import ProbeConnectionFailed, ProbeError, ProbeTimeout

__version__ = "1.0.0"

__all__ = [
    "ConnStatus",
    "ProbeConnectionFailed",
    "ProbeError",
    "ProbeRequest",
    "ProbeTimeout",
    "ServerStatus",
    "SlpProtocol",
    "bedrock_query",
    "beta_query",
    "extended_query",
    "json_query",
    "legacy_query",
    "ping_server",
]
