# mcprobe/status.py
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from mcprobe.config import TARGET_PORT, BEDROCK_PORT, QUERY_TIMEOUT


class ConnStatus(Enum):
    """Outcome of one query. Exactly one applies per completed query."""

    SUCCESS = "Success"   # connected, response parsed into a complete record
    CONNFAIL = "Fail"     # unknown host, refused port, unreachable network
    TIMEOUT = "Timeout"   # nothing usable arrived before the deadline
    UNKNOWN = "Unknown"   # connected and got bytes, but not in the expected framing

    def __str__(self):
        return self.name


# Strongest negative signal first
FAILURE_PRECEDENCE = (ConnStatus.CONNFAIL, ConnStatus.TIMEOUT, ConnStatus.UNKNOWN)


class SlpProtocol(Enum):
    """Server List Ping generations a query can speak."""

    ALL = -1       # auto-detect
    BETA = 0       # Beta 1.8 to 1.3
    LEGACY = 1     # 1.4 to 1.5
    EXTENDED = 2   # 1.6
    JSON = 3       # 1.7 and later
    BEDROCK = 4    # Bedrock/Pocket Edition, RakNet over UDP

    def __str__(self):
        return self.name

    @classmethod
    def parse(cls, value):
        """Accept an SlpProtocol, its name (any case) or its number."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name in ("AUTO", "NONE", ""):
                return cls.ALL
            try:
                return cls[name]
            except KeyError:
                raise ValueError(f"Unknown protocol: {value!r}") from None
        return cls(value)


@dataclass(frozen=True)
class ProbeRequest:
    """Immutable configuration for one query.

    ``port`` may be left as None: TCP codecs then use TARGET_PORT and the
    Bedrock codec uses BEDROCK_PORT.
    """

    address: str
    port: Optional[int] = None
    timeout: float = QUERY_TIMEOUT
    protocol: SlpProtocol = SlpProtocol.ALL

    def __post_init__(self):
        if not isinstance(self.address, str) or not self.address.strip():
            raise ValueError("address must be a non-empty string")
        if self.port is not None:
            if isinstance(self.port, bool) or not isinstance(self.port, int):
                raise ValueError(f"port must be an integer, got {self.port!r}")
            if not 0 < self.port <= 65535:
                raise ValueError(f"port out of range: {self.port}")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ValueError(f"timeout must be a positive finite number, got {self.timeout!r}")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ValueError(f"timeout must be a positive finite number, got {self.timeout!r}")
        object.__setattr__(self, "protocol", SlpProtocol.parse(self.protocol))

    @classmethod
    def from_target(cls, target, **kwargs):
        """Build a request from "host", "host:port" or "[ipv6]:port"."""
        host, port = target.strip(), None
        if host.startswith("["):
            end = host.find("]")
            if end == -1:
                raise ValueError(f"Unclosed IPv6 bracket in target {target!r}")
            host, rest = host[1:end], host[end + 1:]
            if rest:
                if not rest.startswith(":"):
                    raise ValueError(f"Garbage after IPv6 address in target {target!r}")
                port = rest[1:]
        elif host.count(":") == 1:
            host, port = host.split(":")
        if port is not None:
            if not port.isdigit():
                raise ValueError(f"Invalid port in target {target!r}")
            kwargs["port"] = int(port)
        return cls(host, **kwargs)

    @property
    def tcp_port(self):
        return self.port if self.port is not None else TARGET_PORT

    @property
    def udp_port(self):
        return self.port if self.port is not None else BEDROCK_PORT


def parse_int(value):
    """int(value), or None when the text is not numeric."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ServerStatus:
    """Normalized result of a query.

    Player counts are kept as the text the server sent; ``players_online`` and
    ``players_max`` give the integer value or None when it is not numeric.
    """

    address: str
    port: int
    connection_status: ConnStatus
    online: bool = False
    version: Optional[str] = None
    motd: Optional[str] = None
    stripped_motd: Optional[str] = None
    current_players: Optional[str] = None
    max_players: Optional[str] = None
    latency_ms: Optional[int] = None
    slp_protocol: Optional[SlpProtocol] = None
    protocol_version: Optional[int] = None
    player_names: Tuple[str, ...] = field(default_factory=tuple)
    favicon: Optional[str] = None
    gamemode: Optional[str] = None

    def __post_init__(self):
        if self.online != (self.connection_status is ConnStatus.SUCCESS):
            raise ValueError("online must be True exactly when connection_status is SUCCESS")
        if self.online and None in (self.version, self.motd, self.current_players, self.max_players):
            raise ValueError("a successful status needs version, motd and both player counts")

    @property
    def players_online(self):
        return parse_int(self.current_players)

    @property
    def players_max(self):
        return parse_int(self.max_players)

    @classmethod
    def failed(cls, address, port, connection_status, protocol=None, latency_ms=None):
        """Build an offline record carrying no server fields."""
        return cls(
            address=address,
            port=port,
            connection_status=connection_status,
            latency_ms=latency_ms,
            slp_protocol=protocol,
        )

    def as_dict(self):
        return {
            "address": self.address,
            "port": self.port,
            "online": self.online,
            "connection_status": str(self.connection_status),
            "protocol": str(self.slp_protocol) if self.slp_protocol else None,
            "protocol_version": self.protocol_version,
            "version": self.version,
            "motd": self.motd,
            "stripped_motd": self.stripped_motd,
            "current_players": self.current_players,
            "max_players": self.max_players,
            "player_names": list(self.player_names),
            "latency_ms": self.latency_ms,
            "gamemode": self.gamemode,
        }


def strongest_failure(statuses):
    """Pick the most specific failure among ConnStatus values (CONNFAIL > TIMEOUT > UNKNOWN)."""
    seen = set(statuses)
    for status in FAILURE_PRECEDENCE:
        if status in seen:
            return status
    return ConnStatus.UNKNOWN
