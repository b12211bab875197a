# mcprobe/codec.py
import struct

from mcprobe.logger import get_logger
from mcprobe.motd import sanitize_motd
from mcprobe.status import ConnStatus, ServerStatus
from mcprobe.transport import ProbeConnectionFailed, ProbeTimeout

log = get_logger("codec")

# Anything a parser may raise on a response it does not understand
PARSE_ERRORS = (ValueError, struct.error, IndexError, KeyError, TypeError, AttributeError, RecursionError)


def run_query(request, protocol, port, exchange, parser):
    """Run one probe and turn its outcome into a ServerStatus.

    ``exchange(address, port, timeout)`` returns ``(response, latency_ms)`` or
    raises a transport error; ``parser(response)`` returns a dict of status
    fields, or None when the response is not in the expected framing.
    Nothing raised by either escapes: every outcome becomes a ConnStatus.
    """
    address = request.address
    log.debug(f"Attempting {protocol} query: {address}:{port} (Timeout: {request.timeout}s)")
    try:
        response, latency_ms = exchange(address, port, request.timeout)
    except ProbeTimeout as e:
        log.debug(f"{protocol} query {address}:{port}: timed out ({e}).")
        return ServerStatus.failed(address, port, ConnStatus.TIMEOUT, protocol)
    except ProbeConnectionFailed as e:
        log.debug(f"{protocol} query {address}:{port}: connection failed ({e}).")
        return ServerStatus.failed(address, port, ConnStatus.CONNFAIL, protocol)

    try:
        fields = parser(response)
    except PARSE_ERRORS as e:
        log.warning(f"{protocol} parse failed for {address}:{port}: {e} (Data: {response[:50]!r}...)")
        fields = None

    if fields is None:
        log.debug(f"{protocol} query {address}:{port}: unrecognised response ({len(response)} bytes).")
        return ServerStatus.failed(address, port, ConnStatus.UNKNOWN, protocol, latency_ms)

    fields.setdefault("stripped_motd", sanitize_motd(fields["motd"]))
    log.debug(f"{protocol} query {address}:{port} successful: {fields['version']} [{fields['current_players']}/{fields['max_players']}]")
    return ServerStatus(
        address=address,
        port=port,
        connection_status=ConnStatus.SUCCESS,
        online=True,
        latency_ms=latency_ms,
        slp_protocol=protocol,
        **fields,
    )
