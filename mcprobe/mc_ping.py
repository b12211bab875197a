# mcprobe/mc_ping.py - Unified ping entry point
from mcprobe.bedrock import bedrock_query
from mcprobe.legacy import beta_query, extended_query, legacy_query
from mcprobe.logger import get_logger
from mcprobe.modern import json_query
from mcprobe.status import ConnStatus, ProbeRequest, ServerStatus, SlpProtocol, strongest_failure

log = get_logger("mc_ping")

CODECS = {
    SlpProtocol.BETA: beta_query,
    SlpProtocol.LEGACY: legacy_query,
    SlpProtocol.EXTENDED: extended_query,
    SlpProtocol.JSON: json_query,
    SlpProtocol.BEDROCK: bedrock_query,
}

# Old servers may ignore packets for a while after one they did not
# understand, so the oldest dialects go first.
AUTO_DETECT_ORDER = (
    SlpProtocol.LEGACY,
    SlpProtocol.BETA,
    SlpProtocol.EXTENDED,
    SlpProtocol.JSON,
    SlpProtocol.BEDROCK,
)


def _should_try(protocol, attempts):
    if not attempts:
        return True
    if protocol is SlpProtocol.BEDROCK:
        # Datagram port: a TCP refusal says nothing about it
        return True
    # A refused or unreachable host ends the TCP chain
    return attempts[-1].connection_status is not ConnStatus.CONNFAIL


def _exhausted(request, attempts):
    if not attempts:
        return ServerStatus.failed(request.address, request.tcp_port, ConnStatus.UNKNOWN)
    candidates = attempts
    tcp_reached = any(s.slp_protocol is not SlpProtocol.BEDROCK and s.connection_status is not ConnStatus.CONNFAIL
                      for s in attempts)
    if tcp_reached:
        # The host answered on TCP, so a closed datagram port is not "unreachable"
        candidates = [s for s in attempts
                      if not (s.slp_protocol is SlpProtocol.BEDROCK and s.connection_status is ConnStatus.CONNFAIL)]
    worst = strongest_failure(s.connection_status for s in candidates)
    return next(s for s in candidates if s.connection_status is worst)


def ping_server(request, cancel=None):
    """Query a server and return its ServerStatus.

    With a specific protocol on the request, exactly that codec runs once and
    its result is final. With SlpProtocol.ALL the codecs run in
    AUTO_DETECT_ORDER until one succeeds; if none does, the strongest failure
    seen is reported (CONNFAIL over TIMEOUT over UNKNOWN).

    ``cancel`` is an optional threading.Event; once set, no further codec
    attempt starts.
    """
    if not isinstance(request, ProbeRequest):
        raise TypeError(f"ping_server expects a ProbeRequest, got {type(request).__name__}")

    if request.protocol is not SlpProtocol.ALL:
        return CODECS[request.protocol](request)

    attempts = []
    for protocol in AUTO_DETECT_ORDER:
        if cancel is not None and cancel.is_set():
            log.debug(f"Query for {request.address} cancelled before {protocol}.")
            break
        if not _should_try(protocol, attempts):
            log.debug(f"Skipping {protocol} for {request.address}: host refused TCP.")
            continue
        status = CODECS[protocol](request)
        if status.online:
            return status
        attempts.append(status)

    log.debug(f"No successful ping for {request.address} ({', '.join(str(s.slp_protocol) for s in attempts)} tried)")
    return _exhausted(request, attempts)
