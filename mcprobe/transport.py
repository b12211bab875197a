# mcprobe/transport.py
import socket
import time

from mcprobe.logger import get_logger

log = get_logger("transport")

MAX_RESPONSE_BYTES = 2 * 1024 * 1024 # JSON status with a large favicon stays well below this
UDP_BUFFER_SIZE = 4096


class ProbeError(Exception):
    """Base class for transport failures seen by a codec."""


class ProbeConnectionFailed(ProbeError):
    """Host unknown, connection refused or network unreachable."""


class ProbeTimeout(ProbeError):
    """Nothing arrived before the deadline."""


def _elapsed_ms(start):
    return int(round((time.monotonic() - start) * 1000))


def _read_response(conn, deadline, frame_length):
    buf = bytearray()
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            if buf:
                return bytes(buf)
            raise ProbeTimeout("deadline passed before any response")
        conn.settimeout(remaining)
        try:
            chunk = conn.recv(4096)
        except socket.timeout:
            if buf:
                log.debug(f"Deadline hit after {len(buf)} bytes, returning partial response.")
                return bytes(buf)
            raise ProbeTimeout("no response before the deadline") from None
        except (ConnectionResetError, ConnectionAbortedError) as e:
            # Peer hung up on a probe it did not understand
            log.debug(f"Connection reset while reading: {e}")
            return bytes(buf)

        if not chunk: # Peer closed
            return bytes(buf)
        buf += chunk

        if frame_length is None or len(buf) >= MAX_RESPONSE_BYTES:
            return bytes(buf)
        needed = frame_length(bytes(buf))
        if needed is not None and len(buf) >= needed:
            return bytes(buf)


def tcp_exchange(address, port, timeout, request, frame_length=None):
    """Open a TCP connection, send ``request`` and read the reply.

    Returns ``(response_bytes, latency_ms)`` where latency covers only the
    connection setup. ``frame_length(buffer)`` may return the total number of
    bytes the reply needs (or None while still unknown); without it the first
    chunk received is the reply. The connection is closed on every path.

    Raises ProbeConnectionFailed or ProbeTimeout.
    """
    deadline = time.monotonic() + timeout
    start = time.monotonic()
    try:
        conn = socket.create_connection((address, port), timeout=timeout)
    except socket.timeout:
        log.debug(f"Connect to {address}:{port} timed out ({timeout}s).")
        raise ProbeTimeout(f"connect to {address}:{port} timed out") from None
    except (socket.gaierror, UnicodeError) as e:
        log.debug(f"Could not resolve {address}: {e}")
        raise ProbeConnectionFailed(f"could not resolve {address}: {e}") from e
    except OSError as e:
        log.debug(f"Connect to {address}:{port} failed: {e}")
        raise ProbeConnectionFailed(f"connect to {address}:{port} failed: {e}") from e
    latency_ms = _elapsed_ms(start)

    with conn:
        try:
            conn.settimeout(max(deadline - time.monotonic(), 0.001))
            conn.sendall(request)
            response = _read_response(conn, deadline, frame_length)
        except socket.timeout:
            raise ProbeTimeout(f"send to {address}:{port} timed out") from None
        except OSError as e:
            log.debug(f"Exchange with {address}:{port} failed: {e}")
            raise ProbeConnectionFailed(f"exchange with {address}:{port} failed: {e}") from e

    log.debug(f"{address}:{port} answered with {len(response)} bytes (connect {latency_ms}ms).")
    return response, latency_ms


def udp_exchange(address, port, timeout, request):
    """Send one datagram and wait for one reply.

    Returns ``(response_bytes, latency_ms)``; latency is the datagram round
    trip. An ICMP port unreachable shows up as ProbeConnectionFailed.
    """
    try:
        infos = socket.getaddrinfo(address, port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as e:
        log.debug(f"Could not resolve {address}: {e}")
        raise ProbeConnectionFailed(f"could not resolve {address}: {e}") from e
    family, _, _, _, sockaddr = infos[0]

    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sock.settimeout(timeout)
        try:
            # A connected datagram socket reports ICMP errors on recv
            sock.connect(sockaddr)
            start = time.monotonic()
            sock.send(request)
            response = sock.recv(UDP_BUFFER_SIZE)
        except socket.timeout:
            log.debug(f"No datagram from {address}:{port} within {timeout}s.")
            raise ProbeTimeout(f"no datagram from {address}:{port}") from None
        except OSError as e:
            log.debug(f"Datagram exchange with {address}:{port} failed: {e}")
            raise ProbeConnectionFailed(f"datagram exchange with {address}:{port} failed: {e}") from e
        latency_ms = _elapsed_ms(start)

    log.debug(f"{address}:{port} answered with a {len(response)} byte datagram ({latency_ms}ms).")
    return response, latency_ms
