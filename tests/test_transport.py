import socket
import time

import pytest

from helpers import kick_packet
from mcprobe.legacy import kick_frame_length
from mcprobe.transport import ProbeConnectionFailed, ProbeTimeout, tcp_exchange, udp_exchange


def test_tcp_exchange_returns_reply_and_latency(tcp_server):
    server = tcp_server(b"pong")
    response, latency_ms = tcp_exchange("127.0.0.1", server.port, 2, b"ping")
    assert response == b"pong"
    assert isinstance(latency_ms, int)
    assert latency_ms >= 0
    assert server.received == [b"ping"]


def test_tcp_exchange_reads_whole_frame(tcp_server):
    packet = kick_packet("x" * 5000)
    server = tcp_server(packet)
    response, _ = tcp_exchange("127.0.0.1", server.port, 2, b"\xfe\x01", kick_frame_length)
    assert response == packet


def test_tcp_exchange_peer_closes_without_reply(tcp_server):
    server = tcp_server(b"")
    response, _ = tcp_exchange("127.0.0.1", server.port, 2, b"\xfe")
    assert response == b""


def test_tcp_exchange_refused(closed_port):
    with pytest.raises(ProbeConnectionFailed):
        tcp_exchange("127.0.0.1", closed_port, 2, b"\xfe")


def test_tcp_exchange_unresolvable_host():
    with pytest.raises(ProbeConnectionFailed):
        tcp_exchange("no-such-host.invalid", 25565, 2, b"\xfe")


def test_tcp_exchange_silent_server_times_out(tcp_server):
    server = tcp_server(None)
    start = time.monotonic()
    with pytest.raises(ProbeTimeout):
        tcp_exchange("127.0.0.1", server.port, 0.3, b"\xfe\x01")
    assert time.monotonic() - start < 2


def test_udp_exchange(udp_server):
    server = udp_server(lambda data: data[::-1])
    response, latency_ms = udp_exchange("127.0.0.1", server.port, 2, b"abc")
    assert response == b"cba"
    assert latency_ms >= 0


def test_udp_exchange_silent_server_times_out(udp_server):
    server = udp_server(None)
    with pytest.raises(ProbeTimeout):
        udp_exchange("127.0.0.1", server.port, 0.3, b"abc")


def test_udp_exchange_closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    # Loopback answers with ICMP port unreachable
    with pytest.raises(ProbeConnectionFailed):
        udp_exchange("127.0.0.1", port, 1, b"abc")


def test_tcp_exchange_overlong_hostname_label():
    with pytest.raises(ProbeConnectionFailed):
        tcp_exchange("a" * 64 + ".example.com", 25565, 1, b"\xfe")


def test_udp_exchange_overlong_hostname_label():
    with pytest.raises(ProbeConnectionFailed):
        udp_exchange("a" * 64 + ".example.com", 19132, 1, b"\x01")
