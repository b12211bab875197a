import threading
from unittest.mock import patch

import pytest

from helpers import legacy_kick
from mcprobe.mc_ping import ping_server
from mcprobe.status import ConnStatus, ProbeRequest, SlpProtocol
from worker.worker import scan_batch


def test_scan_batch_keeps_input_order(tcp_server, closed_port):
    first = tcp_server(lambda data: legacy_kick(motd="first"))
    second = tcp_server(lambda data: legacy_kick(motd="second"))
    targets = [
        f"127.0.0.1:{first.port}",
        ProbeRequest("127.0.0.1", closed_port, timeout=1, protocol=SlpProtocol.LEGACY),
        f"127.0.0.1:{second.port}",
    ]

    results = scan_batch(targets, timeout=2, workers=3, progress=False)

    assert [r.motd for r in results] == ["first", None, "second"]
    assert results[1].connection_status is ConnStatus.CONNFAIL


def test_scan_batch_applies_protocol_to_strings(tcp_server):
    server = tcp_server(lambda data: legacy_kick())
    results = scan_batch([f"127.0.0.1:{server.port}"], timeout=2, protocol=SlpProtocol.JSON, progress=False)
    assert results[0].slp_protocol is SlpProtocol.JSON
    assert results[0].connection_status is ConnStatus.UNKNOWN


def test_scan_batch_empty():
    assert scan_batch([], progress=False) == []


def test_scan_batch_rejects_bad_target():
    with pytest.raises(ValueError):
        scan_batch(["host:notaport"], progress=False)


def test_scan_batch_cancelled():
    cancel = threading.Event()
    cancel.set()
    results = scan_batch(["127.0.0.1:1"], cancel=cancel, progress=False)
    assert results[0].connection_status is ConnStatus.UNKNOWN
    assert not results[0].online


def test_scan_batch_survives_a_failing_query(tcp_server):
    server = tcp_server(lambda data: legacy_kick(motd="alive"))
    targets = ["broken.example.org", f"127.0.0.1:{server.port}"]

    def flaky_ping(request, cancel=None):
        if request.address == "broken.example.org":
            raise RuntimeError("boom")
        return ping_server(request, cancel)

    with patch("worker.worker.ping_server", side_effect=flaky_ping):
        results = scan_batch(targets, timeout=2, protocol=SlpProtocol.LEGACY, progress=False)

    assert results[0].connection_status is ConnStatus.UNKNOWN
    assert results[0].address == "broken.example.org"
    assert results[1].motd == "alive"


def test_scan_batch_overlong_hostname_does_not_abort_batch(tcp_server):
    server = tcp_server(lambda data: legacy_kick(motd="alive"))
    targets = ["a" * 64 + ".example.com", f"127.0.0.1:{server.port}"]
    results = scan_batch(targets, timeout=1, protocol=SlpProtocol.LEGACY, progress=False)
    assert results[0].connection_status is ConnStatus.CONNFAIL
    assert results[1].motd == "alive"
