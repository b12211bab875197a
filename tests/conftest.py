import socket
import threading

import pytest


class FakeTcpServer:
    """Loopback server that answers each connection with responder(received).

    A responder returning None keeps the connection open without replying.
    """

    def __init__(self, responder):
        self.responder = responder
        self.received = []
        self._stop = threading.Event()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(8)
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with conn:
                conn.settimeout(1.0)
                try:
                    data = conn.recv(4096)
                except OSError:
                    data = b""
                self.received.append(data)
                reply = self.responder(data) if callable(self.responder) else self.responder
                if reply is None:
                    self._stop.wait(1.0)
                    continue
                try:
                    conn.sendall(reply)
                except OSError:
                    pass

    def close(self):
        self._stop.set()
        self.sock.close()
        self.thread.join(2)


class FakeUdpServer:
    def __init__(self, responder):
        self.responder = responder
        self.received = []
        self._stop = threading.Event()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                data, addr = self.sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                break
            self.received.append(data)
            reply = self.responder(data) if callable(self.responder) else self.responder
            if reply is not None:
                self.sock.sendto(reply, addr)

    def close(self):
        self._stop.set()
        self.sock.close()
        self.thread.join(2)


@pytest.fixture
def tcp_server():
    servers = []

    def start(responder):
        server = FakeTcpServer(responder)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


@pytest.fixture
def udp_server():
    servers = []

    def start(responder):
        server = FakeUdpServer(responder)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


@pytest.fixture
def closed_port():
    """A loopback port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
