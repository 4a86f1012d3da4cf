import socket
import time

import pytest
from fastapi.testclient import TestClient

from udpiface.api.client import SimApiClient
from udpiface.transport import timed_io
from udpiface.transport.udp import UdpReadSocket

LOOPBACK = "127.0.0.1"

def _free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind((LOOPBACK, 0))
        return s.getsockname()[1]

class _WouldBlockHandle:
    """Stands in for a UDP socket whose send/recv always report would-block."""

    def __init__(self):
        self._real = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def setblocking(self, flag):
        self._real.setblocking(flag)

    def fileno(self):
        return self._real.fileno()

    def send(self, data):
        raise BlockingIOError

    def recv(self, size):
        raise BlockingIOError

    def close(self):
        self._real.close()

@pytest.fixture
def idle_select(monkeypatch):
    """
    Readiness waits never report ready; they use up their timeout, or nap
    briefly when there is none. Returns the timeouts each wait was given.
    """
    calls = []

    class IdleSelector:
        def register(self, fileobj, events):
            pass

        def select(self, timeout=None):
            calls.append(timeout)
            time.sleep(0.01 if timeout is None else timeout)
            return []

        def close(self):
            pass

    monkeypatch.setattr(timed_io, "DefaultSelector", IdleSelector)
    return calls

@pytest.fixture
def free_port():
    return _free_udp_port()

@pytest.fixture
def reader():
    """Loopback read socket on an ephemeral port."""
    r = UdpReadSocket(0, bind_address=LOOPBACK)
    try:
        yield r
    finally:
        r.close()

@pytest.fixture
def sim_app(monkeypatch, reader, free_port):
    """
    Device simulator running in-process. Its commands arrive on free_port and
    its telemetry goes to the `reader` fixture.
    """
    monkeypatch.setenv("SIM_HOST", LOOPBACK)
    monkeypatch.setenv("SIM_CMD_PORT", str(free_port))
    monkeypatch.setenv("SIM_TLM_PORT", str(reader.port))

    from services.device_sim.app.main import app
    with TestClient(app) as client:
        yield client

@pytest.fixture
def sim_api(sim_app):
    client = SimApiClient("http://testserver", client=sim_app)
    try:
        yield client
    finally:
        client.close()

@pytest.fixture
def would_block_handle():
    """Socket stand-in that never becomes ready; closed by whoever wraps it."""
    return _WouldBlockHandle()
