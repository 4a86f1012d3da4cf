from __future__ import annotations

import logging
from selectors import DefaultSelector, EVENT_READ, EVENT_WRITE
import socket
import threading
import time

from udpiface.errors import SocketClosedError

logger = logging.getLogger(__name__)

# largest payload a single UDP datagram can carry
MAX_DATAGRAM_SIZE = 65535


def _deadline(timeout: float | None) -> float | None:
    if timeout is None:
        return None
    return time.monotonic() + timeout


class TimedSocket:
    """
    One UDP socket driven in non-blocking mode so every send/receive can be
    bounded by a caller-supplied timeout.

    A would-block result always waits for readiness (with the time remaining
    until the deadline) before the operation is retried. Each wait also watches
    an internal wake-up socket pair, so close() from another thread releases a
    pending wait with SocketClosedError instead of leaving it parked.
    """

    def __init__(self, sock: socket.socket):
        sock.setblocking(False)
        self._sock = sock
        self._wake_r, self._wake_w = socket.socketpair()
        self._wake_r.setblocking(False)
        self._wake_w.setblocking(False)
        self._lock = threading.Lock()
        self._closed = False
        self._waiters = 0

    @property
    def sock(self) -> socket.socket:
        return self._sock

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes, timeout: float | None = None) -> int:
        """
        Send one datagram. timeout=None waits forever.
        Raises TimeoutError when the deadline passes before the socket accepts it.
        """
        deadline = _deadline(timeout)
        while True:
            self._check_open()
            try:
                return self._sock.send(data)
            except (BlockingIOError, InterruptedError):
                pass
            except OSError:
                self._check_open()
                raise
            self._wait(deadline, writable=True)

    def read(self, timeout: float | None = None) -> bytes:
        """
        Receive one whole datagram. timeout=None waits forever.
        Raises TimeoutError when nothing arrives before the deadline.
        """
        deadline = _deadline(timeout)
        while True:
            self._check_open()
            try:
                return self._sock.recv(MAX_DATAGRAM_SIZE)
            except (BlockingIOError, InterruptedError):
                pass
            except OSError:
                self._check_open()
                raise
    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._waiters == 0:
                release = True
            else:
                # waiters cannot leave their wait while the lock is held, so
                # the wake-up socket is still open here
                release = False
                try:
                    self._wake_w.send(b"\x00")
                except OSError:
                    # buffer full: a wake-up byte is already pending
                    pass
        # a thread still inside its wait must see its fds open until it
        # returns; the last waiter out releases them instead
        if release:
            self._release()

    def _release(self) -> None:
        self._sock.close()
        self._wake_w.close()
        self._wake_r.close()

    def _check_open(self) -> None:
        if self._closed:
            raise SocketClosedError("socket is closed")

    def _wait(self, deadline: float | None, *, writable: bool) -> None:
        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                op = "write" if writable else "read"
                raise TimeoutError(f"udp {op} timed out")

        with self._lock:
            self._check_open()
            self._waiters += 1
        try:
            selector = DefaultSelector()
            try:
                selector.register(self._sock, EVENT_WRITE if writable else EVENT_READ)
                selector.register(self._wake_r, EVENT_READ)
                ready = [key.fileobj for key, _ in selector.select(remaining)]
            finally:
                selector.close()
        finally:
            with self._lock:
                self._waiters -= 1
                release = self._closed and self._waiters == 0
            if release:
                self._release()

        if self._closed or self._wake_r in ready:
            logger.debug("wait released by close()")
            raise SocketClosedError("socket closed while waiting")
