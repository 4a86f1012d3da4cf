from __future__ import annotations

import logging
import threading

from udpiface.errors import InterfaceShutdown
from udpiface.packet import Packet
from udpiface.rawlog import RawLoggerPair

logger = logging.getLogger(__name__)


class Interface:
    """
    Common state for telemetry/command interfaces: traffic counters, the
    optional raw logger pair, and a place for callers with nothing to do to
    wait until the interface is reconnected or shut down.
    """

    def __init__(self, name: str | None = None):
        self.name = name or type(self).__name__.upper()
        self.raw_logger_pair: RawLoggerPair | None = None
        self.read_allowed = True
        self.write_allowed = True
        self.write_raw_allowed = True

        self._stats_lock = threading.Lock()
        self._bytes_read = 0
        self._read_count = 0
        self._bytes_written = 0
        self._write_count = 0

        self._wakeup = threading.Condition()
        self._generation = 0
        self._last_shutdown = 0
        self._is_shut_down = False

    # subclasses provide the transport
    def connect(self) -> None:
        raise NotImplementedError

    def connected(self) -> bool:
        raise NotImplementedError

    def disconnect(self) -> None:
        raise NotImplementedError

    def read(self) -> Packet:
        raise NotImplementedError

    def write(self, packet: Packet) -> None:
        raise NotImplementedError

    def write_raw(self, data: bytes) -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Disconnect and release every caller parked in read()."""
        self.disconnect()
        self._wake(shutdown=True)
        logger.info("%s shut down", self.name)

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def read_count(self) -> int:
        return self._read_count

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def write_count(self) -> int:
        return self._write_count

    def stats(self) -> dict:
        with self._stats_lock:
            return {
                "bytes_read": self._bytes_read,
                "read_count": self._read_count,
                "bytes_written": self._bytes_written,
                "write_count": self._write_count,
            }

    def _record_read(self, nbytes: int) -> None:
        with self._stats_lock:
            self._bytes_read += nbytes
            self._read_count += 1

    def _record_write(self, nbytes: int) -> None:
        with self._stats_lock:
            self._bytes_written += nbytes
            self._write_count += 1

    def _current_generation(self) -> int:
        with self._wakeup:
            return self._generation

    def _park(self, generation: int) -> None:
        """
        Block until connect() or shutdown() happens after `generation` was taken.
        Returns on reconnect; raises InterfaceShutdown on shutdown.
        """
        with self._wakeup:
            if self._is_shut_down:
                raise InterfaceShutdown(f"{self.name} is shut down")
            logger.debug("%s: caller parked", self.name)
            self._wakeup.wait_for(lambda: self._generation != generation)
            if self._last_shutdown > generation:
                raise InterfaceShutdown(f"{self.name} is shut down")

    def _wake(self, *, shutdown: bool) -> None:
        with self._wakeup:
            self._generation += 1
            self._is_shut_down = shutdown
            if shutdown:
                self._last_shutdown = self._generation
            self._wakeup.notify_all()
