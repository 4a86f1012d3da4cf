from __future__ import annotations
import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from udpiface.errors import InterfaceShutdown
from udpiface.interfaces.udp_interface import UdpInterface
from .faults import FaultConfig

logger = logging.getLogger(__name__)

@dataclass
class SimDevice:
    """
    Remote end of a UdpInterface: commands arriving on the interface's read
    role are recorded by a reader thread, telemetry goes out on its write role.
    """
    interface: UdpInterface
    faults: FaultConfig = field(default_factory=FaultConfig)
    commands: deque = field(default_factory=lambda: deque(maxlen=1000))
    dropped: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _reader: threading.Thread | None = field(default=None, repr=False)

    def start(self) -> None:
        self.interface.connect()
        self._reader = threading.Thread(target=self._read_loop, name="sim-cmd-reader", daemon=True)
        self._reader.start()

    def stop(self, timeout_s: float = 2.0) -> None:
        # shutdown() releases the reader even if it is parked
        self.interface.shutdown()
        if self._reader is not None:
            self._reader.join(timeout_s)
            self._reader = None

    @property
    def running(self) -> bool:
        return self._reader is not None and self._reader.is_alive()

    def reset(self) -> None:
        with self._lock:
            self.commands.clear()
            self.dropped = 0

    def received(self) -> list[bytes]:
        with self._lock:
            return list(self.commands)

    def send_telemetry(self, payload: bytes) -> bool:
        if self.faults.should_drop():
            with self._lock:
                self.dropped += 1
            logger.warning("fault injection dropped %d byte telemetry packet", len(payload))
            return False
        self.faults.apply_delay()
        self.interface.write_raw(payload)
        return True

    def _read_loop(self) -> None:
        while True:
            try:
                packet = self.interface.read()
            except InterfaceShutdown:
                logger.info("command reader stopped")
                return
            except TimeoutError:
                continue
            with self._lock:
                self.commands.append(packet.buffer)
