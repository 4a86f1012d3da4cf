from __future__ import annotations

import logging
import threading

from udpiface.config.settings import InterfaceSettings
from udpiface.errors import ConfigurationError, NotConnectedError, SocketClosedError
from udpiface.interfaces.interface import Interface
from udpiface.packet import Packet
from udpiface.transport.udp import ANY_ADDRESS, UdpReadSocket, UdpWriteSocket

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"


def normalize_host(host: str | None) -> str | None:
    if host is None:
        return None
    host = str(host)
    if host.upper() == "LOCALHOST":
        return LOOPBACK_ADDRESS
    return host


class UdpInterface(Interface):
    """
    Telemetry/command interface over a pair of one-way UDP sockets.

    write_dest_port enables the write role and read_port the read role; a role
    left out here is never enabled later. UDP has no connection state, so the
    interface counts as connected when every enabled role has its socket open.
    """

    def __init__(
        self,
        hostname: str | None,
        write_dest_port: int | None,
        read_port: int | None,
        write_src_port: int | None = None,
        interface_address: str | None = None,
        ttl: int = 128,
        write_timeout: float | None = 10.0,
        read_timeout: float | None = None,
        bind_address: str | None = ANY_ADDRESS,
        name: str | None = None,
    ):
        super().__init__(name)
        self.hostname = normalize_host(hostname)
        self.write_dest_port = None if write_dest_port is None else int(write_dest_port)
        self.read_port = None if read_port is None else int(read_port)
        self.write_src_port = None if write_src_port is None else int(write_src_port)
        self.interface_address = normalize_host(interface_address)
        self.ttl = max(1, int(ttl))
        self.write_timeout = None if write_timeout is None else float(write_timeout)
        self.read_timeout = None if read_timeout is None else float(read_timeout)
        self.bind_address = normalize_host(bind_address) or ANY_ADDRESS

        if self.write_dest_port is not None and not self.hostname:
            raise ConfigurationError("hostname is required when write_dest_port is given")

        self.read_allowed = self.read_port is not None
        self.write_allowed = self.write_dest_port is not None
        self.write_raw_allowed = self.write_dest_port is not None

        self._lock = threading.Lock()
        self._write_socket: UdpWriteSocket | None = None
        self._read_socket: UdpReadSocket | None = None

    @classmethod
    def from_settings(cls, settings: InterfaceSettings, name: str | None = None) -> UdpInterface:
        return cls(
            settings.hostname,
            settings.write_dest_port,
            settings.read_port,
            write_src_port=settings.write_src_port,
            interface_address=settings.interface_address,
            ttl=settings.ttl,
            write_timeout=settings.write_timeout,
            read_timeout=settings.read_timeout,
            bind_address=settings.bind_address,
            name=name,
        )

    @property
    def write_socket(self) -> UdpWriteSocket | None:
        return self._write_socket

    @property
    def read_socket(self) -> UdpReadSocket | None:
        return self._read_socket

    def connect(self) -> None:
        if self._write_socket is not None or self._read_socket is not None:
            self.disconnect()

        write_socket = None
        read_socket = None
        try:
            if self.write_dest_port is not None:
                write_socket = UdpWriteSocket(
                    self.hostname,
                    self.write_dest_port,
                    self.write_src_port,
                    self.interface_address,
                    self.ttl,
                    self.bind_address,
                )
            if self.read_port is not None:
                read_socket = UdpReadSocket(
                    self.read_port,
                    self.hostname,
                    self.interface_address,
                    self.bind_address,
                )
        except OSError:
            if write_socket is not None:
                write_socket.close()
            raise

        with self._lock:
            self._write_socket = write_socket
            self._read_socket = read_socket

        # readers parked on a closed socket retry against the new one
        self._wake(shutdown=False)
        logger.info(
            "%s connected (write=%s:%s read=%s)",
            self.name, self.hostname, self.write_dest_port, self.read_port,
        )

    def connected(self) -> bool:
        with self._lock:
            write_socket, read_socket = self._write_socket, self._read_socket
        if self.write_dest_port is not None and self.read_port is not None:
            return write_socket is not None and read_socket is not None
        if self.write_dest_port is not None:
            return write_socket is not None
        return read_socket is not None

    def disconnect(self) -> None:
        with self._lock:
            sockets = (self._write_socket, self._read_socket)
            self._write_socket = None
            self._read_socket = None

        write_socket, read_socket = sockets
        try:
            if write_socket is not None:
                write_socket.close()
        finally:
            if read_socket is not None:
                read_socket.close()
        if write_socket is not None or read_socket is not None:
            logger.info("%s disconnected", self.name)

    def read(self) -> Packet:
        """
        Wait for the next datagram and return it as an unidentified big-endian packet.

        A write-only interface has nothing to read, and a read socket closed
        under the caller means the interface was disconnected; both park the
        caller until connect() or shutdown(). TimeoutError propagates when
        read_timeout is set and expires.
        """
        while True:
            with self._lock:
                generation = self._current_generation()
                read_socket = self._read_socket

            if self.read_port is None or read_socket is None:
                self._park(generation)
                continue

            try:
                data = read_socket.read(self.read_timeout)
            except SocketClosedError:
                logger.debug("%s: read socket closed while reading", self.name)
                self._park(generation)
                continue

            if self.raw_logger_pair is not None:
                self.raw_logger_pair.read_logger.write(data)
            self._record_read(len(data))
            return Packet(buffer=data)

    def write(self, packet: Packet) -> None:
        self.write_raw(packet.buffer)

    def write_raw(self, data: bytes) -> None:
        self._check_writable()
        with self._lock:
            write_socket = self._write_socket
        if write_socket is None:
            # disconnected between the check and here
            raise NotConnectedError("Interface not connected")

        write_socket.write(data, self.write_timeout)
        self._record_write(len(data))
        if self.raw_logger_pair is not None:
            self.raw_logger_pair.write_logger.write(data)

    def _check_writable(self) -> None:
        if self.write_dest_port is None:
            raise ConfigurationError("Attempt to write to read only interface")
        if not self.connected():
            raise NotConnectedError("Interface not connected")
