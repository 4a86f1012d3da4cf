from __future__ import annotations

import logging
import socket

from udpiface.transport.timed_io import TimedSocket

logger = logging.getLogger(__name__)

ANY_ADDRESS = "0.0.0.0"


def is_multicast(address: str | None) -> bool:
    """True if the first octet of a dotted IPv4 address is in 224..239."""
    if not address:
        return False
    try:
        first_octet = int(address.split(".", 1)[0])
    except ValueError:
        return False
    return 224 <= first_octet <= 239


def membership_request(group: str, interface_address: str | None = None) -> bytes:
    # struct ip_mreq: multicast group, then local interface
    return socket.inet_aton(group) + socket.inet_aton(interface_address or ANY_ADDRESS)


class UdpReadSocket:
    """Bound UDP socket for inbound datagrams, optionally joined to a multicast group."""

    def __init__(
        self,
        port: int,
        hostname: str | None = None,
        interface_address: str | None = None,
        bind_address: str = ANY_ADDRESS,
    ):
        self.hostname = hostname
        self.interface_address = interface_address
        self.bind_address = bind_address

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((bind_address, port))
            if hostname:
                group = socket.gethostbyname(hostname)
                if is_multicast(group):
                    iface = interface_address or ANY_ADDRESS
                    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(iface))
                    sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership_request(group, iface))
                    logger.info("joined multicast group %s on %s", group, iface)
        except OSError:
            sock.close()
            raise

        self._io = TimedSocket(sock)

    @property
    def sock(self) -> socket.socket:
        return self._io.sock

    @property
    def local_address(self) -> tuple[str, int]:
        return self._io.sock.getsockname()

    @property
    def port(self) -> int:
        return self.local_address[1]

    @property
    def closed(self) -> bool:
        return self._io.closed

    def read(self, timeout: float | None = None) -> bytes:
        return self._io.read(timeout)

    def close(self) -> None:
        self._io.close()


class UdpWriteSocket:
    """
    UDP socket with a fixed peer, so writes need no address.
    Multicast peers get their TTL (and outgoing interface, when given)
    configured before anything is sent.
    """

    multicast = staticmethod(is_multicast)

    def __init__(
        self,
        hostname: str,
        port: int,
        src_port: int | None = None,
        interface_address: str | None = None,
        ttl: int = 1,
        bind_address: str = ANY_ADDRESS,
    ):
        self.hostname = hostname
        self.interface_address = interface_address
        self.ttl = max(1, int(ttl))
        self.bind_address = bind_address

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((bind_address, src_port or 0))
            address = socket.gethostbyname(hostname)
            if is_multicast(address):
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.ttl)
                if interface_address:
                    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(interface_address))
            sock.connect((address, port))
        except OSError:
            sock.close()
            raise

        self._io = TimedSocket(sock)

    @property
    def sock(self) -> socket.socket:
        return self._io.sock

    @property
    def local_address(self) -> tuple[str, int]:
        return self._io.sock.getsockname()

    @property
    def peer_address(self) -> tuple[str, int]:
        return self._io.sock.getpeername()

    @property
    def closed(self) -> bool:
        return self._io.closed

    def write(self, data: bytes, timeout: float | None = None) -> int:
        return self._io.write(data, timeout)

    def close(self) -> None:
        self._io.close()
