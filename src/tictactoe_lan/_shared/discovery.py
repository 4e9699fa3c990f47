# Area: Shared
"""
tictactoe_lan._shared.discovery - LAN host discovery over UDP
=============================================================

Best-effort broadcast protocol that lets a client find hosts on the
local subnet before connecting.

    requester --(DISCOVERY_REQUEST, broadcast)--> responder:DISCOVERY_PORT
    requester <--(DISCOVERY_RESPONSE, unicast)--- responder

Payloads are matched by prefix; anything else is ignored. There is no
retry tracking, sequencing or authentication: a discovered address is
only a hint for the user's connect step. Both sides are non-blocking and
polled once per tick; socket errors other than "would block" are logged
and never stop the tick.
"""

from __future__ import annotations
import logging
import socket
from typing import Callable, List, Optional, Tuple

from ..config import DISCOVERY_PORT, DISCOVERY_REQUEST, DISCOVERY_RESPONSE

logger = logging.getLogger("tictactoe_lan.discovery")

# Largest datagram read per recvfrom()
DATAGRAM_SIZE = 1024

# Upper bound on datagrams drained per poll
MAX_DATAGRAMS_PER_POLL = 64


def make_udp_socket(bind_address: str = "", bind_port: Optional[int] = None,
                    broadcast: bool = False) -> socket.socket:
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if broadcast:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        if bind_port is not None:
            s.bind((bind_address, bind_port))
        s.setblocking(False)
    except OSError:
        s.close()
        raise
    return s


def _drain(sock: socket.socket) -> List[Tuple[bytes, Tuple[str, int]]]:
    """Read pending datagrams until the socket would block."""
    datagrams = []
    for _ in range(MAX_DATAGRAMS_PER_POLL):
        try:
            data, address = sock.recvfrom(DATAGRAM_SIZE)
        except (BlockingIOError, InterruptedError):
            break
        except OSError as e:
            # e.g. ICMP port unreachable surfacing as ConnectionResetError
            logger.warning(f"discovery receive failed: {e}")
            break
        datagrams.append((data, address))
    return datagrams


class DiscoveryResponder:
    """
    Host side: answers discovery requests with the response token.

    Usage:
        responder = DiscoveryResponder()
        responder.start()
        responder.poll()   # once per tick
        responder.stop()
    """

    def __init__(self, bind_address: str = "", port: int = DISCOVERY_PORT):
        self.bind_address = bind_address
        self.requested_port = port
        self._sock: Optional[socket.socket] = None

    @property
    def is_running(self) -> bool:
        return self._sock is not None

    @property
    def port(self) -> int:
        if self._sock is None:
            return self.requested_port
        return self._sock.getsockname()[1]

    def start(self) -> bool:
        """Bind the discovery port. Returns False (and logs) if it cannot."""
        if self._sock is not None:
            return True
        try:
            self._sock = make_udp_socket(self.bind_address, self.requested_port)
        except OSError as e:
            logger.warning(f"discovery responder could not bind port {self.requested_port}: {e}")
            return False
        logger.info(f"discovery responder listening on port {self.port}")
        return True

    def poll(self) -> int:
        """Answer pending requests. Returns the number of replies sent."""
        if self._sock is None:
            return 0
        replies = 0
        for data, address in _drain(self._sock):
            if not data.startswith(DISCOVERY_REQUEST):
                logger.debug(f"ignoring unrecognized datagram from {address[0]}")
                continue
            try:
                self._sock.sendto(DISCOVERY_RESPONSE, address)
            except OSError as e:
                logger.warning(f"discovery reply to {address[0]} failed: {e}")
                continue
            logger.debug(f"answered discovery request from {address[0]}:{address[1]}")
            replies += 1
        return replies

    def stop(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError:
            pass
        self._sock = None
        logger.info("discovery responder stopped")


class DiscoveryRequester:
    """
    Client side: broadcasts requests and collects responding hosts.

    Each responding IP is recorded once, in first-seen order, and passed
    to `on_discovered` on its first sighting only.
    """

    def __init__(
        self,
        broadcast_address: str = "255.255.255.255",
        port: int = DISCOVERY_PORT,
        on_discovered: Optional[Callable[[str], None]] = None,
    ):
        self.broadcast_address = broadcast_address
        self.port = port
        self.on_discovered = on_discovered
        self.servers: List[str] = []
        self._sock: Optional[socket.socket] = None

    @property
    def is_running(self) -> bool:
        return self._sock is not None

    def start(self) -> bool:
        """Bind an ephemeral broadcast-enabled socket. Returns False on failure."""
        if self._sock is not None:
            return True
        try:
            self._sock = make_udp_socket(bind_port=0, broadcast=True)
        except OSError as e:
            logger.warning(f"discovery requester could not open a socket: {e}")
            return False
        logger.info(f"discovering hosts via {self.broadcast_address}:{self.port}")
        return True

    def send_request(self) -> bool:
        if self._sock is None:
            return False
        try:
            self._sock.sendto(DISCOVERY_REQUEST, (self.broadcast_address, self.port))
        except (BlockingIOError, InterruptedError):
            return False
        except OSError as e:
            logger.warning(f"discovery broadcast failed: {e}")
            return False
        return True

    def collect(self) -> List[str]:
        """Drain responses. Returns addresses seen for the first time."""
        if self._sock is None:
            return []
        found = []
        for data, address in _drain(self._sock):
            if not data.startswith(DISCOVERY_RESPONSE):
                continue
            ip = address[0]
            if ip in self.servers:
                continue
            self.servers.append(ip)
            found.append(ip)
            logger.info(f"discovered host {ip}")
            if self.on_discovered is not None:
                self.on_discovered(ip)
        return found

    def stop(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError:
            pass
        self._sock = None
        logger.info("discovery requester stopped")
