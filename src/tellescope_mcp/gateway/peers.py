"""Connected peers and their per-connection serving state.

The registry is the only mutable structure shared across connections. It is
keyed weakly on the MCP session object, so a peer whose session is dropped
is closed and disappears from the registry without touching any other peer.
"""

from __future__ import annotations

import itertools
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from weakref import WeakKeyDictionary, finalize

import anyio

from ..logger import get_logger

_log = get_logger("tellescope_mcp.gateway.peers")


class PeerState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    SERVING = "serving"
    CLOSED = "closed"


class PeerClosedError(RuntimeError):
    def __init__(self, peer_id: str) -> None:
        self.peer_id = peer_id
        super().__init__(f"Peer {peer_id} is closed")


@dataclass(eq=False)
class Peer:
    """One logical connection. Requests on it are served strictly one at a time."""

    peer_id: str
    state: PeerState = PeerState.IDLE
    calls_served: int = 0
    _lock: anyio.Lock = field(default_factory=anyio.Lock, repr=False)

    def connect(self) -> None:
        if self.state is PeerState.IDLE:
            self.state = PeerState.CONNECTED

    def close(self) -> None:
        self.state = PeerState.CLOSED

    @property
    def closed(self) -> bool:
        return self.state is PeerState.CLOSED

    @asynccontextmanager
    async def serving(self) -> AsyncIterator[Peer]:
        """Hold the peer's slot for one request/response pair."""
        async with self._lock:
            if self.closed:
                raise PeerClosedError(self.peer_id)
            self.state = PeerState.SERVING
            try:
                yield self
            finally:
                self.calls_served += 1
                if self.state is PeerState.SERVING:
                    self.state = PeerState.CONNECTED


class PeerRegistry:
    """Active peers, keyed weakly by their transport session."""

    def __init__(self) -> None:
        self._peers: WeakKeyDictionary[object, Peer] = WeakKeyDictionary()
        self._ids = itertools.count(1)

    def attach(self, key: object) -> Peer:
        """Return the peer for ``key``, registering it on first sight."""
        peer = self._peers.get(key)
        if peer is None:
            peer = Peer(peer_id=f"peer-{next(self._ids)}")
            peer.connect()
            self._peers[key] = peer
            finalize(key, self._retire, peer).atexit = False
            _log.info(f"Peer connected: {peer.peer_id}", extra={"event": "peer_connected", "peer_id": peer.peer_id})
        return peer

    def detach(self, key: object) -> Peer | None:
        peer = self._peers.pop(key, None)
        if peer is not None:
            self._retire(peer)
        return peer

    @staticmethod
    def _retire(peer: Peer) -> None:
        if peer.closed:
            return
        peer.close()
        _log.info(
            f"Peer closed: {peer.peer_id}",
            extra={"event": "peer_closed", "peer_id": peer.peer_id, "calls_served": peer.calls_served},
        )

    def get(self, key: object) -> Peer | None:
        return self._peers.get(key)

    def active(self) -> list[Peer]:
        return [peer for peer in list(self._peers.values()) if not peer.closed]

    def __len__(self) -> int:
        return len(self._peers)
