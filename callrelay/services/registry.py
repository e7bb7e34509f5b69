"""In-memory registry of connected peer ids."""
from __future__ import annotations

from typing import Iterator, Set


class DuplicatePeerError(ValueError):
    """Raised when a peer id is added while it is still registered."""


class PeerRegistry:
    """Set of currently connected peer ids.

    Not synchronized on its own; the owner serializes access.
    """

    def __init__(self) -> None:
        self._peers: Set[str] = set()

    def add(self, peer_id: str) -> None:
        if peer_id in self._peers:
            raise DuplicatePeerError(peer_id)
        self._peers.add(peer_id)

    def remove(self, peer_id: str) -> None:
        self._peers.discard(peer_id)

    def contains(self, peer_id: str) -> bool:
        return peer_id in self._peers

    def list_others(self, peer_id: str) -> list[str]:
        """Return every registered id except ``peer_id``."""

        return [other for other in self._peers if other != peer_id]

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._peers

    def __len__(self) -> int:
        return len(self._peers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._peers))
