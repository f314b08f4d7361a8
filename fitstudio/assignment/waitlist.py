"""Per-session waitlist with contiguous positions."""
from __future__ import annotations

import threading
from typing import Iterable

from fitstudio.assignment.types import normalize_id


class Waitlist:
    """Clients waiting for a seat, in the order they joined.

    Positions are 1-based and always contiguous: removing a client moves
    everyone behind them up by one.
    """

    def __init__(self, session_id: str, client_ids: Iterable[str] = ()):
        self.session_id = normalize_id(session_id)
        self._client_ids: list[str] = []
        self._lock = threading.Lock()
        for client_id in client_ids:
            key = normalize_id(client_id)
            if key not in self._client_ids:
                self._client_ids.append(key)

    @property
    def client_ids(self) -> tuple[str, ...]:
        return tuple(self._client_ids)

    def __len__(self) -> int:
        return len(self._client_ids)

    def __contains__(self, client_id: object) -> bool:
        return normalize_id(client_id) in self._client_ids

    def position_of(self, client_id: str) -> int | None:
        key = normalize_id(client_id)
        if key not in self._client_ids:
            return None
        return self._client_ids.index(key) + 1

    def positions(self) -> dict[str, int]:
        with self._lock:
            return {client_id: i for i, client_id in enumerate(self._client_ids, start=1)}

    def add(self, client_id: str) -> int | None:
        """Append a client. Returns their position, or ``None`` if already waiting."""
        key = normalize_id(client_id)
        with self._lock:
            if key in self._client_ids:
                return None
            self._client_ids.append(key)
            return len(self._client_ids)

    def remove(self, client_id: str) -> bool:
        key = normalize_id(client_id)
        with self._lock:
            if key not in self._client_ids:
                return False
            self._client_ids.remove(key)
            return True
