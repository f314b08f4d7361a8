"""Capacity-bounded batch assignment and self-booking for live sessions."""
from __future__ import annotations

import threading
from typing import Iterable

from fitstudio.assignment.types import AssignmentError, AssignmentReason, BatchResult, normalize_id
from fitstudio.config import plan_templates


class SessionRoster:
    """Ordered, unique set of client ids assigned to one session.

    The roster is the only way to add clients to a session: ``assign_batch``
    and ``book`` check capacity and append under one lock, so concurrent
    callers can never push it past ``max_capacity``.
    """

    def __init__(
        self,
        session_id: str,
        client_ids: Iterable[str] = (),
        max_capacity: int = plan_templates.max_batch_size,
    ):
        if max_capacity < 1:
            raise ValueError("max_capacity must be at least 1")
        self.session_id = normalize_id(session_id)
        self.max_capacity = min(max_capacity, plan_templates.max_batch_size)
        self._client_ids: list[str] = []
        self._members: set[str] = set()
        self._lock = threading.Lock()
        for client_id in client_ids:
            key = normalize_id(client_id)
            if key not in self._members:
                self._client_ids.append(key)
                self._members.add(key)

    @property
    def client_ids(self) -> tuple[str, ...]:
        return tuple(self._client_ids)

    @property
    def remaining(self) -> int:
        return max(self.max_capacity - len(self._client_ids), 0)

    def __len__(self) -> int:
        return len(self._client_ids)

    def __contains__(self, client_id: object) -> bool:
        return normalize_id(client_id) in self._members

    def _append(self, client_id: str) -> None:
        self._client_ids.append(client_id)
        self._members.add(client_id)

    def assign_batch(self, client_ids: Iterable[str]) -> BatchResult:
        """Assign clients in order, recording a per-client error for each skip.

        Partial success: seats are filled until the session is full, the rest
        are reported as ``batch full``. Clients already on this roster are
        reported as ``already assigned``. Nothing is rolled back.
        """
        result = BatchResult()

        with self._lock:
            for raw_id in client_ids:
                client_id = normalize_id(raw_id)
                if len(self._client_ids) >= self.max_capacity:
                    result.errors.append(AssignmentError(client_id, AssignmentReason.BATCH_FULL))
                    continue
                if client_id in self._members:
                    result.errors.append(AssignmentError(client_id, AssignmentReason.ALREADY_ASSIGNED))
                    continue
                self._append(client_id)
                result.assigned_client_ids.append(client_id)
                result.assigned += 1

        return result

    def book(self, client_id: str) -> AssignmentError | None:
        """Book one seat for a client. Returns the refusal, or ``None`` on success.

        A client already on the roster is refused as ``already assigned``
        even when the session is full.
        """
        client_id = normalize_id(client_id)
        with self._lock:
            if client_id in self._members:
                return AssignmentError(client_id, AssignmentReason.ALREADY_ASSIGNED)
            if len(self._client_ids) >= self.max_capacity:
                return AssignmentError(client_id, AssignmentReason.BATCH_FULL)
            self._append(client_id)
        return None


def assign_clients_to_session(roster: SessionRoster, client_ids: Iterable[str]) -> BatchResult:
    """Assign ``client_ids`` to the session owning ``roster``."""
    return roster.assign_batch(client_ids)
