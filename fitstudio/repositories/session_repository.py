from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitstudio.models import LiveSession, SessionClient, SessionStatus, SessionWaitlist
from fitstudio.repositories.base import Repository


class SessionRepository(Repository[LiveSession, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> LiveSession | None:
        result = await self._session.execute(
            select(LiveSession)
            .options(selectinload(LiveSession.client_links).selectinload(SessionClient.client))
            .where(LiveSession.id == id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, id: int) -> LiveSession | None:
        """Load a session row locked until the end of the transaction."""
        result = await self._session.execute(
            select(LiveSession).where(LiveSession.id == id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def list(self, status: SessionStatus | None = None) -> list[LiveSession]:
        query = select(LiveSession).options(selectinload(LiveSession.client_links))
        if status is not None:
            query = query.where(LiveSession.status == status.value)
        query = query.order_by(LiveSession.scheduled_at, LiveSession.id)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def create(self, entity: LiveSession) -> LiveSession:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def roster(self, session_id: int) -> list[int]:
        """Client ids of a session in assignment order."""
        result = await self._session.execute(
            select(SessionClient.client_id)
            .where(SessionClient.session_id == session_id)
            .order_by(SessionClient.position)
        )
        return list(result.scalars().all())

    async def committed_client_ids(self) -> set[int]:
        """Clients holding a seat in any session that has not completed."""
        query = (
            select(SessionClient.client_id)
            .join(LiveSession, LiveSession.id == SessionClient.session_id)
            .where(LiveSession.status != SessionStatus.COMPLETED.value)
        )
        result = await self._session.execute(query)
        return set(result.scalars().all())

    async def add_clients(self, session_id: int, client_ids: Iterable[int]) -> int:
        """Append seats after the current last position. Returns the new roster size."""
        result = await self._session.execute(
            select(func.coalesce(func.max(SessionClient.position), 0))
            .where(SessionClient.session_id == session_id)
        )
        position = result.scalar_one()
        for client_id in client_ids:
            position += 1
            self._session.add(SessionClient(session_id=session_id, client_id=client_id, position=position))
        await self._session.flush()

        count = await self._session.execute(
            select(func.count()).select_from(SessionClient).where(SessionClient.session_id == session_id)
        )
        return count.scalar_one()

    async def waitlist(self, session_id: int) -> list[SessionWaitlist]:
        """Waitlist entries of a session by position, with clients loaded."""
        result = await self._session.execute(
            select(SessionWaitlist)
            .options(selectinload(SessionWaitlist.client))
            .where(SessionWaitlist.session_id == session_id)
            .order_by(SessionWaitlist.position)
        )
        return list(result.scalars().all())

    async def add_to_waitlist(self, session_id: int, client_id: int, position: int) -> SessionWaitlist:
        entry = SessionWaitlist(session_id=session_id, client_id=client_id, position=position)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def remove_from_waitlist(self, entry: SessionWaitlist, positions: dict[int, int]) -> None:
        """Delete ``entry`` and renumber the remaining entries of its session.

        ``positions`` maps client id to the new position.
        """
        session_id = entry.session_id
        await self._session.delete(entry)
        await self._session.flush()
        result = await self._session.execute(
            select(SessionWaitlist).where(SessionWaitlist.session_id == session_id)
        )
        for remaining in result.scalars().all():
            remaining.position = positions[remaining.client_id]
        await self._session.flush()
