"""
SessionAssignmentService - assigns clients to live session batches.

Responsible for:
- Offering eligible clients for a session (package plan match, not committed elsewhere)
- Capacity-bounded, partial-success batch assignment
- Client self-booking and the per-session waitlist
- Cloning a session to continue a full batch
- Forward-only session status transitions
"""
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.assignment import (
    AssignmentReason,
    BatchResult,
    ClientRecord,
    PackageInfo,
    SessionRoster,
    Waitlist,
    assign_clients_to_session,
    get_eligible_clients,
    live_session_packages,
)
from fitstudio.config.settings import get_settings
from fitstudio.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from fitstudio.core.locks import KeyedLock, session_locks
from fitstudio.core.logging import get_logger
from fitstudio.core.transactions import transactional
from fitstudio.models import LiveSession, SessionStatus, SessionWaitlist
from fitstudio.repositories import ClientRepository, PackageRepository, SessionRepository
from fitstudio.repositories.client_repository import client_to_record, package_to_info
from fitstudio.schemas.session import SessionCreate
from fitstudio.services.base import BaseService

logger = get_logger(__name__)


class SessionAssignmentService(BaseService):
    """
    Assigns clients to live sessions.

    A session's roster is only ever extended through ``assign_clients`` or
    ``book_spot``. Both hold a per-session lock and a row lock on the session
    for the whole check-and-append, so concurrent requests cannot overbook it.
    """

    def __init__(self, session: AsyncSession, locks: KeyedLock | None = None):
        super().__init__(session)
        self._sessions = SessionRepository(session)
        self._clients = ClientRepository(session)
        self._packages = PackageRepository(session)
        self._locks = locks or session_locks

    async def get_session(self, session_id: int) -> LiveSession:
        live_session = await self._sessions.get(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})
        return live_session

    async def list_sessions(self, status: SessionStatus | None = None) -> list[LiveSession]:
        return await self._sessions.list(status)

    async def roster(self, session_id: int) -> list[int]:
        return await self._sessions.roster(session_id)

    @transactional
    async def create_session(self, data: SessionCreate) -> LiveSession:
        settings = get_settings()
        live_session = LiveSession(
            title=data.title,
            description=data.description,
            session_type=data.session_type,
            package_plan=data.package_plan.value if data.package_plan else None,
            scheduled_at=data.scheduled_at,
            duration=data.duration,
            trainer_name=data.trainer_name,
            max_capacity=min(data.max_capacity, settings.session_max_capacity),
            current_capacity=0,
            status=SessionStatus.UPCOMING.value,
        )
        await self._sessions.create(live_session)
        logger.info("session_created", session_id=live_session.id, package_plan=live_session.package_plan)
        return live_session

    async def get_eligible_clients(
        self,
        session_id: int,
        plan_tag: str | None = None,
    ) -> tuple[LiveSession, list[ClientRecord], set[str]]:
        """Clients that may be offered this session, plus the ids already in it.

        ``plan_tag`` defaults to the session's own package plan.
        """
        live_session = await self.get_session(session_id)
        tag = plan_tag if plan_tag is not None else live_session.package_plan

        in_this_session = {str(client_id) for client_id in await self._sessions.roster(session_id)}
        committed = {str(client_id) for client_id in await self._sessions.committed_client_ids()}
        clients = [client_to_record(client) for client in await self._clients.list_active()]

        eligible = get_eligible_clients(
            clients,
            plan_tag=tag,
            clients_in_any_session=committed,
            clients_in_this_session=in_this_session,
        )
        logger.debug(
            "eligible_clients_computed",
            session_id=session_id,
            plan_tag=tag,
            candidates=len(clients),
            eligible=len(eligible),
        )
        return live_session, eligible, in_this_session

    async def assign_clients(self, session_id: int, client_ids: list[int]) -> tuple[BatchResult, LiveSession]:
        """Assign clients to a session in order, filling seats until it is full."""
        async with self._locks.hold(session_id):
            return await self._assign_locked(session_id, client_ids)

    @transactional
    async def _assign_locked(self, session_id: int, client_ids: list[int]) -> tuple[BatchResult, LiveSession]:
        live_session = await self._sessions.get_for_update(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})

        known = await self._clients.get_many(client_ids, active_only=True)
        self._require_known("client_ids", client_ids, known)

        roster = SessionRoster(
            str(session_id),
            [str(client_id) for client_id in await self._sessions.roster(session_id)],
            max_capacity=live_session.max_capacity,
        )
        result = assign_clients_to_session(roster, [str(client_id) for client_id in client_ids])

        if result.assigned_client_ids:
            live_session.current_capacity = await self._sessions.add_clients(
                session_id, [int(client_id) for client_id in result.assigned_client_ids]
            )
            live_session.updated_at = datetime.utcnow()

        logger.info(
            "session_batch_assigned",
            session_id=session_id,
            requested=len(client_ids),
            assigned=result.assigned,
            errors=[error.to_dict() for error in result.errors],
            current_capacity=live_session.current_capacity,
            max_capacity=live_session.max_capacity,
        )
        return result, live_session

    @transactional
    async def clone_session(self, session_id: int, scheduled_at: datetime) -> LiveSession:
        """Copy a session to a new time with an empty roster."""
        original = await self._get_or_404(LiveSession, session_id, f"Session {session_id} not found")
        clone = LiveSession(
            title=original.title,
            description=original.description,
            session_type=original.session_type,
            package_plan=original.package_plan,
            scheduled_at=scheduled_at,
            duration=original.duration,
            trainer_name=original.trainer_name,
            max_capacity=original.max_capacity,
            current_capacity=0,
            status=SessionStatus.UPCOMING.value,
            cloned_from_id=original.id,
        )
        await self._sessions.create(clone)
        logger.info("session_cloned", session_id=session_id, clone_id=clone.id)
        return clone

    @transactional
    async def update_status(self, session_id: int, status: SessionStatus) -> LiveSession:
        live_session = await self._sessions.get_for_update(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})

        current = SessionStatus(live_session.status)
        if status.rank < current.rank:
            raise BusinessRuleError(
                f"Session status cannot move from {current.value} back to {status.value}",
                code="BR_SESSION_STATUS",
                details={"current": current.value, "requested": status.value},
            )
        if status != current:
            live_session.status = status.value
            live_session.updated_at = datetime.utcnow()
            logger.info("session_status_changed", session_id=session_id, status=status.value)
        return live_session

    async def live_session_packages(self) -> list[PackageInfo]:
        packages = [package_to_info(package) for package in await self._packages.list_all()]
        return live_session_packages(packages)

    async def book_spot(self, session_id: int, client_id: int) -> tuple[LiveSession, int]:
        """Book one seat for a client. Returns the session and the client's seat number."""
        async with self._locks.hold(session_id):
            return await self._book_locked(session_id, client_id)

    @transactional
    async def _book_locked(self, session_id: int, client_id: int) -> tuple[LiveSession, int]:
        live_session = await self._sessions.get_for_update(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})

        known = await self._clients.get_many([client_id], active_only=True)
        self._require_known("client_id", [client_id], known)

        roster = SessionRoster(
            str(session_id),
            [str(seated) for seated in await self._sessions.roster(session_id)],
            max_capacity=live_session.max_capacity,
        )
        refusal = roster.book(str(client_id))
        if refusal is not None and refusal.reason == AssignmentReason.ALREADY_ASSIGNED:
            raise ConflictError(
                "Already booked for this session",
                code="CF_ALREADY_BOOKED",
                details={"session_id": session_id, "client_id": client_id},
            )
        if refusal is not None:
            raise BusinessRuleError(
                "Session is full",
                code="BR_SESSION_FULL",
                details={"session_id": session_id, "max_capacity": live_session.max_capacity},
            )

        live_session.current_capacity = await self._sessions.add_clients(session_id, [client_id])
        live_session.updated_at = datetime.utcnow()
        logger.info("session_spot_booked", session_id=session_id, client_id=client_id, seat=len(roster))
        return live_session, len(roster)

    async def get_waitlist(self, session_id: int) -> list[SessionWaitlist]:
        await self.get_session(session_id)
        return await self._sessions.waitlist(session_id)

    async def add_to_waitlist(self, session_id: int, client_id: int) -> SessionWaitlist:
        """Put a client at the back of a session's waitlist."""
        async with self._locks.hold(session_id):
            return await self._add_to_waitlist_locked(session_id, client_id)

    @transactional
    async def _add_to_waitlist_locked(self, session_id: int, client_id: int) -> SessionWaitlist:
        live_session = await self._sessions.get_for_update(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})

        known = await self._clients.get_many([client_id], active_only=True)
        self._require_known("client_id", [client_id], known)

        if client_id in await self._sessions.roster(session_id):
            raise ConflictError(
                "Already booked for this session",
                code="CF_ALREADY_BOOKED",
                details={"session_id": session_id, "client_id": client_id},
            )

        entries = await self._sessions.waitlist(session_id)
        waitlist = Waitlist(str(session_id), [str(entry.client_id) for entry in entries])
        position = waitlist.add(str(client_id))
        if position is None:
            raise ConflictError(
                "Already in waitlist",
                code="CF_WAITLIST_EXISTS",
                details={"session_id": session_id, "client_id": client_id},
            )

        entry = await self._sessions.add_to_waitlist(session_id, client_id, position)
        logger.info("waitlist_joined", session_id=session_id, client_id=client_id, position=position)
        return entry

    async def remove_from_waitlist(self, session_id: int, client_id: int) -> None:
        """Take a client off the waitlist and move everyone behind them up."""
        async with self._locks.hold(session_id):
            await self._remove_from_waitlist_locked(session_id, client_id)

    @transactional
    async def _remove_from_waitlist_locked(self, session_id: int, client_id: int) -> None:
        live_session = await self._sessions.get_for_update(session_id)
        if live_session is None:
            raise NotFoundError("session", f"Session {session_id} not found", {"id": session_id})

        entries = await self._sessions.waitlist(session_id)
        waitlist = Waitlist(str(session_id), [str(entry.client_id) for entry in entries])
        if not waitlist.remove(str(client_id)):
            raise NotFoundError(
                "waitlist_entry",
                "Waitlist entry not found",
                {"session_id": session_id, "client_id": client_id},
            )

        entry = next(entry for entry in entries if entry.client_id == client_id)
        positions = {int(waiting): position for waiting, position in waitlist.positions().items()}
        await self._sessions.remove_from_waitlist(entry, positions)
        logger.info("waitlist_left", session_id=session_id, client_id=client_id, remaining=len(waitlist))
