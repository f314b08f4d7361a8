"""Service tests for live session assignment against SQLite."""
import asyncio
from datetime import datetime, timedelta

import pytest

from fitstudio.assignment import AssignmentReason
from fitstudio.core.exceptions import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from fitstudio.core.locks import KeyedLock
from fitstudio.models import Client, PackagePlan, SessionStatus
from fitstudio.schemas.session import SessionCreate
from fitstudio.services.session_assignment import SessionAssignmentService


async def assign(session_maker, session_id, client_ids, locks=None):
    async with session_maker() as db:
        return await SessionAssignmentService(db, locks=locks).assign_clients(session_id, client_ids)


async def roster(session_maker, session_id):
    async with session_maker() as db:
        return await SessionAssignmentService(db).roster(session_id)


async def deactivate(session_maker, client_id):
    async with session_maker() as db:
        client = await db.get(Client, client_id)
        client.is_active = False
        await db.commit()


class TestAssignClients:
    """Batch assignment through the service."""

    @pytest.mark.asyncio
    async def test_fills_to_capacity(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c[f"pro{i}"] for i in range(1, 9)])

        result, live_session = await assign(
            session_maker, session_id, [c["pro9"], c["pro10"], c["pro11"], c["pro12"]]
        )

        assert result.assigned == 2
        assert [(e.client_id, e.reason) for e in result.errors] == [
            (str(c["pro11"]), AssignmentReason.BATCH_FULL),
            (str(c["pro12"]), AssignmentReason.BATCH_FULL),
        ]
        assert live_session.current_capacity == 10
        assert await roster(session_maker, session_id) == [c[f"pro{i}"] for i in range(1, 11)]

    @pytest.mark.asyncio
    async def test_repeat_assignment_is_already_assigned(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session()

        first, _ = await assign(session_maker, session_id, [c["pro1"]])
        second, live_session = await assign(session_maker, session_id, [c["pro1"]])

        assert first.assigned == 1
        assert second.assigned == 0
        assert second.errors[0].reason == AssignmentReason.ALREADY_ASSIGNED
        assert live_session.current_capacity == 1
        assert await roster(session_maker, session_id) == [c["pro1"]]

    @pytest.mark.asyncio
    async def test_seat_in_another_session_does_not_block(self, session_maker, seed, make_session):
        c = seed["clients"]
        other_id = await make_session(client_ids=[c["pro1"]])
        session_id = await make_session()

        result, _ = await assign(session_maker, session_id, [c["pro1"], c["pro2"]])

        assert result.assigned_client_ids == [str(c["pro1"]), str(c["pro2"])]
        assert result.errors == []
        assert await roster(session_maker, other_id) == [c["pro1"]]

    @pytest.mark.asyncio
    async def test_inactive_client_is_rejected(self, session_maker, seed, make_session):
        c = seed["clients"]
        await deactivate(session_maker, c["pro3"])
        session_id = await make_session()

        with pytest.raises(ValidationError) as exc_info:
            await assign(session_maker, session_id, [c["pro1"], c["pro3"]])

        assert exc_info.value.details["missing"] == [c["pro3"]]
        assert await roster(session_maker, session_id) == []

    @pytest.mark.asyncio
    async def test_unknown_client_rejects_whole_request(self, session_maker, seed, make_session):
        session_id = await make_session()

        with pytest.raises(ValidationError) as exc_info:
            await assign(session_maker, session_id, [seed["clients"]["pro1"], 9999])

        assert exc_info.value.details["missing"] == [9999]
        assert await roster(session_maker, session_id) == []

    @pytest.mark.asyncio
    async def test_unknown_session(self, session_maker, seed):
        with pytest.raises(NotFoundError):
            await assign(session_maker, 4242, [seed["clients"]["pro1"]])

    @pytest.mark.asyncio
    async def test_concurrent_requests_never_overbook(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c[f"pro{i}"] for i in range(1, 9)])
        locks = KeyedLock()

        results = await asyncio.gather(
            assign(session_maker, session_id, [c["pro9"], c["pro10"]], locks),
            assign(session_maker, session_id, [c["pro11"], c["pro12"]], locks),
        )

        assert sum(result.assigned for result, _ in results) == 2
        assert len(await roster(session_maker, session_id)) == 10


async def book(session_maker, session_id, client_id, locks=None):
    async with session_maker() as db:
        return await SessionAssignmentService(db, locks=locks).book_spot(session_id, client_id)


async def join_waitlist(session_maker, session_id, client_id):
    async with session_maker() as db:
        return await SessionAssignmentService(db).add_to_waitlist(session_id, client_id)


async def waitlist_positions(session_maker, session_id):
    async with session_maker() as db:
        entries = await SessionAssignmentService(db).get_waitlist(session_id)
    return [(entry.client_id, entry.position) for entry in entries]


class TestBookSpot:
    @pytest.mark.asyncio
    async def test_books_next_seat(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c["pro1"]])

        live_session, seat = await book(session_maker, session_id, c["pro2"])

        assert seat == 2
        assert live_session.current_capacity == 2
        assert await roster(session_maker, session_id) == [c["pro1"], c["pro2"]]

    @pytest.mark.asyncio
    async def test_second_booking_conflicts(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c["pro1"]], max_capacity=1)

        with pytest.raises(ConflictError) as exc_info:
            await book(session_maker, session_id, c["pro1"])

        assert exc_info.value.code == "CF_ALREADY_BOOKED"

    @pytest.mark.asyncio
    async def test_full_session(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c["pro1"], c["pro2"]], max_capacity=2)

        with pytest.raises(BusinessRuleError) as exc_info:
            await book(session_maker, session_id, c["pro3"])

        assert exc_info.value.code == "BR_SESSION_FULL"
        assert await roster(session_maker, session_id) == [c["pro1"], c["pro2"]]

    @pytest.mark.asyncio
    async def test_inactive_client_cannot_book(self, session_maker, seed, make_session):
        c = seed["clients"]
        await deactivate(session_maker, c["pro1"])
        session_id = await make_session()

        with pytest.raises(ValidationError):
            await book(session_maker, session_id, c["pro1"])

    @pytest.mark.asyncio
    async def test_concurrent_bookings_take_last_seat_once(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c[f"pro{i}"] for i in range(1, 10)])
        locks = KeyedLock()

        results = await asyncio.gather(
            book(session_maker, session_id, c["pro10"], locks),
            book(session_maker, session_id, c["pro11"], locks),
            book(session_maker, session_id, c["pro12"], locks),
            return_exceptions=True,
        )

        booked = [result for result in results if not isinstance(result, Exception)]
        refused = [result for result in results if isinstance(result, BusinessRuleError)]
        assert len(booked) == 1
        assert len(refused) == 2
        assert booked[0][1] == 10
        assert len(await roster(session_maker, session_id)) == 10


class TestWaitlist:
    @pytest.mark.asyncio
    async def test_positions_follow_join_order(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session()

        entries = [await join_waitlist(session_maker, session_id, c[f"pro{i}"]) for i in (3, 1, 2)]

        assert [entry.position for entry in entries] == [1, 2, 3]
        assert await waitlist_positions(session_maker, session_id) == [
            (c["pro3"], 1),
            (c["pro1"], 2),
            (c["pro2"], 3),
        ]

    @pytest.mark.asyncio
    async def test_duplicate_join(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session()
        await join_waitlist(session_maker, session_id, c["pro1"])

        with pytest.raises(ConflictError) as exc_info:
            await join_waitlist(session_maker, session_id, c["pro1"])

        assert exc_info.value.code == "CF_WAITLIST_EXISTS"
        assert await waitlist_positions(session_maker, session_id) == [(c["pro1"], 1)]

    @pytest.mark.asyncio
    async def test_seated_client_cannot_wait(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c["pro1"]])

        with pytest.raises(ConflictError) as exc_info:
            await join_waitlist(session_maker, session_id, c["pro1"])

        assert exc_info.value.code == "CF_ALREADY_BOOKED"

    @pytest.mark.asyncio
    async def test_remove_moves_others_up(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session()
        for name in ("pro1", "pro2", "pro3"):
            await join_waitlist(session_maker, session_id, c[name])

        async with session_maker() as db:
            await SessionAssignmentService(db).remove_from_waitlist(session_id, c["pro1"])

        assert await waitlist_positions(session_maker, session_id) == [(c["pro2"], 1), (c["pro3"], 2)]

    @pytest.mark.asyncio
    async def test_remove_absent_client(self, session_maker, seed, make_session):
        session_id = await make_session()

        async with session_maker() as db:
            with pytest.raises(NotFoundError) as exc_info:
                await SessionAssignmentService(db).remove_from_waitlist(session_id, seed["clients"]["pro1"])

        assert exc_info.value.code == "NF_WAITLIST_ENTRY_001"

    @pytest.mark.asyncio
    async def test_unknown_session(self, session_maker, seed):
        async with session_maker() as db:
            with pytest.raises(NotFoundError):
                await SessionAssignmentService(db).get_waitlist(4242)


class TestEligibleClients:
    @pytest.mark.asyncio
    async def test_defaults_to_session_plan_tag(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(package_plan="elite")

        async with session_maker() as db:
            _, eligible, in_session = await SessionAssignmentService(db).get_eligible_clients(session_id)

        assert [client.id for client in eligible] == [str(c["elite"])]
        assert in_session == set()

    @pytest.mark.asyncio
    async def test_committed_clients_hidden_except_in_this_session(self, session_maker, seed, make_session):
        c = seed["clients"]
        await make_session(client_ids=[c["pro1"]])
        session_id = await make_session(client_ids=[c["pro2"]])

        async with session_maker() as db:
            _, eligible, in_session = await SessionAssignmentService(db).get_eligible_clients(session_id, "pro")

        ids = [client.id for client in eligible]
        assert str(c["pro1"]) not in ids
        assert str(c["pro2"]) in ids
        assert in_session == {str(c["pro2"])}
        assert len(ids) == 11

    @pytest.mark.asyncio
    async def test_no_tag_excludes_basics(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(package_plan=None)

        async with session_maker() as db:
            _, eligible, _ = await SessionAssignmentService(db).get_eligible_clients(session_id)

        ids = {client.id for client in eligible}
        assert str(c["basic"]) not in ids
        assert str(c["none"]) not in ids
        assert {str(c["plus"]), str(c["elite"])} <= ids


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_create_caps_capacity(self, session_maker, seed):
        data = SessionCreate(
            title="Evening Strength",
            package_plan=PackagePlan.PRO,
            scheduled_at=datetime.utcnow() + timedelta(days=2),
            max_capacity=6,
        )
        async with session_maker() as db:
            live_session = await SessionAssignmentService(db).create_session(data)

        assert live_session.id is not None
        assert live_session.max_capacity == 6
        assert live_session.package_plan == "pro"
        assert live_session.status == "upcoming"

    @pytest.mark.asyncio
    async def test_clone_starts_empty(self, session_maker, seed, make_session):
        c = seed["clients"]
        session_id = await make_session(client_ids=[c["pro1"], c["pro2"]], max_capacity=2)
        when = datetime.utcnow() + timedelta(days=7)

        async with session_maker() as db:
            clone = await SessionAssignmentService(db).clone_session(session_id, when)

        assert clone.id != session_id
        assert clone.cloned_from_id == session_id
        assert clone.max_capacity == 2
        assert clone.current_capacity == 0
        assert clone.scheduled_at == when
        assert await roster(session_maker, clone.id) == []

    @pytest.mark.asyncio
    async def test_status_only_moves_forward(self, session_maker, seed, make_session):
        session_id = await make_session()

        async with session_maker() as db:
            live_session = await SessionAssignmentService(db).update_status(session_id, SessionStatus.LIVE)
        assert live_session.status == "live"

        async with session_maker() as db:
            live_session = await SessionAssignmentService(db).update_status(session_id, SessionStatus.LIVE)
        assert live_session.status == "live"

        async with session_maker() as db:
            with pytest.raises(BusinessRuleError):
                await SessionAssignmentService(db).update_status(session_id, SessionStatus.UPCOMING)

    @pytest.mark.asyncio
    async def test_live_session_packages(self, session_maker, seed):
        async with session_maker() as db:
            packages = await SessionAssignmentService(db).live_session_packages()

        assert [p.name for p in packages] == ["Fit Plus", "Pro Transformation", "Elite Athlete"]
