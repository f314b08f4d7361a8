from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitstudio.assignment.types import PlanEntry, PlanInstance, PlanTemplate
from fitstudio.models import Plan, PlanKind
from fitstudio.repositories.base import Repository


def entries_from_rows(rows: list[dict] | None) -> list[PlanEntry]:
    return [PlanEntry.from_dict(row) for row in (rows or []) if isinstance(row, dict)]


def plan_to_template(plan: Plan) -> PlanTemplate:
    return PlanTemplate(
        id=str(plan.id),
        name=plan.name,
        kind=plan.kind,
        category=plan.category,
        target_calories=plan.target_calories,
        protein=plan.protein,
        carbs=plan.carbs,
        fats=plan.fats,
        is_template=bool(plan.is_template),
        selected_day=plan.selected_day,
        entries=entries_from_rows(plan.entries),
    )


def plan_to_instance(plan: Plan) -> PlanInstance:
    return PlanInstance(
        id=str(plan.id),
        client_id=str(plan.client_id) if plan.client_id is not None else None,
        client_name=plan.client.name if plan.client is not None else "",
        name=plan.name,
        template_id=str(plan.template_id) if plan.template_id is not None else None,
        selected_day=plan.selected_day,
        is_template=bool(plan.is_template),
        entries=entries_from_rows(plan.entries),
    )


class PlanRepository(Repository[Plan, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Plan | None:
        return await self._session.get(Plan, id)

    async def get_for_update(self, id: int) -> Plan | None:
        result = await self._session.execute(
            select(Plan).where(Plan.id == id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def create(self, entity: Plan) -> Plan:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def list_assigned(self, kind: PlanKind) -> list[Plan]:
        """Every non-template plan of a kind, with its client loaded."""
        result = await self._session.execute(
            select(Plan)
            .options(selectinload(Plan.client))
            .where(Plan.kind == kind.value, Plan.is_template.is_(False), Plan.client_id.is_not(None))
            .order_by(Plan.id)
        )
        return list(result.scalars().all())

    async def list_assignments_of(self, template_id: int) -> list[Plan]:
        result = await self._session.execute(
            select(Plan)
            .options(selectinload(Plan.client))
            .where(Plan.template_id == template_id, Plan.is_template.is_(False))
            .order_by(Plan.id)
        )
        return list(result.scalars().all())
