"""
PlanService - diet and workout plan templates.

Responsible for:
- Creating and cloning templates
- Adding weeks to a template (generated meals or supplied exercises)
- Assigning a template to clients for a day without duplicates
"""
import copy
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.assignment import (
    AssignmentLedger,
    LedgerResult,
    Macros,
    PlanEntry,
    TemplateWeeks,
    WeekGeneration,
    compute_macros,
    resolve_plan_day,
)
from fitstudio.config.settings import get_settings
from fitstudio.core.exceptions import NotFoundError, ValidationError, WeekExistsError
from fitstudio.core.locks import KeyedLock, template_locks
from fitstudio.core.logging import get_logger
from fitstudio.core.transactions import transactional
from fitstudio.models import Plan, PlanKind
from fitstudio.repositories import ClientRepository, PlanRepository
from fitstudio.repositories.client_repository import client_to_record
from fitstudio.repositories.plan_repository import entries_from_rows, plan_to_instance, plan_to_template
from fitstudio.schemas.plan import PlanEntrySchema, PlanTemplateCreate, WeekGenerateRequest
from fitstudio.services.base import BaseService

logger = get_logger(__name__)


def _entries_from_schemas(entries: list[PlanEntrySchema]) -> list[PlanEntry]:
    return [PlanEntry.from_dict(entry.model_dump(exclude_none=True)) for entry in entries]


class PlanService(BaseService):
    """Manages plan templates and the client copies made from them."""

    def __init__(self, session: AsyncSession, locks: KeyedLock | None = None):
        super().__init__(session)
        self._plans = PlanRepository(session)
        self._clients = ClientRepository(session)
        self._locks = locks or template_locks

    async def get_template(self, template_id: int) -> Plan:
        plan = await self._plans.get(template_id)
        if plan is None or not plan.is_template:
            raise NotFoundError("template", f"Plan template {template_id} not found", {"id": template_id})
        return plan

    async def _get_template_for_update(self, template_id: int) -> Plan:
        plan = await self._plans.get_for_update(template_id)
        if plan is None or not plan.is_template:
            raise NotFoundError("template", f"Plan template {template_id} not found", {"id": template_id})
        return plan

    @transactional
    async def create_template(self, data: PlanTemplateCreate) -> Plan:
        try:
            entries = _entries_from_schemas(data.entries)
        except (TypeError, ValueError) as e:
            raise ValidationError("entries", str(e)) from e

        plan = Plan(
            kind=data.kind.value,
            name=data.name,
            description=data.description,
            category=data.category,
            target_calories=data.target_calories,
            protein=data.protein,
            carbs=data.carbs,
            fats=data.fats,
            allergens=list(data.allergens),
            selected_day=data.selected_day,
            entries=[entry.to_dict() for entry in entries],
            is_template=True,
            assigned_count=0,
            times_cloned=0,
        )
        await self._plans.create(plan)
        logger.info("plan_template_created", template_id=plan.id, kind=plan.kind, category=plan.category)
        return plan

    def compute_macros(self, target_calories: float, category: str | None) -> Macros:
        try:
            return compute_macros(target_calories, category)
        except ValueError as e:
            raise ValidationError("target_calories", str(e)) from e

    async def generate_week(
        self,
        template_id: int,
        request: WeekGenerateRequest,
    ) -> tuple[Plan, list[PlanEntry], list[int]]:
        """Add one week to a template.

        Diet templates get five generated meals; workout templates get the
        supplied exercises. A week that already has entries is never
        overwritten.
        """
        async with self._locks.hold(template_id):
            return await self._generate_week_locked(template_id, request)

    @transactional
    async def _generate_week_locked(
        self,
        template_id: int,
        request: WeekGenerateRequest,
    ) -> tuple[Plan, list[PlanEntry], list[int]]:
        plan = await self._get_template_for_update(template_id)
        weeks = TemplateWeeks(entries_from_rows(plan.entries))

        try:
            if plan.kind == PlanKind.WORKOUT.value:
                if not request.exercises:
                    raise ValidationError("exercises", "a workout week needs at least one exercise")
                result = weeks.add_week(request.week_number, _entries_from_schemas(request.exercises))
            else:
                target_calories = (
                    request.target_calories if request.target_calories is not None else plan.target_calories
                )
                if target_calories is None:
                    raise ValidationError("target_calories", "no calorie target on the request or the template")
                result = weeks.generate_week(
                    target_calories,
                    request.category or plan.category,
                    request.week_number,
                    protein=request.protein if request.protein is not None else plan.protein,
                    carbs=request.carbs if request.carbs is not None else plan.carbs,
                    fats=request.fats if request.fats is not None else plan.fats,
                )
        except ValueError as e:
            raise ValidationError("week", str(e)) from e

        if result.error == WeekGeneration.WEEK_EXISTS:
            logger.info("plan_week_exists", template_id=template_id, week_number=request.week_number)
            raise WeekExistsError(template_id, request.week_number)

        plan.entries = [entry.to_dict() for entry in weeks.entries]
        plan.updated_at = datetime.utcnow()
        logger.info(
            "plan_week_added",
            template_id=template_id,
            kind=plan.kind,
            week_number=request.week_number,
            entries=len(result.entries),
        )
        return plan, result.entries, weeks.weeks

    async def assign_template(
        self,
        template_id: int,
        client_ids: list[int],
        day: str | None = None,
    ) -> tuple[LedgerResult, list[Plan], str]:
        """Give each client their own copy of a template for ``day``."""
        async with self._locks.hold(template_id):
            return await self._assign_locked(template_id, client_ids, day)

    @transactional
    async def _assign_locked(
        self,
        template_id: int,
        client_ids: list[int],
        day: str | None,
    ) -> tuple[LedgerResult, list[Plan], str]:
        template_row = await self._get_template_for_update(template_id)
        day = day or get_settings().default_plan_day

        known = await self._clients.get_many(client_ids, active_only=True)
        self._require_known("client_ids", client_ids, known)
        clients = {str(client.id): client_to_record(client) for client in known.values()}

        kind = PlanKind(template_row.kind)
        ledger = AssignmentLedger(plan_to_instance(row) for row in await self._plans.list_assigned(kind))
        result = ledger.assign_template_to_clients(
            plan_to_template(template_row),
            [str(client_id) for client_id in client_ids],
            day=day,
            clients=clients,
            require_diet_access=kind == PlanKind.DIET,
        )

        created: list[Plan] = []
        for instance in result.created:
            plan = Plan(
                kind=template_row.kind,
                name=template_row.name,
                description=template_row.description,
                category=template_row.category,
                target_calories=template_row.target_calories,
                protein=template_row.protein,
                carbs=template_row.carbs,
                fats=template_row.fats,
                allergens=list(template_row.allergens or []),
                entries=[entry.to_dict() for entry in instance.entries],
                is_template=False,
                selected_day=instance.selected_day,
                template_id=template_row.id,
                client_id=int(instance.client_id),
                cloned_from_id=template_row.id,
                assigned_count=0,
                times_cloned=0,
            )
            self._session.add(plan)
            created.append(plan)

        if created:
            template_row.assigned_count = (template_row.assigned_count or 0) + len(created)
            template_row.times_cloned = (template_row.times_cloned or 0) + len(created)
            await self._session.flush()

        logger.info(
            "plan_template_assigned",
            template_id=template_id,
            day=day,
            created=len(created),
            duplicates=result.duplicate_client_ids,
            skipped=[skip.to_dict() for skip in result.skipped],
        )
        return result, created, day

    @transactional
    async def clone_template(self, template_id: int) -> Plan:
        original = await self._get_template_for_update(template_id)
        clone = Plan(
            kind=original.kind,
            name=f"{original.name} (Copy)",
            description=original.description,
            category=original.category,
            target_calories=original.target_calories,
            protein=original.protein,
            carbs=original.carbs,
            fats=original.fats,
            allergens=list(original.allergens or []),
            entries=copy.deepcopy(original.entries or []),
            is_template=True,
            selected_day=original.selected_day,
            cloned_from_id=original.id,
            assigned_count=0,
            times_cloned=0,
        )
        original.times_cloned = (original.times_cloned or 0) + 1
        await self._plans.create(clone)
        logger.info("plan_template_cloned", template_id=template_id, clone_id=clone.id)
        return clone

    async def list_assignments(self, template_id: int) -> list[tuple[Plan, str]]:
        """Assigned copies of a template, each with the day it applies to."""
        await self.get_template(template_id)
        rows = await self._plans.list_assignments_of(template_id)
        return [(row, resolve_plan_day(plan_to_instance(row))) for row in rows]
