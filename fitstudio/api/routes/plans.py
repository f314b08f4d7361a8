"""API routes for diet and workout plan templates."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.db.database import get_db
from fitstudio.schemas.plan import (
    AssignmentListItem,
    AssignTemplateRequest,
    AssignTemplateResponse,
    MacroRequest,
    MacroResponse,
    PlanResponse,
    PlanTemplateCreate,
    SkippedClientResponse,
    WeekGenerateRequest,
    WeekGenerateResponse,
)
from fitstudio.services.plan_service import PlanService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/templates", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_in: PlanTemplateCreate,
    db: AsyncSession = Depends(get_db),
):
    service = PlanService(db)
    plan = await service.create_template(template_in)
    return PlanResponse.model_validate(plan)


@router.get("/templates/{template_id}", response_model=PlanResponse)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    service = PlanService(db)
    plan = await service.get_template(template_id)
    return PlanResponse.model_validate(plan)


@router.post("/templates/{template_id}/weeks", response_model=WeekGenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate_week(
    template_id: int,
    request: WeekGenerateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Add a week to a template.

    Diet templates get five meals generated from the calorie target and
    category; workout templates get the exercises in the request. Returns
    409 when the week already has entries.
    """
    logger.info("generate_week called: template_id=%s week_number=%s", template_id, request.week_number)
    service = PlanService(db)
    plan, entries, weeks = await service.generate_week(template_id, request)
    return WeekGenerateResponse(
        template_id=plan.id,
        week_number=request.week_number,
        entries=[entry.to_dict() for entry in entries],
        weeks=weeks,
    )


@router.post("/templates/{template_id}/clone", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def clone_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    service = PlanService(db)
    clone = await service.clone_template(template_id)
    return PlanResponse.model_validate(clone)


@router.post("/templates/{template_id}/assign", response_model=AssignTemplateResponse)
async def assign_template(
    template_id: int,
    request: AssignTemplateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Give each client a copy of the template for a day.

    Clients who already hold the template for that day are reported in
    ``duplicate_client_ids``; no second copy is made.
    """
    logger.info("assign_template called: template_id=%s count=%s day=%s", template_id, len(request.client_ids), request.day)
    service = PlanService(db)
    result, created, day = await service.assign_template(template_id, request.client_ids, request.day)
    return AssignTemplateResponse(
        template_id=template_id,
        day=day,
        assigned_client_ids=sorted(result.assigned_client_ids, key=int),
        already_assigned_names=result.already_assigned_names,
        duplicate_client_ids=result.duplicate_client_ids,
        skipped=[SkippedClientResponse(**skip.to_dict()) for skip in result.skipped],
        created_plan_ids=[plan.id for plan in created],
    )


@router.get("/templates/{template_id}/assignments", response_model=list[AssignmentListItem])
async def list_assignments(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    service = PlanService(db)
    rows = await service.list_assignments(template_id)
    return [
        AssignmentListItem(
            id=plan.id,
            client_id=plan.client_id,
            client_name=plan.client.name if plan.client is not None else "",
            name=plan.name,
            day=day,
        )
        for plan, day in rows
    ]


@router.post("/macros", response_model=MacroResponse)
async def calculate_macros(
    request: MacroRequest,
    db: AsyncSession = Depends(get_db),
):
    """Macro grams for a calorie target. Nothing is stored."""
    service = PlanService(db)
    macros = service.compute_macros(request.target_calories, request.category)
    return MacroResponse(category=request.category, protein=macros.protein, carbs=macros.carbs, fats=macros.fats)
