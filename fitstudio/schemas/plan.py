"""Pydantic schemas for plan templates, week generation and assignment."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fitstudio.config import plan_templates
from fitstudio.models.enums import PlanKind


def _normalize_day(value: str | None) -> str | None:
    if value is None:
        return None
    day = value.strip().capitalize()
    if day not in plan_templates.week_days:
        raise ValueError(f"Invalid day '{value}'. Must be one of: {', '.join(plan_templates.week_days)}")
    return day


class PlanEntrySchema(BaseModel):
    """A meal or exercise. Unknown fields (sets, reps, notes) are kept."""

    model_config = ConfigDict(extra="allow")

    week_number: int | None = Field(None, ge=1)
    name: str = ""
    time: str | None = None
    type: str | None = None
    calories: int | None = None
    protein: int | None = None
    carbs: int | None = None
    fats: int | None = None
    day_of_week: str | None = None


class PlanTemplateCreate(BaseModel):
    kind: PlanKind = PlanKind.DIET
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str | None = plan_templates.default_category
    target_calories: float | None = Field(None, ge=0)
    protein: float | None = Field(None, ge=0)
    carbs: float | None = Field(None, ge=0)
    fats: float | None = Field(None, ge=0)
    allergens: list[str] = Field(default_factory=list)
    selected_day: str | None = None
    entries: list[PlanEntrySchema] = Field(default_factory=list)

    @field_validator("selected_day")
    @classmethod
    def validate_selected_day(cls, v: str | None) -> str | None:
        return _normalize_day(v)


class PlanResponse(BaseModel):
    id: int
    kind: PlanKind
    name: str
    description: str | None
    category: str | None
    target_calories: float | None
    protein: float | None
    carbs: float | None
    fats: float | None
    allergens: list[str]
    is_template: bool
    selected_day: str | None
    template_id: int | None
    client_id: int | None
    cloned_from_id: int | None
    assigned_count: int
    times_cloned: int
    entries: list[dict[str, Any]]
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class WeekGenerateRequest(BaseModel):
    """Generate a diet week, or add the exercises of a workout week.

    Values left out fall back to the template's own targets.
    """

    week_number: int = Field(..., ge=1)
    target_calories: float | None = Field(None, ge=0, description="Weekly total")
    category: str | None = None
    protein: float | None = Field(None, ge=0, description="Weekly total grams")
    carbs: float | None = Field(None, ge=0, description="Weekly total grams")
    fats: float | None = Field(None, ge=0, description="Weekly total grams")
    exercises: list[PlanEntrySchema] = Field(default_factory=list)


class WeekGenerateResponse(BaseModel):
    template_id: int
    week_number: int
    entries: list[dict[str, Any]]
    weeks: list[int]


class MacroRequest(BaseModel):
    target_calories: float = Field(..., ge=0)
    category: str = plan_templates.default_category


class MacroResponse(BaseModel):
    category: str
    protein: int
    carbs: int
    fats: int


class AssignTemplateRequest(BaseModel):
    client_ids: list[int] = Field(..., min_length=1)
    day: str | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, v: str | None) -> str | None:
        return _normalize_day(v)


class SkippedClientResponse(BaseModel):
    client_id: str
    reason: str


class AssignTemplateResponse(BaseModel):
    template_id: int
    day: str
    assigned_client_ids: list[str]
    already_assigned_names: list[str]
    duplicate_client_ids: list[str]
    skipped: list[SkippedClientResponse]
    created_plan_ids: list[int]


class AssignmentListItem(BaseModel):
    id: int
    client_id: int | None
    client_name: str
    name: str
    day: str
