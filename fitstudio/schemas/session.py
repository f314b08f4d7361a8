"""Pydantic schemas for live sessions and batch assignment."""
from datetime import datetime

from pydantic import BaseModel, Field

from fitstudio.config import plan_templates
from fitstudio.models.enums import PackagePlan, SessionStatus


class SessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    session_type: str | None = None
    package_plan: PackagePlan | None = None
    scheduled_at: datetime
    duration: int = Field(60, gt=0, description="Minutes")
    trainer_name: str | None = None
    max_capacity: int = Field(plan_templates.max_batch_size, ge=1, le=plan_templates.max_batch_size)


class SessionResponse(BaseModel):
    id: int
    title: str
    description: str | None
    session_type: str | None
    package_plan: str | None
    scheduled_at: datetime
    duration: int
    trainer_name: str | None
    max_capacity: int
    current_capacity: int
    status: SessionStatus
    cloned_from_id: int | None = None
    client_ids: list[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class AssignClientsRequest(BaseModel):
    client_ids: list[int] = Field(..., min_length=1)


class AssignmentErrorResponse(BaseModel):
    client_id: str
    reason: str


class BatchAssignResponse(BaseModel):
    assigned: int
    errors: list[AssignmentErrorResponse] = Field(default_factory=list)
    assigned_client_ids: list[str] = Field(default_factory=list)
    current_capacity: int
    max_capacity: int
    batch_full: bool


class EligibleClientResponse(BaseModel):
    id: str
    name: str
    email: str | None = None
    package_name: str
    is_assigned: bool


class EligibleClientsResponse(BaseModel):
    session_id: int
    plan_tag: str | None
    assigned_count: int
    max_capacity: int
    clients: list[EligibleClientResponse]


class CloneSessionRequest(BaseModel):
    scheduled_at: datetime


class SessionStatusUpdate(BaseModel):
    status: SessionStatus


class PackageResponse(BaseModel):
    id: str
    name: str
    diet_plan_access: bool
    live_group_training_access: bool
    live_sessions_per_month: int
    price: float


class ClientRefRequest(BaseModel):
    client_id: int


class BookingResponse(BaseModel):
    session_id: int
    client_id: int
    seat: int
    current_capacity: int
    max_capacity: int


class WaitlistEntryResponse(BaseModel):
    id: int
    session_id: int
    client_id: int
    client_name: str | None = None
    position: int
    added_at: datetime | None = None
