"""API routes for subscription packages."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.db.database import get_db
from fitstudio.schemas.session import PackageResponse
from fitstudio.services.session_assignment import SessionAssignmentService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live-eligible", response_model=list[PackageResponse])
async def list_live_session_packages(
    db: AsyncSession = Depends(get_db),
):
    """Packages whose clients can be booked into live group sessions."""
    service = SessionAssignmentService(db)
    packages = await service.live_session_packages()
    logger.info("list_live_session_packages: count=%s", len(packages))
    return [
        PackageResponse(
            id=package.id,
            name=package.name,
            diet_plan_access=package.diet_plan_access,
            live_group_training_access=package.live_group_training_access,
            live_sessions_per_month=package.live_sessions_per_month,
            price=package.price,
        )
        for package in packages
    ]
