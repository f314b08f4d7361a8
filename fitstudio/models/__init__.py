"""ORM models."""
from fitstudio.models.client import Client
from fitstudio.models.enums import PackagePlan, PlanKind, SessionStatus
from fitstudio.models.live_session import LiveSession, SessionClient, SessionWaitlist
from fitstudio.models.package import Package
from fitstudio.models.plan import Plan

__all__ = [
    "Client",
    "LiveSession",
    "Package",
    "PackagePlan",
    "Plan",
    "PlanKind",
    "SessionClient",
    "SessionStatus",
    "SessionWaitlist",
]
