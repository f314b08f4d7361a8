"""Repositories package."""
from fitstudio.repositories.base import Repository
from fitstudio.repositories.client_repository import ClientRepository, PackageRepository
from fitstudio.repositories.plan_repository import PlanRepository
from fitstudio.repositories.session_repository import SessionRepository

__all__ = [
    "Repository",
    "ClientRepository",
    "PackageRepository",
    "PlanRepository",
    "SessionRepository",
]
