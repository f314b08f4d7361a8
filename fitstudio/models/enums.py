"""Enumerations shared by models, schemas and services."""
from enum import Enum


class SessionStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [SessionStatus.UPCOMING, SessionStatus.LIVE, SessionStatus.COMPLETED]


class PlanKind(str, Enum):
    DIET = "diet"
    WORKOUT = "workout"


class PackagePlan(str, Enum):
    """Plan tags a live session can target."""
    FITPLUS = "fitplus"
    PRO = "pro"
    ELITE = "elite"
