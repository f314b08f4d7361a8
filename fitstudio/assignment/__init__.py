"""Session and plan assignment engine.

Pure functions and small stateful guards with no I/O:

- ``eligibility``: which clients may be offered a live session seat
- ``roster``: capacity-bounded, partial-success batch assignment and booking
- ``waitlist``: ordered per-session waitlist with contiguous positions
- ``generator``: macro calculation and week-scoped meal generation
- ``ledger``: per (template, client, day) de-duplication of assignments

Callers fetch current snapshots and pass them in; nothing here reads a cache
or a database.
"""
from fitstudio.assignment.eligibility import get_eligible_clients, live_session_packages, package_matches_plan
from fitstudio.assignment.generator import TemplateWeeks, compute_macros, generate_week_entries
from fitstudio.assignment.ledger import AssignmentLedger, resolve_plan_day
from fitstudio.assignment.roster import SessionRoster, assign_clients_to_session
from fitstudio.assignment.waitlist import Waitlist
from fitstudio.assignment.types import (
    AssignmentError,
    AssignmentReason,
    BatchResult,
    ClientRecord,
    LedgerResult,
    Macros,
    PackageInfo,
    PackageReference,
    PlanEntry,
    PlanInstance,
    PlanTemplate,
    WeekGeneration,
    normalize_id,
    resolve_package,
)

__all__ = [
    "AssignmentError",
    "AssignmentLedger",
    "AssignmentReason",
    "BatchResult",
    "ClientRecord",
    "LedgerResult",
    "Macros",
    "PackageInfo",
    "PackageReference",
    "PlanEntry",
    "PlanInstance",
    "PlanTemplate",
    "SessionRoster",
    "TemplateWeeks",
    "Waitlist",
    "WeekGeneration",
    "assign_clients_to_session",
    "compute_macros",
    "generate_week_entries",
    "get_eligible_clients",
    "live_session_packages",
    "normalize_id",
    "package_matches_plan",
    "resolve_package",
    "resolve_plan_day",
]
