"""Data structures used by the assignment engine.

Everything here is plain data. Rows coming from storage or request bodies are
converted into these types once, at the boundary (see ``resolve_package`` and
the repositories), so the engine never has to guess at field shapes.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class AssignmentReason(str, Enum):
    """Why a client was not assigned. Informational, never an exception."""

    ALREADY_ASSIGNED = "already assigned"
    BATCH_FULL = "batch full"
    NO_DIET_ACCESS = "no diet access"


@dataclass(frozen=True)
class PackageInfo:
    """A populated package reference."""

    id: str
    name: str
    diet_plan_access: bool = False
    live_group_training_access: bool = False
    live_sessions_per_month: int = 0
    price: float = 0.0


@dataclass(frozen=True)
class PackageReference:
    """An unpopulated package reference: only the id is known."""

    id: str


def resolve_package(
    raw: PackageInfo | PackageReference | Mapping[str, Any] | str | int | None,
    packages_by_id: Mapping[str, PackageInfo] | None = None,
) -> PackageInfo | None:
    """Resolve a package reference into a populated ``PackageInfo``.

    Accepts a populated package, a bare id, a ``PackageReference`` or a
    mapping with at least an ``id``/``_id`` key. Bare ids are looked up in
    ``packages_by_id``; unknown ids and empty values resolve to ``None``.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, PackageInfo):
        return raw
    if isinstance(raw, PackageReference):
        return (packages_by_id or {}).get(raw.id)
    if isinstance(raw, Mapping):
        package_id = raw.get("id", raw.get("_id"))
        name = raw.get("name")
        if name is None:
            return resolve_package(package_id, packages_by_id)
        return PackageInfo(
            id=normalize_id(package_id),
            name=str(name),
            diet_plan_access=bool(raw.get("diet_plan_access", raw.get("dietPlanAccess", False))),
            live_group_training_access=bool(
                raw.get("live_group_training_access", raw.get("liveGroupTrainingAccess", False))
            ),
            live_sessions_per_month=int(
                raw.get("live_sessions_per_month", raw.get("liveSessionsPerMonth", 0)) or 0
            ),
            price=float(raw.get("price", 0) or 0),
        )
    return (packages_by_id or {}).get(normalize_id(raw))


def normalize_id(value: Any) -> str:
    """Identity key used everywhere in the engine: stringified and trimmed."""
    return str(value).strip() if value is not None else ""


@dataclass(frozen=True)
class ClientRecord:
    id: str
    name: str
    package: PackageInfo | None = None
    email: str | None = None
    phone: str | None = None
    allergies: tuple[str, ...] = ()
    subscription_start: datetime | None = None
    subscription_end: datetime | None = None
    is_active: bool = True

    @property
    def package_name(self) -> str:
        return self.package.name if self.package else ""


@dataclass
class PlanEntry:
    """One meal or exercise inside a plan, tagged with its week.

    ``details`` keeps any extra fields of a caller-supplied entry (sets,
    reps, notes) so they survive a round trip untouched.
    """

    week_number: int
    name: str
    time: str | None = None
    type: str | None = None
    calories: int | None = None
    protein: int | None = None
    carbs: int | None = None
    fats: int | None = None
    day_of_week: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    _FIELDS = (
        "week_number", "name", "time", "type", "calories",
        "protein", "carbs", "fats", "day_of_week",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlanEntry":
        aliases = {"weekNumber": "week_number", "dayOfWeek": "day_of_week"}
        values: dict[str, Any] = {}
        details: dict[str, Any] = {}
        for key, value in data.items():
            key = aliases.get(key, key)
            if key in cls._FIELDS:
                values[key] = value
            elif key == "details" and isinstance(value, Mapping):
                details.update(value)
            else:
                details[key] = value
        values.setdefault("name", "")
        values["week_number"] = int(values.get("week_number") or 0)
        return cls(details=copy.deepcopy(details), **values)

    def to_dict(self) -> dict[str, Any]:
        data = {key: getattr(self, key) for key in self._FIELDS if getattr(self, key) is not None}
        data.update(copy.deepcopy(self.details))
        return data


@dataclass
class PlanTemplate:
    id: str
    name: str
    kind: str = "diet"
    category: str | None = None
    target_calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fats: float | None = None
    is_template: bool = True
    selected_day: str | None = None
    entries: list[PlanEntry] = field(default_factory=list)

    def copy_for(self, client: ClientRecord | None, client_id: str, day: str) -> "PlanInstance":
        """Bind a deep copy of this template to one client for one day."""
        entries = [replace(entry, details=copy.deepcopy(entry.details), day_of_week=day) for entry in self.entries]
        return PlanInstance(
            id=None,
            client_id=client_id,
            client_name=client.name if client else "",
            name=self.name,
            template_id=self.id,
            selected_day=day,
            is_template=False,
            entries=entries,
        )


@dataclass
class PlanInstance:
    """A plan row seen by the de-duplication ledger."""

    id: str | None
    client_id: str | None
    name: str
    template_id: str | None = None
    client_name: str = ""
    selected_day: str | None = None
    is_template: bool = False
    entries: list[PlanEntry] = field(default_factory=list)


@dataclass(frozen=True)
class AssignmentError:
    client_id: str
    reason: AssignmentReason

    def to_dict(self) -> dict[str, str]:
        return {"client_id": self.client_id, "reason": self.reason.value}


@dataclass
class BatchResult:
    assigned: int = 0
    errors: list[AssignmentError] = field(default_factory=list)
    assigned_client_ids: list[str] = field(default_factory=list)


@dataclass
class WeekGeneration:
    entries: list[PlanEntry] = field(default_factory=list)
    error: str | None = None

    WEEK_EXISTS = "week_exists"

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Macros:
    protein: int
    carbs: int
    fats: int


@dataclass
class LedgerResult:
    assigned_client_ids: set[str] = field(default_factory=set)
    already_assigned_names: list[str] = field(default_factory=list)
    duplicate_client_ids: list[str] = field(default_factory=list)
    skipped: list[AssignmentError] = field(default_factory=list)
    created: list[PlanInstance] = field(default_factory=list)
