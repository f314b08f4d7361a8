"""De-duplication ledger for template assignments."""
from __future__ import annotations

from typing import Iterable, Mapping

from fitstudio.assignment.types import (
    AssignmentError,
    AssignmentReason,
    ClientRecord,
    LedgerResult,
    PlanInstance,
    PlanTemplate,
    normalize_id,
)
from fitstudio.config import plan_templates


def resolve_plan_day(instance: PlanInstance) -> str:
    """Day an assigned plan applies to.

    The first entry's ``day_of_week`` wins over the plan-level
    ``selected_day``; with neither, the plan applies to the default day.
    """
    day = instance.selected_day or plan_templates.default_plan_day
    if instance.entries and instance.entries[0].day_of_week:
        day = instance.entries[0].day_of_week
    return day


class AssignmentLedger:
    """Tracks which clients already hold a copy of a template for a day.

    Built from a snapshot of plan rows; template rows and rows without a
    client are ignored. New assignments are recorded in the ledger as they
    are created, so repeated calls against the same ledger stay idempotent.
    """

    def __init__(self, instances: Iterable[PlanInstance] = ()):
        self._instances: list[PlanInstance] = [
            instance for instance in instances
            if not instance.is_template and normalize_id(instance.client_id)
        ]

    @property
    def instances(self) -> list[PlanInstance]:
        return list(self._instances)

    def _matches(self, instance: PlanInstance, template_id: str, template_name: str | None, day: str) -> bool:
        if resolve_plan_day(instance) != day:
            return False
        instance_template_id = normalize_id(instance.template_id)
        if instance_template_id and template_id and instance_template_id == template_id:
            return True
        # Legacy rows may lack a template id; fall back to the plan name.
        return bool(template_name) and instance.name == template_name

    def assigned_clients(
        self,
        template_id: str | None,
        template_name: str | None,
        day: str | None = None,
    ) -> dict[str, str]:
        """Client id -> client name for every client bound to the template on ``day``."""
        template_key = normalize_id(template_id)
        day = day or plan_templates.default_plan_day
        assigned: dict[str, str] = {}
        for instance in self._instances:
            if self._matches(instance, template_key, template_name, day):
                client_id = normalize_id(instance.client_id)
                if instance.client_name or client_id not in assigned:
                    assigned[client_id] = instance.client_name
        return assigned

    def already_assigned(self, template_id: str | None, template_name: str | None, day: str | None = None) -> set[str]:
        return set(self.assigned_clients(template_id, template_name, day))

    def assign_template_to_clients(
        self,
        template: PlanTemplate,
        client_ids: Iterable[str],
        day: str | None = None,
        clients: Mapping[str, ClientRecord] | None = None,
        require_diet_access: bool = False,
    ) -> LedgerResult:
        """Create one assignment per client not already holding the template.

        Clients already bound to ``(template, day)`` are reported as
        duplicates, never as a failure of the whole call. With
        ``require_diet_access`` set, clients whose package lacks diet plan
        access are skipped too.
        """
        day = day or plan_templates.default_plan_day
        clients = clients or {}
        existing = self.assigned_clients(template.id, template.name, day)
        result = LedgerResult()

        for raw_id in client_ids:
            client_id = normalize_id(raw_id)
            client = clients.get(client_id)

            if client_id in existing or client_id in result.assigned_client_ids:
                if client_id not in result.duplicate_client_ids:
                    result.duplicate_client_ids.append(client_id)
                    result.skipped.append(AssignmentError(client_id, AssignmentReason.ALREADY_ASSIGNED))
                    name = existing.get(client_id) or (client.name if client else "")
                    if name:
                        result.already_assigned_names.append(name)
                continue

            if require_diet_access and not (client and client.package and client.package.diet_plan_access):
                result.skipped.append(AssignmentError(client_id, AssignmentReason.NO_DIET_ACCESS))
                continue

            instance = template.copy_for(client, client_id, day)
            self._instances.append(instance)
            result.created.append(instance)
            result.assigned_client_ids.add(client_id)

        return result

