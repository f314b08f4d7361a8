"""Tests for the template assignment de-duplication ledger."""
from fitstudio.assignment import (
    AssignmentLedger,
    AssignmentReason,
    ClientRecord,
    PackageInfo,
    PlanEntry,
    PlanInstance,
    PlanTemplate,
    resolve_plan_day,
)

DIET = PackageInfo(id="p2", name="Fit Plus", diet_plan_access=True)
BASIC = PackageInfo(id="p1", name="Fit Basics")


def template(**overrides) -> PlanTemplate:
    values = dict(
        id="T1",
        name="Plan",
        entries=[PlanEntry(week_number=1, name="Oatmeal", calories=400, details={"notes": "warm"})],
    )
    values.update(overrides)
    return PlanTemplate(**values)


def assignment(client_id: str, day: str = "Monday", template_id: str | None = "T1", name: str = "Plan", **kw) -> PlanInstance:
    return PlanInstance(
        id=f"a-{client_id}",
        client_id=client_id,
        client_name=kw.pop("client_name", f"Client {client_id}"),
        name=name,
        template_id=template_id,
        selected_day=day,
        **kw,
    )


class TestResolvePlanDay:
    def test_first_entry_day_wins(self):
        instance = assignment("A", day="Tuesday", entries=[PlanEntry(week_number=1, name="x", day_of_week="Friday")])

        assert resolve_plan_day(instance) == "Friday"

    def test_selected_day_then_default(self):
        assert resolve_plan_day(assignment("A", day="Tuesday")) == "Tuesday"
        assert resolve_plan_day(assignment("A", day=None)) == "Monday"


class TestAssignTemplateToClients:
    """Assigning one template to several clients."""

    def test_existing_client_is_reported_not_duplicated(self):
        ledger = AssignmentLedger([assignment("A", client_name="Alice")])
        clients = {"B": ClientRecord(id="B", name="Bob")}

        result = ledger.assign_template_to_clients(template(), ["A", "B"], "Monday", clients=clients)

        assert result.assigned_client_ids == {"B"}
        assert result.already_assigned_names == ["Alice"]
        assert result.duplicate_client_ids == ["A"]
        assert result.skipped[0].reason == AssignmentReason.ALREADY_ASSIGNED
        assert len(result.created) == 1
        assert result.created[0].client_name == "Bob"

    def test_other_day_is_not_a_duplicate(self):
        ledger = AssignmentLedger([assignment("A", day="Monday")])

        result = ledger.assign_template_to_clients(template(), ["A"], "Wednesday")

        assert result.assigned_client_ids == {"A"}
        assert result.duplicate_client_ids == []

    def test_legacy_rows_match_by_name(self):
        ledger = AssignmentLedger([assignment("A", template_id=None, name="Plan")])

        result = ledger.assign_template_to_clients(template(), ["A"], "Monday")

        assert result.duplicate_client_ids == ["A"]

    def test_other_template_is_not_a_duplicate(self):
        ledger = AssignmentLedger([assignment("A", template_id="T2", name="Other")])

        result = ledger.assign_template_to_clients(template(), ["A"], "Monday")

        assert result.assigned_client_ids == {"A"}

    def test_template_rows_and_unowned_rows_are_ignored(self):
        ledger = AssignmentLedger([
            assignment("A", is_template=True),
            PlanInstance(id="x", client_id=None, name="Plan", template_id="T1"),
        ])

        assert ledger.instances == []
        assert ledger.assign_template_to_clients(template(), ["A"]).assigned_client_ids == {"A"}

    def test_repeat_call_is_idempotent(self):
        ledger = AssignmentLedger()

        first = ledger.assign_template_to_clients(template(), ["A", "B"], "Friday")
        second = ledger.assign_template_to_clients(template(), ["A", "B"], "Friday")

        assert first.assigned_client_ids == {"A", "B"}
        assert second.assigned_client_ids == set()
        assert second.duplicate_client_ids == ["A", "B"]

    def test_created_copy_is_bound_to_day_and_independent(self):
        tpl = template()
        ledger = AssignmentLedger()

        created = ledger.assign_template_to_clients(tpl, ["A"], "Sunday").created[0]
        created.entries[0].details["notes"] = "cold"

        assert created.template_id == "T1"
        assert created.selected_day == "Sunday"
        assert created.entries[0].day_of_week == "Sunday"
        assert tpl.entries[0].day_of_week is None
        assert tpl.entries[0].details == {"notes": "warm"}

    def test_diet_access_required(self):
        clients = {
            "A": ClientRecord(id="A", name="Alice", package=DIET),
            "B": ClientRecord(id="B", name="Bob", package=BASIC),
            "C": ClientRecord(id="C", name="Cara"),
        }
        ledger = AssignmentLedger()

        result = ledger.assign_template_to_clients(
            template(), ["A", "B", "C"], "Monday", clients=clients, require_diet_access=True
        )

        assert result.assigned_client_ids == {"A"}
        assert [(s.client_id, s.reason) for s in result.skipped] == [
            ("B", AssignmentReason.NO_DIET_ACCESS),
            ("C", AssignmentReason.NO_DIET_ACCESS),
        ]

    def test_default_day_is_monday(self):
        ledger = AssignmentLedger([assignment("A", day=None)])

        result = ledger.assign_template_to_clients(template(), ["A"])

        assert result.duplicate_client_ids == ["A"]
