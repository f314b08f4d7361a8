"""Week-scoped meal generation and macro calculation for plan templates."""
from __future__ import annotations

import copy
import math
import threading
from numbers import Real
from typing import Iterable, Sequence

from fitstudio.assignment.types import Macros, PlanEntry, WeekGeneration
from fitstudio.config import plan_templates


def _round(value: float) -> int:
    # Half-up: 2.5 -> 3, 3.5 -> 4.
    return int(math.floor(value + 0.5))


def _require_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if value < 0 or math.isnan(value) or math.isinf(value):
        raise ValueError(f"{name} must be a finite, non-negative number")
    return float(value)


def macro_profile(category: str | None) -> tuple[int, int, int]:
    """Protein/carbs/fats percentages for a category, Balanced when unknown."""
    profiles = plan_templates.macro_profiles
    return profiles.get(category or "", profiles[plan_templates.default_category])


def compute_macros(target_calories: float, category: str | None) -> Macros:
    """Grams of protein, carbs and fats for ``target_calories``.

    Pure: same input, same output, no side effects.
    """
    calories = _require_number("target_calories", target_calories)
    protein_pct, carbs_pct, fats_pct = macro_profile(category)
    per_gram = plan_templates.kcal_per_gram
    return Macros(
        protein=_round(calories * protein_pct / 100 / per_gram["protein"]),
        carbs=_round(calories * carbs_pct / 100 / per_gram["carbs"]),
        fats=_round(calories * fats_pct / 100 / per_gram["fats"]),
    )


def week_exists(entries: Iterable[PlanEntry], week_number: int) -> bool:
    return any(entry.week_number == week_number for entry in entries)


def generate_week_entries(
    target_calories: float,
    category: str | None,
    week_number: int,
    existing_entries: Sequence[PlanEntry] = (),
    protein: float | None = None,
    carbs: float | None = None,
    fats: float | None = None,
) -> WeekGeneration:
    """Generate the five meals of one week.

    ``target_calories`` is the weekly total and is split evenly across the
    meals. Explicit weekly ``protein``/``carbs``/``fats`` totals are split
    evenly too; any that are missing are derived from the category's macro
    profile. When ``existing_entries`` already holds ``week_number`` the
    result carries ``week_exists`` and no entries. ``existing_entries`` is
    never modified.
    """
    calories = _require_number("target_calories", target_calories)
    if isinstance(week_number, bool) or not isinstance(week_number, int) or week_number < 1:
        raise ValueError(f"week_number must be a positive integer, got {week_number!r}")

    snapshot = copy.deepcopy(list(existing_entries))
    if week_exists(snapshot, week_number):
        return WeekGeneration(error=WeekGeneration.WEEK_EXISTS)

    count = plan_templates.entries_per_week
    calories_per_meal = _round(calories / count)
    derived = compute_macros(calories_per_meal, category)

    def split(total: float | None, name: str, fallback: int) -> int:
        if total is None:
            return fallback
        return _round(_require_number(name, total) / count)

    protein_per_meal = split(protein, "protein", derived.protein)
    carbs_per_meal = split(carbs, "carbs", derived.carbs)
    fats_per_meal = split(fats, "fats", derived.fats)

    names = plan_templates.meal_names.get(
        category or "", plan_templates.meal_names[plan_templates.default_category]
    )

    entries = [
        PlanEntry(
            week_number=week_number,
            time=plan_templates.meal_time_slots[i],
            type=plan_templates.meal_roles[i],
            name=names[i],
            calories=calories_per_meal,
            protein=protein_per_meal,
            carbs=carbs_per_meal,
            fats=fats_per_meal,
        )
        for i in range(count)
    ]
    return WeekGeneration(entries=entries)


class TemplateWeeks:
    """The week-tagged entries of one template, guarded by a lock.

    ``add_week`` reads the existing weeks, decides and appends as one step,
    so two callers racing on the same week cannot both write it.
    """

    def __init__(self, entries: Iterable[PlanEntry] = ()):
        self._entries: list[PlanEntry] = copy.deepcopy(list(entries))
        self._lock = threading.Lock()

    @property
    def entries(self) -> list[PlanEntry]:
        with self._lock:
            return copy.deepcopy(self._entries)

    @property
    def weeks(self) -> list[int]:
        with self._lock:
            return sorted({entry.week_number for entry in self._entries})

    def generate_week(
        self,
        target_calories: float,
        category: str | None,
        week_number: int,
        protein: float | None = None,
        carbs: float | None = None,
        fats: float | None = None,
    ) -> WeekGeneration:
        with self._lock:
            result = generate_week_entries(
                target_calories, category, week_number, self._entries,
                protein=protein, carbs=carbs, fats=fats,
            )
            if result.ok:
                self._entries.extend(copy.deepcopy(result.entries))
            return result

    def add_week(self, week_number: int, entries: Iterable[PlanEntry]) -> WeekGeneration:
        """Append caller-supplied entries (e.g. exercises) as ``week_number``."""
        if isinstance(week_number, bool) or not isinstance(week_number, int) or week_number < 1:
            raise ValueError(f"week_number must be a positive integer, got {week_number!r}")
        new_entries = [copy.deepcopy(entry) for entry in entries]
        for entry in new_entries:
            entry.week_number = week_number
        with self._lock:
            if week_exists(self._entries, week_number):
                return WeekGeneration(error=WeekGeneration.WEEK_EXISTS)
            self._entries.extend(new_entries)
            return WeekGeneration(entries=copy.deepcopy(new_entries))
