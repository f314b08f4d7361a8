"""
Centralized plan-template and batch configuration.

Macro profiles, meal slots and package plan tags live here so that the
assignment engine and the API read from a single table. The values are
product decisions; change them here, not inside the engine.
"""

from __future__ import annotations

# ============================================================================
# Live session batches
# ============================================================================

max_batch_size: int = 10

# Session plan tag -> substring that a package name must contain (lowercase).
# Whitelist: a tag missing from this table matches nothing.
plan_tag_package_names: dict[str, str] = {
    "fitplus": "fit plus",
    "pro": "pro transformation",
    "elite": "elite",
}

# Package that never qualifies for live sessions when no plan tag is given.
basic_package_name: str = "Fit Basics"


# ============================================================================
# Diet week generation
# ============================================================================

entries_per_week: int = 5

meal_time_slots: tuple[str, ...] = ("7:00 AM", "10:00 AM", "1:00 PM", "4:00 PM", "7:00 PM")
meal_roles: tuple[str, ...] = ("Breakfast", "Snack", "Lunch", "Snack", "Dinner")

# kcal per gram
kcal_per_gram = {
    "protein": 4,
    "carbs": 4,
    "fats": 9,
}

default_category: str = "Balanced"

# category -> (protein %, carbs %, fats %)
macro_profiles: dict[str, tuple[int, int, int]] = {
    "Balanced": (30, 40, 30),
    "High Protein": (40, 30, 30),
    "Low Carb": (35, 25, 40),
    "Ketogenic": (25, 5, 70),
    "Vegan": (25, 50, 25),
    "Paleo": (35, 30, 35),
    "Mediterranean": (25, 45, 30),
}

# Display names only; categories without a list use the Balanced names.
meal_names: dict[str, tuple[str, ...]] = {
    "Low Carb": (
        "Scrambled Eggs & Avocado",
        "Almonds & Cheese",
        "Grilled Chicken Salad",
        "Greek Yogurt",
        "Salmon with Vegetables",
    ),
    "High Protein": (
        "Protein Pancakes",
        "Protein Shake",
        "Turkey & Quinoa Bowl",
        "Cottage Cheese",
        "Lean Beef with Broccoli",
    ),
    "Balanced": (
        "Oatmeal with Berries",
        "Apple & Peanut Butter",
        "Chicken & Rice",
        "Greek Yogurt & Fruit",
        "Fish with Sweet Potato",
    ),
    "Ketogenic": (
        "Keto Breakfast Bowl",
        "Keto Fat Bombs",
        "Keto Chicken Salad",
        "Keto Cheese Plate",
        "Keto Steak Dinner",
    ),
    "Vegan": (
        "Tofu Scramble",
        "Hummus & Veggies",
        "Lentil Buddha Bowl",
        "Mixed Nuts & Berries",
        "Vegan Stir Fry",
    ),
}


# ============================================================================
# Plan assignment
# ============================================================================

default_plan_day: str = "Monday"

week_days: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
