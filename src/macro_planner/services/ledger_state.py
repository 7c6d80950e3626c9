"""Immutable ledger snapshot and its pure transitions.

Every function takes the current ``LedgerState`` and returns a new one;
nothing here mutates its input.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime

from macro_planner.domain.meals import (
    MealDefinition,
    MealMacroTargets,
    MealPlanEntry,
)
from macro_planner.domain.profile import MealTarget
from macro_planner.domain.summaries import DailySummary
from macro_planner.services.scoring import cheat_day_placeholder

_DEFAULT_MEALS: tuple[tuple[str, str, MealMacroTargets], ...] = (
    ("1", "Breakfast", MealMacroTargets(30, 45, 15, min_fiber=5, max_sugar=15)),
    ("2", "Lunch", MealMacroTargets(40, 50, 20, min_fiber=8, max_sugar=10)),
    ("3", "Dinner", MealMacroTargets(35, 40, 25, min_fiber=10, max_sugar=8)),
    ("4", "Post-Workout", MealMacroTargets(25, 30, 5, min_fiber=3, max_sugar=20)),
    ("5", "Snack", MealMacroTargets(15, 20, 10, min_fiber=4, max_sugar=10)),
)


@dataclass(frozen=True)
class LedgerState:
    """Meal definitions, logged entries and persisted daily summaries."""

    meal_definitions: tuple[MealDefinition, ...] = ()
    entries: tuple[MealPlanEntry, ...] = ()
    summaries: dict[str, DailySummary] = field(default_factory=dict)


def default_meal_definitions(created_at: datetime) -> tuple[MealDefinition, ...]:
    """Return the built-in meal definitions."""
    return tuple(
        MealDefinition(
            id=meal_id, name=name, macro_targets=targets, created_at=created_at
        )
        for meal_id, name, targets in _DEFAULT_MEALS
    )


def initial_state(created_at: datetime) -> LedgerState:
    """Return the state used when nothing has been stored yet."""
    return LedgerState(meal_definitions=default_meal_definitions(created_at))


def add_meal_definition(state: LedgerState, definition: MealDefinition) -> LedgerState:
    """Append a user-created meal definition."""
    custom = replace(definition, user_custom=True, personalized_generated=False)
    return replace(state, meal_definitions=(*state.meal_definitions, custom))


def update_meal_definition(
    state: LedgerState,
    meal_id: str,
    *,
    name: str | None = None,
    macro_targets: MealMacroTargets | None = None,
) -> LedgerState:
    """Rename a meal definition or replace its targets."""
    definitions = []
    for definition in state.meal_definitions:
        if definition.id == meal_id:
            definition = replace(
                definition,
                name=name if name is not None else definition.name,
                macro_targets=macro_targets or definition.macro_targets,
            )
        definitions.append(definition)
    return replace(state, meal_definitions=tuple(definitions))


def delete_meal_definition(state: LedgerState, meal_id: str) -> LedgerState:
    """Remove a meal definition; entries referencing it are kept."""
    return replace(
        state,
        meal_definitions=tuple(
            definition
            for definition in state.meal_definitions
            if definition.id != meal_id
        ),
    )


def apply_meal_distribution(
    state: LedgerState,
    distribution: Iterable[MealTarget],
    created_at: datetime,
) -> LedgerState:
    """Replace generated definitions with a personalized set.

    User-created definitions survive regeneration.
    """
    generated = tuple(
        MealDefinition(
            id=f"personalized-{index}",
            name=meal.name,
            macro_targets=MealMacroTargets(
                protein=meal.protein,
                carbs=meal.carbs,
                fat=meal.fat,
                min_fiber=meal.min_fiber,
                max_sugar=meal.max_sugar,
            ),
            created_at=created_at,
            personalized_generated=True,
        )
        for index, meal in enumerate(distribution, start=1)
    )
    return replace(state, meal_definitions=(*generated, *_custom_definitions(state)))


def reset_meal_definitions(state: LedgerState, created_at: datetime) -> LedgerState:
    """Return to the built-in definitions, keeping user-created ones."""
    return replace(
        state,
        meal_definitions=(
            *default_meal_definitions(created_at),
            *_custom_definitions(state),
        ),
    )


def add_entry(state: LedgerState, entry: MealPlanEntry) -> LedgerState:
    """Append a logged meal."""
    return replace(state, entries=(*state.entries, entry))


def replace_entry(state: LedgerState, entry: MealPlanEntry) -> LedgerState:
    """Swap in an edited version of an existing entry."""
    return replace(
        state,
        entries=tuple(
            entry if current.id == entry.id else current for current in state.entries
        ),
    )


def delete_entry(state: LedgerState, entry_id: str) -> LedgerState:
    """Remove a logged meal."""
    return replace(
        state, entries=tuple(entry for entry in state.entries if entry.id != entry_id)
    )


def toggle_cheat_day(state: LedgerState, day: str) -> LedgerState:
    """Flip a day's cheat flag without recomputing its macros.

    Turning the flag off on a placeholder removes it, so the day is derived
    from its live entries again.
    """
    summaries = dict(state.summaries)
    existing = summaries.get(day)
    if existing is None:
        summaries[day] = cheat_day_placeholder(day)
    elif existing.is_cheat_day and existing.entry_count == 0:
        del summaries[day]
    else:
        summaries[day] = replace(existing, is_cheat_day=not existing.is_cheat_day)
    return replace(state, summaries=summaries)


def _custom_definitions(state: LedgerState) -> tuple[MealDefinition, ...]:
    return tuple(
        definition for definition in state.meal_definitions if definition.user_custom
    )
