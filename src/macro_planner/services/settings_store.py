"""User profile, personalized targets and ledger preferences."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Protocol

from macro_planner.domain.preferences import (
    CheatPeriod,
    LedgerPreferences,
    SettingsSnapshot,
)
from macro_planner.domain.profile import NutritionTargets, UserProfile
from macro_planner.domain.weight import MacroAdjustment
from macro_planner.services.calculator import (
    calculate_personalized_nutrition,
    validate_user_profile,
)

_PROFILE_FIELDS = frozenset(item.name for item in fields(UserProfile))
_PREFERENCE_FIELDS = frozenset(item.name for item in fields(LedgerPreferences))

_logger = logging.getLogger(__name__)

TargetsListener = Callable[[NutritionTargets | None], None]
PreferencesListener = Callable[[LedgerPreferences], None]


class SettingsRepository(Protocol):
    """Persistence interface for the settings snapshot."""

    def load(self, default: SettingsSnapshot) -> SettingsSnapshot:
        """Return the stored snapshot, or ``default`` when absent."""

    def save(self, snapshot: SettingsSnapshot) -> None:
        """Persist a snapshot."""


@dataclass
class SettingsStore:
    """Holds the profile and recalculates targets when it becomes complete.

    Listeners are called synchronously after every change: target listeners
    receive the new ``NutritionTargets`` and preference listeners the new
    ``LedgerPreferences``.
    """

    repository: SettingsRepository
    default_preferences: LedgerPreferences = field(default_factory=LedgerPreferences)
    profile: UserProfile = field(default_factory=UserProfile)
    targets: NutritionTargets | None = None
    preferences: LedgerPreferences = field(init=False)
    validation_errors: list[str] = field(default_factory=list)
    _target_listeners: list[TargetsListener] = field(
        default_factory=list, init=False, repr=False
    )
    _preference_listeners: list[PreferencesListener] = field(
        default_factory=list, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.preferences = self.default_preferences

    def on_targets_changed(self, listener: TargetsListener) -> None:
        self._target_listeners.append(listener)

    def on_preferences_changed(self, listener: PreferencesListener) -> None:
        self._preference_listeners.append(listener)

    @property
    def snapshot(self) -> SettingsSnapshot:
        return SettingsSnapshot(
            profile=self.profile, targets=self.targets, preferences=self.preferences
        )

    def load(self) -> SettingsSnapshot:
        """Restore the stored snapshot.

        Only preference listeners are notified; restored targets were already
        applied when they were calculated.
        """
        stored = self.repository.load(
            SettingsSnapshot(preferences=self.default_preferences)
        )
        self.profile = stored.profile
        self.targets = stored.targets
        self.preferences = stored.preferences
        self.validation_errors = []
        self._notify_preferences()
        return stored

    def update_profile(self, **changes: object) -> NutritionTargets | None:
        """Merge profile fields and recalculate when the profile is complete.

        Unknown field names are ignored. When the merged profile is incomplete
        or invalid the previous targets are kept and the messages are in
        ``validation_errors``.
        """
        unknown = set(changes) - _PROFILE_FIELDS
        if unknown:
            _logger.warning("Ignoring unknown profile fields: %s", sorted(unknown))
        known = {key: value for key, value in changes.items() if key in _PROFILE_FIELDS}
        self.profile = replace(self.profile, **known)
        self.validation_errors = validate_user_profile(self.profile)

        if self.validation_errors:
            _logger.info("Profile incomplete or invalid: %s", self.validation_errors)
        else:
            targets, _ = calculate_personalized_nutrition(self.profile)
            self.targets = targets
            self._notify_targets()

        self.repository.save(self.snapshot)
        return self.targets

    def apply_adjustment(self, adjustment: MacroAdjustment) -> NutritionTargets:
        """Replace the daily and per-meal targets with adjusted ones.

        The profile weight follows the latest weigh-in. BMR and TDEE are kept.
        """
        if not adjustment.should_adjust or adjustment.adjusted_targets is None:
            raise ValueError("There is no adjustment to apply")
        if self.targets is None:
            raise ValueError("Targets must be calculated before they can be adjusted")
        if adjustment.analytics is not None:
            self.profile = replace(
                self.profile, weight_kg=adjustment.analytics.current_weight
            )
        daily = adjustment.adjusted_targets
        self.targets = replace(
            self.targets,
            target_calories=daily.calories,
            daily=daily,
            meal_distribution=adjustment.meal_distribution
            or self.targets.meal_distribution,
        )
        _logger.info("Applied macro adjustment: %s kcal", daily.calories)
        self.repository.save(self.snapshot)
        self._notify_targets()
        return self.targets

    def update_preferences(self, **changes: object) -> LedgerPreferences:
        """Change day boundary, cheat quotas or retention."""
        unknown = set(changes) - _PREFERENCE_FIELDS
        if unknown:
            _logger.warning("Ignoring unknown preference fields: %s", sorted(unknown))
        known = {
            key: value for key, value in changes.items() if key in _PREFERENCE_FIELDS
        }
        if "cheat_period_type" in known:
            known["cheat_period_type"] = CheatPeriod(known["cheat_period_type"])
        preferences = replace(self.preferences, **known)
        _validate_preferences(preferences)
        self.preferences = preferences
        self.repository.save(self.snapshot)
        self._notify_preferences()
        return self.preferences

    def reset(self) -> None:
        """Forget the profile and targets and restore default preferences."""
        self.profile = UserProfile()
        self.targets = None
        self.preferences = self.default_preferences
        self.validation_errors = []
        self.repository.save(self.snapshot)
        self._notify_preferences()
        self._notify_targets()

    def _notify_targets(self) -> None:
        for listener in self._target_listeners:
            listener(self.targets)

    def _notify_preferences(self) -> None:
        for listener in self._preference_listeners:
            listener(self.preferences)


def _validate_preferences(preferences: LedgerPreferences) -> None:
    if not 0 <= preferences.day_reset_hour <= 23:
        raise ValueError("day_reset_hour must be between 0 and 23")
    if preferences.cheat_meals_per_period < 0 or preferences.cheat_days_per_period < 0:
        raise ValueError("Cheat quotas cannot be negative")
    if preferences.retention_days < 1:
        raise ValueError("retention_days must be at least 1")
