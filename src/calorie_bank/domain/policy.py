"""Tunable thresholds for banking and recovery."""

from dataclasses import dataclass

from calorie_bank.domain.recovery import RecoveryStrategy, TriggerType


@dataclass(frozen=True)
class BankingPolicy:
    """Product thresholds that drive detection and recovery planning.

    The cut lines between trigger types and the horizons of each strategy
    are product decisions, so they are configuration rather than constants.
    """

    safety_floor: int = 1200
    mild_threshold: int = 300
    moderate_threshold: int = 500
    severe_threshold: int = 1000
    gentle_days: int = 7
    moderate_days: int = 5
    quick_days: int = 3
    pace_tolerance_ratio: float = 0.2
    stale_event_tolerance: int = 50
    average_workout_burn: int = 350

    def classify(self, excess: int) -> TriggerType | None:
        """Return the trigger type for an excess, or None below the mild line."""
        if excess >= self.severe_threshold:
            return TriggerType.SEVERE
        if excess >= self.moderate_threshold:
            return TriggerType.MODERATE
        if excess >= self.mild_threshold:
            return TriggerType.MILD
        return None

    def horizon(self, strategy: RecoveryStrategy) -> int:
        """Return the base duration in days for a reduction strategy."""
        if strategy is RecoveryStrategy.GENTLE:
            return self.gentle_days
        if strategy is RecoveryStrategy.MODERATE:
            return self.moderate_days
        if strategy is RecoveryStrategy.QUICK:
            return self.quick_days
        raise ValueError(f"{strategy} has no fixed horizon")
