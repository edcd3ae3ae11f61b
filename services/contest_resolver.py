"""
Contest resolution service.
Decides the current winner from the roll history under the active contest rules.
"""
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple
import config
from models.contest_settings import ContestSettings
from models.roll_entry import RollEntry


class RollHighlight(Enum):
    """How a roll should stand out on the board."""
    NORMAL = "normal"
    TARGET = "target"
    WINNER = "winner"
    JACKPOT = "jackpot"
    FUNNY = "funny"


def distance_to_targets(value: int, targets: Iterable[int]) -> int:
    """Return the distance from a value to its nearest target."""
    return min(abs(value - target) for target in targets)


def nearest_target(value: int, targets: Sequence[int]) -> int:
    """Return the nearest target, preferring the earlier listed one on a tie."""
    return min(targets, key=lambda target: abs(value - target))


def closest_first_key(targets: Sequence[int]):
    """
    Sort key for closest-wins mode.

    Smaller distance wins; on equal distance the earlier roll wins.
    """
    def key(entry: RollEntry) -> Tuple[int, datetime]:
        return distance_to_targets(entry.roll_value, targets), entry.timestamp
    return key


def most_recent_key(entry: RollEntry) -> datetime:
    """Sort key for exact-target mode: the most recent qualifying roll wins."""
    return entry.timestamp


def roll_value_key(entry: RollEntry) -> int:
    return entry.roll_value


class ContestResolver:
    """Computes the winner for a snapshot of the roll history."""

    def resolve(self, entries: Sequence[RollEntry], settings: ContestSettings) -> Optional[RollEntry]:
        """
        Determine the current winner.

        Args:
            entries: Roll history snapshot in insertion order
            settings: Active contest settings

        Returns:
            The winning RollEntry, or None if no entry qualifies
        """
        if not entries:
            return None

        if settings.target_mode_enabled:
            if not settings.target_numbers:
                return None
            if settings.closest_wins:
                return self.resolve_closest(entries, settings.target_numbers)
            return self.resolve_exact(entries, settings.target_numbers)

        if settings.high_wins:
            return max(entries, key=roll_value_key)
        return min(entries, key=roll_value_key)

    def resolve_closest(self, entries: Sequence[RollEntry], targets: Sequence[int]) -> Optional[RollEntry]:
        """Pick the roll nearest any target; ties go to whoever rolled first."""
        if not entries or not targets:
            return None
        return min(entries, key=closest_first_key(targets))

    def resolve_exact(self, entries: Sequence[RollEntry], targets: Sequence[int]) -> Optional[RollEntry]:
        """Pick the most recent roll that hit a target exactly."""
        hits = [entry for entry in entries if entry.roll_value in targets]
        if not hits:
            return None
        return max(hits, key=most_recent_key)

    def describe_win(self, winner: Optional[RollEntry], settings: ContestSettings) -> str:
        """Return the headline shown above the winner."""
        if winner is None:
            return "Waiting for matches..." if settings.target_mode_enabled else "Waiting for rolls..."

        if settings.target_mode_enabled:
            if settings.closest_wins and settings.target_numbers:
                target = nearest_target(winner.roll_value, settings.target_numbers)
                diff = abs(winner.roll_value - target)
                if diff == 0:
                    return f"🎯 EXACT MATCH ({target}) 🎯"
                return f"🎯 CLOSEST TO {target} (Diff: {diff}) 🎯"
            return f"🎯 WINNER! ({winner.roll_value}) 🎯"

        return "👑 HIGH ROLLER 👑" if settings.high_wins else "💀 LOW ROLLER 💀"

    def classify_roll(
        self,
        entry: RollEntry,
        settings: ContestSettings,
        winner: Optional[RollEntry]
    ) -> RollHighlight:
        """Decide how a single roll is highlighted on the board."""
        if settings.has_targets:
            if entry.roll_value in settings.target_numbers:
                return RollHighlight.TARGET
            if settings.closest_wins and entry is winner:
                return RollHighlight.WINNER
            return RollHighlight.NORMAL

        if not settings.target_mode_enabled and entry.roll_value == config.JACKPOT_NUMBER:
            return RollHighlight.JACKPOT
        if entry.roll_value in settings.funny_numbers:
            return RollHighlight.FUNNY
        return RollHighlight.NORMAL
