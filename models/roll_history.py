"""
Roll history storage.
Holds accepted rolls in insertion order and handles expiry and display ordering.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Tuple
from models.roll_entry import RollEntry


SORT_COLUMNS = {
    'time': lambda entry: entry.timestamp,
    'player': lambda entry: entry.player_name,
    'roll': lambda entry: entry.roll_value,
}


@dataclass
class SessionStats:
    """Summary numbers for the current session."""
    total: int
    highest: RollEntry
    lowest: RollEntry
    average: float


class RollHistory:
    """Ordered store of accepted rolls."""

    def __init__(self):
        self._entries: List[RollEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RollEntry]:
        return iter(self._entries)

    def insert(self, entry: RollEntry) -> None:
        """Append an entry. Uniqueness is the caller's concern."""
        self._entries.append(entry)

    def remove(self, entry: RollEntry) -> bool:
        """Remove an entry by identity. Returns False if it was not present."""
        for index, existing in enumerate(self._entries):
            if existing is entry:
                del self._entries[index]
                return True
        return False

    def clear(self) -> None:
        self._entries.clear()

    def expire(self, cutoff: datetime) -> int:
        """Drop every entry older than the cutoff. Returns how many were dropped."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.timestamp >= cutoff]
        return before - len(self._entries)

    def snapshot(self) -> Tuple[RollEntry, ...]:
        """Return a read-only view of the entries in insertion order."""
        return tuple(self._entries)

    def has_player(self, player_name: str) -> bool:
        """Check if any entry has exactly this normalized name."""
        return any(entry.player_name == player_name for entry in self._entries)

    def sorted_view(self, column: str = 'time', descending: bool = True) -> List[RollEntry]:
        """
        Return entries ordered for display.

        Args:
            column: One of 'time', 'player', 'roll'
            descending: Sort direction (newest first by default)
        """
        key = SORT_COLUMNS.get(column)
        if key is None:
            raise ValueError(f"Unknown sort column: {column}")
        return sorted(self._entries, key=key, reverse=descending)

    def stats(self) -> Optional[SessionStats]:
        """Return session analytics, or None when nothing has been recorded."""
        if not self._entries:
            return None

        values = [entry.roll_value for entry in self._entries]
        return SessionStats(
            total=len(self._entries),
            highest=max(self._entries, key=lambda entry: entry.roll_value),
            lowest=min(self._entries, key=lambda entry: entry.roll_value),
            average=sum(values) / len(values)
        )
