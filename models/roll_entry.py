"""
Roll parsing and name normalization.
Handles detecting roll reports in chat lines and extracting player information.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import config


def normalize_player_name(raw: str) -> str:
    """
    Turn a captured name fragment into its canonical display form.

    "CloudStrife" -> "Cloud Strife"
    "Cloud Strife Gilgamesh" -> "Cloud Strife@Gilgamesh"
    """
    if not raw or not raw.strip():
        return config.UNKNOWN_PLAYER
    if raw == config.SELF_PLAYER:
        return raw

    # Names pasted from game chat often lose the spaces between parts
    spaced = config.CAMEL_BOUNDARY_PATTERN.sub(r'\1 \2', raw)
    parts = spaced.split()

    if len(parts) == 3:
        return f"{parts[0]} {parts[1]}{config.SERVER_SEPARATOR}{parts[2]}"
    if len(parts) >= 2:
        return f"{parts[0]} {parts[1]}"
    return spaced


def strip_server(name: str) -> str:
    """Return the base name without any @server suffix."""
    return name.split(config.SERVER_SEPARATOR)[0]


@dataclass(frozen=True)
class RollCandidate:
    """A roll reported in a chat line, before any filtering."""
    name: str
    value: int

    @classmethod
    def parse_from_line(cls, line: str, sender: str) -> Optional['RollCandidate']:
        """
        Parse a roll report from a single chat line.

        Args:
            line: Chat text to parse
            sender: Name of whoever sent the line (used for dice-style rolls)

        Returns:
            RollCandidate, or None if the line does not report a roll
        """
        if config.ROLL_MARKER not in line:
            return None

        match = config.STANDARD_ROLL_PATTERN.search(line)
        if match:
            name, digits = match.group(1), match.group(2)
        else:
            match = config.DICE_ROLL_PATTERN.search(line)
            if not match:
                return None
            name, digits = sender, match.group(1)

        try:
            value = int(digits)
        except ValueError:
            return None
        if value > config.MAX_ROLL_VALUE:
            return None

        if not name:
            name = sender

        return cls(name=normalize_player_name(name), value=value)


@dataclass(frozen=True, eq=False)
class RollEntry:
    """
    One accepted roll.

    Entries compare by identity: two players rolling the same value at the
    same moment are still two entries.
    """
    player_name: str
    roll_value: int
    timestamp: datetime

    @property
    def base_name(self) -> str:
        """Return the player name without the server suffix."""
        return strip_server(self.player_name)

    @classmethod
    def from_candidate(cls, candidate: RollCandidate, timestamp: datetime) -> 'RollEntry':
        return cls(
            player_name=candidate.name,
            roll_value=candidate.value,
            timestamp=timestamp
        )
