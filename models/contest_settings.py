"""
Contest settings and the intents that change them.
Every mutator returns the new state so callers never need a UI to test it.
"""
from typing import Dict, List, Optional
import config
from models.roll_entry import strip_server


TEMPLATE_KINDS = ('open', 'close', 'winner')


class ContestSettings:
    """Holds the active contest rules, shared by the engine and the resolver."""

    def __init__(self):
        self.recording_enabled: bool = True
        self.high_wins: bool = True
        self.target_mode_enabled: bool = False
        self.target_numbers: List[int] = []  # insertion order, unique
        self.closest_wins: bool = False
        self.one_roll_per_person: bool = False
        self.locked_target_name: Optional[str] = None  # base name, no @server
        self.expiry_minutes: int = 0  # 0 = disabled
        self.funny_numbers: List[int] = list(config.DEFAULT_FUNNY_NUMBERS)
        self.templates: Dict[str, str] = {
            'open': config.MSG_OPEN,
            'close': config.MSG_CLOSE,
            'winner': config.MSG_WINNER,
        }

    @property
    def has_targets(self) -> bool:
        """Check if target mode is on with at least one target number."""
        return self.target_mode_enabled and len(self.target_numbers) > 0

    def set_recording(self, enabled: bool) -> bool:
        self.recording_enabled = enabled
        return self.recording_enabled

    def toggle_recording(self) -> bool:
        return self.set_recording(not self.recording_enabled)

    def toggle_high_wins(self) -> bool:
        self.high_wins = not self.high_wins
        return self.high_wins

    def toggle_target_mode(self) -> bool:
        self.target_mode_enabled = not self.target_mode_enabled
        return self.target_mode_enabled

    def toggle_closest_wins(self) -> bool:
        self.closest_wins = not self.closest_wins
        return self.closest_wins

    def toggle_one_roll_per_person(self) -> bool:
        self.one_roll_per_person = not self.one_roll_per_person
        return self.one_roll_per_person

    def add_target_number(self, number: int) -> bool:
        """Add a target number. Only positive, not-yet-listed numbers are accepted."""
        if number <= 0 or number in self.target_numbers:
            return False
        self.target_numbers.append(number)
        return True

    def remove_target_number(self, number: int) -> bool:
        if number not in self.target_numbers:
            return False
        self.target_numbers.remove(number)
        return True

    def add_funny_number(self, number: int) -> bool:
        """Add a funny number. Zero is allowed, negatives and duplicates are not."""
        if number < 0 or number in self.funny_numbers:
            return False
        self.funny_numbers.append(number)
        return True

    def remove_funny_number(self, number: int) -> bool:
        if number not in self.funny_numbers:
            return False
        self.funny_numbers.remove(number)
        return True

    def lock_target(self, name: Optional[str]) -> Optional[str]:
        """Lock rolls to a single player (by base name). A blank name unlocks."""
        if not name or not name.strip():
            self.locked_target_name = None
        else:
            self.locked_target_name = strip_server(name.strip())
        return self.locked_target_name

    def unlock_target(self) -> None:
        self.locked_target_name = None

    def set_expiry_minutes(self, minutes: int) -> int:
        """Set the roll expiry window, clamping negatives to 0 (disabled)."""
        self.expiry_minutes = max(0, minutes)
        return self.expiry_minutes

    def set_template(self, kind: str, text: str) -> bool:
        """Replace the open/close/winner announcement template."""
        if kind not in TEMPLATE_KINDS:
            return False
        self.templates[kind] = text
        return True

    def to_dict(self) -> dict:
        """Serialize to dictionary (for display or external persistence)."""
        return {
            'recording_enabled': self.recording_enabled,
            'high_wins': self.high_wins,
            'target_mode_enabled': self.target_mode_enabled,
            'target_numbers': list(self.target_numbers),
            'closest_wins': self.closest_wins,
            'one_roll_per_person': self.one_roll_per_person,
            'locked_target_name': self.locked_target_name,
            'expiry_minutes': self.expiry_minutes,
            'funny_numbers': list(self.funny_numbers),
            'templates': dict(self.templates),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ContestSettings':
        """Deserialize from dictionary, falling back to defaults for missing keys."""
        settings = cls()
        settings.recording_enabled = data.get('recording_enabled', settings.recording_enabled)
        settings.high_wins = data.get('high_wins', settings.high_wins)
        settings.target_mode_enabled = data.get('target_mode_enabled', settings.target_mode_enabled)
        settings.closest_wins = data.get('closest_wins', settings.closest_wins)
        settings.one_roll_per_person = data.get('one_roll_per_person', settings.one_roll_per_person)
        settings.lock_target(data.get('locked_target_name'))
        settings.set_expiry_minutes(int(data.get('expiry_minutes', 0)))

        if 'target_numbers' in data:
            settings.target_numbers = []
            for number in data['target_numbers']:
                settings.add_target_number(int(number))
        if 'funny_numbers' in data:
            settings.funny_numbers = []
            for number in data['funny_numbers']:
                settings.add_funny_number(int(number))

        for kind, text in data.get('templates', {}).items():
            settings.set_template(kind, text)

        return settings
