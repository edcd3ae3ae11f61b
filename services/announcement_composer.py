"""
Announcement rendering.
Fills placeholders in user-editable message templates.
"""
from typing import Optional
import config
from models.contest_settings import ContestSettings
from models.roll_entry import RollEntry


class AnnouncementComposer:
    """Renders announcement templates against the current winner."""

    def target_text(self, settings: ContestSettings) -> str:
        """Return the text substituted for {target}."""
        if settings.has_targets:
            return ", ".join(str(number) for number in settings.target_numbers)
        return config.TARGET_FALLBACK_TEXT

    def render(self, template: str, winner: Optional[RollEntry], settings: ContestSettings) -> str:
        """
        Substitute {winner}, {roll} and {target} in a template.

        Placeholders without a value (e.g. {winner} when nobody has won) are
        left as written.
        """
        message = template

        if winner is not None:
            # Server suffix is noise in chat
            message = message.replace("{winner}", winner.base_name)
            message = message.replace("{roll}", str(winner.roll_value))

        return message.replace("{target}", self.target_text(settings))
