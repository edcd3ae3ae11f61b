"""
Roll tracking engine.
Wires parsing, filtering, history, resolution and announcements together.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional
import config
from models.contest_settings import ContestSettings
from models.roll_entry import RollCandidate, RollEntry, strip_server
from models.roll_history import RollHistory
from services.announcement_composer import AnnouncementComposer
from services.contest_resolver import ContestResolver, RollHighlight


class LineType(Enum):
    """Kind of chat line handed to the engine."""
    NORMAL = "normal"
    ECHO = "echo"  # our own output coming back; never a roll


class Severity(Enum):
    SUCCESS = "success"
    WARNING = "warning"


@dataclass
class RollNotification:
    """Sent once for every accepted roll."""
    entry: RollEntry
    severity: Severity
    title: str
    content: str


HIGHLIGHT_MARKERS = {
    RollHighlight.NORMAL: "  ",
    RollHighlight.TARGET: "🎯",
    RollHighlight.WINNER: "⭐",
    RollHighlight.JACKPOT: "👑",
    RollHighlight.FUNNY: "✨",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RollEngine:
    """Accepts chat lines and answers winner queries."""

    def __init__(
        self,
        settings: ContestSettings,
        notify: Optional[Callable[[RollNotification], None]] = None,
        request_select: Optional[Callable[[str], bool]] = None,
        send_outbound_text: Optional[Callable[[str], None]] = None,
        report_error: Optional[Callable[[str], None]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.settings = settings
        self.history = RollHistory()
        self.resolver = ContestResolver()
        self.composer = AnnouncementComposer()
        self.clock = clock

        # Outbound collaborators
        self.notify = notify or (lambda notification: None)
        self.request_select = request_select or (lambda base_name: False)
        self.send_outbound_text = send_outbound_text or (lambda message: None)
        self.report_error = report_error or print

    def ingest(self, line: str, sender: str, line_type: LineType = LineType.NORMAL) -> Optional[RollEntry]:
        """
        Process one chat line.

        Returns:
            The accepted RollEntry, or None if the line was ignored
        """
        if line_type == LineType.ECHO or not self.settings.recording_enabled:
            return None

        now = self.clock()

        # Expire before parsing so stale rolls never take part in this decision
        self.expire_old_rolls(now)

        candidate = RollCandidate.parse_from_line(line, sender)
        if candidate is None:
            return None

        if not self.passes_filters(candidate):
            return None

        entry = RollEntry.from_candidate(candidate, now)
        self.history.insert(entry)
        print(f'Accepted roll: {entry.player_name} rolled {entry.roll_value}')

        self.notify(self.build_notification(entry))
        return entry

    def passes_filters(self, candidate: RollCandidate) -> bool:
        """Apply the lock and one-roll-per-person filters."""
        locked = self.settings.locked_target_name
        if locked and strip_server(candidate.name) != locked:
            print(f'Ignoring roll from {candidate.name}: locked to {locked}')
            return False

        if self.settings.one_roll_per_person and self.history.has_player(candidate.name):
            print(f'Ignoring roll from {candidate.name}: already rolled')
            return False

        return True

    def expire_old_rolls(self, now: datetime) -> int:
        """Drop rolls older than the expiry window, if one is set."""
        if self.settings.expiry_minutes <= 0:
            return 0

        cutoff = now - timedelta(minutes=self.settings.expiry_minutes)
        removed = self.history.expire(cutoff)
        if removed:
            print(f'Expired {removed} roll(s) older than {self.settings.expiry_minutes} minutes')
        return removed

    def build_notification(self, entry: RollEntry) -> RollNotification:
        is_target_hit = (
            self.settings.target_mode_enabled
            and entry.roll_value in self.settings.target_numbers
        )
        is_funny = entry.roll_value in self.settings.funny_numbers

        return RollNotification(
            entry=entry,
            severity=Severity.WARNING if (is_target_hit or is_funny) else Severity.SUCCESS,
            title=config.NOTIFY_TITLE_TARGET_HIT if is_target_hit else config.NOTIFY_TITLE,
            content=f"{entry.player_name} rolled {entry.roll_value}!"
        )

    # --- Queries ---

    def current_snapshot(self):
        return self.history.snapshot()

    def current_winner(self) -> Optional[RollEntry]:
        return self.resolver.resolve(self.history.snapshot(), self.settings)

    # --- Intents ---

    def remove_roll(self, entry: RollEntry) -> bool:
        return self.history.remove(entry)

    def clear_history(self) -> str:
        self.history.clear()
        return "Roll Tracker: History CLEARED."

    def start_recording(self) -> str:
        self.settings.set_recording(True)
        return "Roll Tracker: Recording STARTED."

    def stop_recording(self) -> str:
        self.settings.set_recording(False)
        return "Roll Tracker: Recording STOPPED."

    def set_target(self, name: str) -> Optional[str]:
        """Lock accepted rolls to a single player."""
        return self.settings.lock_target(name)

    def clear_target(self) -> None:
        self.settings.unlock_target()

    def target_request(self, full_name: str) -> bool:
        """
        Ask the host to select a player by name.

        A missing player is reported to the user, not raised.
        """
        search_name = strip_server(full_name)
        found = self.request_select(search_name)
        if not found:
            self.report_error(f"[Roll Tracker] Could not find '{search_name}' nearby.")
        return found

    def announce(self, kind: str) -> Optional[str]:
        """
        Render an announcement template and hand it to the outbound sender.

        Args:
            kind: 'open', 'close' or 'winner'

        Returns:
            The rendered message, or None if there is no such template
        """
        template = self.settings.templates.get(kind)
        if template is None:
            return None

        message = self.composer.render(template, self.current_winner(), self.settings)
        self.send_outbound_text(message)
        return message

    # --- Display ---

    def to_display_message(self, column: str = 'time', descending: bool = True) -> str:
        """Format the roll board as a chat message."""
        settings = self.settings
        winner = self.current_winner()
        lines: List[str] = [config.BOARD_HEADER, ""]

        status = "🔴 Recording" if settings.recording_enabled else "⏸️ Paused"
        if settings.target_mode_enabled:
            targets = ", ".join(str(number) for number in settings.target_numbers) or "none"
            rule = "closest wins" if settings.closest_wins else "exact match"
            mode = f"Target mode ({rule}): {targets}"
        else:
            mode = "Mode: HIGHEST Wins" if settings.high_wins else "Mode: LOWEST Wins"
        lines.append(f"{status} | {mode}")

        if settings.locked_target_name:
            lines.append(f"LOCKED: {settings.locked_target_name}")
        if settings.one_roll_per_person:
            lines.append("Only 1 roll per person")
        if settings.expiry_minutes > 0:
            lines.append(f"Rolls expire after {settings.expiry_minutes} min")
        lines.append("")

        lines.append(f"**{self.resolver.describe_win(winner, settings)}**")
        if winner is not None:
            lines.append(f"{winner.player_name}: {winner.roll_value}")
        lines.append("")

        rows = self.history.sorted_view(column, descending)
        for index, entry in enumerate(rows[:config.BOARD_MAX_ROWS], 1):
            marker = HIGHLIGHT_MARKERS[self.resolver.classify_roll(entry, settings, winner)]
            lines.append(
                f"{index}. {marker} `{entry.timestamp.astimezone():%H:%M:%S}` {entry.player_name} - {entry.roll_value}"
            )

        lines.append("")
        lines.append(f"Total Rolls: {len(self.history)}")
        return "\n".join(lines)

    def to_stats_message(self) -> str:
        stats = self.history.stats()
        if stats is None:
            return "No data recorded yet."

        return "\n".join([
            f"Total Rolls: {stats.total}",
            f"Highest Roll: {stats.highest.roll_value} ({stats.highest.player_name})",
            f"Lowest Roll: {stats.lowest.roll_value} ({stats.lowest.player_name})",
            f"Average Roll: {stats.average:.1f}",
        ])
