"""
Configuration settings for the Roll Tracker Bot.
Centralized location for all constants and settings.
"""
import re

# Discord Bot Settings
COMMAND_PREFIX = "!"
ROLL_CHANNEL = "roll-tracker"
BOARD_HEADER = "🎲 Roll Tracker"
NOTIFY_TITLE = "Roll Tracker"
NOTIFY_TITLE_TARGET_HIT = "WINNER FOUND!"

# Contest Defaults
DEFAULT_FUNNY_NUMBERS = [0, 1, 69, 420, 777, 999]
JACKPOT_NUMBER = 777
MAX_ROLL_VALUE = 2**31 - 1  # Larger captures are treated as unparsable
BOARD_MAX_ROWS = 25  # Number of rolls to show on the board

# Announcement Templates
# Placeholders: {winner}, {roll}, {target}
MSG_OPEN = "Rolls are now OPEN! Type /random to play!"
MSG_CLOSE = "Rolls are now CLOSED! Calculating winner..."
MSG_WINNER = "Congratulations to {winner} for rolling a {roll}!"
TARGET_FALLBACK_TEXT = "Highest"

# Name Normalization
UNKNOWN_PLAYER = "Unknown"
SELF_PLAYER = "You"
SERVER_SEPARATOR = "@"
CAMEL_BOUNDARY_PATTERN = re.compile(r'([a-z])([A-Z])')

# Regex Patterns for parsing roll reports
# Example: Random! Cloud Strife rolls a 57.
# Example: Random! 57  (dice style, name comes from the sender)
ROLL_MARKER = "Random!"
STANDARD_ROLL_PATTERN = re.compile(r'Random! (.+?) roll(?:s)? a (\d+)')
DICE_ROLL_PATTERN = re.compile(r'Random!\s+(\d+)')
