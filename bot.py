import asyncio
import json
import os
from typing import Optional, Set
import discord
from discord.ext import commands
from dotenv import load_dotenv

import config
from models.contest_settings import ContestSettings, TEMPLATE_KINDS
from services.roll_engine import LineType, RollEngine, RollNotification, Severity

# Load environment variables
load_dotenv()

# Configuration
DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
ROLL_SETTINGS_FILE = os.getenv('ROLL_SETTINGS_FILE')


def load_settings(path: Optional[str]) -> ContestSettings:
    """Load contest settings from a JSON file, falling back to defaults."""
    if not path:
        return ContestSettings()

    try:
        with open(path, encoding='utf-8') as handle:
            settings = ContestSettings.from_dict(json.load(handle))
        print(f'Loaded contest settings from {path}')
        return settings
    except (OSError, json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
        print(f'Error loading settings from {path}: {e}, using defaults')
        return ContestSettings()


class RollTrackerBot(commands.Bot):
    """Discord bot that tracks /random rolls relayed into a channel."""

    def __init__(self, settings: Optional[ContestSettings] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.members = True

        super().__init__(command_prefix=config.COMMAND_PREFIX, intents=intents)

        # Initialize engine with host collaborators
        self.engine = RollEngine(
            settings or ContestSettings(),
            notify=self.notify_roll,
            request_select=self.select_member,
            send_outbound_text=self.send_announcement,
            report_error=self.report_error
        )

        # Discord objects
        self.roll_channel: Optional[discord.TextChannel] = None
        self.selected_member: Optional[discord.Member] = None
        self._pending_sends: Set[asyncio.Task] = set()

    async def setup_hook(self):
        """Called when the bot is starting up."""
        await self.add_cog(RollCommands(self))

    async def on_ready(self):
        """Called when bot is fully logged in and ready."""
        print(f'{self.user} has connected to Discord!')
        print(f'Bot is in {len(self.guilds)} guild(s)')

        for guild in self.guilds:
            channel = discord.utils.get(guild.text_channels, name=config.ROLL_CHANNEL)
            if not channel:
                print(f'Warning: #{config.ROLL_CHANNEL} channel not found in {guild.name}')
                continue
            print(f'Found #{config.ROLL_CHANNEL} channel in {guild.name}')
            self.roll_channel = channel
            break

    async def on_message(self, message: discord.Message):
        """Handle new messages."""
        is_command = message.content.startswith(config.COMMAND_PREFIX)
        if message.channel == self.roll_channel and not is_command:
            line_type = LineType.ECHO if message.author == self.user else LineType.NORMAL
            self.engine.ingest(message.content, message.author.display_name, line_type)

        await self.process_commands(message)

    def queue_send(self, content: str) -> None:
        """Send a message to the roll channel without waiting for it."""
        if not self.roll_channel:
            print(f'Error: Roll channel not found, dropping message: {content}')
            return

        task = asyncio.create_task(self.send_to_roll_channel(content))
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)

    async def send_to_roll_channel(self, content: str) -> None:
        try:
            await self.roll_channel.send(content)
        except discord.Forbidden:
            print('Error: Bot lacks permission to send messages')
        except discord.HTTPException as e:
            print(f'Error sending message: {e}')

    # --- Engine collaborators ---

    def notify_roll(self, notification: RollNotification) -> None:
        prefix = "⚠️ " if notification.severity == Severity.WARNING else ""
        self.queue_send(f"{prefix}**{notification.title}** {notification.content}")

    def select_member(self, base_name: str) -> bool:
        if not self.roll_channel:
            return False

        member = discord.utils.find(
            lambda m: m.display_name == base_name,
            self.roll_channel.guild.members
        )
        if not member:
            return False

        self.selected_member = member
        self.queue_send(f"🎯 Targeted {member.mention}")
        return True

    def send_announcement(self, message: str) -> None:
        self.queue_send(message)

    def report_error(self, message: str) -> None:
        print(message)
        self.queue_send(f"⚠️ {message}")


class RollCommands(commands.Cog):
    """Chat commands that drive the roll tracker."""

    def __init__(self, bot: RollTrackerBot):
        self.bot = bot

    @property
    def engine(self) -> RollEngine:
        return self.bot.engine

    @property
    def settings(self) -> ContestSettings:
        return self.bot.engine.settings

    @commands.command(name='rolls')
    async def show_rolls(self, ctx: commands.Context, column: str = 'time', direction: str = 'desc'):
        """Show the roll board. Sort by time, player or roll."""
        try:
            board = self.engine.to_display_message(column, descending=direction != 'asc')
        except ValueError as e:
            await ctx.send(str(e))
            return
        await ctx.send(board)

    @commands.command(name='stats')
    async def show_stats(self, ctx: commands.Context):
        await ctx.send(self.engine.to_stats_message())

    @commands.command(name='settings')
    async def show_settings(self, ctx: commands.Context):
        await ctx.send(f"```json\n{json.dumps(self.settings.to_dict(), indent=2)}\n```")

    @commands.command(name='startrolls')
    async def start_rolls(self, ctx: commands.Context):
        await ctx.send(self.engine.start_recording())

    @commands.command(name='stoprolls')
    async def stop_rolls(self, ctx: commands.Context):
        await ctx.send(self.engine.stop_recording())

    @commands.command(name='clearrolls')
    async def clear_rolls(self, ctx: commands.Context):
        await ctx.send(self.engine.clear_history())

    @commands.command(name='mode')
    async def toggle_mode(self, ctx: commands.Context):
        high_wins = self.settings.toggle_high_wins()
        await ctx.send("Mode: HIGHEST Wins" if high_wins else "Mode: LOWEST Wins")

    @commands.command(name='targetmode')
    async def toggle_target_mode(self, ctx: commands.Context):
        enabled = self.settings.toggle_target_mode()
        await ctx.send(f"Target mode {'ON' if enabled else 'OFF'}")

    @commands.command(name='closest')
    async def toggle_closest(self, ctx: commands.Context):
        enabled = self.settings.toggle_closest_wins()
        await ctx.send(f"Closest wins {'ON' if enabled else 'OFF'}")

    @commands.command(name='onceper')
    async def toggle_one_roll(self, ctx: commands.Context):
        enabled = self.settings.toggle_one_roll_per_person()
        await ctx.send(f"Only 1 roll per person {'ON' if enabled else 'OFF'}")

    @commands.command(name='target')
    async def edit_targets(self, ctx: commands.Context, action: str, number: int):
        """Add or remove a target number: !target add 77"""
        if action == 'add':
            changed = self.settings.add_target_number(number)
        elif action == 'remove':
            changed = self.settings.remove_target_number(number)
        else:
            await ctx.send("Usage: !target add|remove <number>")
            return

        targets = ", ".join(str(n) for n in self.settings.target_numbers) or "none"
        await ctx.send(f"Targets: {targets}" if changed else f"Could not {action} {number}. Targets: {targets}")

    @commands.command(name='funny')
    async def edit_funny(self, ctx: commands.Context, action: str, number: int):
        """Add or remove a funny number: !funny add 42"""
        if action == 'add':
            changed = self.settings.add_funny_number(number)
        elif action == 'remove':
            changed = self.settings.remove_funny_number(number)
        else:
            await ctx.send("Usage: !funny add|remove <number>")
            return

        funny = ", ".join(str(n) for n in self.settings.funny_numbers) or "none"
        await ctx.send(f"Funny numbers: {funny}" if changed else f"Could not {action} {number}. Funny numbers: {funny}")

    @commands.command(name='lock')
    async def lock(self, ctx: commands.Context, *, name: str):
        locked = self.engine.set_target(name)
        await ctx.send(f"LOCKED: {locked}" if locked else "Unlocked")

    @commands.command(name='unlock')
    async def unlock(self, ctx: commands.Context):
        self.engine.clear_target()
        await ctx.send("Unlocked")

    @commands.command(name='expire')
    async def set_expiry(self, ctx: commands.Context, minutes: int):
        minutes = self.settings.set_expiry_minutes(minutes)
        await ctx.send(f"Rolls expire after {minutes} min" if minutes else "Roll expiry disabled")

    @commands.command(name='template')
    async def set_template(self, ctx: commands.Context, kind: str, *, text: str):
        """Set an announcement template. Use {winner}, {roll}, {target} as placeholders."""
        if not self.settings.set_template(kind, text):
            await ctx.send(f"Unknown template '{kind}', expected one of: {', '.join(TEMPLATE_KINDS)}")
            return
        await ctx.send(f"Updated {kind} template")

    @commands.command(name='announce')
    async def announce(self, ctx: commands.Context, kind: str = 'winner'):
        if self.engine.announce(kind) is None:
            await ctx.send(f"Unknown template '{kind}', expected one of: {', '.join(TEMPLATE_KINDS)}")

    @commands.command(name='delroll')
    async def delete_roll(self, ctx: commands.Context, index: int):
        """Delete a roll by its number on the board (newest first)."""
        rows = self.engine.history.sorted_view()
        if not 1 <= index <= len(rows):
            await ctx.send(f"No roll #{index}")
            return

        entry = rows[index - 1]
        self.engine.remove_roll(entry)
        await ctx.send(f"Removed {entry.player_name}: {entry.roll_value}")

    @commands.command(name='select')
    async def select(self, ctx: commands.Context, *, name: Optional[str] = None):
        """Target a player by name, or the current winner if no name is given."""
        if name is None:
            winner = self.engine.current_winner()
            if winner is None:
                await ctx.send("No winner yet")
                return
            name = winner.player_name
        self.engine.target_request(name)

    @commands.Cog.listener()
    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"Usage: {config.COMMAND_PREFIX}{ctx.command.qualified_name} {ctx.command.signature}")
        elif isinstance(error, commands.CommandNotFound):
            return
        else:
            print(f'Error running command: {error}')


def main():
    """Main entry point."""
    if not DISCORD_TOKEN:
        print("Error: DISCORD_TOKEN environment variable not set!")
        print("Please create a .env file with your Discord bot token.")
        print("See .env.example for the required format.")
        return

    bot = RollTrackerBot(load_settings(ROLL_SETTINGS_FILE))

    try:
        bot.run(DISCORD_TOKEN)
    except discord.LoginFailure:
        print("Error: Invalid Discord token!")
        print("Please check your DISCORD_TOKEN in the .env file.")
    except Exception as e:
        print(f"Error starting bot: {e}")


if __name__ == "__main__":
    main()
