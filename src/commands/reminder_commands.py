# AI-chan - Discord Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Reminder Slash Commands

Discord slash commands for creating, listing and deleting reminders.
The response texts are built by plain functions so they can be used
without a live interaction.
"""

import logging
from datetime import datetime
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot_config import BotConfig
from reminders import (
    DateTimeParseError,
    ParseErrorKind,
    Reminder,
    ReminderStore,
    ReminderStoreError,
    is_in_future,
    parse_time_expression,
    utc_now,
)
from utils.chunking import chunk_message

logger = logging.getLogger("aichan.commands.reminder")

FORMAT_HELP = """

Valid time formats include:
- a duration
  - valid suffixes: `d` `h` `m` `s`, `hr(s)` `min(s)` `sec(s)`, `day(s)` `hour(s)` `minute(s)` `second(s)`
  - duration format: `<number><suffix> <number><suffix> <number><suffix> ...` (no space between number and suffix)
  - examples: `1d 3h 10m`, `23day`, `35hrs 4min`, `727secs`
- a UTC date
  - valid formats: `YYYY-MM-DD`, `YYYY-MM-DD hh:mm`, `YYYY-MM-DD hh:mm:ss`"""

NO_TIME_MACHINE = "Sweetie, I don't have a time machine! :c"
NO_SUCH_REMINDER = "No such reminder :("
STORE_FAILURE = "Something went wrong while saving your reminders, please try again later :("

# U+02CB looks like a backtick but does not close inline code
BACKTICK_LOOKALIKE = "ˋ"

PARSE_ERROR_MESSAGES = {
    ParseErrorKind.UNRECOGNIZED_DATE_FORMAT: "I don't recognize this date format! I only know `YYYY-MM-DD`.",
    ParseErrorKind.UNRECOGNIZED_TIME_FORMAT: "I don't recognize this time format! I only know `hh:mm` and `hh:mm:ss`.",
    ParseErrorKind.PARSE_YEAR: "Was that a number for the year? I don't get it :c",
    ParseErrorKind.PARSE_MONTH: "Was that a number for the month? I don't get it :c",
    ParseErrorKind.PARSE_DAY: "Was that a number for the day? I don't get it :c",
    ParseErrorKind.INVALID_DATE: "This date is invalid!",
    ParseErrorKind.INVALID_MONTH: "This month is invalid! There is no more of them after December~",
    ParseErrorKind.INVALID_DAY: "This day is invalid! There are never more than 31 days~",
    ParseErrorKind.PARSE_HOUR: "Was that a number for the hours? I don't get it :c",
    ParseErrorKind.PARSE_MIN: "Was that a number for the minutes? I don't get it :c",
    ParseErrorKind.PARSE_SEC: "Was that a number for the seconds? I don't get it :c",
    ParseErrorKind.INVALID_HOUR: "This hour is invalid! I don't know how to count after 23, tehe :P",
    ParseErrorKind.INVALID_MIN: "This minute is invalid!",
    ParseErrorKind.INVALID_SEC: "This second is invalid!",
}


# =============================================================================
# Response builders
# =============================================================================


def format_parse_error(error: DateTimeParseError) -> str:
    """User-facing explanation of a rejected time expression, with format help."""
    message = PARSE_ERROR_MESSAGES[error.kind]
    if error.cause is not None:
        message += f"\n`{error.cause}`"
    return message + FORMAT_HELP


def create_reminder(
    store: ReminderStore,
    now: datetime,
    owner: int,
    destination: int,
    time_text: str,
    message: str,
) -> tuple[Optional[Reminder], str]:
    """
    Parse the time and store a reminder.

    Args:
        store: Reminder store
        now: Current UTC time
        owner: Discord user ID of the invoker
        destination: Channel ID the reminder will be posted in
        time_text: Raw time expression
        message: Reminder body

    Returns:
        Tuple of (created reminder or None, response text)
    """
    try:
        parsed = parse_time_expression(now, time_text)
    except DateTimeParseError as e:
        return None, format_parse_error(e)

    if not is_in_future(now, parsed):
        return None, NO_TIME_MACHINE

    reminder = store.insert(parsed.timestamp, owner, destination, message)

    if parsed.is_relative:
        return reminder, f"Okie, will remind you <t:{reminder.due_at}:R> ~"
    return reminder, f"Okie, will remind you on <t:{reminder.due_at}:F> ~"


def sanitize_preview(body: str, max_len: int = 80, truncate_len: int = 37) -> str:
    """Shorten a reminder body and keep it from breaking inline code display."""
    if len(body) > max_len:
        body = body[:truncate_len] + "..."
    body = body.replace("`", BACKTICK_LOOKALIKE)
    return body.replace("\n", " ").replace("\t", " ")


def list_reminders_text(store: ReminderStore, config: BotConfig, owner: int) -> str:
    """The /myreminders overview for one user."""
    total = store.count(owner)
    if total == 0:
        return "You don't have any reminders~"

    if total <= config.list_limit:
        content = "Here are all your reminders~\n"
    else:
        content = (
            f"Wow, you have more than {config.list_limit} reminders! "
            "Here are your oldest ones...\n"
        )

    for rem in store.list_reminders(owner, config.list_limit):
        preview = sanitize_preview(rem.body, config.preview_max_len, config.preview_truncate_len)
        content += f"\n- `{rem.id}` <t:{rem.due_at}:F> in <#{rem.destination}> `{preview}`"

    return content


def show_reminder_text(store: ReminderStore, owner: int, reminder_id: int) -> str:
    """A single reminder with its full body."""
    rem = store.find(owner, reminder_id)
    if rem is None:
        return NO_SUCH_REMINDER
    return (
        f"Here's your reminder~\n`{rem.id}` <t:{rem.due_at}:F> in <#{rem.destination}>\n\n"
        f"{rem.body}"
    )


def delete_reminders_text(store: ReminderStore, owner: int, reminder_id: Optional[int]) -> str:
    """Delete one reminder, or all of the user's when no ID is given."""
    if reminder_id is not None:
        if store.delete_one(owner, reminder_id):
            return f"Deleted reminder `{reminder_id}`~"
        return NO_SUCH_REMINDER

    count = store.delete_all(owner)
    if count == 0:
        return "You don't have any reminders~"
    plural = "" if count == 1 else "s"
    return f"Deleted {count} reminder{plural}~"


async def send_chunked_response(
    interaction: discord.Interaction, content: str, ephemeral: bool = False
) -> None:
    """Respond to an interaction, continuing in follow-ups past the length limit."""
    chunks = chunk_message(content)
    await interaction.response.send_message(chunks[0], ephemeral=ephemeral)
    for chunk in chunks[1:]:
        await interaction.followup.send(chunk, ephemeral=ephemeral)


# =============================================================================
# Cog
# =============================================================================


class ReminderCommands(commands.Cog):
    """
    Slash commands for reminder management.

    Commands:
    - /remindme - Create a new reminder
    - /myreminders - List, show or delete your reminders
    """

    def __init__(self, bot: commands.Bot, store: ReminderStore, config: BotConfig):
        self.bot = bot
        self.store = store
        self.config = config

    # =========================================================================
    # /remindme
    # =========================================================================

    @app_commands.command(
        name="remindme",
        description="I'll remind you whatever you want later~ ♡",
    )
    @app_commands.describe(
        time="Duration like 1d, 3h 10m, 5s, or specific date (UTC) like 2027-06-10 12:23:00",
        message="Content of the reminder",
    )
    async def remindme(self, interaction: discord.Interaction, time: str, message: str):
        """Create a new reminder."""
        try:
            reminder, content = create_reminder(
                self.store,
                utc_now(),
                owner=interaction.user.id,
                destination=interaction.channel_id,
                time_text=time,
                message=message,
            )
        except ReminderStoreError:
            logger.warning(f"Could not store reminder for user {interaction.user.id}")
            content = STORE_FAILURE
        else:
            if reminder is None:
                logger.info(f"Rejected time {time!r} from user {interaction.user.id}")

        await send_chunked_response(interaction, content)

    # =========================================================================
    # /myreminders
    # =========================================================================

    @app_commands.command(
        name="myreminders",
        description="I'll list all your reminders~ ♡",
    )
    @app_commands.rename(reminder_id="id")
    @app_commands.describe(
        reminder_id="ID of the reminder you want to see (all if not specified)",
        delete="Delete the reminder with this ID (all your reminders if no ID is given)",
    )
    async def myreminders(
        self,
        interaction: discord.Interaction,
        reminder_id: Optional[int] = None,
        delete: bool = False,
    ):
        """List, show or delete your reminders."""
        user_id = interaction.user.id

        if delete:
            try:
                content = delete_reminders_text(self.store, user_id, reminder_id)
            except ReminderStoreError:
                logger.warning(f"Could not delete reminders for user {user_id}")
                content = STORE_FAILURE
        elif reminder_id is not None:
            content = show_reminder_text(self.store, user_id, reminder_id)
        else:
            content = list_reminders_text(self.store, self.config, user_id)

        await send_chunked_response(interaction, content, ephemeral=True)
