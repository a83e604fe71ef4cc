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
Reminder Scheduler Module

Background task loop that fires due reminders.
Uses discord.ext.tasks, waking on every whole wall-clock second.

Delivery is at-most-once: a reminder is removed from the store (and the
file rewritten) before the message is sent, so a failed send loses the
reminder instead of repeating it.
"""

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import discord
from discord.ext import tasks

from utils.chunking import chunk_message

from .store import Reminder, ReminderStore, ReminderStoreError
from .time_parser import utc_now

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger("aichan.reminders.scheduler")


def seconds_until_next_second(now: datetime) -> float:
    """Delay from now to the next whole-second boundary."""
    return 1.0 - now.microsecond / 1_000_000


async def sleep_until_next_second() -> None:
    await asyncio.sleep(seconds_until_next_second(utc_now()))


def format_reminder_message(reminder: Reminder) -> str:
    return f"<@{reminder.owner}> Here's your reminder~\n\n{reminder.body}"


def reminder_allowed_mentions(reminder: Reminder) -> discord.AllowedMentions:
    """Only the owner gets pinged, whatever the body mentions."""
    return discord.AllowedMentions(
        everyone=False, roles=False, users=[discord.Object(id=reminder.owner)]
    )


class ReminderScheduler:
    """
    Background scheduler for delivering reminders.

    Each iteration drains every due reminder, then sleeps until the next
    second. stop() lets the current iteration finish.
    """

    def __init__(self, bot: "commands.Bot", store: ReminderStore):
        """
        Initialize the reminder scheduler.

        Args:
            bot: Discord bot instance
            store: Shared reminder store
        """
        self.bot = bot
        self.store = store

    def start(self) -> None:
        """Start the scheduler loop. No-op while a previous run is still winding down."""
        if self._check_reminders.is_running():
            logger.debug("Reminder scheduler already running")
            return
        self._check_reminders.start()
        logger.info("Reminder scheduler started")

    def stop(self) -> None:
        """Stop the scheduler loop after its current iteration."""
        if self._check_reminders.is_running():
            self._check_reminders.stop()
            logger.info("Reminder scheduler stopping")

    def is_running(self) -> bool:
        return self._check_reminders.is_running()

    @tasks.loop()
    async def _check_reminders(self) -> None:
        """Drain due reminders, then wait for the next second."""
        try:
            await self.process_due_reminders(int(utc_now().timestamp()))
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {e}", exc_info=True)

        await sleep_until_next_second()

    @_check_reminders.before_loop
    async def _before_check(self) -> None:
        """Wait for the bot to be ready before starting the loop."""
        await self.bot.wait_until_ready()
        logger.info(f"Reminder scheduler ready, {self.store.count()} reminder(s) pending")

    async def process_due_reminders(self, now: int) -> int:
        """
        Pop and deliver every reminder due at or before now.

        Args:
            now: Unix seconds, UTC

        Returns:
            Number of reminders popped
        """
        processed = 0
        while True:
            try:
                reminder = self.store.pop_front_if_due(now)
            except ReminderStoreError:
                # Rolled back by the store; retried on the next tick
                logger.error("Could not remove due reminder from the store", exc_info=True)
                break

            if reminder is None:
                break

            processed += 1
            await self._deliver_reminder(reminder)

        if processed:
            logger.info(f"Processed {processed} due reminder(s)")
        return processed

    async def _get_destination(self, channel_id: int) -> Optional[discord.abc.Messageable]:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        # Categories and forums have no send()
        if not hasattr(channel, "send"):
            return None
        return channel

    async def _deliver_reminder(self, reminder: Reminder) -> bool:
        """
        Send a single reminder to its channel.

        Failures are logged and the reminder is dropped.

        Returns:
            True if every message chunk was sent
        """
        try:
            channel = await self._get_destination(reminder.destination)
            if channel is None:
                logger.error(
                    f"Cannot send reminder {reminder.id}: channel {reminder.destination} "
                    "does not accept messages"
                )
                return False
            allowed_mentions = reminder_allowed_mentions(reminder)
            for chunk in chunk_message(format_reminder_message(reminder)):
                await channel.send(chunk, allowed_mentions=allowed_mentions)
        except discord.NotFound:
            logger.error(
                f"Cannot send reminder {reminder.id}: channel {reminder.destination} not found"
            )
            return False
        except discord.Forbidden:
            logger.error(
                f"Cannot send reminder {reminder.id}: no access to channel {reminder.destination}"
            )
            return False
        except discord.DiscordException as e:
            logger.error(f"Cannot send reminder {reminder.id}: {e}")
            return False

        logger.info(
            f"Delivered reminder {reminder.id} to user {reminder.owner} "
            f"in channel {reminder.destination}"
        )
        return True
