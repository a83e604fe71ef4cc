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
AI-chan Discord Bot

Maintains the Discord connection, registers the slash commands and runs
the reminder scheduler against the persisted reminder store.
"""

import asyncio
import logging
import os
import sys

import discord
from discord.ext import commands
from dotenv import load_dotenv

from bot_config import BotConfig
from commands.reminder_commands import ReminderCommands
from commands.selfmute_commands import SelfMuteCommands
from commands.threadpin_commands import ThreadPinCommands
from reminders import ReminderScheduler, ReminderStore, ReminderStoreError
from soliloquy import SoliloquyModeration

load_dotenv()

logger = logging.getLogger("aichan")

# View Channels, Send Messages, Manage Messages, Moderate Members
INVITE_PERMISSIONS = 1099511639040


class DiscordBot(commands.Bot):
    """Discord bot serving reminders, self-mute, thread pins and soliloquy moderation."""

    def __init__(self, config: BotConfig, store: ReminderStore):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        self.config = config
        self.store = store
        self.reminder_scheduler = ReminderScheduler(self, store)

    async def setup_hook(self):
        """Called when the bot is starting up."""
        await self.add_cog(ReminderCommands(self, self.store, self.config))
        await self.add_cog(SelfMuteCommands(self, self.config))
        await self.add_cog(ThreadPinCommands(self))
        await self.add_cog(SoliloquyModeration(self, self.config.soliloquy_channel_id))

        try:
            synced = await self.tree.sync()
            logger.info(f"Created {len(synced)} global application command(s)")
        except discord.HTTPException as e:
            logger.error(f"Could not create global application commands: {e}")

        self.reminder_scheduler.start()

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(
            "Ready! Invite link: https://discord.com/api/oauth2/authorize"
            f"?client_id={self.user.id}&permissions={INVITE_PERMISSIONS}"
            "&scope=bot+applications.commands"
        )

    async def close(self):
        """Clean up resources on shutdown."""
        self.reminder_scheduler.stop()
        await super().close()


async def main():
    """Load the reminders and run the bot until it is closed."""
    config = BotConfig.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("AI-chan is booting up...")

    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.error("DISCORD_BOT_TOKEN environment variable not set")
        logger.error("Please set it in your .env file")
        sys.exit(1)

    logger.info("Loading reminders...")
    try:
        store = ReminderStore.load(config.reminders_file)
    except ReminderStoreError as e:
        logger.critical(f"Could not load reminders: {e}")
        sys.exit(1)

    bot = DiscordBot(config, store)
    async with bot:
        await bot.start(token)


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
