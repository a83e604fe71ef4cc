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
Self-mute Slash Command

Lets members put themselves in timeout for a while.
"""

import logging
from datetime import timedelta
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot_config import BotConfig
from reminders import utc_now

logger = logging.getLogger("aichan.commands.selfmute")


class SelfMuteCommands(commands.Cog):
    """
    Slash commands for self-moderation.

    Commands:
    - /selfmute [minutes] - Time yourself out
    """

    def __init__(self, bot: commands.Bot, config: BotConfig):
        self.bot = bot
        self.config = config

    @app_commands.command(
        name="selfmute",
        description="Mute yourself for a specified amount of minutes :x",
    )
    @app_commands.guild_only()
    @app_commands.describe(
        minutes="Duration of time you want to be muted for (5 minutes if unspecified)",
    )
    async def selfmute(
        self,
        interaction: discord.Interaction,
        minutes: Optional[float] = None,
    ):
        """Time out the invoking member."""
        if minutes is None:
            minutes = self.config.selfmute_default_minutes

        content = await self._mute(interaction, minutes)
        await interaction.response.send_message(content, ephemeral=True)

    async def _mute(self, interaction: discord.Interaction, minutes: float) -> str:
        if minutes < 0:
            return "You can't mute yourself a negative amount of time?!"
        if minutes == 0:
            return "Muting yourself for zero seconds is a little bit silly :3c"

        member = interaction.user
        if interaction.guild is None or not isinstance(member, discord.Member):
            return "Command is only usable in a guild!"

        try:
            until = utc_now() + timedelta(minutes=minutes)
        except OverflowError:
            return "Unfortunately couldn't mute you :("

        try:
            await member.timeout(until, reason="Self-mute")
        except discord.HTTPException as e:
            logger.error(f"Cannot mute member {member.id}: {e}")
            return "Unfortunately couldn't mute you :("

        ts = int(until.timestamp())
        logger.info(f"Muted member {member.id} until {until.isoformat()}")
        return f"Muted until <t:{ts}:f> (<t:{ts}:R>). Have a nice rest~"
