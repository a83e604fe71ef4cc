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
Thread Pin Context Menu

Lets the owner of a thread or forum post pin and unpin messages in it
without needing Manage Messages.
"""

import logging

import discord
from discord import app_commands
from discord.ext import commands

logger = logging.getLogger("aichan.commands.threadpin")

MENU_NAME = "Pin/unpin thread or post message"

THREAD_TYPES = (discord.ChannelType.public_thread, discord.ChannelType.private_thread)


class ThreadPinCommands(commands.Cog):
    """
    Message context menu for thread owners.

    Commands:
    - Pin/unpin thread or post message (right-click a message)
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        # Context menus cannot be declared inside a cog, register by hand
        self.ctx_menu = app_commands.ContextMenu(name=MENU_NAME, callback=self.toggle_pin)
        self.ctx_menu.guild_only = True
        self.bot.tree.add_command(self.ctx_menu)

    async def cog_unload(self):
        self.bot.tree.remove_command(self.ctx_menu.name, type=self.ctx_menu.type)

    async def _respond(self, interaction: discord.Interaction, content: str) -> None:
        await interaction.response.send_message(content, ephemeral=True)

    async def toggle_pin(self, interaction: discord.Interaction, message: discord.Message):
        """Pin the message, or unpin it if it is already pinned."""
        channel = interaction.channel
        if channel is None or channel.type not in THREAD_TYPES:
            await self._respond(interaction, "This command only works in threads or posts!")
            return

        if not isinstance(channel, discord.Thread):
            try:
                channel = await self.bot.fetch_channel(channel.id)
            except discord.HTTPException as e:
                logger.error(f"Could not fetch channel {channel.id}: {e}")
                await self._respond(interaction, "Could not get this channel info")
                return

        if channel.owner_id is None:
            logger.error(f"Thread {channel.id} has no owner")
            await self._respond(interaction, "Could not get this channel info")
            return

        if interaction.user.id != channel.owner_id:
            await self._respond(
                interaction,
                "Only the thread or post owner can pin messages using this command!",
            )
            return

        if message.pinned:
            try:
                await message.unpin(reason="Unpinning message on thread/post author request")
            except discord.HTTPException as e:
                logger.error(f"Could not unpin message {channel.id}/{message.id}: {e}")
                await self._respond(interaction, "Could not unpin the message")
                return
            await self._respond(interaction, "Message unpinned")
        else:
            try:
                await message.pin(reason="Pinning message on thread/post author request")
            except discord.HTTPException as e:
                logger.error(f"Could not pin message {channel.id}/{message.id}: {e}")
                await self._respond(interaction, "Could not pin the message")
                return
            await self._respond(interaction, "Message pinned")
