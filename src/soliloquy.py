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
Soliloquy Channel Moderation

#soliloquy is for monologues: messages that mention someone or reply to
another message are deleted and the author gets the rules explained.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from utils.chunking import DISCORD_MAX_LENGTH

logger = logging.getLogger("aichan.soliloquy")

OOPS_PING = "Please, do not mention people in #soliloquy!"
OOPS_REPLY = "Please, do not reply to other messages in #soliloquy!"
PER_CHANNEL_RULES = (
    "As per the channel rules, this channel is meant as a space where you can monologue, "
    "and interactions are thus forbidden."
)

# How long the in-channel fallback notice stays up
NOTICE_DELETE_AFTER = 7.0

# Leaves room for the author mention in the in-channel fallback
NOTICE_MAX_LENGTH = DISCORD_MAX_LENGTH - 40


def is_meta_message(content: str) -> bool:
    """Bracketed messages like "[brb]" are allowed even as replies."""
    return content.startswith("[") and content.endswith("]")


def find_violation(message: discord.Message) -> Optional[str]:
    """The rule a message breaks, or None."""
    if message.mentions:
        return OOPS_PING
    if message.type == discord.MessageType.reply and not is_meta_message(message.content):
        return OOPS_REPLY
    return None


def build_notice(violation: str, original_content: str, limit: int = NOTICE_MAX_LENGTH) -> str:
    """The explanation sent to the author, quoting their deleted message."""
    # Zero-width space keeps the original text from closing the code block
    sanitized = original_content.replace("`", "\u200b`")
    header = f"{violation} {PER_CHANNEL_RULES}\n\n*Original message~*\n```\n"
    room = limit - len(header) - len("\n```")
    if len(sanitized) > room:
        sanitized = sanitized[: max(room - 3, 0)] + "..."
    return f"{header}{sanitized}\n```"


class SoliloquyModeration(commands.Cog):
    """Enforces the no-interaction rule of the soliloquy channel."""

    def __init__(self, bot: commands.Bot, channel_id: int):
        self.bot = bot
        self.channel_id = channel_id

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.channel.id != self.channel_id:
            return

        if self.bot.user is not None and message.author.id == self.bot.user.id:
            return

        violation = find_violation(message)
        if violation is not None:
            await self._enforce(message, violation)

    async def _enforce(self, message: discord.Message, violation: str) -> None:
        """Delete the message and tell its author why."""
        try:
            await message.delete()
        except discord.HTTPException as e:
            logger.error(f"Could not delete message {message.id}: {e}")

        notice = build_notice(violation, message.content)

        try:
            await message.author.send(notice)
            logger.info(f"Sent a DM to {message.author}")
            return
        except discord.HTTPException as e:
            logger.debug(f"Could not DM {message.author}: {e}")

        try:
            await message.channel.send(
                f"{message.author.mention} {notice}",
                delete_after=NOTICE_DELETE_AFTER,
            )
            logger.info(f"Replied to {message.author}")
        except discord.HTTPException:
            logger.warning(f"Could not send a message to {message.author}. I give up :c")
