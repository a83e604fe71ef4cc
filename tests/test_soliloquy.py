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

"""Tests for soliloquy channel moderation."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from soliloquy import (
    NOTICE_DELETE_AFTER,
    NOTICE_MAX_LENGTH,
    OOPS_PING,
    OOPS_REPLY,
    PER_CHANNEL_RULES,
    SoliloquyModeration,
    build_notice,
    find_violation,
    is_meta_message,
)

SOLILOQUY = 1137703122408575077
BOT_ID = 999


def make_message(content="hello", mentions=(), reply=False, channel_id=SOLILOQUY, author_id=1):
    message = MagicMock()
    message.id = 42
    message.content = content
    message.mentions = list(mentions)
    message.type = discord.MessageType.reply if reply else discord.MessageType.default
    message.channel.id = channel_id
    message.channel.send = AsyncMock()
    message.author.id = author_id
    message.author.mention = f"<@{author_id}>"
    message.author.send = AsyncMock()
    message.delete = AsyncMock()
    return message


def http_error():
    return discord.HTTPException(MagicMock(status=403, reason="Forbidden"), "nope")


@pytest.fixture
def cog():
    bot = MagicMock()
    bot.user.id = BOT_ID
    return SoliloquyModeration(bot, SOLILOQUY)


class TestRules:
    def test_plain_message_is_fine(self):
        assert find_violation(make_message()) is None

    def test_mention(self):
        assert find_violation(make_message(mentions=[MagicMock()])) == OOPS_PING

    def test_mention_wins_over_reply(self):
        message = make_message(mentions=[MagicMock()], reply=True)
        assert find_violation(message) == OOPS_PING

    def test_reply(self):
        assert find_violation(make_message(reply=True)) == OOPS_REPLY

    def test_bracketed_reply_is_allowed(self):
        assert find_violation(make_message(content="[sorry, wrong channel]", reply=True)) is None

    def test_bracketed_mention_is_not_allowed(self):
        message = make_message(content="[hi]", mentions=[MagicMock()])
        assert find_violation(message) == OOPS_PING

    @pytest.mark.parametrize("content,expected", [
        ("[brb]", True),
        ("[]", True),
        ("[brb", False),
        ("brb]", False),
        (" [brb]", False),
        ("", False),
    ])
    def test_meta_message(self, content, expected):
        assert is_meta_message(content) is expected


class TestNotice:
    def test_layout(self):
        notice = build_notice(OOPS_REPLY, "hi there")
        assert notice == (
            f"{OOPS_REPLY} {PER_CHANNEL_RULES}\n\n*Original message~*\n```\nhi there\n```"
        )

    def test_backticks_cannot_close_the_block(self):
        notice = build_notice(OOPS_PING, "```rm -rf```")
        body = notice.split("```\n", 1)[1].rsplit("\n```", 1)[0]
        assert "```" not in body
        assert body.replace("\u200b", "") == "```rm -rf```"

    def test_long_message_is_truncated(self):
        notice = build_notice(OOPS_PING, "x" * 5000)
        assert len(notice) <= NOTICE_MAX_LENGTH
        assert notice.endswith("...\n```")

    def test_fallback_fits_discord_limit(self):
        notice = build_notice(OOPS_PING, "`" * 3000)
        assert len(f"<@{2**64 - 1}> {notice}") <= 2000


class TestModeration:
    @pytest.mark.asyncio
    async def test_other_channel_ignored(self, cog):
        message = make_message(mentions=[MagicMock()], channel_id=1)
        await cog.on_message(message)
        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_own_messages_ignored(self, cog):
        message = make_message(mentions=[MagicMock()], author_id=BOT_ID)
        await cog.on_message(message)
        message.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clean_message_kept(self, cog):
        message = make_message()
        await cog.on_message(message)
        message.delete.assert_not_awaited()
        message.author.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_violation_deleted_and_dm_sent(self, cog):
        message = make_message(content="hey @you", mentions=[MagicMock()])
        await cog.on_message(message)

        message.delete.assert_awaited_once()
        message.author.send.assert_awaited_once_with(build_notice(OOPS_PING, "hey @you"))
        message.channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_closed_dms_fall_back_to_channel(self, cog):
        message = make_message(content="replying", reply=True, author_id=5)
        message.author.send.side_effect = http_error()
        await cog.on_message(message)

        message.channel.send.assert_awaited_once_with(
            f"<@5> {build_notice(OOPS_REPLY, 'replying')}",
            delete_after=NOTICE_DELETE_AFTER,
        )

    @pytest.mark.asyncio
    async def test_gives_up_quietly(self, cog):
        message = make_message(reply=True)
        message.delete.side_effect = http_error()
        message.author.send.side_effect = http_error()
        message.channel.send.side_effect = http_error()

        await cog.on_message(message)

        message.channel.send.assert_awaited_once()
