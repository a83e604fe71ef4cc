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

"""Tests for /selfmute."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bot_config import BotConfig
from commands.selfmute_commands import SelfMuteCommands

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=pytz.UTC)


@pytest.fixture
def cog():
    return SelfMuteCommands(MagicMock(), BotConfig())


@pytest.fixture
def member():
    member = MagicMock(spec=discord.Member)
    member.id = 555
    member.timeout = AsyncMock()
    return member


def make_interaction(user, in_guild=True):
    interaction = MagicMock()
    interaction.user = user
    interaction.guild = MagicMock() if in_guild else None
    interaction.response.send_message = AsyncMock()
    return interaction


def response_text(interaction):
    return interaction.response.send_message.await_args.args[0]


@pytest.fixture(autouse=True)
def frozen_now():
    with patch("commands.selfmute_commands.utc_now", return_value=NOW):
        yield


class TestSelfMute:
    @pytest.mark.asyncio
    async def test_default_duration(self, cog, member):
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction)

        until = NOW + timedelta(minutes=5)
        member.timeout.assert_awaited_once_with(until, reason="Self-mute")
        ts = int(until.timestamp())
        assert response_text(interaction) == (
            f"Muted until <t:{ts}:f> (<t:{ts}:R>). Have a nice rest~"
        )
        assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_fractional_minutes(self, cog, member):
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction, minutes=0.5)
        member.timeout.assert_awaited_once_with(NOW + timedelta(seconds=30), reason="Self-mute")

    @pytest.mark.asyncio
    async def test_negative(self, cog, member):
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction, minutes=-1.0)
        assert response_text(interaction) == "You can't mute yourself a negative amount of time?!"
        member.timeout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero(self, cog, member):
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction, minutes=0.0)
        assert response_text(interaction) == (
            "Muting yourself for zero seconds is a little bit silly :3c"
        )
        member.timeout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_outside_guild(self, cog):
        interaction = make_interaction(MagicMock(spec=discord.User), in_guild=False)
        await cog.selfmute.callback(cog, interaction, minutes=10.0)
        assert response_text(interaction) == "Command is only usable in a guild!"

    @pytest.mark.asyncio
    async def test_out_of_range(self, cog, member):
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction, minutes=1e20)
        assert response_text(interaction) == "Unfortunately couldn't mute you :("
        member.timeout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discord_refuses(self, cog, member):
        member.timeout.side_effect = discord.Forbidden(
            MagicMock(status=403, reason="Forbidden"), "Missing Permissions"
        )
        interaction = make_interaction(member)
        await cog.selfmute.callback(cog, interaction, minutes=10.0)
        assert response_text(interaction) == "Unfortunately couldn't mute you :("
