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
Bot Configuration

Tunable parameters for reminders, self-mute and soliloquy moderation.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class BotConfig:
    """Configuration for the bot."""

    # Reminder persistence
    reminders_file: str = "ai-chan-reminders.bin"

    # /myreminders display
    list_limit: int = 100
    preview_max_len: int = 80  # Bodies longer than this get truncated
    preview_truncate_len: int = 37

    # /selfmute
    selfmute_default_minutes: float = 5.0

    # Moderated channel (no pings, no replies)
    soliloquy_channel_id: int = 1137703122408575077

    log_level: str = "INFO"

    def __post_init__(self):
        if self.list_limit < 1:
            raise ValueError(f"list_limit must be positive, got {self.list_limit}")
        if self.preview_truncate_len < 0 or self.preview_truncate_len > self.preview_max_len:
            raise ValueError(
                "preview_truncate_len must be between 0 and preview_max_len "
                f"(got {self.preview_truncate_len} / {self.preview_max_len})"
            )

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Create config from environment variables with defaults."""
        return cls(
            reminders_file=os.getenv("REMINDERS_FILE", "ai-chan-reminders.bin"),
            list_limit=int(os.getenv("REMINDERS_LIST_LIMIT", "100")),
            preview_max_len=int(os.getenv("REMINDERS_PREVIEW_MAX_LEN", "80")),
            preview_truncate_len=int(
                os.getenv("REMINDERS_PREVIEW_TRUNCATE_LEN", "37")
            ),
            selfmute_default_minutes=float(
                os.getenv("SELFMUTE_DEFAULT_MINUTES", "5")
            ),
            soliloquy_channel_id=int(
                os.getenv("SOLILOQUY_CHANNEL_ID", "1137703122408575077")
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
