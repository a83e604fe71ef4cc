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

"""Split long texts into Discord-sized messages."""

# Discord message length limit
DISCORD_MAX_LENGTH = 2000


def chunk_message(content: str, limit: int = DISCORD_MAX_LENGTH) -> list[str]:
    """Split at paragraph, line, sentence, or word boundaries.

    Falls back to a hard cut when no boundary exists in the second half
    of the window. Always returns at least one chunk.
    """
    if len(content) <= limit:
        return [content]

    chunks = []
    remaining = content

    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break

        # Find best break point (prefer paragraph > line > sentence > word)
        break_at = limit

        para_idx = remaining.rfind("\n\n", 0, limit)
        if para_idx > limit // 2:
            break_at = para_idx + 2
        else:
            newline_idx = remaining.rfind("\n", 0, limit)
            if newline_idx > limit // 2:
                break_at = newline_idx + 1
            else:
                for punct in [". ", "! ", "? "]:
                    punct_idx = remaining.rfind(punct, 0, limit)
                    if punct_idx > limit // 2:
                        break_at = punct_idx + len(punct)
                        break
                else:
                    space_idx = remaining.rfind(" ", 0, limit)
                    if space_idx > limit // 2:
                        break_at = space_idx + 1

        chunk = remaining[:break_at].rstrip()
        remaining = remaining[break_at:].lstrip()
        if chunk:
            chunks.append(chunk)

    return chunks or [""]
