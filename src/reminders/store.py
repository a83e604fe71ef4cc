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
Reminder Store Module

Owns the queue of pending reminders, sorted by due time, and keeps it
mirrored in a binary file that is rewritten after every mutation.

File layout (little-endian):

    b"AICR"  u32 version
    u64 count
    count x { i64 id, i64 due_at, u64 owner, u64 destination,
              u64 body_len, body_len bytes of UTF-8 }

Files without the magic prefix are read as the older untagged layout,
which has the same records without the header.
"""

import bisect
import io
import logging
import os
import struct
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Union

logger = logging.getLogger("aichan.reminders.store")

MAGIC = b"AICR"
FORMAT_VERSION = 1

_VERSION = struct.Struct("<I")
_COUNT = struct.Struct("<Q")
_RECORD_HEAD = struct.Struct("<qqQQQ")


@dataclass(frozen=True)
class Reminder:
    """A scheduled reminder message."""

    id: int
    due_at: int  # Unix seconds, UTC
    owner: int  # Discord user ID
    destination: int  # Discord channel ID
    body: str


class ReminderStoreError(Exception):
    """Raised when reminders cannot be read from or written to disk."""

    pass


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


# =============================================================================
# Binary codec
# =============================================================================


def encode_reminders(reminders: list[Reminder]) -> bytes:
    """Serialize reminders in the current tagged format."""
    buf = io.BytesIO()
    buf.write(MAGIC)
    buf.write(_VERSION.pack(FORMAT_VERSION))
    buf.write(_COUNT.pack(len(reminders)))
    for rem in reminders:
        body = rem.body.encode("utf-8")
        buf.write(_RECORD_HEAD.pack(rem.id, rem.due_at, rem.owner, rem.destination, len(body)))
        buf.write(body)
    return buf.getvalue()


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ReminderStoreError(
            f"Reminder file truncated: wanted {size} bytes, got {len(data)}"
        )
    return data


def _read_records(stream: BinaryIO) -> list[Reminder]:
    (count,) = _COUNT.unpack(_read_exact(stream, _COUNT.size))
    reminders = []
    for _ in range(count):
        rem_id, due_at, owner, destination, body_len = _RECORD_HEAD.unpack(
            _read_exact(stream, _RECORD_HEAD.size)
        )
        try:
            body = _read_exact(stream, body_len).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ReminderStoreError(f"Reminder {rem_id} has an invalid UTF-8 body: {e}") from e
        reminders.append(Reminder(rem_id, due_at, owner, destination, body))
    return reminders


def decode_reminders(data: bytes) -> list[Reminder]:
    """
    Deserialize reminders from either the tagged or the legacy layout.

    Raises:
        ReminderStoreError: On truncated, corrupt or unsupported data
    """
    stream = io.BytesIO(data)

    if data[: len(MAGIC)] == MAGIC:
        stream.seek(len(MAGIC))
        (version,) = _VERSION.unpack(_read_exact(stream, _VERSION.size))
        if version != FORMAT_VERSION:
            raise ReminderStoreError(f"Unsupported reminder file version {version}")

    reminders = _read_records(stream)

    trailing = len(data) - stream.tell()
    if trailing:
        raise ReminderStoreError(f"Reminder file has {trailing} unexpected trailing bytes")

    return reminders


# =============================================================================
# Store
# =============================================================================


class ReminderStore:
    """
    Time-ordered reminder queue with write-through persistence.

    All access to the queue goes through these methods. Reads share the
    lock; mutations hold it exclusively, including while the file is
    rewritten, so the file always matches the last completed mutation.
    """

    def __init__(self, path: Union[str, Path], reminders: Optional[list[Reminder]] = None):
        """
        Initialize the store.

        Args:
            path: File the queue is persisted to
            reminders: Initial queue, must already be sorted by due time
        """
        self.path = Path(path)
        self._queue: list[Reminder] = list(reminders or [])
        self._keys: list[int] = [rem.due_at for rem in self._queue]
        self._next_id = max((rem.id for rem in self._queue), default=0) + 1
        self._lock = ReadWriteLock()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ReminderStore":
        """
        Load the store from disk.

        A missing file yields an empty store.

        Raises:
            ReminderStoreError: If the file exists but cannot be decoded
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            logger.info(f"No reminder file at {path}, starting empty")
            return cls(path)
        except OSError as e:
            raise ReminderStoreError(f"Cannot read reminder file {path}: {e}") from e

        reminders = decode_reminders(data)
        # Older files may not be strictly ordered
        reminders.sort(key=lambda rem: rem.due_at)

        store = cls(path, reminders)
        logger.info(f"Loaded {len(reminders)} reminder(s) from {path}, next id {store._next_id}")
        return store

    def _persist(self) -> None:
        """Atomically rewrite the file. Caller must hold the write lock."""
        try:
            data = encode_reminders(self._queue)
        except struct.error as e:
            raise ReminderStoreError(f"Cannot encode reminders: {e}") from e

        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise
        except OSError as e:
            raise ReminderStoreError(f"Cannot write reminder file {self.path}: {e}") from e

    def _commit(self, previous: list[Reminder], previous_next_id: int) -> None:
        """Persist, restoring the previous queue if the write fails."""
        try:
            self._persist()
        except ReminderStoreError:
            self._queue = previous
            self._keys = [rem.due_at for rem in previous]
            self._next_id = previous_next_id
            logger.error("Reminder file write failed, mutation rolled back", exc_info=True)
            raise

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert(self, due_at: int, owner: int, destination: int, body: str) -> Reminder:
        """
        Create a reminder and persist the queue before returning.

        Args:
            due_at: Unix seconds, UTC
            owner: Discord user ID
            destination: Discord channel ID
            body: Reminder text

        Returns:
            The stored reminder with its assigned ID
        """
        with self._lock.write():
            previous, previous_next_id = list(self._queue), self._next_id

            reminder = Reminder(
                id=self._next_id,
                due_at=due_at,
                owner=owner,
                destination=destination,
                body=body,
            )
            self._next_id += 1

            idx = bisect.bisect_left(self._keys, due_at)
            self._queue.insert(idx, reminder)
            self._keys.insert(idx, due_at)

            self._commit(previous, previous_next_id)

        logger.info(f"Created reminder {reminder.id} for user {owner}: due={due_at}")
        return reminder

    def delete(self, predicate: Callable[[Reminder], bool]) -> int:
        """
        Remove every reminder matching the predicate.

        Returns:
            Number of reminders removed
        """
        with self._lock.write():
            kept = [rem for rem in self._queue if not predicate(rem)]
            removed = len(self._queue) - len(kept)
            if removed:
                previous = self._queue
                self._queue = kept
                self._keys = [rem.due_at for rem in kept]
                self._commit(previous, self._next_id)
        return removed

    def delete_one(self, owner: int, reminder_id: int) -> bool:
        """Delete a reminder if the user owns it."""
        deleted = self.delete(lambda rem: rem.owner == owner and rem.id == reminder_id) > 0
        if deleted:
            logger.info(f"Deleted reminder {reminder_id} for user {owner}")
        return deleted

    def delete_all(self, owner: int) -> int:
        """Delete all of a user's reminders."""
        count = self.delete(lambda rem: rem.owner == owner)
        logger.info(f"Deleted {count} reminder(s) for user {owner}")
        return count

    def pop_front_if_due(self, now: int) -> Optional[Reminder]:
        """
        Remove and return the earliest reminder if it is due.

        Args:
            now: Unix seconds, UTC

        Returns:
            The popped reminder, or None if the queue is empty or not yet due
        """
        with self._lock.write():
            if not self._queue or self._queue[0].due_at > now:
                return None
            previous = list(self._queue)
            reminder = self._queue.pop(0)
            del self._keys[0]
            self._commit(previous, self._next_id)
        return reminder

    # =========================================================================
    # Reads
    # =========================================================================

    def peek_front(self) -> Optional[Reminder]:
        """The next reminder to fire, without removing it."""
        with self._lock.read():
            return self._queue[0] if self._queue else None

    def list_reminders(self, owner: int, limit: int) -> list[Reminder]:
        """Up to `limit` of a user's reminders, soonest first."""
        result = []
        with self._lock.read():
            for rem in self._queue:
                if len(result) >= limit:
                    break
                if rem.owner == owner:
                    result.append(rem)
        return result

    def find(self, owner: int, reminder_id: int) -> Optional[Reminder]:
        """A single reminder owned by the user, or None."""
        with self._lock.read():
            for rem in self._queue:
                if rem.owner == owner and rem.id == reminder_id:
                    return rem
        return None

    def count(self, owner: Optional[int] = None) -> int:
        """Number of pending reminders, optionally for a single user."""
        with self._lock.read():
            if owner is None:
                return len(self._queue)
            return sum(1 for rem in self._queue if rem.owner == owner)

    def snapshot(self) -> list[Reminder]:
        """Copy of the whole queue in due order."""
        with self._lock.read():
            return list(self._queue)
