"""
Reminders Inspector CLI

Debug tool for reading the persisted reminder file without starting the bot.

Usage:
    # List all pending reminders
    python scripts/reminders_inspector.py list

    # List reminders for one user
    python scripts/reminders_inspector.py list --user-id 123456789

    # Show reminder file statistics
    python scripts/reminders_inspector.py stats

    # Inspect a specific reminder
    python scripts/reminders_inspector.py inspect --reminder-id 42

    # Export reminders to JSON
    python scripts/reminders_inspector.py export --output reminders.json

Reads REMINDERS_FILE (default ai-chan-reminders.bin) unless --file is given.
"""

import argparse
import json
import logging
import os
import sys
from collections import Counter
from datetime import datetime
from pathlib import Path

import pytz
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.store import Reminder, ReminderStore, ReminderStoreError  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def format_timestamp(ts: int) -> str:
    """Format a Unix timestamp for display."""
    return datetime.fromtimestamp(ts, pytz.UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def truncate(text: str, max_len: int = 80) -> str:
    """Truncate text with ellipsis."""
    text = text.replace("\n", " ")
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def reminder_to_dict(rem: Reminder) -> dict:
    return {
        "id": rem.id,
        "due_at": rem.due_at,
        "due_at_utc": format_timestamp(rem.due_at),
        "owner": rem.owner,
        "destination": rem.destination,
        "body": rem.body,
    }


def list_reminders(store: ReminderStore, user_id: int = None, verbose: bool = False):
    """List reminders, optionally for a single user."""
    reminders = store.snapshot()
    if user_id:
        reminders = [rem for rem in reminders if rem.owner == user_id]

    if not reminders:
        logger.info("No reminders found.")
        return

    logger.info(f"\n{'=' * 80}")
    logger.info(f"Found {len(reminders)} reminder(s)")
    logger.info(f"{'=' * 80}\n")

    for rem in reminders:
        logger.info(
            f"[{rem.id}] {format_timestamp(rem.due_at)}  user={rem.owner}  channel={rem.destination}"
        )
        if verbose:
            logger.info(f"    {rem.body}\n")
        else:
            logger.info(f"    {truncate(rem.body)}")


def show_stats(store: ReminderStore):
    """Show reminder file statistics."""
    reminders = store.snapshot()
    logger.info(f"\nFile: {store.path}")
    logger.info(f"Pending reminders: {len(reminders)}")
    if not reminders:
        return

    logger.info(f"Next due:  {format_timestamp(reminders[0].due_at)}")
    logger.info(f"Last due:  {format_timestamp(reminders[-1].due_at)}")
    logger.info(f"Highest ID: {max(rem.id for rem in reminders)}")

    logger.info("\nTop users:")
    for owner, count in Counter(rem.owner for rem in reminders).most_common(10):
        logger.info(f"  {owner}: {count}")


def inspect_reminder(store: ReminderStore, reminder_id: int):
    """Show all fields of one reminder."""
    for rem in store.snapshot():
        if rem.id == reminder_id:
            logger.info(json.dumps(reminder_to_dict(rem), indent=2, ensure_ascii=False))
            return
    logger.error(f"Reminder {reminder_id} not found")
    sys.exit(1)


def export_reminders(store: ReminderStore, output: str):
    """Export all reminders to a JSON file."""
    data = [reminder_to_dict(rem) for rem in store.snapshot()]
    with open(output, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info(f"Exported {len(data)} reminder(s) to {output}")


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Reminders Inspector CLI - Read the persisted reminder queue"
    )
    parser.add_argument(
        "--file",
        default=os.getenv("REMINDERS_FILE", "ai-chan-reminders.bin"),
        help="Reminder file path (default: $REMINDERS_FILE or ai-chan-reminders.bin)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List reminders")
    list_parser.add_argument("--user-id", type=int, help="Filter by user ID")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show full reminder bodies"
    )

    subparsers.add_parser("stats", help="Show reminder statistics")

    inspect_parser = subparsers.add_parser("inspect", help="Inspect a specific reminder")
    inspect_parser.add_argument("--reminder-id", type=int, required=True, help="Reminder ID")

    export_parser = subparsers.add_parser("export", help="Export reminders to JSON")
    export_parser.add_argument("--output", "-o", required=True, help="Output file path")

    args = parser.parse_args()

    if not Path(args.file).exists():
        logger.error(f"Reminder file not found: {args.file}")
        sys.exit(1)

    try:
        store = ReminderStore.load(args.file)
    except ReminderStoreError as e:
        logger.error(f"Could not read reminder file: {e}")
        sys.exit(1)

    if args.command == "list":
        list_reminders(store, user_id=args.user_id, verbose=args.verbose)
    elif args.command == "stats":
        show_stats(store)
    elif args.command == "inspect":
        inspect_reminder(store, args.reminder_id)
    elif args.command == "export":
        export_reminders(store, args.output)


if __name__ == "__main__":
    main()
