"""Command-line interface to a user's direct-message inbox.

Provides an argparse-based tool for listing conversation threads, opening
(marking read) a thread, replying, and starting a conversation.  Output
formats: table (default) or JSON.

Usage::

    python -m marketplace.cli --user USER_ID threads
    python -m marketplace.cli --user USER_ID read CONTACT_ID --format json
    python -m marketplace.cli --user USER_ID reply CONTACT_ID "Sounds good"
    python -m marketplace.cli --user USER_ID send RECEIVER_ID "Logo design" "Hi there"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from marketplace.app import configure_logging
from marketplace.config import get_settings
from marketplace.domain.errors import InvalidInputError
from marketplace.domain.models import ConversationThread, Notification
from marketplace.messaging.display import display_subject, format_time, initials
from marketplace.messaging.inbox import InboxService
from marketplace.notifications import NotificationLog
from marketplace.store.client import SupabaseMessageStore


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for inbox commands.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(description="Read and send marketplace direct messages")

    parser.add_argument("--user", type=str, required=True, help="Signed-in user id")
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Access token of the signed-in user (default: anon key)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("threads", help="List conversation threads")

    read = commands.add_parser("read", help="Show a thread and mark it read")
    read.add_argument("contact", type=str, help="Contact user id")

    reply = commands.add_parser("reply", help="Reply to a thread")
    reply.add_argument("contact", type=str, help="Contact user id")
    reply.add_argument("body", type=str, help="Reply text")

    send = commands.add_parser("send", help="Start a new conversation")
    send.add_argument("receiver", type=str, help="Receiver user id")
    send.add_argument("subject", type=str, help="Subject line")
    send.add_argument("body", type=str, help="Message text")

    return parser


def format_thread_table(threads: Sequence[ConversationThread], now: datetime) -> str:
    """Format threads as a human-readable table.

    Columns: initials, contact, last activity, unread count, last message.
    Long fields are truncated to fit reasonable terminal width.

    Args:
        threads: Threads in display order.
        now: Reference time for relative timestamps.

    Returns:
        Formatted table string with header row.
    """
    if not threads:
        return "No messages yet."

    headers = ["", "Contact", "When", "New", "Last message"]
    widths = [2, 24, 10, 4, 40]

    def truncate(value: str, width: int) -> str:
        if len(value) > width:
            return value[: width - 3] + "..."
        return value

    lines: list[str] = []
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for thread in threads:
        cells = [
            initials(thread.contact_name),
            truncate(thread.contact_name, widths[1]),
            format_time(thread.last_message_time, now),
            str(thread.unread_count) if thread.unread_count else "",
            truncate(thread.last_message.body.replace("\n", " "), widths[4]),
        ]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))

    return "\n".join(lines)


def format_conversation(thread: ConversationThread, current_user_id: str, now: datetime) -> str:
    """Format one thread's messages oldest first, marking the user's own as ``You``."""
    lines = [f"{thread.contact_name} ({len(thread.messages)} messages)", ""]
    for message in thread.messages:
        author = "You" if message.sender_id == current_user_id else thread.contact_name
        lines.append(f"[{format_time(message.created_at, now)}] {author}:")
        subject = display_subject(message)
        if subject:
            lines.append(f"  {subject}")
        lines.extend(f"  {line}" for line in message.body.splitlines() or [""])
    return "\n".join(lines)


def format_json(payload: Any) -> str:
    """Format *payload* as a pretty-printed JSON string."""
    return json.dumps(payload, indent=2, default=str)


def format_notifications(notifications: Sequence[Notification]) -> str:
    """Format notifications one per line as ``Title: description``."""
    return "\n".join(f"{n.title}: {n.description}" for n in notifications)


async def run(args: argparse.Namespace) -> int:
    """Execute the parsed command and print its output.

    Returns:
        The process exit code.
    """
    settings = get_settings()
    notifications = NotificationLog()
    store = SupabaseMessageStore.from_settings(settings, access_token=args.token)
    inbox = InboxService.from_settings(store, args.user, settings, notifier=notifications)
    now = datetime.now(tz=UTC)
    as_json = args.output_format == "json"
    exit_code = 0

    try:
        threads = await inbox.load()

        if args.command == "threads":
            if as_json:
                print(format_json([t.model_dump(mode="json") for t in threads]))
            else:
                print(format_thread_table(threads, now))
                print(f"\nUnread: {inbox.total_unread()}")

        elif args.command == "read":
            thread, result = await inbox.open_thread(args.contact)
            if thread is None and inbox.load_failed:
                exit_code = 1
            elif thread is None:
                print(f"No conversation with {args.contact}.")
                exit_code = 1
            elif as_json:
                print(format_json({
                    "thread": thread.model_dump(mode="json"),
                    "persisted_ids": list(result.persisted_ids),
                    "failed_ids": list(result.failed_ids),
                }))
            else:
                print(format_conversation(thread, args.user, now))
            if not result.fully_persisted:
                exit_code = 1

        elif args.command == "reply":
            exit_code = 0 if await inbox.send_reply(args.contact, args.body) else 1

        elif args.command == "send":
            sent = await inbox.send_message(args.receiver, args.subject, args.body)
            if sent:
                print(f"Message sent to {await inbox.receiver_name(args.receiver)}.")
            exit_code = 0 if sent else 1

    except InvalidInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 2
    finally:
        await store.aclose()

    collected = notifications.drain()
    if collected:
        print(format_notifications(collected), file=sys.stderr)
    return exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments, run the command, and exit with its status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(production=get_settings().production, stream=sys.stderr)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
