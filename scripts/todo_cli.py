"""Command-line consumer for the todo sync engine.

Lists, adds and removes todos against the configured stores. Useful for
smoke-testing a Cosmos DB / Azure Blob Storage setup end to end.

Usage:
    python scripts/todo_cli.py list
    python scripts/todo_cli.py add "Buy milk" "2%" --attachment ./buy-milk.png
    python scripts/todo_cli.py remove <todo-id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from todo_sync import (
    Attachment,
    ListChange,
    SyncEngine,
    SyncResult,
    TodoForm,
    TodoSyncConfig,
    TodoSyncError,
    open_clients,
)
from todo_sync.logging_utils import NOISY_LOGGERS, configure_structured_logging

logger = logging.getLogger(__name__)


def _print_todos(change: ListChange) -> None:
    print(f"-- {len(change.records)} todo(s), version {change.version} ({change.change_type.value})")
    for todo in change.records:
        image = todo.display_image or (f"<unresolved {todo.image}>" if todo.image else "")
        print(f"{todo.id}  {todo.name:<24} {todo.description:<32} {image}")


def _report(result: SyncResult) -> int:
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if not result.success:
        print(f"error ({result.kind.value if result.kind else 'unknown'}): {result.error}", file=sys.stderr)
        return 1
    return 0


async def run(args: argparse.Namespace) -> int:
    config = TodoSyncConfig.load(args.config)
    async with open_clients(config) as (records, blobs):
        engine = SyncEngine(records, blobs, config=config.engine_config())
        engine.list_state.subscribe(_print_todos)

        if args.command == "list":
            return _report(await engine.refresh())

        if args.command == "add":
            attachment = await Attachment.from_path(args.attachment) if args.attachment else None
            form = TodoForm(name=args.name, description=args.description, attachment=attachment)
            return _report(await engine.create_todo(form))

        # remove: load the list first so the record's image key is known
        refreshed = await engine.refresh()
        if not refreshed.success:
            return _report(refreshed)
        record = engine.list_state.get(args.todo_id)
        if record is None:
            print(f"error: no todo with id {args.todo_id}", file=sys.stderr)
            return 1
        return _report(await engine.delete_todo(record))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Manage todos synchronized with the record and blob stores",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Local development stores (default)
    python scripts/todo_cli.py list

    # Azure stores (uses environment variables)
    TODO_SYNC_RECORD_BACKEND=cosmos \\
    TODO_SYNC_COSMOS_ENDPOINT="https://...documents.azure.com:443/" \\
    TODO_SYNC_BLOB_BACKEND=azure \\
    TODO_SYNC_BLOB_ACCOUNT_URL="https://....blob.core.windows.net" \\
    python scripts/todo_cli.py add "Buy milk" "2%" --attachment buy-milk.png
        """,
    )
    parser.add_argument("--config", type=Path, help="Settings file (default: ~/.todo_sync/settings.yaml)")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="Refresh and print all todos")
    add = commands.add_parser("add", help="Create a todo")
    add.add_argument("name")
    add.add_argument("description")
    add.add_argument("--attachment", type=Path, help="File to attach")
    remove = commands.add_parser("remove", help="Delete a todo and its attachment")
    remove.add_argument("todo_id")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    if args.json_logs:
        configure_structured_logging(level)
    else:
        logging.basicConfig(level=level, format="%(levelname)s  %(message)s")
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    try:
        exit_code = asyncio.run(run(args))
    except TodoSyncError as e:
        logger.error(f"{e.message} {e.details}")
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
