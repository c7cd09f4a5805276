from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config


ROOT = Path(__file__).resolve().parent


def get_alembic_config() -> Config:
    return Config(str(ROOT / "alembic.ini"))


def cmd_upgrade(revision: str = "head") -> None:
    command.upgrade(get_alembic_config(), revision)


def cmd_downgrade(revision: str) -> None:
    command.downgrade(get_alembic_config(), revision)


def cmd_revision(message: str, autogenerate: bool) -> None:
    command.revision(get_alembic_config(), message=message, autogenerate=autogenerate)


def main() -> None:
    parser = argparse.ArgumentParser(description="Flaia database migrations")
    subparsers = parser.add_subparsers(dest="command")

    upgrade_parser = subparsers.add_parser("upgrade", help="Apply migrations")
    upgrade_parser.add_argument("revision", nargs="?", default="head")

    downgrade_parser = subparsers.add_parser("downgrade", help="Revert migrations")
    downgrade_parser.add_argument("revision", help="Revision id or -1, -2, ...")

    revision_parser = subparsers.add_parser("revision", help="Create a new revision")
    revision_parser.add_argument("-m", "--message", required=True)
    revision_parser.add_argument(
        "--autogenerate",
        action="store_true",
        help="Diff the models against the database",
    )

    subparsers.add_parser("current", help="Show the applied revision")
    subparsers.add_parser("history", help="List revisions")

    args = parser.parse_args()

    if args.command == "upgrade" or args.command is None:
        cmd_upgrade(getattr(args, "revision", "head"))
    elif args.command == "downgrade":
        cmd_downgrade(args.revision)
    elif args.command == "revision":
        cmd_revision(args.message, args.autogenerate)
    elif args.command == "current":
        command.current(get_alembic_config(), verbose=True)
    elif args.command == "history":
        command.history(get_alembic_config())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
