#!/usr/bin/env python3
"""
Database migration helper for the publishing API.

Usage:
    python scripts/migrate.py upgrade | downgrade | history | current
    python scripts/migrate.py revision "message"
    python scripts/migrate.py reset [--yes]
"""

import argparse
import asyncio
import subprocess
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from app.core.database import create_tables, drop_tables

ALEMBIC_COMMANDS = {
    "upgrade": (["upgrade", "head"], "Running migrations"),
    "downgrade": (["downgrade", "-1"], "Rolling back last migration"),
    "history": (["history"], "Showing migration history"),
    "current": (["current"], "Showing current revision"),
}


def run_alembic(args, description):
    """Run an alembic command from the backend directory and report the result"""
    print(f"{description}...")
    try:
        result = subprocess.run(
            ["alembic", *args],
            cwd=backend_dir,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        print(f"{description} failed!")
        if e.stdout:
            print("STDOUT:", e.stdout)
        if e.stderr:
            print("STDERR:", e.stderr)
        return False

    if result.stdout:
        print(result.stdout)
    print(f"{description} completed successfully!")
    return True


async def reset_database(confirmed=False):
    """Drop and recreate every table"""
    if not confirmed:
        response = input("This deletes all projects, files and publications. Continue? (yes/no): ")
        if response.strip().lower() != "yes":
            print("Database reset cancelled.")
            return False

    await drop_tables()
    await create_tables()
    print("Database reset completed successfully!")
    return True


def main():
    parser = argparse.ArgumentParser(description="Publish API migration management")
    parser.add_argument("command", choices=[*ALEMBIC_COMMANDS, "revision", "reset"])
    parser.add_argument("message", nargs="?", default="auto migration")
    parser.add_argument("--yes", action="store_true", help="skip the reset confirmation")
    args = parser.parse_args()

    if args.command == "reset":
        ok = asyncio.run(reset_database(confirmed=args.yes))
    elif args.command == "revision":
        ok = run_alembic(["revision", "--autogenerate", "-m", args.message], "Creating migration")
    else:
        ok = run_alembic(*ALEMBIC_COMMANDS[args.command])

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
