"""Seed the statutory BCEA leave types.

Run with:  python -m leave_engine.seed

Safe to re-run: leave types that already exist are left untouched.
"""

from __future__ import annotations

import asyncio
import sys

from sqlalchemy.exc import OperationalError

from leave_engine.db import dispose_engine, get_session_factory
from leave_engine.services.leave_type import seed_leave_types


async def main() -> None:
    print("=" * 60)
    print("  ESS Leave Engine: Leave Type Seed")
    print("=" * 60)

    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            created = await seed_leave_types(session)
    except OperationalError as exc:
        print("ERROR: Cannot connect to the database:", exc.orig)
        print("Make sure the database is running and migrated (alembic upgrade head)")
        sys.exit(1)
    finally:
        await dispose_engine()

    if created:
        for name in created:
            print(f"  [OK] {name}")
    else:
        print("\n  All leave types already present")

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
