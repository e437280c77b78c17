"""Materialize upcoming games for every active recurring series.

Meant to run from cron or a scheduler once a day:

    python scripts/generate_recurring_games.py [--today YYYY-MM-DD]
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

sys.path.insert(0, ".")

from app.db import Database
from app.services.games import RecurrencePolicy, run_recurring_generation
from app.settings import get_settings


async def generate(today: date | None) -> int:
    settings = get_settings()
    database = Database(settings)
    await database.init()
    try:
        return await run_recurring_generation(
            database, RecurrencePolicy.from_settings(settings), today=today
        )
    finally:
        await database.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Date to generate from (defaults to the current UTC date)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level.upper())
    created = asyncio.run(generate(args.today))
    print(f"Generated {created} game(s)")


if __name__ == "__main__":
    main()
