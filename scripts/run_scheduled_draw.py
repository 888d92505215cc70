"""Cron entry point: settle the current round if anyone has bet.

Only bets placed within DRAW_WINDOW_HOURS take part unless --include-old is
given. Exits 0 when there was nothing to draw.

Usage:
  python scripts/run_scheduled_draw.py
  python scripts/run_scheduled_draw.py --include-old
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from collections.abc import Sequence

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from charity_lottery import create_app
from charity_lottery.db import session_scope
from charity_lottery.errors import DrawExecutionFailed
from charity_lottery.extensions import lottery_services
from charity_lottery.models.base import utcnow
from charity_lottery.repositories.bet_repository import BetRepository

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the scheduled lottery draw")
    parser.add_argument("--include-old", action="store_true", help="also settle bets older than the draw window")
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        services = lottery_services()
        since = None if args.include_old else utcnow() - services.rules.draw_window

        with session_scope(app) as session:
            pending = BetRepository().count_pending(session, since=since)
            if pending == 0:
                logger.info("No pending bets, skipping draw")
                return 0

            try:
                result = services.engine.execute_draw(session, restrict_to_recent=not args.include_old)
            except DrawExecutionFailed as exc:
                logger.error("Scheduled draw failed: %s", exc.reason)
                return 1

    logger.info(
        "Draw %s: number %s, %s winner(s), pool %s",
        result.draw_id,
        result.winning_number,
        len(result.winners),
        result.total_pool,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
