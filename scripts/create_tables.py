"""Create database tables in the configured database.

Reads DATABASE_URL from .env / environment and creates all registered ORM tables.
Beneficiaries can be registered in the same run.

Usage:
  python scripts/create_tables.py
  python scripts/create_tables.py --beneficiary red-cross="Red Cross" --beneficiary unicef=UNICEF
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from collections.abc import Sequence

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.orm import Session

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from charity_lottery.config import resolve_database_url
from charity_lottery.db import create_app_engine
from charity_lottery.models.base import Base
from charity_lottery.repositories.beneficiary_repository import BeneficiaryRepository

# Import models so they register with Base.metadata
from charity_lottery import models  # noqa: F401

logger = logging.getLogger(__name__)


def _parse_beneficiary(raw: str) -> tuple[str, str]:
    beneficiary_id, sep, name = raw.partition("=")
    if not sep or not beneficiary_id.strip() or not name.strip():
        raise argparse.ArgumentTypeError(f"expected ID=NAME, got {raw!r}")
    return beneficiary_id.strip(), name.strip()


def main(argv: Sequence[str] | None = None) -> int:
    """Create all ORM tables in the target database."""

    parser = argparse.ArgumentParser(description="Create lottery tables")
    parser.add_argument("--beneficiary", action="append", type=_parse_beneficiary, default=[], metavar="ID=NAME")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    # create_all() does not add indexes to existing tables.
    if engine.dialect.name == "postgresql":
        ddl = [
            "CREATE INDEX IF NOT EXISTS ix_bets_pending_number ON bets (winning_number, chosen_number)",
            "CREATE INDEX IF NOT EXISTS ix_bets_bettor_placed ON bets (bettor_id, placed_at)",
            "CREATE INDEX IF NOT EXISTS ix_bets_draw_id ON bets (draw_id)",
        ]
        with engine.begin() as conn:
            for stmt in ddl:
                conn.execute(text(stmt))

    repo = BeneficiaryRepository()
    with Session(engine) as session:
        for beneficiary_id, name in args.beneficiary:
            if repo.get_by_id(session, beneficiary_id) is not None:
                logger.info("Beneficiary %s already registered", beneficiary_id)
                continue
            repo.create(session, beneficiary_id, name)
            logger.info("Registered beneficiary %s (%s)", beneficiary_id, name)
        session.commit()

    logger.info("Tables created (or already exist).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
