#!/usr/bin/env python3
"""
Container entrypoint: wait for Postgres, apply migrations, seed demo data,
then exec uvicorn on hostellink.main:app.
"""
import os
import sys

import wait_for_db  # noqa: F401

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hostellink.core.config import settings


def migrate():
    cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")


def seed():
    # fresh engine: the app engine may have been created before the tables existed
    from hostellink.seed import run

    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    try:
        run(sessionmaker(autocommit=False, autoflush=False, bind=engine)())
    finally:
        engine.dispose()


if __name__ == "__main__":
    migrate()
    if os.getenv("SEED_DEMO_DATA", "1") != "0":
        seed()
    port = os.getenv("PORT", "8000")
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "hostellink.main:app", "--host", "0.0.0.0", "--port", port],
    )
