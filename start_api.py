#!/usr/bin/env python3
"""
Wait for Postgres, apply migrations, seed, then exec uvicorn.
"""
import os
import sys

import wait_for_db

wait_for_db.wait()

from app.core.config import settings
from alembic.config import Config
from alembic import command

alembic_cfg = Config(os.path.join(os.path.dirname(__file__), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

from app.seed import run as run_seed
run_seed()

port = os.getenv("PORT", "8000")
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
