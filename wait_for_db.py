import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

logger = logging.getLogger("wait_for_db")


def wait(database_url: str | None = None, timeout_s: int | None = None) -> None:
    """Block until Postgres accepts connections. Non-Postgres URLs return immediately."""
    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise SystemExit("DATABASE_URL is not set")
    if not database_url.startswith(("postgres://", "postgresql")):
        return
    if timeout_s is None:
        timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))

    # SQLAlchemy URL may carry a driver suffix
    url = database_url.replace("postgresql+psycopg2://", "postgresql://")
    p = urlparse(url)
    params = dict(
        host=p.hostname or "db",
        port=p.port or 5432,
        user=p.username or "stepperslife",
        password=p.password or "stepperslife",
        dbname=(p.path or "/stepperslife").lstrip("/") or "stepperslife",
    )

    logger.info("waiting for Postgres at %s:%s db=%s (timeout=%ss)", params["host"], params["port"], params["dbname"], timeout_s)
    start = time.time()
    while True:
        try:
            psycopg2.connect(**params).close()
            logger.info("Postgres is ready")
            return
        except psycopg2.OperationalError:
            if time.time() - start > timeout_s:
                logger.error("timed out waiting for Postgres")
                raise
            time.sleep(1)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    wait()
