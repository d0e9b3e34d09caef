"""Block until Postgres accepts connections (used by start_api.py in containers)."""
import os
import time
from urllib.parse import urlparse

import psycopg2

DATABASE_URL = os.getenv("DATABASE_URL", "")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")

if DATABASE_URL.startswith("sqlite"):
    print("[wait_for_db] SQLite database, nothing to wait for.")
else:
    # SQLAlchemy URLs carry a driver suffix psycopg2 does not understand
    scheme, _, rest = DATABASE_URL.partition("://")
    p = urlparse("postgresql://" + rest)

    params = dict(
        host=p.hostname or "db",
        port=p.port or 5432,
        user=p.username or "hostellink",
        password=p.password or "hostellink",
        dbname=(p.path or "").lstrip("/") or "hostellink",
    )
    timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
    deadline = time.time() + timeout_s

    print(f"[wait_for_db] Waiting for Postgres at {params['host']}:{params['port']} db={params['dbname']} (timeout={timeout_s}s)")
    while True:
        try:
            psycopg2.connect(connect_timeout=3, **params).close()
            print("[wait_for_db] Postgres is ready.")
            break
        except psycopg2.OperationalError as e:
            if time.time() > deadline:
                print(f"[wait_for_db] Timed out waiting for DB. Last error: {e}")
                raise
            time.sleep(1)
