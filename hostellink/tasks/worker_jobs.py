import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError

from hostellink.db.session import SessionLocal
from hostellink.services.email_service import process_pending_emails
from hostellink.services.wallet_service import reconcile_all

logger = logging.getLogger(__name__)


def process_email_queue(limit: int = 50, db: Session | None = None) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    own = db is None
    db = db or SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        if own:
            db.close()


def reconcile_wallets(db: Session | None = None) -> dict:
    """Check every wallet's cached balance against its transaction log."""
    own = db is None
    db = db or SessionLocal()
    try:
        try:
            result = reconcile_all(db)
        except (ProgrammingError, OperationalError):
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        if result["inconsistent"]:
            logger.error("wallet reconciliation found %d inconsistent wallets", len(result["inconsistent"]))
        return result
    finally:
        if own:
            db.close()
