"""Landlord wallet ledger.

``wallet_transactions`` is the authoritative, append-only log. The balance
columns on ``wallets`` are a cached projection; every change to them is a
single atomic UPDATE made in the same transaction as the log row it mirrors.
"""
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hostellink.core.config import settings
from hostellink.core.errors import InsufficientBalance, InvalidAmount, NotFound, StorageFailure
from hostellink.core.identity import Identity, LANDLORD
from hostellink.db.uow import unit_of_work
from hostellink.models.wallet import Wallet
from hostellink.models.wallet_transaction import WalletTransaction, DEPOSIT_RELEASE, WITHDRAWAL
from hostellink.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def get_wallet(db: Session, landlord_id: str) -> Wallet | None:
    return db.execute(select(Wallet).where(Wallet.landlord_id == landlord_id)).scalar_one_or_none()


def get_or_create_wallet(db: Session, landlord_id: str) -> Wallet:
    """Wallets are created lazily on first access. Commits the new row."""
    w = get_wallet(db, landlord_id)
    if w:
        return w
    w = Wallet(id=str(uuid.uuid4()), landlord_id=landlord_id, balance=0, total_earned=0, total_withdrawn=0)
    db.add(w)
    try:
        db.commit()
    except IntegrityError:
        # another request created it first (unique landlord_id)
        db.rollback()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("storage failure creating wallet for %s", landlord_id)
        raise StorageFailure() from e
    return _reload_wallet(db, landlord_id)


def _reload_wallet(db: Session, landlord_id: str) -> Wallet:
    w = get_wallet(db, landlord_id)
    if not w:
        raise NotFound("Wallet not found")
    return w


def _ensure_wallet_in_tx(db: Session, landlord_id: str) -> Wallet:
    """Wallet row for use inside an open transaction (no commit)."""
    w = get_wallet(db, landlord_id)
    if w:
        return w
    w = Wallet(id=str(uuid.uuid4()), landlord_id=landlord_id, balance=0, total_earned=0, total_withdrawn=0)
    db.add(w)
    db.flush()
    return w


def credit(db: Session, landlord_id: str, amount: int, description: str, booking_id: str | None = None) -> WalletTransaction:
    """Record a deposit release. Only called from the escrow release transition, inside its transaction."""
    if amount <= 0:
        raise InvalidAmount()
    w = _ensure_wallet_in_tx(db, landlord_id)
    txn = WalletTransaction(
        id=str(uuid.uuid4()),
        wallet_id=w.id,
        type=DEPOSIT_RELEASE,
        amount=int(amount),
        description=description,
        booking_id=booking_id,
    )
    db.add(txn)
    db.execute(
        update(Wallet)
        .where(Wallet.id == w.id)
        .values(balance=Wallet.balance + amount, total_earned=Wallet.total_earned + amount)
        .execution_options(synchronize_session=False)
    )
    db.flush()
    logger.info("wallet %s credited %s for booking %s", w.id, amount, booking_id)
    return txn


def withdraw(db: Session, actor: Identity, amount: int) -> Wallet:
    actor.require(LANDLORD)
    if amount is None or amount <= 0:
        raise InvalidAmount()
    w = get_or_create_wallet(db, actor.user_id)
    cur = settings.CURRENCY_LABEL

    with unit_of_work(db, "withdraw"):
        res = db.execute(
            update(Wallet)
            .where(Wallet.id == w.id, Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount, total_withdrawn=Wallet.total_withdrawn + amount)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise InsufficientBalance()
        db.add(WalletTransaction(
            id=str(uuid.uuid4()),
            wallet_id=w.id,
            type=WITHDRAWAL,
            amount=-int(amount),
            description=f"Withdrawal of {cur} {amount:,} to M-Pesa",
        ))
        log_audit(db, actor.user_id, "wallet.withdrawal", "wallet", w.id, {"amount": amount})

    db.refresh(w)
    logger.info("wallet %s withdrawal %s, balance now %s", w.id, amount, w.balance)
    return w


def list_transactions(db: Session, wallet_id: str, limit: int | None = None) -> list[WalletTransaction]:
    """Most recent first, bounded page."""
    if limit is None:
        limit = settings.WALLET_PAGE_SIZE
    limit = max(1, min(int(limit), settings.WALLET_PAGE_SIZE_MAX))
    return (
        db.query(WalletTransaction)
        .filter(WalletTransaction.wallet_id == wallet_id)
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .limit(limit)
        .all()
    )


@dataclass(frozen=True)
class Reconciliation:
    wallet_id: str
    balance: int
    ledger_sum: int
    earned_minus_withdrawn: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.ledger_sum == self.earned_minus_withdrawn


def reconcile_wallet(db: Session, wallet: Wallet) -> Reconciliation:
    ledger_sum = db.execute(
        select(func.coalesce(func.sum(WalletTransaction.amount), 0)).where(WalletTransaction.wallet_id == wallet.id)
    ).scalar_one()
    r = Reconciliation(
        wallet_id=wallet.id,
        balance=int(wallet.balance),
        ledger_sum=int(ledger_sum),
        earned_minus_withdrawn=int(wallet.total_earned) - int(wallet.total_withdrawn),
    )
    if not r.consistent:
        logger.warning("wallet %s inconsistent: balance=%s ledger=%s earned-withdrawn=%s",
                       wallet.id, r.balance, r.ledger_sum, r.earned_minus_withdrawn)
    return r


def reconcile_all(db: Session) -> dict:
    results = [reconcile_wallet(db, w) for w in db.query(Wallet).all()]
    bad = [r.wallet_id for r in results if not r.consistent]
    return {"checked": len(results), "inconsistent": bad}
