import pytest

from hostellink.core.errors import Forbidden, InsufficientBalance, InvalidAmount
from hostellink.models.wallet import Wallet
from hostellink.models.wallet_transaction import WalletTransaction, WITHDRAWAL, DEPOSIT_RELEASE
from hostellink.services import booking_service, escrow_service, wallet_service
from hostellink.tasks import worker_jobs

from conftest import make_room


@pytest.fixture
def funded(db, student_id, landlord, hostel, room):
    """Landlord wallet holding one released 5000 deposit."""
    b, _ = booking_service.create_booking(db, student_id, room.id)
    escrow_service.confirm_room(db, student_id, b.id)
    return wallet_service.get_wallet(db, landlord.id)


def test_wallet_created_lazily(db, landlord):
    assert wallet_service.get_wallet(db, landlord.id) is None
    w = wallet_service.get_or_create_wallet(db, landlord.id)
    assert (w.balance, w.total_earned, w.total_withdrawn) == (0, 0, 0)
    assert wallet_service.get_or_create_wallet(db, landlord.id).id == w.id


def test_withdraw_exact_balance(db, landlord_id, funded):
    w = wallet_service.withdraw(db, landlord_id, 5000)
    assert w.balance == 0
    assert w.total_withdrawn == 5000
    txns = wallet_service.list_transactions(db, w.id)
    assert txns[0].type == WITHDRAWAL
    assert txns[0].amount == -5000
    assert txns[0].description == "Withdrawal of KSh 5,000 to M-Pesa"


def test_withdraw_more_than_balance(db, landlord_id, funded):
    with pytest.raises(InsufficientBalance) as exc:
        wallet_service.withdraw(db, landlord_id, 5001)
    assert exc.value.status_code == 400
    db.expire_all()
    w = db.get(Wallet, funded.id)
    assert w.balance == 5000
    assert db.query(WalletTransaction).filter(WalletTransaction.type == WITHDRAWAL).count() == 0


@pytest.mark.parametrize("amount", [0, -10])
def test_withdraw_invalid_amount(db, landlord_id, funded, amount):
    with pytest.raises(InvalidAmount):
        wallet_service.withdraw(db, landlord_id, amount)


def test_student_cannot_withdraw(db, student_id):
    with pytest.raises(Forbidden):
        wallet_service.withdraw(db, student_id, 10)


def test_withdraw_from_empty_wallet(db, landlord_id):
    with pytest.raises(InsufficientBalance):
        wallet_service.withdraw(db, landlord_id, 1)


def test_transactions_newest_first_and_bounded(db, landlord_id, student_id, hostel, funded):
    r2 = make_room(db, hostel, room_number="A2", deposit=3000)
    b2, _ = booking_service.create_booking(db, student_id, r2.id)
    escrow_service.confirm_room(db, student_id, b2.id)
    wallet_service.withdraw(db, landlord_id, 1000)

    txns = wallet_service.list_transactions(db, funded.id)
    assert [t.type for t in txns] == [WITHDRAWAL, DEPOSIT_RELEASE, DEPOSIT_RELEASE]
    assert [t.amount for t in txns] == [-1000, 3000, 5000]
    assert len(wallet_service.list_transactions(db, funded.id, limit=1)) == 1

    db.expire_all()
    w = db.get(Wallet, funded.id)
    assert w.balance == 7000
    assert w.balance == w.total_earned - w.total_withdrawn


def test_reconcile_consistent(db, landlord_id, funded):
    wallet_service.withdraw(db, landlord_id, 1200)
    r = wallet_service.reconcile_wallet(db, db.get(Wallet, funded.id))
    assert r.consistent
    assert r.ledger_sum == 3800


def test_reconcile_flags_drift(db, funded):
    db.query(Wallet).filter(Wallet.id == funded.id).update({"balance": 9999})
    db.commit()

    result = worker_jobs.reconcile_wallets(db=db)
    assert result["checked"] == 1
    assert result["inconsistent"] == [funded.id]
