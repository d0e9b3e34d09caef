from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hostellink.db.session import get_db
from hostellink.api.deps import require_roles
from hostellink.api.v1.routes.bookings import booking_out
from hostellink.api.v1.routes.hostels import hostel_out, room_out
from hostellink.core.config import settings
from hostellink.core.identity import Identity, LANDLORD
from hostellink.models.wallet import Wallet
from hostellink.models.wallet_transaction import WalletTransaction
from hostellink.schemas.booking import BookingOut
from hostellink.schemas.hostel import HostelCreate, HostelOut, RoomCreate, RoomOut, RoomUpdate
from hostellink.schemas.wallet import WalletOut, WalletTransactionOut, WithdrawRequest
from hostellink.services import booking_service, listing_service, room_service, wallet_service
from hostellink.services.receipt_service import get_receipt_for_booking

router = APIRouter(tags=["landlord"])


def _txn_out(t: WalletTransaction) -> WalletTransactionOut:
    return WalletTransactionOut(
        id=t.id,
        type=t.type,
        amount=t.amount,
        description=t.description,
        createdAt=t.created_at.isoformat() if t.created_at else None,
    )


def _wallet_out(db: Session, w: Wallet, limit: int | None = None) -> WalletOut:
    return WalletOut(
        id=w.id,
        balance=w.balance,
        totalEarned=w.total_earned,
        totalWithdrawn=w.total_withdrawn,
        currency=settings.CURRENCY_LABEL,
        transactions=[_txn_out(t) for t in wallet_service.list_transactions(db, w.id, limit)],
    )


@router.get("/landlord/hostels", response_model=list[HostelOut])
def my_hostels(db: Session = Depends(get_db), me: Identity = Depends(require_roles(LANDLORD))):
    return [
        hostel_out(h, listing_service.list_rooms(db, h.id))
        for h in listing_service.list_hostels(db, landlord_id=me.user_id)
    ]


@router.post("/landlord/hostels", response_model=HostelOut)
def create_hostel(body: HostelCreate, db: Session = Depends(get_db),
                  me: Identity = Depends(require_roles(LANDLORD))):
    h = listing_service.create_hostel(
        db, me,
        name=body.name,
        location=body.location,
        plot_number=body.plotNumber,
        rent_per_month=body.rentPerMonth,
        total_rooms=body.totalRooms,
        description=body.description,
        distance_from_gate=body.distanceFromGate,
        images=body.images,
    )
    return hostel_out(h, [])


@router.delete("/landlord/hostels/{hostel_id}")
def delete_hostel(hostel_id: str, db: Session = Depends(get_db),
                  me: Identity = Depends(require_roles(LANDLORD))):
    listing_service.delete_hostel(db, me, hostel_id)
    return {"ok": True}


@router.post("/landlord/hostels/{hostel_id}/rooms", response_model=RoomOut)
def add_room(hostel_id: str, body: RoomCreate, db: Session = Depends(get_db),
             me: Identity = Depends(require_roles(LANDLORD))):
    r = listing_service.add_room(
        db, me, hostel_id,
        room_number=body.roomNumber,
        price_per_month=body.pricePerMonth,
        deposit_amount=body.depositAmount,
        description=body.description,
        images=body.images,
    )
    return room_out(r)


@router.patch("/landlord/rooms/{room_id}", response_model=RoomOut)
def update_room(room_id: str, body: RoomUpdate, db: Session = Depends(get_db),
                me: Identity = Depends(require_roles(LANDLORD))):
    """Edit a room. Refused while a booking holds it in escrow or under review."""
    r = listing_service.update_room(
        db, me, room_id,
        room_number=body.roomNumber,
        price_per_month=body.pricePerMonth,
        deposit_amount=body.depositAmount,
        description=body.description,
        images=body.images,
    )
    return room_out(r)


@router.delete("/landlord/rooms/{room_id}")
def delete_room(room_id: str, db: Session = Depends(get_db),
                me: Identity = Depends(require_roles(LANDLORD))):
    listing_service.delete_room(db, me, room_id)
    return {"ok": True}


@router.post("/landlord/rooms/{room_id}/mark-vacant", response_model=RoomOut)
def mark_vacant(room_id: str, db: Session = Depends(get_db),
                me: Identity = Depends(require_roles(LANDLORD))):
    """Put a room back on the market. Refused while a booking holds it in escrow or under review."""
    return room_out(room_service.mark_room_vacant(db, me, room_id))


@router.get("/landlord/bookings", response_model=list[BookingOut])
def incoming_bookings(db: Session = Depends(get_db), me: Identity = Depends(require_roles(LANDLORD))):
    return [booking_out(b, get_receipt_for_booking(db, b.id)) for b in booking_service.list_landlord_bookings(db, me)]


@router.get("/landlord/wallet", response_model=WalletOut)
def my_wallet(db: Session = Depends(get_db), me: Identity = Depends(require_roles(LANDLORD))):
    w = wallet_service.get_or_create_wallet(db, me.user_id)
    return _wallet_out(db, w)


@router.get("/landlord/wallet/transactions", response_model=list[WalletTransactionOut])
def wallet_transactions(limit: int | None = None, db: Session = Depends(get_db),
                        me: Identity = Depends(require_roles(LANDLORD))):
    w = wallet_service.get_or_create_wallet(db, me.user_id)
    return [_txn_out(t) for t in wallet_service.list_transactions(db, w.id, limit)]


@router.post("/landlord/wallet/withdraw", response_model=WalletOut)
def withdraw(body: WithdrawRequest, db: Session = Depends(get_db),
             me: Identity = Depends(require_roles(LANDLORD))):
    w = wallet_service.withdraw(db, me, body.amount)
    return _wallet_out(db, w)
