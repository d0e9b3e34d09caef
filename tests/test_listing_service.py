import pytest

from hostellink.core.errors import Forbidden, NotFound, RoomHasActiveBooking, ValidationFailed
from hostellink.models.booking import Booking
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.services import booking_service, escrow_service, listing_service, room_service
from hostellink.services.plot_service import is_plot_verified, normalize_plot_number

from conftest import make_user, make_hostel, make_room, identity_for


def test_normalize_plot_number():
    assert normalize_plot_number("  lr 209/1123 ") == "LR 209/1123"
    assert normalize_plot_number("lr   209/1123") == "LR 209/1123"


def test_plot_registry_lookup(db, verified_plot):
    assert is_plot_verified(db, "lr 209/1123")
    assert not is_plot_verified(db, "LR 1/1")
    assert not is_plot_verified(db, "")


def test_hostel_verified_from_registry(db, landlord_id, verified_plot):
    h = listing_service.create_hostel(
        db, landlord_id, name="Gate B Rooms", location="Juja", plot_number="lr 209/1123",
        rent_per_month=4500, total_rooms=10,
    )
    assert h.is_verified is True
    assert h.plot_number == "LR 209/1123"
    assert h.landlord_id == landlord_id.user_id


def test_unregistered_plot_not_verified(db, landlord_id):
    h = listing_service.create_hostel(
        db, landlord_id, name="Gate C", location="Juja", plot_number="X/1",
        rent_per_month=4500, total_rooms=4,
    )
    assert h.is_verified is False


def test_student_cannot_list_hostel(db, student_id):
    with pytest.raises(Forbidden):
        listing_service.create_hostel(
            db, student_id, name="x", location="y", plot_number="z", rent_per_month=1, total_rooms=1,
        )


def test_missing_fields(db, landlord_id):
    with pytest.raises(ValidationFailed):
        listing_service.create_hostel(
            db, landlord_id, name=" ", location="Juja", plot_number="X/1", rent_per_month=1, total_rooms=1,
        )


def test_add_room(db, landlord_id, hostel):
    r = listing_service.add_room(db, landlord_id, hostel.id, room_number="C3", price_per_month=6000)
    assert r.is_vacant is True
    assert r.effective_deposit == 6000
    assert [x.id for x in listing_service.list_rooms(db, hostel.id)] == [r.id]


def test_add_room_rules(db, landlord_id, hostel):
    listing_service.add_room(db, landlord_id, hostel.id, room_number="C3", price_per_month=6000)
    with pytest.raises(ValidationFailed):
        listing_service.add_room(db, landlord_id, hostel.id, room_number="C3", price_per_month=6000)
    with pytest.raises(ValidationFailed):
        listing_service.add_room(db, landlord_id, hostel.id, room_number="C4", price_per_month=6000,
                                 images=["a", "b", "c", "d", "e"])
    with pytest.raises(ValidationFailed):
        listing_service.add_room(db, landlord_id, hostel.id, room_number="C5", price_per_month=6000,
                                 deposit_amount=0)


def test_add_room_other_landlords_hostel(db, hostel):
    other = make_user(db, "landlord", email="other-landlord@example.com")
    with pytest.raises(Forbidden):
        listing_service.add_room(db, identity_for(other, "landlord"), hostel.id, room_number="Q1",
                                 price_per_month=1000)


def test_update_room(db, landlord_id, room):
    r = listing_service.update_room(db, landlord_id, room.id, price_per_month=5500, description="Corner room",
                                    images=["front.jpg"])
    assert r.price_per_month == 5500
    assert r.deposit_amount == 5000
    assert r.description == "Corner room"
    assert r.images == ["front.jpg"]


def test_update_room_rules(db, landlord_id, hostel, room):
    make_room(db, hostel, room_number="A2")
    with pytest.raises(ValidationFailed):
        listing_service.update_room(db, landlord_id, room.id, room_number="A2")
    with pytest.raises(ValidationFailed):
        listing_service.update_room(db, landlord_id, room.id, price_per_month=0)
    with pytest.raises(ValidationFailed):
        listing_service.update_room(db, landlord_id, room.id, images=["a", "b", "c", "d", "e"])

    other = make_user(db, "landlord", email="other-landlord@example.com")
    with pytest.raises(Forbidden):
        listing_service.update_room(db, identity_for(other, "landlord"), room.id, price_per_month=1)


def test_update_room_refused_while_held(db, landlord_id, student_id, room):
    b, _ = booking_service.create_booking(db, student_id, room.id)
    with pytest.raises(RoomHasActiveBooking):
        listing_service.update_room(db, landlord_id, room.id, price_per_month=9000)
    db.expire_all()
    assert db.get(Room, room.id).price_per_month == 5000

    escrow_service.confirm_room(db, student_id, b.id)
    assert listing_service.update_room(db, landlord_id, room.id, price_per_month=9000).price_per_month == 9000


def test_delete_room(db, landlord_id, hostel, room):
    room_id = room.id
    listing_service.delete_room(db, landlord_id, room_id)
    assert listing_service.list_rooms(db, hostel.id) == []
    with pytest.raises(NotFound):
        room_service.get_room(db, room_id)


def test_delete_room_refused_while_held(db, landlord_id, student_id, room):
    room_id = room.id
    b, _ = booking_service.create_booking(db, student_id, room_id)
    with pytest.raises(RoomHasActiveBooking):
        listing_service.delete_room(db, landlord_id, room_id)
    assert db.query(Room).filter(Room.id == room_id).count() == 1

    escrow_service.confirm_room(db, student_id, b.id)
    listing_service.delete_room(db, landlord_id, room_id)
    assert db.query(Room).filter(Room.id == room_id).count() == 0
    db.expire_all()
    kept = db.get(Booking, b.id)
    assert kept.room_id is None
    assert kept.escrow_status == "released_to_landlord"


def test_delete_hostel_with_rooms(db, landlord_id, hostel, room):
    hostel_id = hostel.id
    listing_service.delete_hostel(db, landlord_id, hostel_id)
    assert db.query(Hostel).filter(Hostel.id == hostel_id).count() == 0
    assert db.query(Room).filter(Room.hostel_id == hostel_id).count() == 0


def test_delete_hostel_refused_with_bookings(db, landlord_id, student_id, hostel, room):
    hostel_id = hostel.id
    b, _ = booking_service.create_booking(db, student_id, room.id)
    with pytest.raises(RoomHasActiveBooking):
        listing_service.delete_hostel(db, landlord_id, hostel_id)

    escrow_service.confirm_room(db, student_id, b.id)
    with pytest.raises(ValidationFailed):
        listing_service.delete_hostel(db, landlord_id, hostel_id)
    assert db.query(Hostel).filter(Hostel.id == hostel_id).count() == 1
    assert db.query(Room).filter(Room.hostel_id == hostel_id).count() == 1


def test_delete_hostel_requires_owner(db, hostel):
    other = make_user(db, "landlord", email="other-landlord@example.com")
    with pytest.raises(Forbidden):
        listing_service.delete_hostel(db, identity_for(other, "landlord"), hostel.id)


def test_search_and_sort(db, landlord):
    near = make_hostel(db, landlord, name="Gate A Rooms")
    far = make_hostel(db, landlord, name="Hilltop Hostel")
    unknown = make_hostel(db, landlord, name="Riverside")
    near.distance_from_gate, near.rent_per_month = 0.3, 7000
    far.distance_from_gate, far.rent_per_month, far.location = 2.5, 4000, "Gachororo"
    unknown.rent_per_month = 5500
    db.commit()

    by_distance = listing_service.list_hostels(db, sort="distance")
    assert [h.name for h in by_distance] == ["Gate A Rooms", "Hilltop Hostel", "Riverside"]
    by_price = listing_service.list_hostels(db, sort="price")
    assert [h.name for h in by_price] == ["Hilltop Hostel", "Riverside", "Gate A Rooms"]

    assert [h.name for h in listing_service.list_hostels(db, search="gate")] == ["Gate A Rooms"]
    assert [h.name for h in listing_service.list_hostels(db, search="GACHORORO")] == ["Hilltop Hostel"]
    assert len(listing_service.list_hostels(db, search="  ")) == 3

    with pytest.raises(ValidationFailed):
        listing_service.list_hostels(db, sort="rating")


def test_vacant_room_counts(db, student_id, landlord, hostel, room):
    make_room(db, hostel, room_number="A2")
    empty = make_hostel(db, landlord, name="No Rooms Yet")
    booking_service.create_booking(db, student_id, room.id)

    counts = listing_service.vacant_room_counts(db, [hostel.id, empty.id])
    assert counts == {hostel.id: 1}
    assert listing_service.vacant_room_counts(db, []) == {}
