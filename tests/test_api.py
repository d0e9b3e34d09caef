from hostellink.models.room import Room

from conftest import auth_headers, make_hostel, make_user


def _book(client, student, room):
    return client.post("/api/v1/student/bookings", json={"roomId": room.id}, headers=auth_headers(student))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_refresh_me(client, db):
    u = make_user(db, "student", email="login@example.com", password="hunter22")

    r = client.post("/api/v1/auth/login", json={"email": "LOGIN@example.com", "password": "hunter22"})
    assert r.status_code == 200
    tokens = r.json()
    assert tokens["token_type"] == "bearer"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.json()["id"] == u.id
    assert me.json()["role"] == "student"

    r = client.post("/api/v1/auth/refresh", params={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 200

    # refresh tokens are not accepted as access tokens
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert r.status_code == 401


def test_login_wrong_password(client, db):
    make_user(db, "student", email="login@example.com", password="hunter22")
    r = client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": "nope"})
    assert r.status_code == 401


def test_public_hostel_listing(client, hostel, room):
    r = client.get("/api/v1/hostels")
    assert [h["id"] for h in r.json()] == [hostel.id]

    detail = client.get(f"/api/v1/hostels/{hostel.id}").json()
    assert detail["rooms"][0]["roomNumber"] == "A1"
    assert detail["rooms"][0]["isVacant"] is True
    assert detail["rooms"][0]["depositAmount"] == 5000
    assert detail["vacantRooms"] == 1
    assert detail["fullyBooked"] is False

    missing = client.get("/api/v1/hostels/nope")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_booking_flow(client, db, student, landlord, room):
    r = _book(client, student, room)
    assert r.status_code == 200
    b = r.json()
    assert b["totalPaid"] == 5050
    assert b["escrowStatus"] == "held_in_escrow"
    assert b["receipt"]["status"] == "deposit_held"
    number = b["receipt"]["receiptNumber"]

    pdf = client.get(f"/api/v1/student/receipts/{number}/pdf", headers=auth_headers(student))
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    incoming = client.get("/api/v1/landlord/bookings", headers=auth_headers(landlord)).json()
    assert [x["id"] for x in incoming] == [b["id"]]

    r = client.post(f"/api/v1/student/bookings/{b['id']}/confirm", headers=auth_headers(student))
    assert r.json()["escrowStatus"] == "released_to_landlord"
    assert r.json()["receipt"]["status"] == "released"

    again = client.post(f"/api/v1/student/bookings/{b['id']}/confirm", headers=auth_headers(student))
    assert again.status_code == 409
    assert again.json() == {"detail": "Booking has already been finalized", "code": "STALE_TRANSITION",
                            "retryable": False}

    w = client.get("/api/v1/landlord/wallet", headers=auth_headers(landlord)).json()
    assert w["balance"] == 5000
    assert w["currency"] == "KSh"
    assert len(w["transactions"]) == 1

    r = client.post("/api/v1/landlord/wallet/withdraw", json={"amount": 5001}, headers=auth_headers(landlord))
    assert r.status_code == 400
    assert r.json()["code"] == "INSUFFICIENT_BALANCE"

    r = client.post("/api/v1/landlord/wallet/withdraw", json={"amount": 5000}, headers=auth_headers(landlord))
    assert r.json()["balance"] == 0
    assert r.json()["totalWithdrawn"] == 5000

    txns = client.get("/api/v1/landlord/wallet/transactions", params={"limit": 1},
                      headers=auth_headers(landlord)).json()
    assert [t["type"] for t in txns] == ["withdrawal"]


def test_double_booking_conflict(client, student, other_student, room):
    assert _book(client, student, room).status_code == 200
    r = _book(client, other_student, room)
    assert r.status_code == 409
    assert r.json()["code"] == "ROOM_ALREADY_BOOKED"


def test_cancel_and_dispute(client, db, student, hostel, room):
    from conftest import make_room

    b = _book(client, student, room).json()
    r = client.post(f"/api/v1/student/bookings/{b['id']}/cancel", json={}, headers=auth_headers(student))
    assert r.json()["escrowStatus"] == "refunded_to_student"
    db.expire_all()
    assert db.get(Room, room.id).is_vacant is True

    r2 = make_room(db, hostel, room_number="A2")
    b2 = _book(client, student, r2).json()
    r = client.post(f"/api/v1/student/bookings/{b2['id']}/dispute", json={"reason": ""},
                    headers=auth_headers(student))
    assert r.status_code == 422
    r = client.post(f"/api/v1/student/bookings/{b2['id']}/dispute", json={"reason": "Leaking roof"},
                    headers=auth_headers(student))
    assert r.json()["escrowStatus"] == "under_review"
    assert r.json()["receipt"]["status"] == "disputed"

    mine = client.get("/api/v1/student/bookings", headers=auth_headers(student)).json()
    assert {x["id"] for x in mine} == {b["id"], b2["id"]}
    receipts = client.get("/api/v1/student/receipts", headers=auth_headers(student)).json()
    assert len(receipts) == 2


def test_role_guards(client, student, landlord, room):
    assert client.get("/api/v1/landlord/wallet", headers=auth_headers(student)).status_code == 403
    assert _book(client, landlord, room).status_code == 403
    assert client.get("/api/v1/student/bookings").status_code == 401


def test_landlord_listing_and_override(client, db, landlord, student, verified_plot):
    h = client.post("/api/v1/landlord/hostels", headers=auth_headers(landlord), json={
        "name": "Gate B Rooms", "location": "Juja", "plotNumber": "LR 209/1123",
        "rentPerMonth": 5000, "totalRooms": 2,
    }).json()
    assert h["isVerified"] is True

    room = client.post(f"/api/v1/landlord/hostels/{h['id']}/rooms", headers=auth_headers(landlord),
                       json={"roomNumber": "1", "pricePerMonth": 4000}).json()
    assert room["depositAmount"] == 4000

    db_room = db.get(Room, room["id"])
    booking = _book(client, student, db_room).json()
    assert booking["totalPaid"] == 4050

    r = client.post(f"/api/v1/landlord/rooms/{room['id']}/mark-vacant", headers=auth_headers(landlord))
    assert r.status_code == 409
    assert r.json()["code"] == "ROOM_HAS_ACTIVE_BOOKING"

    mine = client.get("/api/v1/landlord/hostels", headers=auth_headers(landlord)).json()
    assert mine[0]["rooms"][0]["isVacant"] is False


def test_payment_declined(client, student, room, monkeypatch):
    from hostellink.core.config import settings

    monkeypatch.setattr(settings, "PAYMENT_SANDBOX_FAIL", True)
    r = _book(client, student, room)
    assert r.status_code == 402
    assert r.json()["code"] == "PAYMENT_FAILED"


def test_hostel_search_sort_and_availability(client, db, student, landlord, hostel, room):
    far = make_hostel(db, landlord, name="Hilltop Hostel")
    far.distance_from_gate = 2.5
    hostel.distance_from_gate = 0.4
    db.commit()
    assert _book(client, student, room).status_code == 200

    listed = client.get("/api/v1/hostels", params={"sort": "distance"}).json()
    assert [h["name"] for h in listed] == ["Sunrise Hostel", "Hilltop Hostel"]
    assert listed[0]["vacantRooms"] == 0
    assert listed[0]["fullyBooked"] is True

    found = client.get("/api/v1/hostels", params={"search": "hilltop"}).json()
    assert [h["name"] for h in found] == ["Hilltop Hostel"]

    bad = client.get("/api/v1/hostels", params={"sort": "rating"})
    assert bad.status_code == 400
    assert bad.json()["code"] == "VALIDATION_ERROR"


def test_landlord_edits_and_removes_rooms(client, db, landlord, student, hostel, room):
    spare = client.post(f"/api/v1/landlord/hostels/{hostel.id}/rooms", headers=auth_headers(landlord),
                        json={"roomNumber": "A2", "pricePerMonth": 4000}).json()

    r = client.patch(f"/api/v1/landlord/rooms/{spare['id']}", headers=auth_headers(landlord),
                     json={"pricePerMonth": 4500, "description": "Ground floor"})
    assert r.status_code == 200
    assert r.json()["pricePerMonth"] == 4500
    assert r.json()["roomNumber"] == "A2"

    assert _book(client, student, room).status_code == 200
    r = client.patch(f"/api/v1/landlord/rooms/{room.id}", headers=auth_headers(landlord),
                     json={"pricePerMonth": 9000})
    assert r.status_code == 409
    assert r.json()["code"] == "ROOM_HAS_ACTIVE_BOOKING"
    r = client.delete(f"/api/v1/landlord/rooms/{room.id}", headers=auth_headers(landlord))
    assert r.json()["code"] == "ROOM_HAS_ACTIVE_BOOKING"
    r = client.delete(f"/api/v1/landlord/hostels/{hostel.id}", headers=auth_headers(landlord))
    assert r.status_code == 409

    assert client.delete(f"/api/v1/landlord/rooms/{spare['id']}", headers=auth_headers(landlord)).json() == {"ok": True}
    assert client.delete(f"/api/v1/landlord/rooms/{spare['id']}", headers=auth_headers(student)).status_code == 403

    mine = client.get("/api/v1/landlord/hostels", headers=auth_headers(landlord)).json()
    assert [x["roomNumber"] for x in mine[0]["rooms"]] == ["A1"]
    assert mine[0]["fullyBooked"] is True


def test_landlord_deletes_unbooked_hostel(client, landlord, hostel, room):
    r = client.delete(f"/api/v1/landlord/hostels/{hostel.id}", headers=auth_headers(landlord))
    assert r.json() == {"ok": True}
    assert client.get(f"/api/v1/hostels/{hostel.id}").status_code == 404
