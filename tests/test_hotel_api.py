from datetime import date

from app.models.enums import RoomStatus, UserType
from tests.app_support import auth_headers, build_client, provision, seed_property, seed_room, seed_user
from tests.fixtures_data import BOOKING_PAYLOAD, GRAND_PLAZA_ADMIN, MASTER_ADMIN, ROOM_PAYLOAD, STAFF_MEMBER


def _seed(client, *, staff_roles=("FRONT_DESK_STAFF",)):
    provision(client)
    property_id = seed_property(client)
    other_property_id = seed_property(client, code="HOTEL002", name="Seaside Inn")
    seed_user(
        client,
        email=GRAND_PLAZA_ADMIN["email"],
        password=GRAND_PLAZA_ADMIN["password"],
        user_type=UserType.PROPERTY_ADMIN,
        property_id=property_id,
        role_names=["PROPERTY_ADMIN"],
    )
    seed_user(
        client,
        email=STAFF_MEMBER["email"],
        password=STAFF_MEMBER["password"],
        user_type=UserType.STAFF,
        property_id=property_id,
        role_names=staff_roles,
    )
    return property_id, other_property_id


def test_create_room_and_reject_duplicate_number():
    with build_client() as client:
        property_id, _ = _seed(client)
        headers = auth_headers(client, GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])

        created = client.post("/api/hotel/rooms", headers=headers, json=ROOM_PAYLOAD)
        duplicate = client.post("/api/hotel/rooms", headers=headers, json=ROOM_PAYLOAD)

    assert created.status_code == 201
    room = created.json()["data"]["room"]
    assert room["property_id"] == property_id
    assert room["status"] == "AVAILABLE"
    assert room["price_per_night"] == 2500.0
    assert duplicate.status_code == 409


def test_staff_without_create_room_permission_is_forbidden():
    with build_client() as client:
        _seed(client)
        headers = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])

        response = client.post("/api/hotel/rooms", headers=headers, json=ROOM_PAYLOAD)

    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


def test_rooms_are_scoped_to_the_users_property():
    with build_client() as client:
        property_id, other_property_id = _seed(client)
        seed_room(client, property_id, room_number="101")
        seed_room(client, other_property_id, room_number="900")
        headers = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])

        own = client.get("/api/hotel/rooms", headers=headers)
        foreign = client.get(f"/api/hotel/rooms?property_id={other_property_id}", headers=headers)

    assert [room["room_number"] for room in own.json()["data"]["rooms"]] == ["101"]
    assert own.json()["data"]["pagination"] == {
        "current_page": 1,
        "total_pages": 1,
        "total_items": 1,
        "items_per_page": 10,
    }
    assert foreign.status_code == 403


def test_master_admin_must_name_the_property():
    with build_client() as client:
        property_id, _ = _seed(client)
        seed_room(client, property_id)
        seed_user(client, email=MASTER_ADMIN["email"], password=MASTER_ADMIN["password"],
                  user_type=UserType.MASTER_ADMIN)
        headers = auth_headers(client, MASTER_ADMIN["email"], MASTER_ADMIN["password"])

        unnamed = client.get("/api/hotel/rooms", headers=headers)
        named = client.get(f"/api/hotel/rooms?property_id={property_id}", headers=headers)

    assert unnamed.status_code == 400
    assert named.status_code == 200
    assert named.json()["data"]["pagination"]["total_items"] == 1


def test_booking_lifecycle_updates_room_status():
    with build_client() as client:
        property_id, _ = _seed(client)
        room_id = seed_room(client, property_id)
        headers = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])

        created = client.post("/api/hotel/bookings", headers=headers, json={**BOOKING_PAYLOAD, "room_id": room_id})
        booking_id = created.json()["data"]["booking"]["id"]
        confirmed = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=headers,
                                 json={"status": "CONFIRMED"})
        checked_in = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=headers,
                                  json={"status": "CHECKED_IN"})
        rooms_during_stay = client.get("/api/hotel/rooms", headers=headers).json()["data"]["rooms"]
        checked_out = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=headers,
                                   json={"status": "CHECKED_OUT"})
        rooms_after_stay = client.get("/api/hotel/rooms", headers=headers).json()["data"]["rooms"]
        reopened = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=headers,
                                json={"status": "CONFIRMED"})

    booking = created.json()["data"]["booking"]
    assert created.status_code == 201
    assert booking["booking_status"] == "PENDING"
    assert booking["nights"] == 3
    assert booking["total_amount"] == 7500.0
    assert confirmed.json()["data"]["booking"]["booking_status"] == "CONFIRMED"
    assert checked_in.status_code == 200
    assert rooms_during_stay[0]["status"] == "OCCUPIED"
    assert checked_out.status_code == 200
    assert rooms_after_stay[0]["status"] == "AVAILABLE"
    assert reopened.status_code == 400
    assert reopened.json()["message"] == "Cannot change booking status from CHECKED_OUT to CONFIRMED"


def test_cancel_needs_its_own_permission():
    with build_client() as client:
        property_id, _ = _seed(client)
        room_id = seed_room(client, property_id)
        staff = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])
        admin = auth_headers(client, GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        booking_id = client.post(
            "/api/hotel/bookings", headers=staff, json={**BOOKING_PAYLOAD, "room_id": room_id}
        ).json()["data"]["booking"]["id"]

        by_staff = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=staff,
                                json={"status": "CANCELLED"})
        by_admin = client.patch(f"/api/hotel/bookings/{booking_id}/status", headers=admin,
                                json={"status": "CANCELLED"})

    assert by_staff.status_code == 403
    assert by_admin.status_code == 200
    assert by_admin.json()["data"]["booking"]["booking_status"] == "CANCELLED"


def test_overlapping_booking_conflicts_and_availability_reflects_it():
    with build_client() as client:
        property_id, _ = _seed(client)
        first_room = seed_room(client, property_id, room_number="101")
        seed_room(client, property_id, room_number="102")
        seed_room(client, property_id, room_number="103", status=RoomStatus.MAINTENANCE)
        headers = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])

        client.post("/api/hotel/bookings", headers=headers, json={**BOOKING_PAYLOAD, "room_id": first_room})
        overlapping = client.post(
            "/api/hotel/bookings",
            headers=headers,
            json={**BOOKING_PAYLOAD, "room_id": first_room, "check_in_date": "2030-05-12",
                  "check_out_date": "2030-05-15"},
        )
        back_to_back = client.post(
            "/api/hotel/bookings",
            headers=headers,
            json={**BOOKING_PAYLOAD, "room_id": first_room, "check_in_date": "2030-05-13",
                  "check_out_date": "2030-05-14"},
        )
        availability = client.get(
            "/api/hotel/rooms/availability?check_in=2030-05-11&check_out=2030-05-12", headers=headers
        )

    assert overlapping.status_code == 409
    assert overlapping.json()["message"] == "Room is not available for the selected dates"
    assert back_to_back.status_code == 201
    data = availability.json()["data"]
    assert [room["room_number"] for room in data["available_rooms"]] == ["102"]
    assert data["total_available"] == 1


def test_booking_rejects_inverted_dates_and_foreign_rooms():
    with build_client() as client:
        property_id, other_property_id = _seed(client)
        room_id = seed_room(client, property_id)
        foreign_room = seed_room(client, other_property_id, room_number="900")
        headers = auth_headers(client, STAFF_MEMBER["email"], STAFF_MEMBER["password"])

        inverted = client.post(
            "/api/hotel/bookings",
            headers=headers,
            json={**BOOKING_PAYLOAD, "room_id": room_id, "check_in_date": "2030-05-13",
                  "check_out_date": "2030-05-13"},
        )
        foreign = client.post("/api/hotel/bookings", headers=headers,
                              json={**BOOKING_PAYLOAD, "room_id": foreign_room})

    assert inverted.status_code == 400
    assert inverted.json()["errors"][0]["field"] == "check_out_date"
    assert foreign.status_code == 404


def test_property_details_and_stats():
    with build_client() as client:
        property_id, _ = _seed(client)
        room_id = seed_room(client, property_id)
        seed_room(client, property_id, room_number="102", status=RoomStatus.MAINTENANCE)
        headers = auth_headers(client, GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        today = date.today().isoformat()
        client.post(
            "/api/hotel/bookings",
            headers=headers,
            json={**BOOKING_PAYLOAD, "room_id": room_id, "check_in_date": today,
                  "check_out_date": date.fromordinal(date.today().toordinal() + 2).isoformat()},
        )

        details = client.get("/api/hotel/property", headers=headers)
        stats = client.get("/api/hotel/stats", headers=headers)

    assert details.json()["data"]["property"]["code"] == "HOTEL001"
    data = stats.json()["data"]
    assert data["total_rooms"] == 2
    assert data["maintenance_rooms"] == 1
    assert data["total_bookings"] == 1
    assert data["pending_bookings"] == 1
    assert data["revenue_today"] == 5000.0
    assert data["revenue_this_month"] == 5000.0
