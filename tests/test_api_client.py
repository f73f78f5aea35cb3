from datetime import date
from unittest.mock import patch

import httpx
import pytest

from app.client import ApiError, HotelApiClient, SessionExpired, TokenStore
from app.models.enums import UserType
from tests.app_support import build_client, provision, seed_property, seed_room, seed_user
from tests.fixtures_data import GRAND_PLAZA_ADMIN, MASTER_ADMIN


def _seed(client):
    provision(client)
    property_id = seed_property(client)
    room_id = seed_room(client, property_id)
    seed_user(client, email=GRAND_PLAZA_ADMIN["email"], password=GRAND_PLAZA_ADMIN["password"],
              user_type=UserType.PROPERTY_ADMIN, property_id=property_id, role_names=["PROPERTY_ADMIN"])
    return property_id, room_id


def test_login_stores_session_and_reads_hotel_data():
    with build_client() as client:
        _seed(client)
        api = HotelApiClient(client=client)

        user = api.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        prop = api.get_property()
        rooms = api.list_rooms()

    assert user["email"] == GRAND_PLAZA_ADMIN["email"]
    assert api.is_authenticated()
    assert api.is_hotel_user()
    assert prop["code"] == "HOTEL001"
    assert rooms["pagination"]["total_items"] == 1


def test_expired_access_token_is_refreshed_once_and_request_replayed():
    with build_client() as client:
        _seed(client)
        api = HotelApiClient(client=client)
        api.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        refresh_token = api.store.refresh_token
        api.store.set_tokens("expired-access-token", refresh_token)

        stats = api.get_stats()

    assert stats["total_rooms"] == 1
    assert api.store.access_token != "expired-access-token"
    assert api.store.refresh_token != refresh_token


def test_failed_refresh_clears_session_and_raises_session_expired():
    with build_client() as client:
        _seed(client)
        api = HotelApiClient(client=client)
        api.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        api.store.set_tokens("expired-access-token", "revoked-refresh-token")

        with pytest.raises(SessionExpired):
            api.list_bookings()

    assert api.store.access_token is None
    assert api.store.user is None
    assert not api.is_authenticated()


def test_bad_credentials_are_not_retried_as_expired_session():
    with build_client() as client:
        _seed(client)
        api = HotelApiClient(client=client)

        with pytest.raises(ApiError) as exc:
            api.login(GRAND_PLAZA_ADMIN["email"], "wrong-password")

    assert not isinstance(exc.value, SessionExpired)
    assert exc.value.status_code == 401
    assert exc.value.message == "Login failed"


def test_master_admin_cannot_use_the_hotel_client():
    with build_client() as client:
        seed_user(client, email=MASTER_ADMIN["email"], password=MASTER_ADMIN["password"],
                  user_type=UserType.MASTER_ADMIN)
        api = HotelApiClient(client=client)

        with pytest.raises(ApiError) as exc:
            api.login(MASTER_ADMIN["email"], MASTER_ADMIN["password"])

    assert exc.value.status_code == 403
    assert exc.value.message == "Master Admin should use the Master Admin portal"
    assert not api.is_authenticated()


def test_booking_round_trip_and_logout():
    with build_client() as client:
        _, room_id = _seed(client)
        api = HotelApiClient(client=client)
        api.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])
        refresh_token = api.store.refresh_token

        booking = api.create_booking(
            room_id=room_id,
            guest_name="Asha Rao",
            check_in_date=date(2030, 5, 10),
            check_out_date=date(2030, 5, 12),
        )
        confirmed = api.update_booking_status(booking["id"], "CONFIRMED")
        availability = api.room_availability(date(2030, 5, 10), date(2030, 5, 11))
        api.logout()
        refresh_after_logout = client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token})

    assert booking["booking_status"] == "PENDING"
    assert confirmed["booking_status"] == "CONFIRMED"
    assert availability["total_available"] == 0
    assert not api.is_authenticated()
    assert refresh_after_logout.status_code == 401


def test_session_survives_in_a_token_file(tmp_path):
    path = tmp_path / "session.json"
    with build_client() as client:
        _seed(client)
        first = HotelApiClient(client=client, store=TokenStore(path))
        first.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])

        second = HotelApiClient(client=client, store=TokenStore(path))
        profile = second.profile()

    assert second.is_authenticated()
    assert profile["email"] == GRAND_PLAZA_ADMIN["email"]


def test_logout_clears_local_session_even_when_server_is_unreachable():
    with build_client() as client:
        _seed(client)
        api = HotelApiClient(client=client)
        api.login(GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])

        with patch.object(client, "post", side_effect=httpx.ConnectError("connection refused")) as post:
            api.logout()

    post.assert_called_once()
    assert post.call_args.args[0] == "/api/auth/logout"
    assert not api.is_authenticated()


def test_rejected_replay_after_refresh_ends_the_session():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        if request.url.path == "/api/auth/refresh-token":
            return httpx.Response(200, json={
                "success": True,
                "data": {"tokens": {"access_token": "fresh-access", "refresh_token": "fresh-refresh"}},
            })
        return httpx.Response(401, json={"success": False, "message": "User not found or inactive"})

    transport_client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
    store = TokenStore()
    store.set_tokens("stale-access", "valid-refresh")
    store.set_user({"id": 3, "email": GRAND_PLAZA_ADMIN["email"], "user_type": "PROPERTY_ADMIN"})
    api = HotelApiClient(client=transport_client, store=store)

    with pytest.raises(SessionExpired):
        api.get_stats()

    assert seen == ["/api/hotel/stats", "/api/auth/refresh-token", "/api/hotel/stats"]
    assert store.access_token is None
    assert store.refresh_token is None
    assert not api.is_authenticated()
