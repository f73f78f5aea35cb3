from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/refresh-token",
    "/api/auth/logout",
    "/api/auth/profile",
    "/api/auth/change-password",
    "/api/hotel/rooms",
    "/api/hotel/rooms/availability",
    "/api/hotel/bookings",
    "/api/hotel/bookings/{booking_id}/status",
    "/api/hotel/property",
    "/api/hotel/stats",
    "/api/role-permissions/roles",
    "/api/role-permissions/permissions/initialize",
    "/api/role-permissions/users/{user_id}/roles/{role_id}",
    "/api/users",
    "/api/users/stats",
    "/api/users/{user_id}/toggle-status",
    "/api/properties",
    "/api/properties/{property_id}",
    "/api/dashboard/stats",
    "/api/dashboard/monthly-stats",
    "/health",
}


def test_api_startup_and_router_registration(monkeypatch):
    from app import main

    monkeypatch.setattr(main, "_startup_tasks", lambda app: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = {route.path for route in main.app.routes}
    assert REQUIRED_ROUTES.issubset(paths)


def test_startup_bootstraps_master_admin_once():
    from tests.app_support import build_client, login

    with build_client(master_admin_email="Root@HMS.com", master_admin_password="Root@1234") as client:
        data = login(client, "root@hms.com", "Root@1234")

    assert data["user"]["user_type"] == "MASTER_ADMIN"
