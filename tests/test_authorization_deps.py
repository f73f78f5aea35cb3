from types import SimpleNamespace

import pytest
from starlette.requests import Request

from app.core import permissions as perms
from app.core.errors import PermissionDenied, ValidationFailed
from app.deps import require_master_admin, require_permission, require_role, resolve_property_scope
from app.services.authorization_service import AuthorizationService
from tests.fixtures_data import PROPERTY_ACCESS_DENIED


def _build_request(path: str = "/api/hotel/rooms", method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [],
        "path_params": {},
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


def _role(name, *codes):
    return SimpleNamespace(name=name, permissions=[SimpleNamespace(code=code) for code in codes])


def _user(user_type="STAFF", property_id=5, roles=None, user_id=10):
    return SimpleNamespace(id=user_id, user_type=user_type, property_id=property_id, roles=roles or [])


def test_master_admin_passes_every_permission_without_roles():
    master = _user(user_type="MASTER_ADMIN", property_id=None)

    for code in perms.ALL_PERMISSIONS:
        assert AuthorizationService.has_permission(master, code)
    assert AuthorizationService.has_permission(master, "permission_nobody_defined")


def test_staff_without_roles_only_gets_fallback_permissions():
    staff = _user()

    assert AuthorizationService.has_permission(staff, perms.VIEW_ROOMS)
    assert AuthorizationService.has_permission(staff, perms.VIEW_BOOKINGS)
    assert not AuthorizationService.has_permission(staff, perms.CREATE_BOOKING)
    assert not AuthorizationService.has_permission(staff, perms.MANAGE_STAFF)


def test_assigned_roles_replace_the_user_type_fallback():
    staff = _user(roles=[_role("MAINTENANCE", perms.EDIT_ROOM)])

    assert AuthorizationService.effective_permissions(staff) == frozenset({perms.EDIT_ROOM})
    assert not AuthorizationService.has_permission(staff, perms.VIEW_BOOKINGS)


def test_effective_permissions_are_the_union_of_roles():
    staff = _user(
        roles=[
            _role("FRONT_DESK_STAFF", perms.VIEW_ROOMS, perms.CHECK_IN),
            _role("ACCOUNTANT", perms.VIEW_REPORTS),
        ]
    )

    assert AuthorizationService.effective_permissions(staff) == frozenset(
        {perms.VIEW_ROOMS, perms.CHECK_IN, perms.VIEW_REPORTS}
    )


def test_require_permission_denies_with_403():
    dependency = require_permission(perms.CREATE_ROOM)

    with pytest.raises(PermissionDenied) as exc:
        dependency(request=_build_request(method="POST"), user=_user())

    assert exc.value.status_code == 403
    assert exc.value.message == "Insufficient permissions"


def test_require_permission_returns_user_when_granted():
    user = _user(roles=[_role("FRONT_DESK_MANAGER", perms.CREATE_BOOKING)])
    dependency = require_permission(perms.CREATE_BOOKING)

    assert dependency(request=_build_request(), user=user) is user


def test_require_role_matches_any_role_case_insensitively():
    user = _user(roles=[_role("front_desk_manager")])

    assert require_role(["FRONT_DESK_MANAGER", "ACCOUNTANT"])(request=_build_request(), user=user) is user

    with pytest.raises(PermissionDenied) as exc:
        require_role(["ACCOUNTANT"])(request=_build_request(), user=user)
    assert exc.value.message == "Access denied. Insufficient role permissions"


def test_require_master_admin_rejects_property_admin():
    with pytest.raises(PermissionDenied) as exc:
        require_master_admin(request=_build_request(path="/api/users/stats"), user=_user("PROPERTY_ADMIN"))

    assert exc.value.message == "Master Admin access required"


def test_property_admin_is_denied_another_property():
    data = PROPERTY_ACCESS_DENIED
    admin = _user("PROPERTY_ADMIN", property_id=data["user_property_id"])

    with pytest.raises(PermissionDenied) as exc:
        AuthorizationService.ensure_property_access(
            request=_build_request(), user=admin, property_id=data["other_property_id"]
        )

    assert exc.value.status_code == data["expected_status_code"]
    assert exc.value.message == data["expected_message"]
    assert AuthorizationService.ensure_property_access(
        request=_build_request(), user=admin, property_id=data["user_property_id"]
    ) == data["user_property_id"]


def test_property_scope_pins_non_master_users_to_their_property():
    admin = _user("PROPERTY_ADMIN", property_id=5)

    assert resolve_property_scope(request=_build_request(), property_id=None, user=admin) == 5
    assert resolve_property_scope(request=_build_request(), property_id=5, user=admin) == 5
    with pytest.raises(PermissionDenied):
        resolve_property_scope(request=_build_request(), property_id=7, user=admin)


def test_property_scope_requires_explicit_property_for_master_admin():
    master = _user("MASTER_ADMIN", property_id=None)

    assert resolve_property_scope(request=_build_request(), property_id=7, user=master) == 7
    with pytest.raises(ValidationFailed):
        resolve_property_scope(request=_build_request(), property_id=None, user=master)


def test_property_scope_rejects_user_without_property():
    with pytest.raises(PermissionDenied):
        resolve_property_scope(request=_build_request(), property_id=None, user=_user(property_id=None))


def test_denials_are_logged_with_endpoint(caplog):
    caplog.set_level("WARNING", logger="app.services.authorization_service")

    with pytest.raises(PermissionDenied):
        AuthorizationService.ensure_permission(
            request=_build_request(path="/api/hotel/rooms", method="POST"),
            user=_user(),
            permission=perms.CREATE_ROOM,
        )

    assert "POST /api/hotel/rooms" in caplog.text
    assert "permission_denied:create_room" in caplog.text
