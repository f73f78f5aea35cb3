from app.core import permissions as perms
from app.models.enums import UserType
from tests.app_support import auth_headers, build_client, provision, seed_property, seed_user
from tests.fixtures_data import GRAND_PLAZA_ADMIN, MASTER_ADMIN


def _master_headers(client):
    seed_user(
        client,
        email=MASTER_ADMIN["email"],
        password=MASTER_ADMIN["password"],
        user_type=UserType.MASTER_ADMIN,
    )
    return auth_headers(client, MASTER_ADMIN["email"], MASTER_ADMIN["password"])


def _permission_ids(client, headers, *codes):
    listing = client.get("/api/role-permissions/permissions", headers=headers).json()["data"]["permissions"]
    by_code = {item["code"]: item["id"] for item in listing}
    return [by_code[code] for code in codes]


def _role_codes(response):
    return sorted(item["code"] for item in response.json()["data"]["role"]["permissions"])


def test_initialize_is_repeatable():
    with build_client() as client:
        headers = _master_headers(client)

        first = client.post("/api/role-permissions/permissions/initialize", headers=headers)
        second = client.post("/api/role-permissions/permissions/initialize", headers=headers)
        roles = client.get("/api/role-permissions/roles", headers=headers)

    assert first.status_code == 200
    assert len(first.json()["data"]["created_permissions"]) == len(perms.ALL_PERMISSIONS)
    assert second.json()["data"] == {"created_permissions": [], "created_roles": [], "linked_permissions": 0}
    names = {role["name"] for role in roles.json()["data"]["roles"]}
    assert names == set(perms.ROLE_PERMISSIONS)


def test_assigning_the_same_permission_twice_is_a_no_op():
    with build_client() as client:
        headers = _master_headers(client)
        provision(client)
        role = client.post("/api/role-permissions/roles", headers=headers, json={"name": "NIGHT_AUDITOR"})
        role_id = role.json()["data"]["role"]["id"]
        ids = _permission_ids(client, headers, perms.VIEW_REPORTS)

        once = client.post(f"/api/role-permissions/roles/{role_id}/permissions", headers=headers,
                           json={"permissionIds": ids})
        twice = client.post(f"/api/role-permissions/roles/{role_id}/permissions", headers=headers,
                            json={"permissionIds": ids + ids})

    assert role.status_code == 201
    assert once.status_code == 200
    assert twice.status_code == 200
    assert _role_codes(once) == _role_codes(twice) == [perms.VIEW_REPORTS]


def test_replace_and_remove_role_permissions():
    with build_client() as client:
        headers = _master_headers(client)
        provision(client)
        role_id = client.post(
            "/api/role-permissions/roles", headers=headers, json={"name": "CONCIERGE"}
        ).json()["data"]["role"]["id"]
        ids = _permission_ids(client, headers, perms.VIEW_ROOMS, perms.VIEW_BOOKINGS, perms.CHECK_IN)

        replaced = client.put(f"/api/role-permissions/roles/{role_id}/permissions", headers=headers,
                              json={"permissionIds": ids})
        removed = client.request(
            "DELETE",
            f"/api/role-permissions/roles/{role_id}/permissions",
            headers=headers,
            json={"permissionIds": ids[2:]},
        )
        missing = client.put(f"/api/role-permissions/roles/{role_id}/permissions", headers=headers,
                             json={"permissionIds": [9999]})

    assert _role_codes(replaced) == sorted([perms.VIEW_ROOMS, perms.VIEW_BOOKINGS, perms.CHECK_IN])
    assert _role_codes(removed) == sorted([perms.VIEW_ROOMS, perms.VIEW_BOOKINGS])
    assert missing.status_code == 400


def test_duplicate_role_and_permission_codes_conflict():
    with build_client() as client:
        headers = _master_headers(client)
        provision(client)

        role = client.post("/api/role-permissions/roles", headers=headers, json={"name": "ACCOUNTANT"})
        permission = client.post("/api/role-permissions/permissions", headers=headers,
                                 json={"code": perms.VIEW_ROOMS})

    assert role.status_code == 409
    assert permission.status_code == 409


def test_assigned_role_cannot_be_deleted_until_removed():
    with build_client() as client:
        headers = _master_headers(client)
        provision(client)
        property_id = seed_property(client)
        user_id = seed_user(
            client,
            email=GRAND_PLAZA_ADMIN["email"],
            password=GRAND_PLAZA_ADMIN["password"],
            user_type=UserType.PROPERTY_ADMIN,
            property_id=property_id,
        )
        role_id = client.post(
            "/api/role-permissions/roles", headers=headers, json={"name": "NIGHT_MANAGER"}
        ).json()["data"]["role"]["id"]

        assigned = client.post(f"/api/role-permissions/users/{user_id}/roles/{role_id}", headers=headers)
        assigned_again = client.post(f"/api/role-permissions/users/{user_id}/roles/{role_id}", headers=headers)
        blocked = client.delete(f"/api/role-permissions/roles/{role_id}", headers=headers)
        unassigned = client.delete(f"/api/role-permissions/users/{user_id}/roles/{role_id}", headers=headers)
        deleted = client.delete(f"/api/role-permissions/roles/{role_id}", headers=headers)

    assert [role["name"] for role in assigned.json()["data"]["user"]["roles"]] == ["NIGHT_MANAGER"]
    assert len(assigned_again.json()["data"]["user"]["roles"]) == 1
    assert blocked.status_code == 400
    assert "assigned to 1 user(s)" in blocked.json()["message"]
    assert unassigned.json()["data"]["user"]["roles"] == []
    assert deleted.status_code == 200


def test_role_management_is_master_admin_only():
    with build_client() as client:
        provision(client)
        property_id = seed_property(client)
        seed_user(
            client,
            email=GRAND_PLAZA_ADMIN["email"],
            password=GRAND_PLAZA_ADMIN["password"],
            user_type=UserType.PROPERTY_ADMIN,
            property_id=property_id,
            role_names=["PROPERTY_ADMIN"],
        )
        headers = auth_headers(client, GRAND_PLAZA_ADMIN["email"], GRAND_PLAZA_ADMIN["password"])

        listing = client.get("/api/role-permissions/roles", headers=headers)
        create = client.post("/api/role-permissions/roles", headers=headers, json={"name": "SPA_STAFF"})

    assert listing.status_code == 200
    assert create.status_code == 403
