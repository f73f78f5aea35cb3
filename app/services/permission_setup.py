from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.orm import Session

from app.core.permissions import PERMISSION_CATALOGUE, ROLE_DESCRIPTIONS, ROLE_PERMISSIONS
from app.models.permission import Permission
from app.models.role import Role

logger = logging.getLogger(__name__)
SETUP_PREFIX = "[PERMISSION_SETUP]"


@dataclass
class ProvisionResult:
    created_permissions: List[str] = field(default_factory=list)
    created_roles: List[str] = field(default_factory=list)
    linked: int = 0

    def as_dict(self) -> dict:
        return {
            "created_permissions": self.created_permissions,
            "created_roles": self.created_roles,
            "linked_permissions": self.linked,
        }


def provision_defaults(db: Session) -> ProvisionResult:
    """Create the permission catalogue and the default roles.

    Safe to run repeatedly: existing rows are kept and only missing links are
    added, so permissions granted by hand are never removed.
    """
    result = ProvisionResult()

    by_code = {permission.code: permission for permission in db.query(Permission).all()}
    for code, description in PERMISSION_CATALOGUE.items():
        if code in by_code:
            continue
        permission = Permission(code=code, description=description)
        db.add(permission)
        by_code[code] = permission
        result.created_permissions.append(code)
    db.flush()

    by_name = {role.name: role for role in db.query(Role).all()}
    for name, codes in ROLE_PERMISSIONS.items():
        role = by_name.get(name)
        if role is None:
            role = Role(name=name, description=ROLE_DESCRIPTIONS.get(name))
            db.add(role)
            by_name[name] = role
            result.created_roles.append(name)
        held = {permission.code for permission in role.permissions}
        for code in sorted(codes - held):
            role.permissions.append(by_code[code])
            result.linked += 1

    db.commit()
    logger.info(
        "%s permissions_created=%s roles_created=%s links_added=%s",
        SETUP_PREFIX,
        len(result.created_permissions),
        len(result.created_roles),
        result.linked,
    )
    return result
