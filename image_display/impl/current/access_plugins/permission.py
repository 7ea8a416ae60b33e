from __future__ import annotations

from image_display.framework.access import (
    AccessResult,
    AccessServices,
    register_access_check,
    require_account,
)
from image_display.framework.entities import Account


@register_access_check
class PermissionAccessCheck:
    """Allows accounts holding the route's permission; neutral otherwise.

    Several permissions may be given: ``a,b`` needs any of them and ``a+b``
    needs all of them.
    """

    requirement = "_permission"
    argument = "permission"

    def __init__(self, services: AccessServices):
        self.services = services

    def access(self, account: Account, permission: str = "") -> AccessResult:
        account = require_account(account)
        permission = permission.strip()
        if not permission:
            return AccessResult.neutral("No permission specified.")

        if "+" in permission:
            required = [p.strip() for p in permission.split("+") if p.strip()]
            granted = all(account.has_permission(p) for p in required)
        else:
            required = [p.strip() for p in permission.split(",") if p.strip()]
            granted = any(account.has_permission(p) for p in required)

        if granted:
            return AccessResult.allowed()
        return AccessResult.neutral(f"The '{permission}' permission is required.")
