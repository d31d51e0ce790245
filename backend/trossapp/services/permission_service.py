import logging

from ..auth.permission_engine import PermissionEngine, get_permission_engine
from ..auth.rbac_contract import StandardRole, normalize_role_name
from ..errors import PermissionError
from ..schemas.permission import PermissionResult

logger = logging.getLogger("trossapp.rbac")


class PermissionService:
    """Intention-revealing permission checks for middleware and UI logic.

    Every method delegates to PermissionEngine and inherits its fail-closed
    behaviour. The tier checks (is_manager, is_dispatcher, is_technician)
    mean "this role or any role above it". is_admin is the exception: it
    matches only the most privileged role.
    """

    def __init__(self, engine: PermissionEngine | None = None):
        self.engine = engine or get_permission_engine()

    def can_perform(self, role: object, resource: object, operation: object) -> bool:
        return self.engine.has_permission(role, resource, operation)

    def check(self, role: object, resource: object, operation: object) -> PermissionResult:
        return self.engine.check_permission(role, resource, operation)

    def meets_minimum_role(self, role: object, required: object) -> bool:
        return self.engine.has_minimum_role(role, required)

    def is_admin(self, role: object) -> bool:
        """True only for the top-priority role, not for "at least admin"."""
        normalized = normalize_role_name(role)
        if normalized is None:
            return False
        return normalized == self.engine.top_role

    def is_manager(self, role: object) -> bool:
        return self.engine.has_minimum_role(role, StandardRole.MANAGER.value)

    def is_dispatcher(self, role: object) -> bool:
        return self.engine.has_minimum_role(role, StandardRole.DISPATCHER.value)

    def is_technician(self, role: object) -> bool:
        return self.engine.has_minimum_role(role, StandardRole.TECHNICIAN.value)

    def get_permissions_for(self, role: object) -> dict[str, list[str]]:
        return self.engine.get_role_permissions(role)

    def get_priority(self, role: object) -> int | None:
        return self.engine.get_role_priority(role)

    def get_allowed_operations(self, role: object, resource: object) -> list[str]:
        return self.engine.get_allowed_operations(role, resource)

    def can_access(self, role: object, resource: object) -> bool:
        return self.engine.can_access_resource(role, resource)

    def get_row_level_security(self, role: object, resource: object) -> str | None:
        return self.engine.get_row_level_security(role, resource)

    def require_permission(self, role: object, resource: object, operation: object) -> None:
        """Raise PermissionError (403) if the role may not perform the operation.

        Raises:
            PermissionError: With the denial reason in ``details``
        """
        result = self.engine.check_permission(role, resource, operation)
        if result.allowed:
            return

        logger.warning(
            "permission_denied role=%s resource=%s operation=%s reason=%s",
            role,
            resource,
            getattr(operation, "value", operation),
            result.denial_reason,
        )
        raise PermissionError(
            f"Permission denied: {getattr(operation, 'value', operation)} on {resource}",
            details={
                "reason": result.denial_reason,
                "minimum_role": result.minimum_role,
            },
        )
