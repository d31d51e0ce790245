from fastapi import Depends, Request

from .auth.permission_engine import PermissionEngine, get_permission_engine
from .services.permission_service import PermissionService


def get_engine() -> PermissionEngine:
    return get_permission_engine()


def get_permission_service(
    engine: PermissionEngine = Depends(get_engine),
) -> PermissionService:
    return PermissionService(engine)


def get_current_role(request: Request) -> str | None:
    """Role of the authenticated caller.

    The authentication layer stores it on ``request.state.role`` once the
    token is verified. Unauthenticated requests carry no role, which every
    permission check treats as a denial.
    """
    role = getattr(request.state, "role", None)
    return role if isinstance(role, str) else None
