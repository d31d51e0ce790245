"""
FastAPI dependencies that enforce the permission matrix on routes.

Usage:
    @router.delete("/work_orders/{id}", dependencies=[Depends(require_permission("work_orders", "delete"))])

Denials are logged with the request method and path, then surface as 403.
"""
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from ..dependencies import get_current_role, get_permission_service
from ..errors import PermissionError
from ..services.permission_service import PermissionService
from .rbac_contract import CrudOperation, normalize_operation

logger = logging.getLogger("trossapp.rbac")


def _log_deny(request: Request, role: str | None, requirement: str, reason: str | None) -> None:
    logger.warning(
        "rbac_deny method=%s path=%s role=%s required=%s reason=%s",
        request.method,
        request.url.path,
        role or "anonymous",
        requirement,
        reason,
    )


def require_permission(resource: str, operation: CrudOperation | str):
    op = normalize_operation(operation)
    requirement = f"{resource}.{op}"

    async def checker(
        request: Request,
        role: str | None = Depends(get_current_role),
        service: PermissionService = Depends(get_permission_service),
    ) -> None:
        result = service.check(role, resource, op)
        if not result.allowed:
            _log_deny(request, role, requirement, result.denial_reason)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{PermissionError.message}: {requirement} required",
            )

    return checker


def require_minimum_role(required_role: str):
    requirement = f"role>={required_role}"

    async def checker(
        request: Request,
        role: str | None = Depends(get_current_role),
        service: PermissionService = Depends(get_permission_service),
    ) -> None:
        if not service.meets_minimum_role(role, required_role):
            _log_deny(request, role, requirement, None)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{PermissionError.message}: {required_role} role required",
            )

    return checker
