"""FastAPI dependencies for admin authentication and authorization."""

from __future__ import annotations

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.enums import ActionEnum, AdminRoleEnum, AuditActionEnum, ResourceEnum
from app.core.permissions import has_permission
from app.modules.admin_auth.service import AdminAuthService, AuthenticatedAdmin, get_admin_auth_service
from app.modules.audit.service import AuditService, get_audit_service
from app.shared.exceptions import InvalidTokenException, PermissionDeniedException
from app.shared.request_context import RequestContext, get_request_context

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: AdminAuthService = Depends(get_admin_auth_service),
) -> AuthenticatedAdmin:
    """Resolve currently authenticated admin from bearer token."""
    if credentials is None or not credentials.credentials:
        raise InvalidTokenException("No token provided")
    return await service.authenticate(credentials.credentials)


def require_permission(resource: ResourceEnum, action: ActionEnum):
    """Dependency factory checking the token role against the permission table."""

    async def _checker(
        current: AuthenticatedAdmin = Depends(get_current_admin),
        audit: AuditService = Depends(get_audit_service),
        context: RequestContext = Depends(get_request_context),
    ) -> AuthenticatedAdmin:
        if has_permission(current.role, resource, action):
            return current

        logger.warning(
            "Admin %s (%s) denied %s on %s",
            current.admin.id,
            current.role,
            action,
            resource,
        )
        await audit.record_and_commit(
            AuditActionEnum.UNAUTHORIZED_ACCESS_ATTEMPT,
            actor_id=current.admin.id,
            resource_type=str(resource),
            details={"action": str(action), "role": str(current.role)},
            context=context,
        )
        raise PermissionDeniedException("Insufficient permissions")

    return _checker


def require_super_admin():
    """Dependency factory for operations reserved to SUPER_ADMIN."""

    async def _checker(current: AuthenticatedAdmin = Depends(get_current_admin)) -> AuthenticatedAdmin:
        if current.role is not AdminRoleEnum.SUPER_ADMIN:
            raise PermissionDeniedException("Super Admin access required")
        return current

    return _checker
