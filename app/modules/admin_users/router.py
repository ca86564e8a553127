"""Admin user management API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import ActionEnum, AdminRoleEnum, ResourceEnum
from app.modules.admin_auth.dependencies import require_permission, require_super_admin
from app.modules.admin_auth.schemas import MessageResponse
from app.modules.admin_auth.service import AuthenticatedAdmin
from app.modules.admin_users.repository import AdminUserFilters
from app.modules.admin_users.schemas import (
    AdminUserCreate,
    AdminUserDetail,
    AdminUserRead,
    AdminUserUpdate,
    TemporaryPasswordResponse,
)
from app.modules.admin_users.service import AdminUserService, get_admin_user_service
from app.modules.audit.schemas import AdminActivityRead
from app.shared.pagination import Page, build_page, get_pagination_params
from app.shared.request_context import RequestContext, get_request_context

router = APIRouter(prefix="/admin/users", tags=["admin-users"])


@router.get("", response_model=Page[AdminUserRead])
async def list_admins(
    role: AdminRoleEnum | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    search: str | None = Query(default=None, max_length=100),
    pagination=Depends(get_pagination_params),
    _: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.ADMIN_USERS, ActionEnum.READ)),
    service: AdminUserService = Depends(get_admin_user_service),
) -> Page[AdminUserRead]:
    """List admin accounts."""
    filters = AdminUserFilters(role=role, is_active=is_active, search=search)
    items, total = await service.list_admins(filters, pagination.limit, pagination.offset)
    return build_page([AdminUserRead.model_validate(item) for item in items], total, pagination)


@router.get("/{admin_id}", response_model=AdminUserDetail)
async def get_admin(
    admin_id: UUID,
    _: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.ADMIN_USERS, ActionEnum.READ)),
    service: AdminUserService = Depends(get_admin_user_service),
) -> AdminUserDetail:
    return await service.get_admin(admin_id)


@router.get("/{admin_id}/activity", response_model=AdminActivityRead)
async def get_admin_activity(
    admin_id: UUID,
    days: int = Query(default=30, ge=1, le=365),
    _: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.AUDIT_LOGS, ActionEnum.READ)),
    service: AdminUserService = Depends(get_admin_user_service),
) -> AdminActivityRead:
    """Summarize recent audit activity of one admin."""
    return await service.activity(admin_id, days)


@router.post("", response_model=AdminUserRead, status_code=status.HTTP_201_CREATED)
async def create_admin(
    payload: AdminUserCreate,
    current: AuthenticatedAdmin = Depends(require_super_admin()),
    context: RequestContext = Depends(get_request_context),
    service: AdminUserService = Depends(get_admin_user_service),
) -> AdminUserRead:
    admin = await service.create_admin(payload, current.admin.id, context)
    return AdminUserRead.model_validate(admin)


@router.put("/{admin_id}", response_model=AdminUserRead)
async def update_admin(
    admin_id: UUID,
    payload: AdminUserUpdate,
    current: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.ADMIN_USERS, ActionEnum.WRITE)),
    context: RequestContext = Depends(get_request_context),
    service: AdminUserService = Depends(get_admin_user_service),
) -> AdminUserRead:
    admin = await service.update_admin(admin_id, payload, current.admin.id, context)
    return AdminUserRead.model_validate(admin)


@router.delete("/{admin_id}", response_model=MessageResponse)
async def deactivate_admin(
    admin_id: UUID,
    current: AuthenticatedAdmin = Depends(require_super_admin()),
    context: RequestContext = Depends(get_request_context),
    service: AdminUserService = Depends(get_admin_user_service),
) -> MessageResponse:
    """Deactivate (soft delete) an admin account."""
    await service.deactivate_admin(admin_id, current.admin.id, context)
    return MessageResponse(message="Admin user deactivated")


@router.post("/{admin_id}/reset-password", response_model=TemporaryPasswordResponse)
async def reset_password(
    admin_id: UUID,
    current: AuthenticatedAdmin = Depends(require_super_admin()),
    context: RequestContext = Depends(get_request_context),
    service: AdminUserService = Depends(get_admin_user_service),
) -> TemporaryPasswordResponse:
    temporary_password = await service.reset_password(admin_id, current.admin.id, context)
    return TemporaryPasswordResponse(temporary_password=temporary_password)


@router.post("/{admin_id}/unlock", response_model=MessageResponse)
async def unlock_admin(
    admin_id: UUID,
    current: AuthenticatedAdmin = Depends(require_super_admin()),
    context: RequestContext = Depends(get_request_context),
    service: AdminUserService = Depends(get_admin_user_service),
) -> MessageResponse:
    await service.unlock_admin(admin_id, current.admin.id, context)
    return MessageResponse(message="Admin user unlocked")
