"""
Admin User Management Endpoints.

Roles, blocks, unlimited-run grants and the admin activity log. Every change
made here is recorded in the activity log.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from codexalpha.core.models.domain.enums import AppRole
from codexalpha.core.models.io.admin import (
    AdminActionResult,
    AdminActivityRead,
    AdminUserRead,
    BlockRequest,
    RoleChange,
    UnlimitedRunsGrant,
)
from codexalpha.server.core.security import AdminUserDep
from codexalpha.server.services.deps import UserAdminDep

router = APIRouter(tags=["admin-users"])


@router.get(
    "/users",
    response_model=List[AdminUserRead],
    summary="List Users",
    description="Profiles with roles, block state, unlimited-run grant and run count.",
    response_description="A page of users, newest first.",
)
async def list_users(
    admin: AdminUserDep,
    users: UserAdminDep,
    q: Optional[str] = Query(default=None, description="Filter by email or name"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> List[AdminUserRead]:
    """
    List users.

    - **q**: Case-insensitive match on email, full, first or last name.
    - **limit**, **offset**: Pagination.
    """
    return await users.list_users(q, limit=limit, offset=offset)


@router.post(
    "/users/{user_id}/roles",
    response_model=AdminActionResult,
    summary="Grant Role",
    description="Grant admin, moderator or user role.",
    responses={404: {"description": "User not found"}},
)
async def grant_role(user_id: str, change: RoleChange, admin: AdminUserDep, users: UserAdminDep) -> AdminActionResult:
    """
    Grant a role.

    - **role**: `admin`, `moderator` or `user`.
    """
    return AdminActionResult(changed=await users.grant_role(user_id, change.role, admin))


@router.delete(
    "/users/{user_id}/roles/{role}",
    response_model=AdminActionResult,
    summary="Revoke Role",
    description="Revoke a role. Admins cannot revoke their own admin role.",
    responses={400: {"description": "Attempt to revoke own admin role"}},
)
async def revoke_role(user_id: str, role: AppRole, admin: AdminUserDep, users: UserAdminDep) -> AdminActionResult:
    """
    Revoke a role.
    """
    return AdminActionResult(changed=await users.revoke_role(user_id, role, admin))


@router.post(
    "/users/{user_id}/block",
    response_model=AdminActionResult,
    summary="Block User",
    description="Block a user from creating persona runs.",
    responses={
        400: {"description": "Attempt to block yourself"},
        404: {"description": "User not found"},
    },
)
async def block_user(user_id: str, body: BlockRequest, admin: AdminUserDep, users: UserAdminDep) -> AdminActionResult:
    """
    Block a user.

    Blocking an already blocked user changes nothing.

    - **reason**: Optional note shown in the admin console.
    """
    return AdminActionResult(changed=await users.block(user_id, body.reason, admin))


@router.delete(
    "/users/{user_id}/block",
    response_model=AdminActionResult,
    summary="Unblock User",
    description="Lift a block.",
)
async def unblock_user(user_id: str, admin: AdminUserDep, users: UserAdminDep) -> AdminActionResult:
    """
    Unblock a user.
    """
    return AdminActionResult(changed=await users.unblock(user_id, admin))


@router.post(
    "/users/{user_id}/unlimited-runs",
    response_model=AdminActionResult,
    summary="Grant Unlimited Runs",
    description="Lift the one-run limit for a user.",
    responses={404: {"description": "User not found"}},
)
async def grant_unlimited_runs(
    user_id: str, body: UnlimitedRunsGrant, admin: AdminUserDep, users: UserAdminDep
) -> AdminActionResult:
    """
    Grant unlimited persona runs.

    - **notes**: Optional note, e.g. the reason for the grant.
    """
    return AdminActionResult(changed=await users.grant_unlimited_runs(user_id, body.notes, admin))


@router.delete(
    "/users/{user_id}/unlimited-runs",
    response_model=AdminActionResult,
    summary="Revoke Unlimited Runs",
    description="Restore the one-run limit for a user.",
)
async def revoke_unlimited_runs(user_id: str, admin: AdminUserDep, users: UserAdminDep) -> AdminActionResult:
    """
    Revoke unlimited persona runs.
    """
    return AdminActionResult(changed=await users.revoke_unlimited_runs(user_id, admin))


@router.get(
    "/activity",
    response_model=List[AdminActivityRead],
    summary="Admin Activity Log",
    description="Actions taken by admins, newest first.",
    response_description="A page of activity entries.",
)
async def activity_log(
    admin: AdminUserDep,
    users: UserAdminDep,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> List[AdminActivityRead]:
    """
    Get the admin activity log.
    """
    return [AdminActivityRead.model_validate(a) for a in await users.activity_log(limit=limit, offset=offset)]
