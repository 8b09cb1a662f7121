"""
Admin user management: account listing and role changes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import require_admin
from app.features.auth.models.user import User, UserRole
from app.features.auth.schemas.auth import UserResponse, UserRoleUpdate
from app.features.auth.services.auth_service import AuthService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/admin/users", tags=["Admin Users"])


@router.get("", response_model=dict)
async def list_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await AuthService(db).list_users(page=page, limit=limit, role=role, search=search)
    return api_response(data=result, message="Users retrieved successfully")


@router.patch("/{user_id}/role", response_model=dict)
async def update_user_role(
    user_id: str,
    payload: UserRoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await AuthService(db).update_user_role(admin, user_id, payload.role)
    return api_response(data=UserResponse.model_validate(user), message="User role updated successfully")
