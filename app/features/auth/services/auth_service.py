from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User, UserRole
from app.features.auth.schemas.auth import LoginRequest, TokenResponse, UserPage, UserResponse
from app.features.auth.utils.security import create_access_token, hash_password, verify_password
from app.platform.logger import get_logger
from app.platform.pagination import Pagination

logger = get_logger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def login_user(self, request: LoginRequest) -> TokenResponse:
        email = request.email.lower()
        user = await self.get_user_by_email(email)

        if not user or not verify_password(request.password, user.password_hash):
            logger.warning(f"Login failed - invalid credentials - email: {email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not user.email_verified:
            logger.warning(f"Login refused - email not verified - user: {user.id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Please verify your email before signing in",
            )

        user.last_login = datetime.utcnow()
        await self.db.commit()

        access_token = create_access_token(
            data={"sub": str(user.id), "email": user.email, "role": user.role.value}
        )
        logger.info(f"Login successful - user: {user.id}")

        return TokenResponse(access_token=access_token, user=UserResponse.model_validate(user))

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def update_password(self, email: str, new_password: str) -> User:
        user = await self.get_user_by_email(email)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Could not find user to update. Please restart the process.",
            )

        user.password_hash = hash_password(new_password)
        await self.db.flush()
        return user

    async def create_staff_user(
        self, name: str, email: str, password: str, role: UserRole = UserRole.ADMIN
    ) -> User:
        """
        Create an already verified admin or evaluator account.
        Bypasses the emailed-code signup and is meant for initial setup only.
        """
        if await self.get_user_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        user = User(
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            role=role,
            email_verified=True,
            email_verified_at=datetime.utcnow(),
        )
        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValueError(f"User with email {email} already exists")

        logger.info(f"Staff account created - user: {user.id}, role: {role.value}")
        return user

    async def list_users(
        self, page: int = 1, limit: int = 50, role: Optional[UserRole] = None, search: Optional[str] = None
    ) -> UserPage:
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        count_result = await self.db.execute(select(func.count(User.id)).where(*conditions))
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return UserPage(
            users=[UserResponse.model_validate(u) for u in result.scalars()],
            pagination=Pagination.build(page, limit, total),
        )

    async def update_user_role(self, admin: User, user_id: str, role: UserRole) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if user.id == admin.id and role != user.role:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot change your own role",
            )

        previous = user.role
        user.role = role
        await self.db.commit()
        logger.info(f"User role updated - user: {user.id}, {previous.value} -> {role.value}, by: {admin.id}")
        return user
