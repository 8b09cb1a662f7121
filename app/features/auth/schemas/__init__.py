from app.features.auth.schemas.auth import (
    CreateStaffUser,
    LoginRequest,
    OTPCode,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetVerify,
    TokenResponse,
    UserPage,
    UserResponse,
    UserRoleUpdate,
    validate_password_strength,
)

__all__ = [
    "CreateStaffUser",
    "LoginRequest",
    "OTPCode",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PasswordResetVerify",
    "TokenResponse",
    "UserPage",
    "UserResponse",
    "UserRoleUpdate",
    "validate_password_strength",
]
