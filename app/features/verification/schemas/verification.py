from pydantic import BaseModel, EmailStr, Field, field_validator

from app.features.auth.schemas import OTPCode, UserResponse, validate_password_strength


class SendVerificationRequest(BaseModel):
    email: EmailStr


class SendVerificationResponse(BaseModel):
    email: str
    expires_in_minutes: int


class VerifyCodeRequest(BaseModel):
    email: EmailStr
    code: OTPCode
    password: str
    name: str = Field(..., min_length=2, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class VerifyCodeResponse(BaseModel):
    user: UserResponse
