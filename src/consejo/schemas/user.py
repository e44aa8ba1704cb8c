"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from consejo.models.user import MembershipState, UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserResponse(BaseModel):
    """Public view of a user."""

    id: int
    display_name: str
    role: UserRole
    membership_state: MembershipState

    model_config = ConfigDict(from_attributes=True)


class AdminUserResponse(UserResponse):
    """User view for administrators, including contact and budget fields."""

    email: str
    vote_budget: int
    created_at: datetime


class UserRegister(BaseModel):
    """Self-registration payload; the new user starts pending approval."""

    email: str = Field(..., max_length=320, pattern=EMAIL_PATTERN)
    display_name: str = Field(..., min_length=2, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("display_name must have at least 2 characters")
        return value


class AdminUserCreate(UserRegister):
    """Administrator-created account; approved member unless stated otherwise."""

    role: UserRole = UserRole.MEMBER
    membership_state: MembershipState = MembershipState.APPROVED


class RegistrationResponse(BaseModel):
    """Bearer token issued to a freshly registered user."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MembershipStateUpdate(BaseModel):
    """Admin override of a user's membership state, e.g. to ban."""

    membership_state: MembershipState = Field(..., description="New membership state")
