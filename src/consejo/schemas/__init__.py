# src/consejo/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .membership import (
    MembershipListingResponse,
    MembershipRequestCreate,
    MembershipRequestResponse,
    SyntheticRequestResponse,
)
from .petition import PetitionCreate, PetitionResponse, PetitionVisibilityUpdate
from .policy import PolicyConfigResponse, PolicyConfigUpdate
from .report import ReportCreate, ReportResponse, ReportUpdate
from .user import (
    AdminUserCreate,
    AdminUserResponse,
    MembershipStateUpdate,
    RegistrationResponse,
    UserRegister,
    UserResponse,
)
from .vote import (
    BudgetStatusResponse,
    MembershipVoteCreate,
    MyVoteResponse,
    PetitionVoteCreate,
    VoteResponse,
)

__all__ = [
    "MembershipListingResponse", "MembershipRequestCreate", "MembershipRequestResponse",
    "SyntheticRequestResponse",
    "PetitionCreate", "PetitionResponse", "PetitionVisibilityUpdate",
    "PolicyConfigResponse", "PolicyConfigUpdate",
    "ReportCreate", "ReportResponse", "ReportUpdate",
    "AdminUserCreate", "AdminUserResponse", "MembershipStateUpdate", "RegistrationResponse",
    "UserRegister", "UserResponse",
    "BudgetStatusResponse", "MembershipVoteCreate", "MyVoteResponse", "PetitionVoteCreate",
    "VoteResponse",
]
