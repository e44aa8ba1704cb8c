# src/consejo/models/__init__.py
"""SQLAlchemy models for the Consejo application."""

from .membership import MembershipRequest, MembershipRequestState
from .petition import Petition, PetitionLike, PetitionState
from .policy import POLICY_CONFIG_ID, PolicyConfig
from .report import Report, ReportState
from .user import MembershipState, User, UserRole
from .vote import MembershipVote, PetitionVote, VoteChoice

__all__ = [
    "MembershipRequest", "MembershipRequestState",
    "Petition", "PetitionLike", "PetitionState",
    "POLICY_CONFIG_ID", "PolicyConfig",
    "Report", "ReportState",
    "MembershipState", "User", "UserRole",
    "MembershipVote", "PetitionVote", "VoteChoice",
]
