# src/consejo/services/__init__.py
"""Business logic services for the Consejo application."""

from .errors import VotingError
from .vote_budget import BudgetStatus, VoteBudgetService
from .voting import VoteOutcome, VotingService

__all__ = [
    "BudgetStatus",
    "VoteBudgetService",
    "VoteOutcome",
    "VotingError",
    "VotingService",
]
