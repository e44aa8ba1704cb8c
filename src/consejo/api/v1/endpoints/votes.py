"""Vote budget endpoint for the Consejo API."""

from fastapi import APIRouter

from consejo.api.v1.dependencies import ClockDep, CurrentUserDep, SessionDep
from consejo.schemas.vote import BudgetStatusResponse
from consejo.services.vote_budget import VoteBudgetService

router = APIRouter(prefix="/votes", tags=["votes"])


@router.get("/budget", response_model=BudgetStatusResponse)
async def get_vote_budget(
    current_user: CurrentUserDep,
    db: SessionDep,
    clock: ClockDep,
) -> BudgetStatusResponse:
    """Report the caller's votes left and the wait until the next one."""
    budget_status = VoteBudgetService(db, clock).get_status(current_user.id)
    # Regeneration may have credited votes; keep them.
    db.commit()
    return BudgetStatusResponse(
        vote_budget=budget_status.vote_budget,
        seconds_until_next=budget_status.seconds_until_next,
        max_vote_budget=budget_status.max_vote_budget,
        regen_interval_minutes=budget_status.regen_interval_minutes,
    )
