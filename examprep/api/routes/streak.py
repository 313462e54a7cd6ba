from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends

from examprep.api.deps import SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.streak.service import StreakService
from examprep.streak.types import StreakStatus

router = APIRouter(
    prefix="/api/streak",
    tags=["streak"],
    dependencies=[Depends(require_internal_access)],
)


class StreakResponse(ApiModel):
    current_streak: int
    longest_streak: int
    last_activity_date: date | None = None
    status: StreakStatus
    can_repair: bool


@router.get("", response_model=StreakResponse)
async def get_streak(user_id: UserId, session_factory: SessionFactory) -> StreakResponse:
    async with session_factory() as session:
        view = await StreakService.get_status(session, user_id=user_id, now_utc=datetime.now(timezone.utc))
    return StreakResponse.model_validate(view)


@router.post("/repair", response_model=StreakResponse)
async def repair_streak(user_id: UserId, session_factory: SessionFactory) -> StreakResponse:
    async with session_factory.begin() as session:
        view = await StreakService.repair(session, user_id=user_id, now_utc=datetime.now(timezone.utc))
    return StreakResponse.model_validate(view)
