"""Profile and gamification routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user
from api.routes.class_route import to_http_exception
from config import DEFAULT_LEADERBOARD_SIZE
from core.dependencies import ProfileManagerDep
from core.exceptions import CampusError
from schemas.profile import (
    AwardPointsRequest,
    LeaderboardEntry,
    LeaderboardResponse,
    ProfileInfo,
)
from schemas.user import User

router = APIRouter(prefix="/api/profiles", tags=["Profile"])


@router.get("/me", response_model=ProfileInfo, summary="My profile")
def get_my_profile(
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> ProfileInfo:
    try:
        return ProfileInfo.model_validate(profile_manager.get_profile(current_user.user_id))
    except CampusError as e:
        raise to_http_exception(e)


@router.get("/leaderboard", response_model=LeaderboardResponse, summary="Points leaderboard")
def get_leaderboard(
    profile_manager: ProfileManagerDep,
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> LeaderboardResponse:
    entries = [
        LeaderboardEntry(
            rank=rank,
            user_id=profile.user_id,
            full_name=profile.full_name,
            points=profile.points,
        )
        for rank, profile in enumerate(profile_manager.leaderboard(limit), start=1)
    ]
    return LeaderboardResponse(entries=entries)


@router.post("/{user_id}/points", response_model=ProfileInfo, summary="Award activity points")
def award_points(
    user_id: str,
    req: AwardPointsRequest,
    profile_manager: ProfileManagerDep,
    current_user: User = Depends(get_current_user),
) -> ProfileInfo:
    """Award the configured points for an activity. Admin only."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can award points.",
        )
    try:
        profile_manager.award_activity(user_id, req.category, req.activity)
        return ProfileInfo.model_validate(profile_manager.get_profile(user_id))
    except CampusError as e:
        raise to_http_exception(e)
