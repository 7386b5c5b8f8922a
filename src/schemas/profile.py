"""Profile schema definitions.

This module defines the public profile and gamification data models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ProfileInfo(BaseModel):
    """Public profile of a user."""
    user_id: str
    full_name: str
    email: str
    points: int = 0
    role: str = "student"
    class_id: Optional[str] = None

    model_config = {"from_attributes": True}


class AwardPointsRequest(BaseModel):
    category: str = Field(description="Points category, e.g. 'activity' or 'academic'.")
    activity: str = Field(description="Activity name inside the category, e.g. 'comment'.")


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    full_name: str
    points: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]
