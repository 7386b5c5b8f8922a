"""Profile management module.

This module handles profile lookup and the gamification points counter.
"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import DEFAULT_LEADERBOARD_SIZE, POINTS_SYSTEM
from core.exceptions import ProfileNotFoundError, ValidationError
from models.profile import ProfileModel

logger = logging.getLogger(__name__)


class ProfileManager:
    """Manages profile operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize ProfileManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def get_profile(self, user_id: str) -> ProfileModel:
        """Get a profile by user ID.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        model = self.db.query(ProfileModel).filter(ProfileModel.user_id == user_id).first()
        if not model:
            raise ProfileNotFoundError(user_id)
        return model

    def get_profile_by_email(self, email: str) -> Optional[ProfileModel]:
        """Get a profile by email, ignoring case.

        Args:
            email: Email address to look up.

        Returns:
            ProfileModel if found, None otherwise.
        """
        return (
            self.db.query(ProfileModel)
            .filter(func.lower(ProfileModel.email) == email.strip().lower())
            .first()
        )

    def award_points(self, user_id: str, delta: int) -> int:
        """Add points to a profile and return the new total.

        The addition happens inside the UPDATE statement so concurrent
        awards from unrelated features never overwrite each other.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        updated = (
            self.db.query(ProfileModel)
            .filter(ProfileModel.user_id == user_id)
            .update(
                {ProfileModel.points: ProfileModel.points + delta},
                synchronize_session=False,
            )
        )
        if updated != 1:
            self.db.rollback()
            raise ProfileNotFoundError(user_id)
        self.db.commit()
        total = (
            self.db.query(ProfileModel.points)
            .filter(ProfileModel.user_id == user_id)
            .scalar()
        )
        logger.info("Awarded %d points to %s (total %d)", delta, user_id, total)
        return total

    def award_activity(self, user_id: str, category: str, activity: str) -> int:
        """Award the configured points for an activity.

        Raises:
            ValidationError: If the category or activity is unknown.
        """
        try:
            delta = POINTS_SYSTEM[category][activity]
        except KeyError:
            raise ValidationError(f"Unknown activity: {category}.{activity}")
        return self.award_points(user_id, delta)

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_SIZE) -> List[ProfileModel]:
        return (
            self.db.query(ProfileModel)
            .order_by(ProfileModel.points.desc(), ProfileModel.full_name)
            .limit(limit)
            .all()
        )
