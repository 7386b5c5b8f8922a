"""Profile database model.

A profile is the public face of a user: name, email and gamification points.
"""

from sqlalchemy import Column, Integer, String
from .base import Base


class ProfileModel(Base):
    """Profile database model."""

    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    role = Column(String, nullable=False, default="student")
    class_id = Column(String, nullable=True)  # last class the user selected
    created_at = Column(String, nullable=False)
