"""Class join request database model."""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base


class ClassJoinRequestModel(Base):
    """A request by a user to be admitted to a class.

    Rows are never deleted on rejection; the newest row per
    (class_id, user_id) is the one shown to the user.
    """

    __tablename__ = "class_join_requests"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(String, ForeignKey("classes.class_id", ondelete="CASCADE"), index=True)
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True)
    requester_name = Column(String, nullable=False)
    requester_email = Column(String, nullable=False)
    request_message = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending", index=True)
    rejection_reason = Column(String, nullable=True)
    requested_at = Column(String, nullable=False)
    processed_at = Column(String, nullable=True)

    class_ = relationship("ClassModel", back_populates="join_requests")
