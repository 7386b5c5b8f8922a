from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship
from .base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    class_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    class_code = Column(String(6), unique=True, index=True, nullable=False)
    code_expires = Column(Boolean, nullable=False, default=False)
    code_expires_at = Column(String, nullable=True)
    code_created_at = Column(String, nullable=False)
    creator_id = Column(String, index=True, nullable=False)
    created_at = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    units = relationship(
        "ClassUnitModel",
        back_populates="class_",
        cascade="all, delete-orphan",
        order_by="ClassUnitModel.order_index",
    )
    memberships = relationship(
        "ClassMembershipModel",
        back_populates="class_",
        cascade="all, delete-orphan",
    )
    join_requests = relationship(
        "ClassJoinRequestModel",
        back_populates="class_",
        cascade="all, delete-orphan",
    )
