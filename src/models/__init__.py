from .base import Base
from .user import UserModel
from .profile import ProfileModel
from .class_model import ClassModel
from .class_unit import ClassUnitModel
from .class_membership import ClassMembershipModel
from .class_join_request import ClassJoinRequestModel

__all__ = [
    "Base",
    "UserModel",
    "ProfileModel",
    "ClassModel",
    "ClassUnitModel",
    "ClassMembershipModel",
    "ClassJoinRequestModel",
]
