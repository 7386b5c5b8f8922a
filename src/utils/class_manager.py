"""Class management utilities."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytz
from sqlalchemy import func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import MAX_CODE_EXPIRY_HOURS
from core.exceptions import (
    ClassNotFoundError,
    ConflictError,
    InvalidClassCodeError,
    NotAMemberError,
    PermissionDeniedError,
    UnitNotFoundError,
    ValidationError,
)
from models.class_join_request import ClassJoinRequestModel
from models.class_membership import ClassMembershipModel
from models.class_model import ClassModel
from models.class_unit import ClassUnitModel
from models.profile import ProfileModel
from utils.class_code import ClassCodeService, is_expired

logger = logging.getLogger(__name__)

ROLE_CREATOR = "creator"
ROLE_STUDENT = "student"


def _validate_expiry_hours(hours: Optional[int]) -> int:
    if hours is None or hours < 1 or hours > MAX_CODE_EXPIRY_HOURS:
        raise ValidationError(
            f"Expiration must be between 1 and {MAX_CODE_EXPIRY_HOURS} hours"
        )
    return hours


class ClassManager:
    """Manages class, unit, membership, and code operations."""

    def __init__(self, db: Session):
        self.db = db
        self.codes = ClassCodeService(db)

    def create_class(
        self,
        name: str,
        creator_id: str,
        description: Optional[str] = None,
        units: Optional[Sequence[Dict[str, Optional[str]]]] = None,
        code_expires: bool = False,
        expiration_hours: Optional[int] = None,
    ) -> ClassModel:
        """Create a new class with its units and the creator membership.

        Args:
            name: Class name.
            creator_id: User ID of the creator.
            description: Optional class description.
            units: Unit dicts with "name" and optional "description".
            code_expires: Whether the join code should expire.
            expiration_hours: Hours until the code expires, when it expires.

        Returns:
            The created ClassModel.

        Raises:
            ValidationError: If the name is empty or no valid unit is given.
            CodeGenerationError: If no unused code could be generated.
            ConflictError: If the code was taken concurrently.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a class name.")
        units = list(units or [])
        if not units:
            raise ValidationError("Please add at least one unit to the class.")
        for unit in units:
            if not (unit.get("name") or "").strip():
                raise ValidationError("Please enter a unit name.")

        now = datetime.now(pytz.utc)
        expires_at = None
        if code_expires:
            hours = _validate_expiry_hours(expiration_hours)
            expires_at = (now + timedelta(hours=hours)).isoformat()

        class_model = ClassModel(
            class_id=secrets.token_hex(8),
            name=name,
            description=(description or "").strip() or None,
            class_code=self.codes.generate_code(),
            code_expires=code_expires,
            code_expires_at=expires_at,
            code_created_at=now.isoformat(),
            creator_id=creator_id,
            created_at=now.isoformat(),
            is_active=True,
        )
        self.db.add(class_model)
        self.db.flush()

        for index, unit in enumerate(units):
            self.db.add(
                ClassUnitModel(
                    class_id=class_model.class_id,
                    name=unit["name"].strip(),
                    description=(unit.get("description") or "").strip() or None,
                    order_index=index,
                )
            )

        self.db.add(
            ClassMembershipModel(
                class_id=class_model.class_id,
                user_id=creator_id,
                role=ROLE_CREATOR,
                joined_at=now.isoformat(),
            )
        )
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Class code already exists. Please try again.") from e
        self.db.refresh(class_model)
        logger.info(
            "Created class %s (%s) with %d units", class_model.class_id, name, len(units)
        )
        return class_model

    def get_class(self, class_id: str) -> ClassModel:
        model = (
            self.db.query(ClassModel)
            .filter(ClassModel.class_id == class_id)
            .first()
        )
        if not model:
            raise ClassNotFoundError(class_id)
        return model

    def list_all_classes(self) -> List[ClassModel]:
        return self.db.query(ClassModel).order_by(ClassModel.created_at.desc()).all()

    def list_classes_for_user(self, user_id: str) -> List[ClassMembershipModel]:
        return (
            self.db.query(ClassMembershipModel)
            .filter(ClassMembershipModel.user_id == user_id)
            .all()
        )

    def get_membership(
        self, class_id: str, user_id: str
    ) -> Optional[ClassMembershipModel]:
        return (
            self.db.query(ClassMembershipModel)
            .filter(
                ClassMembershipModel.class_id == class_id,
                ClassMembershipModel.user_id == user_id,
            )
            .first()
        )

    def get_role(self, class_id: str, user_id: str) -> Optional[str]:
        membership = self.get_membership(class_id, user_id)
        return membership.role if membership else None

    def require_creator(self, class_id: str, user_id: str, is_admin: bool = False) -> ClassModel:
        """Return the class if the user may manage it.

        Raises:
            ClassNotFoundError: If the class does not exist.
            PermissionDeniedError: If the user is neither creator nor admin.
        """
        class_model = self.get_class(class_id)
        if is_admin:
            return class_model
        if self.get_role(class_id, user_id) != ROLE_CREATOR:
            raise PermissionDeniedError("Only the class creator can do this.")
        return class_model

    def lookup_by_code(self, code: str) -> dict:
        """Describe the class behind a join code.

        Raises:
            InvalidClassCodeError: If the code is unknown or expired.
        """
        class_model = self.codes.find_active_class(code)
        if class_model is None or is_expired(class_model):
            raise InvalidClassCodeError(code)

        creator = (
            self.db.query(ProfileModel)
            .filter(ProfileModel.user_id == class_model.creator_id)
            .first()
        )
        unit_count = (
            self.db.query(func.count(ClassUnitModel.id))
            .filter(ClassUnitModel.class_id == class_model.class_id)
            .scalar()
        )
        member_count = (
            self.db.query(func.count(ClassMembershipModel.id))
            .filter(ClassMembershipModel.class_id == class_model.class_id)
            .scalar()
        )
        return {
            "class_id": class_model.class_id,
            "name": class_model.name,
            "description": class_model.description,
            "class_code": class_model.class_code,
            "creator_name": creator.full_name if creator else None,
            "unit_count": unit_count,
            "member_count": member_count,
        }

    def regenerate_code(
        self,
        class_id: str,
        caller_id: str,
        expires: bool = False,
        expires_in_hours: Optional[int] = None,
        is_admin: bool = False,
    ) -> ClassModel:
        """Replace the class code. The old code stops working immediately."""
        class_model = self.require_creator(class_id, caller_id, is_admin=is_admin)
        now = datetime.now(pytz.utc)
        expires_at = None
        if expires:
            hours = _validate_expiry_hours(expires_in_hours)
            expires_at = (now + timedelta(hours=hours)).isoformat()

        old_code = class_model.class_code
        class_model.class_code = self.codes.generate_code()
        class_model.code_expires = expires
        class_model.code_expires_at = expires_at
        class_model.code_created_at = now.isoformat()
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Class code already exists. Please try again.") from e
        self.db.refresh(class_model)
        logger.info(
            "Regenerated code for class %s: %s -> %s", class_id, old_code, class_model.class_code
        )
        return class_model

    def _membership_exists(self, class_id: str, user_id: str):
        return (
            select(ClassMembershipModel.id)
            .where(
                ClassMembershipModel.class_id == class_id,
                ClassMembershipModel.user_id == user_id,
            )
            .exists()
        )

    def ensure_membership(self, class_id: str, user_id: str, role: str) -> bool:
        """Insert a membership unless one exists. Does not commit.

        The insert carries its own NOT EXISTS guard. Under a race the unique
        constraint on (class_id, user_id) rejects the loser, which is treated
        the same as finding the row already there.

        Returns:
            True if a row was inserted.
        """
        already_member = self._membership_exists(class_id, user_id)
        stmt = insert(ClassMembershipModel).from_select(
            ["class_id", "user_id", "role", "joined_at"],
            select(
                literal(class_id),
                literal(user_id),
                literal(role),
                literal(datetime.now(pytz.utc).isoformat()),
            ).where(~already_member),
        )
        try:
            with self.db.begin_nested():
                result = self.db.execute(stmt)
        except IntegrityError:
            logger.info("Membership for %s in %s already exists", user_id, class_id)
            return False
        return result.rowcount == 1

    def add_member(self, class_id: str, user_id: str, role: str = ROLE_STUDENT) -> bool:
        self.get_class(class_id)
        created = self.ensure_membership(class_id, user_id, role)
        self.db.commit()
        return created

    def list_members(self, class_id: str) -> List[dict]:
        query = (
            self.db.query(ClassMembershipModel, ProfileModel)
            .outerjoin(ProfileModel, ProfileModel.user_id == ClassMembershipModel.user_id)
            .filter(ClassMembershipModel.class_id == class_id)
            .order_by(ClassMembershipModel.joined_at)
        )
        results = []
        for membership, profile in query.all():
            results.append(
                {
                    "user_id": membership.user_id,
                    "full_name": profile.full_name if profile else None,
                    "email": profile.email if profile else None,
                    "role": membership.role,
                    "joined_at": membership.joined_at,
                }
            )
        return results

    def remove_member(
        self, class_id: str, user_id: str, caller_id: str, is_admin: bool = False
    ) -> None:
        """Remove a member from a class.

        Raises:
            PermissionDeniedError: If the caller cannot manage the class.
            NotAMemberError: If the user is not a member.
            ConflictError: If the user is the class creator.
        """
        self.require_creator(class_id, caller_id, is_admin=is_admin)
        membership = self.get_membership(class_id, user_id)
        if not membership:
            raise NotAMemberError(class_id, user_id)
        if membership.role == ROLE_CREATOR:
            raise ConflictError(
                "The class creator cannot be removed. Transfer the role first."
            )
        self.db.delete(membership)
        self.db.commit()
        logger.info("Removed %s from class %s", user_id, class_id)

    def delete_class(self, class_id: str, caller_id: str, is_admin: bool = False) -> None:
        """Delete a class and all related data.

        Only the class creator or an admin can delete the class.

        Raises:
            ClassNotFoundError: If class not found.
            PermissionDeniedError: If the caller may not delete it.
        """
        class_model = self.require_creator(class_id, caller_id, is_admin=is_admin)

        # Delete all related data in correct order due to foreign key constraints
        self.db.query(ClassJoinRequestModel).filter(
            ClassJoinRequestModel.class_id == class_id
        ).delete()
        self.db.query(ClassUnitModel).filter(
            ClassUnitModel.class_id == class_id
        ).delete()
        self.db.query(ClassMembershipModel).filter(
            ClassMembershipModel.class_id == class_id
        ).delete()

        self.db.delete(class_model)
        self.db.commit()
        logger.info("Deleted class: %s", class_id)

    def leave_class(self, class_id: str, user_id: str) -> None:
        """Leave a class (remove user's membership).

        Non-creator members can leave a class. The creator cannot leave.

        Raises:
            ClassNotFoundError: If class not found.
            NotAMemberError: If the user is not a member.
            ConflictError: If the user is the class creator.
        """
        self.get_class(class_id)
        membership = self.get_membership(class_id, user_id)
        if not membership:
            raise NotAMemberError(class_id, user_id)
        if membership.role == ROLE_CREATOR:
            raise ConflictError("Class creator cannot leave the class")

        self.db.delete(membership)
        self.db.commit()
        logger.info("User %s left class %s", user_id, class_id)

    # --- Units ---

    def list_units(self, class_id: str) -> List[ClassUnitModel]:
        self.get_class(class_id)
        return (
            self.db.query(ClassUnitModel)
            .filter(ClassUnitModel.class_id == class_id)
            .order_by(ClassUnitModel.order_index)
            .all()
        )

    def get_unit(self, class_id: str, unit_id: int) -> ClassUnitModel:
        unit = (
            self.db.query(ClassUnitModel)
            .filter(ClassUnitModel.id == unit_id, ClassUnitModel.class_id == class_id)
            .first()
        )
        if not unit:
            raise UnitNotFoundError(unit_id)
        return unit

    def add_unit(
        self, class_id: str, name: str, description: Optional[str] = None
    ) -> ClassUnitModel:
        """Append a unit after the current last one."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a unit name")
        self.get_class(class_id)
        max_order = (
            self.db.query(func.max(ClassUnitModel.order_index))
            .filter(ClassUnitModel.class_id == class_id)
            .scalar()
        )
        unit = ClassUnitModel(
            class_id=class_id,
            name=name,
            description=(description or "").strip() or None,
            order_index=(max_order if max_order is not None else -1) + 1,
        )
        self.db.add(unit)
        self.db.commit()
        self.db.refresh(unit)
        return unit

    def update_unit(
        self, class_id: str, unit_id: int, name: str, description: Optional[str] = None
    ) -> ClassUnitModel:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a unit name")
        unit = self.get_unit(class_id, unit_id)
        unit.name = name
        unit.description = (description or "").strip() or None
        self.db.commit()
        self.db.refresh(unit)
        return unit

    def delete_unit(self, class_id: str, unit_id: int) -> None:
        unit = self.get_unit(class_id, unit_id)
        self.db.delete(unit)
        self.db.commit()
        logger.info("Deleted unit %s from class %s", unit_id, class_id)
