"""Class creator role transfer.

Hands the creator role of a class from the current creator to another
member. The hand-off is one transaction guarded by a compare-and-swap on
``classes.creator_id``, so a class never has zero or two creators even when
two transfers race.
"""

import logging

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import (
    AlreadyCreatorError,
    NotAMemberError,
    NotCurrentCreatorError,
    TargetNotFoundError,
)
from models.class_membership import ClassMembershipModel
from models.class_model import ClassModel
from utils.class_manager import ROLE_CREATOR, ROLE_STUDENT, ClassManager
from utils.profile_manager import ProfileManager
from utils.validators import clean_email

logger = logging.getLogger(__name__)


class RoleTransferManager:
    """Transfers the creator role between class members."""

    def __init__(self, db: Session):
        self.db = db
        self.classes = ClassManager(db)
        self.profiles = ProfileManager(db)

    def transfer_creator_role(
        self, class_id: str, caller_id: str, target_email: str
    ) -> ClassModel:
        """Make the member with ``target_email`` the creator of the class.

        Checks run in order and each fails with its own error:
        the target must have a profile, be a member of the class, the
        caller must be the current creator, and the target must not
        already be the creator.

        Args:
            class_id: The class whose creator changes.
            caller_id: User ID of the current creator.
            target_email: Email of the member who becomes creator.

        Returns:
            The updated ClassModel.

        Raises:
            ValidationError: If the email is malformed.
            ClassNotFoundError: If the class does not exist.
            TargetNotFoundError: If no profile has that email.
            NotAMemberError: If the target is not in the class.
            NotCurrentCreatorError: If the caller is not the creator, including
                when another transfer won the race.
            AlreadyCreatorError: If the target already is the creator.
        """
        email = clean_email(target_email)
        class_model = self.classes.get_class(class_id)

        target = self.profiles.get_profile_by_email(email)
        if target is None:
            raise TargetNotFoundError(email)
        target_membership = self.classes.get_membership(class_id, target.user_id)
        if target_membership is None:
            raise NotAMemberError(class_id, target.user_id)
        if self.classes.get_role(class_id, caller_id) != ROLE_CREATOR:
            raise NotCurrentCreatorError(class_id, caller_id)
        if target_membership.role == ROLE_CREATOR:
            raise AlreadyCreatorError(target.user_id)

        new_creator_id = target.user_id
        try:
            swapped = (
                self.db.query(ClassModel)
                .filter(
                    ClassModel.class_id == class_id,
                    ClassModel.creator_id == caller_id,
                )
                .update({"creator_id": new_creator_id}, synchronize_session=False)
            )
            if swapped != 1:
                self.db.rollback()
                raise NotCurrentCreatorError(class_id, caller_id)

            self.db.query(ClassMembershipModel).filter(
                ClassMembershipModel.class_id == class_id,
                ClassMembershipModel.user_id.in_([caller_id, new_creator_id]),
            ).update(
                {
                    "role": case(
                        (ClassMembershipModel.user_id == new_creator_id, ROLE_CREATOR),
                        else_=ROLE_STUDENT,
                    )
                },
                synchronize_session=False,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(class_model)
        logger.info(
            "Transferred creator role of class %s from %s to %s",
            class_id,
            caller_id,
            new_creator_id,
        )
        return class_model
