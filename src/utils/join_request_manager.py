"""Join request workflow.

A prospective member redeems a class code and files a join request. The
request starts ``pending`` and is processed exactly once: ``approved`` admits
the user as a student, ``rejected`` records a reason. A rejected user may
file a fresh request; old rows stay as history and only the newest request
is shown as the user's status.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

import pytz
from sqlalchemy.orm import Session

from core.exceptions import (
    AlreadyMemberError,
    InvalidClassCodeError,
    InvalidTransitionError,
    JoinRequestNotFoundError,
    ValidationError,
)
from models.class_join_request import ClassJoinRequestModel
from utils.class_manager import ROLE_STUDENT, ClassManager
from utils.validators import clean_email

logger = logging.getLogger(__name__)


class JoinRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS: Dict[JoinRequestStatus, FrozenSet[JoinRequestStatus]] = {
    JoinRequestStatus.PENDING: frozenset(
        {JoinRequestStatus.APPROVED, JoinRequestStatus.REJECTED}
    ),
    JoinRequestStatus.APPROVED: frozenset(),
    JoinRequestStatus.REJECTED: frozenset(),
}


class JoinRequestManager:
    """Files and processes class join requests."""

    def __init__(self, db: Session):
        self.db = db
        self.classes = ClassManager(db)

    def get_request(self, request_id: int) -> ClassJoinRequestModel:
        model = (
            self.db.query(ClassJoinRequestModel)
            .filter(ClassJoinRequestModel.id == request_id)
            .first()
        )
        if not model:
            raise JoinRequestNotFoundError(request_id)
        return model

    def submit(
        self,
        class_id: str,
        user_id: str,
        requester_name: str,
        requester_email: str,
        message: Optional[str] = None,
    ) -> ClassJoinRequestModel:
        """File a pending join request.

        Args:
            class_id: Class the user wants to join.
            user_id: The requesting user.
            requester_name: Name shown to the class creator.
            requester_email: Contact email shown to the class creator.
            message: Optional note to the creator.

        Returns:
            The new pending request.

        Raises:
            ValidationError: If the name is empty or the email is malformed.
            ClassNotFoundError: If the class does not exist.
            AlreadyMemberError: If the user is already in the class.
        """
        requester_name = (requester_name or "").strip()
        if not requester_name:
            raise ValidationError("Please enter your name.")
        requester_email = clean_email(requester_email)

        self.classes.get_class(class_id)
        if self.classes.get_membership(class_id, user_id) or self._has_approved(
            class_id, user_id
        ):
            raise AlreadyMemberError(class_id, user_id)

        model = ClassJoinRequestModel(
            class_id=class_id,
            user_id=user_id,
            requester_name=requester_name,
            requester_email=requester_email,
            request_message=(message or "").strip() or None,
            status=JoinRequestStatus.PENDING.value,
            requested_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s requested to join class %s", user_id, class_id)
        return model

    def submit_by_code(
        self,
        code: str,
        user_id: str,
        requester_name: str,
        requester_email: str,
        message: Optional[str] = None,
    ) -> ClassJoinRequestModel:
        """Validate a class code, then file a join request for its class.

        Raises:
            InvalidClassCodeError: If the code is unknown or expired.
        """
        if not self.classes.codes.is_code_valid(code):
            raise InvalidClassCodeError(code)
        class_model = self.classes.codes.find_active_class(code)
        return self.submit(
            class_model.class_id, user_id, requester_name, requester_email, message
        )

    def _has_approved(self, class_id: str, user_id: str) -> bool:
        return (
            self.db.query(ClassJoinRequestModel.id)
            .filter(
                ClassJoinRequestModel.class_id == class_id,
                ClassJoinRequestModel.user_id == user_id,
                ClassJoinRequestModel.status == JoinRequestStatus.APPROVED.value,
            )
            .first()
            is not None
        )

    def _transition(
        self,
        request: ClassJoinRequestModel,
        target: JoinRequestStatus,
        **values,
    ) -> None:
        """Move a request out of pending with a compare-and-swap update.

        Only a row still pending is touched, so two concurrent calls cannot
        both process the same request. Does not commit.
        """
        if target not in ALLOWED_TRANSITIONS[JoinRequestStatus.PENDING]:
            raise InvalidTransitionError(request.id, request.status, target.value)
        updated = (
            self.db.query(ClassJoinRequestModel)
            .filter(
                ClassJoinRequestModel.id == request.id,
                ClassJoinRequestModel.status == JoinRequestStatus.PENDING.value,
            )
            .update(
                {
                    "status": target.value,
                    "processed_at": datetime.now(pytz.utc).isoformat(),
                    **values,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            self.db.rollback()
            raise InvalidTransitionError(request.id, request.status, target.value)

    def approve(self, request_id: int) -> ClassJoinRequestModel:
        """Approve a pending request and admit the user as a student.

        Raises:
            JoinRequestNotFoundError: If the request does not exist.
            InvalidTransitionError: If the request was already processed.
        """
        request = self.get_request(request_id)
        self._transition(request, JoinRequestStatus.APPROVED)
        self.classes.ensure_membership(request.class_id, request.user_id, ROLE_STUDENT)
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            "Approved join request %s: %s joined class %s",
            request_id,
            request.user_id,
            request.class_id,
        )
        return request

    def reject(self, request_id: int, reason: str) -> ClassJoinRequestModel:
        """Reject a pending request, recording why.

        Raises:
            ValidationError: If the reason is empty.
            JoinRequestNotFoundError: If the request does not exist.
            InvalidTransitionError: If the request was already processed.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Please give a reason for rejecting this request.")
        request = self.get_request(request_id)
        self._transition(
            request,
            JoinRequestStatus.REJECTED,
            rejection_reason=reason,
        )
        self.db.commit()
        self.db.refresh(request)
        logger.info("Rejected join request %s: %s", request_id, reason)
        return request

    def latest_request(
        self, class_id: str, user_id: str
    ) -> Optional[ClassJoinRequestModel]:
        return (
            self.db.query(ClassJoinRequestModel)
            .filter(
                ClassJoinRequestModel.class_id == class_id,
                ClassJoinRequestModel.user_id == user_id,
            )
            .order_by(
                ClassJoinRequestModel.requested_at.desc(),
                ClassJoinRequestModel.id.desc(),
            )
            .first()
        )

    def status_for(self, class_id: str, user_id: str) -> Optional[JoinRequestStatus]:
        """Status of the user's most recent request for the class, if any."""
        latest = self.latest_request(class_id, user_id)
        return JoinRequestStatus(latest.status) if latest else None

    def list_for_class(
        self, class_id: str, status: Optional[JoinRequestStatus] = None
    ) -> List[ClassJoinRequestModel]:
        query = self.db.query(ClassJoinRequestModel).filter(
            ClassJoinRequestModel.class_id == class_id
        )
        if status is not None:
            query = query.filter(ClassJoinRequestModel.status == status.value)
        return query.order_by(ClassJoinRequestModel.requested_at.desc()).all()

    def list_for_user(self, user_id: str) -> List[ClassJoinRequestModel]:
        return (
            self.db.query(ClassJoinRequestModel)
            .filter(ClassJoinRequestModel.user_id == user_id)
            .order_by(
                ClassJoinRequestModel.requested_at.desc(),
                ClassJoinRequestModel.id.desc(),
            )
            .all()
        )
