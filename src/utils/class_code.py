"""Class join code generation and validation.

Codes are six characters drawn from A-Z and 0-9 so they can be read aloud and
typed on a phone. A class may give its code an expiry; once the expiry passes
the code no longer admits new join requests.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from config import CLASS_CODE_ALPHABET, CLASS_CODE_LENGTH, CLASS_CODE_MAX_ATTEMPTS
from core.exceptions import CodeGenerationError
from models.class_model import ClassModel

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed


def is_expired(class_model: ClassModel, now: Optional[datetime] = None) -> bool:
    """Whether the class's current code has passed its expiry.

    A code marked as expiring but without a timestamp is treated as expired.
    """
    if not class_model.code_expires:
        return False
    if not class_model.code_expires_at:
        return True
    now = now or datetime.now(pytz.utc)
    return now >= parse_timestamp(class_model.code_expires_at)


class ClassCodeService:
    """Generates unique class codes and checks them against their validity window."""

    def __init__(self, db: Session):
        self.db = db

    def _random_code(self) -> str:
        return "".join(
            secrets.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH)
        )

    def code_in_use(self, code: str) -> bool:
        return (
            self.db.query(ClassModel.class_id)
            .filter(ClassModel.class_code == code)
            .first()
            is not None
        )

    def generate_code(self) -> str:
        """Return a code no existing class carries.

        Returns:
            A fresh six character code.

        Raises:
            CodeGenerationError: If every attempt collided.
        """
        for attempt in range(1, CLASS_CODE_MAX_ATTEMPTS + 1):
            code = self._random_code()
            if not self.code_in_use(code):
                return code
            logger.debug("Class code collision on attempt %d", attempt)
        logger.warning(
            "Gave up generating a class code after %d attempts", CLASS_CODE_MAX_ATTEMPTS
        )
        raise CodeGenerationError(CLASS_CODE_MAX_ATTEMPTS)

    def find_active_class(self, code: str) -> Optional[ClassModel]:
        return (
            self.db.query(ClassModel)
            .filter(
                ClassModel.class_code == normalize_code(code),
                ClassModel.is_active.is_(True),
            )
            .first()
        )

    def is_code_valid(self, code: str, now: Optional[datetime] = None) -> bool:
        """Check whether a code currently admits join requests.

        Args:
            code: The code as typed by the user.
            now: Reference time, defaults to the current UTC time.

        Returns:
            False if no active class has the code or the code has expired,
            True otherwise.
        """
        class_model = self.find_active_class(code)
        if class_model is None:
            return False
        return not is_expired(class_model, now)
