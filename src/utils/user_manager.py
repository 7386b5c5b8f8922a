"""User management utilities.

This module provides user management functionality including user storage,
password hashing, and user lookup. Registering a user also creates the
profile other members see.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from core.exceptions import ConflictError
from schemas.user import User
from models.profile import ProfileModel
from models.user import UserModel
from utils.converters import user_to_model, model_to_user
from utils.validators import clean_email

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

VALID_ROLES = ("admin", "student")


class UserAlreadyExistsError(ConflictError):
    """Exception raised when trying to create a user that already exists."""

    pass


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, bcrypt_rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            bcrypt_rounds: Cost factor for new password hashes.
        """
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # Truncate password if it exceeds bcrypt's 72-byte limit
        password_bytes = password.encode('utf-8')
        if len(password_bytes) > 72:
            logger.warning(
                "Password exceeds 72 bytes (%d bytes), truncating", len(password_bytes)
            )
            password_bytes = password_bytes[:72]

        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode('utf-8')[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_user(
        self,
        username: str,
        password: str,
        full_name: str,
        email: str,
        role: str = "student",
    ) -> User:
        """Create a new user together with their profile.

        Args:
            username: Username for the new user.
            password: Plain text password.
            full_name: Name shown on the profile.
            email: Email address, unique across profiles.
            role: User role ('admin' or 'student').

        Returns:
            Created User object.

        Raises:
            ValidationError: If the email is malformed.
            UserAlreadyExistsError: If username or email is taken.
            ValueError: If the role is unknown.
        """
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid role: {role}. Must be 'admin' or 'student'.")
        email = clean_email(email)

        existing = self.db.query(UserModel).filter(UserModel.username == username).first()
        if existing:
            raise UserAlreadyExistsError(f"User '{username}' already exists")
        email_taken = (
            self.db.query(ProfileModel.user_id)
            .filter(func.lower(ProfileModel.email) == email.lower())
            .first()
        )
        if email_taken:
            raise UserAlreadyExistsError(f"Email '{email}' is already registered")

        user = User(
            username=username,
            password_hash=self.hash_password(password),
            role=role,
            display_name=full_name,
            email=email,
        )

        # Handle potential race condition: if two requests check simultaneously,
        # both might pass the check but database unique constraint will catch it
        try:
            self.db.add(user_to_model(user))
            self.db.add(
                ProfileModel(
                    user_id=user.user_id,
                    full_name=full_name,
                    email=email,
                    points=0,
                    role=role,
                    created_at=user.create_at,
                )
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(f"User '{username}' already exists") from e

        logger.info("Created user: %s", username)
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username.

        Args:
            username: Username to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.username == username).first()
        if model:
            return model_to_user(model)
        return None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the password matches, None otherwise."""
        user = self.get_user_by_username(username)
        if user is None or not self.verify_password(password, user.password_hash):
            return None
        return user
