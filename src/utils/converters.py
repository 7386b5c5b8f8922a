"""Conversions between pydantic schemas and SQLAlchemy models."""

from models.user import UserModel
from schemas.user import User


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        username=user.username,
        password_hash=user.password_hash,
        role=user.role,
        display_name=user.display_name,
        email=user.email,
        create_at=user.create_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        username=model.username,
        password_hash=model.password_hash,
        role=model.role,
        display_name=model.display_name,
        email=model.email,
        create_at=model.create_at,
    )
