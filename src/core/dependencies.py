"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import class_manager
from utils import join_request_manager
from utils import profile_manager
from utils import role_transfer
from utils import user_manager


def get_profile_manager(db: Session = Depends(get_db)) -> profile_manager.ProfileManager:
    """Get ProfileManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        ProfileManager instance.
    """
    return profile_manager.ProfileManager(db)


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_class_manager(db: Session = Depends(get_db)) -> class_manager.ClassManager:
    """Get ClassManager instance with request-scoped DB session."""
    return class_manager.ClassManager(db)


def get_join_request_manager(
    db: Session = Depends(get_db),
) -> join_request_manager.JoinRequestManager:
    """Get JoinRequestManager instance with request-scoped DB session."""
    return join_request_manager.JoinRequestManager(db)


def get_role_transfer_manager(
    db: Session = Depends(get_db),
) -> role_transfer.RoleTransferManager:
    return role_transfer.RoleTransferManager(db)


# Type aliases for dependency injection
ProfileManagerDep = Annotated[
    profile_manager.ProfileManager, Depends(get_profile_manager)
]
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
ClassManagerDep = Annotated[
    class_manager.ClassManager, Depends(get_class_manager)
]
JoinRequestManagerDep = Annotated[
    join_request_manager.JoinRequestManager, Depends(get_join_request_manager)
]
RoleTransferManagerDep = Annotated[
    role_transfer.RoleTransferManager, Depends(get_role_transfer_manager)
]
