"""Custom exception classes for the Campus class service.

This module defines application-specific exceptions following Google Python
Style Guide. Each family maps to one kind of user-facing failure: invalid
input, missing data, conflicting state, or missing authority.
"""


class CampusError(Exception):
    """Base exception for all Campus class service errors."""

    pass


class ValidationError(CampusError):
    """Raised when input is rejected before any write happens."""

    pass


class NotFoundError(CampusError):
    """Raised when a referenced entity does not exist."""

    pass


class ConflictError(CampusError):
    """Raised when the requested change conflicts with current state."""

    pass


class PermissionDeniedError(CampusError):
    """Raised when the caller lacks authority for an operation."""

    pass


class CodeGenerationError(CampusError):
    """Raised when no unused class code could be produced."""

    def __init__(self, attempts: int):
        """Initialize the exception.

        Args:
            attempts: Number of candidates that were tried.
        """
        self.attempts = attempts
        super().__init__("Could not generate a class code, please try again")


class ClassNotFoundError(NotFoundError):
    """Raised when a requested class cannot be found."""

    def __init__(self, class_id: str):
        """Initialize the exception.

        Args:
            class_id: The ID of the class that was not found.
        """
        self.class_id = class_id
        super().__init__(f"Class '{class_id}' not found")


class InvalidClassCodeError(NotFoundError):
    """Raised when a class code is unknown or has expired."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(
            "This class code is either invalid or has expired. "
            "Please check with the class creator for a new code."
        )


class UnitNotFoundError(NotFoundError):
    """Raised when a class unit cannot be found."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Unit '{unit_id}' not found")


class JoinRequestNotFoundError(NotFoundError):
    """Raised when a join request cannot be found."""

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(f"Join request '{request_id}' not found")


class ProfileNotFoundError(NotFoundError):
    """Raised when a requested profile cannot be found."""

    def __init__(self, user_id: str):
        """Initialize the exception.

        Args:
            user_id: The user ID whose profile was not found.
        """
        self.user_id = user_id
        super().__init__(f"Profile for user '{user_id}' not found")


class TargetNotFoundError(NotFoundError):
    """Raised when a role transfer target email has no profile."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"No user found with email '{email}'")


class NotAMemberError(NotFoundError):
    """Raised when a user is not a member of the class."""

    def __init__(self, class_id: str, user_id: str):
        self.class_id = class_id
        self.user_id = user_id
        super().__init__("This user is not a member of this class.")


class AlreadyMemberError(ConflictError):
    """Raised when a user already belongs to the class."""

    def __init__(self, class_id: str, user_id: str):
        self.class_id = class_id
        self.user_id = user_id
        super().__init__("You are already a member of this class.")


class AlreadyCreatorError(ConflictError):
    """Raised when the transfer target already holds the creator role."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("This user is already the class creator.")


class InvalidTransitionError(ConflictError):
    """Raised when a join request is not in a state that allows the action."""

    def __init__(self, request_id: int, current: str, target: str):
        """Initialize the exception.

        Args:
            request_id: The join request ID.
            current: The status the request currently has.
            target: The status the caller tried to move it to.
        """
        self.request_id = request_id
        self.current = current
        self.target = target
        super().__init__(
            f"Join request '{request_id}' is {current} and cannot become {target}"
        )


class NotCurrentCreatorError(PermissionDeniedError):
    """Raised when the caller is not the class's current creator."""

    def __init__(self, class_id: str, user_id: str):
        self.class_id = class_id
        self.user_id = user_id
        super().__init__("Caller is not the current creator of this class.")
