"""Class schema definitions.

Request and response bodies for classes, units, codes, memberships,
join requests and role transfer.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from config import DEFAULT_CODE_EXPIRY_HOURS


class UnitInput(BaseModel):
    name: str
    description: Optional[str] = None


class CreateClassRequest(BaseModel):
    name: str
    description: Optional[str] = None
    units: List[UnitInput] = Field(default_factory=list)
    code_expires: bool = False
    expiration_hours: int = DEFAULT_CODE_EXPIRY_HOURS


class ClassInfo(BaseModel):
    class_id: str
    name: str
    description: Optional[str] = None
    class_code: str
    code_expires: bool
    code_expires_at: Optional[str] = None
    code_created_at: str
    creator_id: str
    created_at: str
    is_active: bool
    role: Optional[str] = None

    model_config = {"from_attributes": True}


class ClassLookupResponse(BaseModel):
    """What a prospective member sees after typing a code."""
    class_id: str
    name: str
    description: Optional[str] = None
    class_code: str
    creator_name: Optional[str] = None
    unit_count: int
    member_count: int


class RegenerateCodeRequest(BaseModel):
    expires: bool = False
    expires_in_hours: Optional[int] = None


class ClassCodeInfo(BaseModel):
    class_id: str
    class_code: str
    code_expires: bool
    code_expires_at: Optional[str] = None
    code_created_at: str
    is_valid: bool


class UnitInfo(BaseModel):
    id: int
    class_id: str
    name: str
    description: Optional[str] = None
    order_index: int

    model_config = {"from_attributes": True}


class UpdateUnitRequest(BaseModel):
    name: str
    description: Optional[str] = None


class ClassMemberInfo(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: str
    joined_at: str


class SubmitJoinRequest(BaseModel):
    class_code: str
    requester_name: str
    requester_email: EmailStr
    message: Optional[str] = None


class JoinRequestInfo(BaseModel):
    id: int
    class_id: str
    user_id: str
    requester_name: str
    requester_email: str
    request_message: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    requested_at: str
    processed_at: Optional[str] = None

    model_config = {"from_attributes": True}


class RejectJoinRequest(BaseModel):
    reason: str


class JoinStatusResponse(BaseModel):
    class_id: str
    status: Optional[str] = None


class TransferRoleRequest(BaseModel):
    new_creator_email: EmailStr
