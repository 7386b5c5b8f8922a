"""Class management routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import ClassManagerDep, RoleTransferManagerDep
from core.exceptions import (
    CampusError,
    CodeGenerationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from schemas.class_schema import (
    ClassCodeInfo,
    ClassInfo,
    ClassLookupResponse,
    ClassMemberInfo,
    CreateClassRequest,
    RegenerateCodeRequest,
    TransferRoleRequest,
    UnitInfo,
    UnitInput,
    UpdateUnitRequest,
)
from schemas.user import User
from utils.class_code import is_expired

router = APIRouter(prefix="/api/classes", tags=["Class"])


def to_http_exception(exc: CampusError) -> HTTPException:
    """Map a domain error to the HTTP status the client should see."""
    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, PermissionDeniedError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, CodeGenerationError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


def _build_class_info(model, role: Optional[str] = None) -> ClassInfo:
    info = ClassInfo.model_validate(model)
    info.role = role
    return info


def _build_code_info(model) -> ClassCodeInfo:
    return ClassCodeInfo(
        class_id=model.class_id,
        class_code=model.class_code,
        code_expires=model.code_expires,
        code_expires_at=model.code_expires_at,
        code_created_at=model.code_created_at,
        is_valid=model.is_active and not is_expired(model),
    )


def _is_admin(user: User) -> bool:
    return user.role == "admin"


@router.post(
    "",
    response_model=ClassInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
)
def create_class(
    req: CreateClassRequest,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassInfo:
    try:
        class_model = class_manager.create_class(
            name=req.name,
            creator_id=current_user.user_id,
            description=req.description,
            units=[unit.model_dump() for unit in req.units],
            code_expires=req.code_expires,
            expiration_hours=req.expiration_hours,
        )
    except CampusError as e:
        raise to_http_exception(e)
    return _build_class_info(class_model, role="creator")


@router.get("", response_model=List[ClassInfo], summary="List classes")
def list_classes(
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[ClassInfo]:
    """List the caller's classes; admins see every class."""
    if _is_admin(current_user):
        return [_build_class_info(model) for model in class_manager.list_all_classes()]

    results = []
    for membership in class_manager.list_classes_for_user(current_user.user_id):
        try:
            model = class_manager.get_class(membership.class_id)
        except NotFoundError:
            continue
        results.append(_build_class_info(model, role=membership.role))
    return results


@router.get(
    "/lookup/{code}",
    response_model=ClassLookupResponse,
    summary="Look up a class by join code",
)
def lookup_class(
    code: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassLookupResponse:
    try:
        return ClassLookupResponse(**class_manager.lookup_by_code(code))
    except CampusError as e:
        raise to_http_exception(e)


@router.get("/{class_id}", response_model=ClassInfo, summary="Get a class")
def get_class(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassInfo:
    try:
        model = class_manager.get_class(class_id)
    except CampusError as e:
        raise to_http_exception(e)
    role = class_manager.get_role(class_id, current_user.user_id)
    if role is None and not _is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this class.",
        )
    return _build_class_info(model, role=role)


@router.get("/{class_id}/code", response_model=ClassCodeInfo, summary="Get the class code")
def get_class_code(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassCodeInfo:
    try:
        model = class_manager.require_creator(
            class_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
    except CampusError as e:
        raise to_http_exception(e)
    return _build_code_info(model)


@router.post(
    "/{class_id}/code/regenerate",
    response_model=ClassCodeInfo,
    summary="Regenerate the class code",
)
def regenerate_class_code(
    class_id: str,
    req: RegenerateCodeRequest,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassCodeInfo:
    """Replace the join code. The old code stops working immediately."""
    try:
        model = class_manager.regenerate_code(
            class_id,
            current_user.user_id,
            expires=req.expires,
            expires_in_hours=req.expires_in_hours,
            is_admin=_is_admin(current_user),
        )
    except CampusError as e:
        raise to_http_exception(e)
    return _build_code_info(model)


@router.get("/{class_id}/units", response_model=List[UnitInfo], summary="List units")
def list_units(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[UnitInfo]:
    try:
        units = class_manager.list_units(class_id)
    except CampusError as e:
        raise to_http_exception(e)
    return [UnitInfo.model_validate(unit) for unit in units]


@router.post(
    "/{class_id}/units",
    response_model=UnitInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Add a unit",
)
def add_unit(
    class_id: str,
    req: UnitInput,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> UnitInfo:
    try:
        class_manager.require_creator(
            class_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
        unit = class_manager.add_unit(class_id, req.name, req.description)
    except CampusError as e:
        raise to_http_exception(e)
    return UnitInfo.model_validate(unit)


@router.put("/{class_id}/units/{unit_id}", response_model=UnitInfo, summary="Edit a unit")
def update_unit(
    class_id: str,
    unit_id: int,
    req: UpdateUnitRequest,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> UnitInfo:
    try:
        class_manager.require_creator(
            class_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
        unit = class_manager.update_unit(class_id, unit_id, req.name, req.description)
    except CampusError as e:
        raise to_http_exception(e)
    return UnitInfo.model_validate(unit)


@router.delete("/{class_id}/units/{unit_id}", summary="Delete a unit")
def delete_unit(
    class_id: str,
    unit_id: int,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    try:
        class_manager.require_creator(
            class_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
        class_manager.delete_unit(class_id, unit_id)
    except CampusError as e:
        raise to_http_exception(e)
    return {"success": True, "message": "Unit deleted successfully"}


@router.get(
    "/{class_id}/members",
    response_model=List[ClassMemberInfo],
    summary="List class members",
)
def list_class_members(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[ClassMemberInfo]:
    try:
        class_manager.get_class(class_id)
    except CampusError as e:
        raise to_http_exception(e)
    if class_manager.get_role(class_id, current_user.user_id) is None and not _is_admin(
        current_user
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this class.",
        )
    return [ClassMemberInfo(**member) for member in class_manager.list_members(class_id)]


@router.delete("/{class_id}/members/{user_id}", summary="Remove a member")
def remove_class_member(
    class_id: str,
    user_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Remove a member. The creator must transfer the role before leaving."""
    try:
        class_manager.remove_member(
            class_id, user_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
    except CampusError as e:
        raise to_http_exception(e)
    return {"success": True, "message": "Member removed successfully"}


@router.delete("/{class_id}/leave", summary="Leave a class")
def leave_class(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Leave a class (remove current user's membership).

    Members can leave a class. The creator cannot leave their own class.
    """
    try:
        class_manager.leave_class(class_id, current_user.user_id)
    except CampusError as e:
        raise to_http_exception(e)
    return {"success": True, "message": "Left class successfully"}


@router.delete("/{class_id}", summary="Delete a class")
def delete_class(
    class_id: str,
    class_manager: ClassManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Delete a class with its units, members and join requests.

    Only the class creator or an admin can delete the class.
    """
    try:
        class_manager.delete_class(
            class_id, current_user.user_id, is_admin=_is_admin(current_user)
        )
    except CampusError as e:
        raise to_http_exception(e)
    return {"success": True, "message": "Class deleted successfully"}


@router.post(
    "/{class_id}/transfer",
    response_model=ClassInfo,
    summary="Transfer the creator role",
)
def transfer_creator_role(
    class_id: str,
    req: TransferRoleRequest,
    class_manager: ClassManagerDep,
    role_transfer_manager: RoleTransferManagerDep,
    current_user: User = Depends(get_current_user),
) -> ClassInfo:
    """Hand the creator role to another member of the class.

    Admins act on behalf of the current creator.

    Args:
        class_id: Class ID.
        req: Request with the new creator's email.
        class_manager: Injected ClassManager instance.
        role_transfer_manager: Injected RoleTransferManager instance.
        current_user: Current authenticated user.

    Returns:
        ClassInfo with the new creator.

    Raises:
        HTTPException: 404 if the target has no profile or is not a member,
            409 if the target already is creator, 403 if the caller is not
            the current creator.
    """
    caller_id = current_user.user_id
    try:
        if _is_admin(current_user):
            caller_id = class_manager.get_class(class_id).creator_id
        model = role_transfer_manager.transfer_creator_role(
            class_id, caller_id, req.new_creator_email
        )
    except CampusError as e:
        raise to_http_exception(e)
    return _build_class_info(
        model, role=class_manager.get_role(class_id, current_user.user_id)
    )
