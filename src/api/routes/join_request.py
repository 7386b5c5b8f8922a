"""Class join request routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.routes.auth import get_current_user
from api.routes.class_route import to_http_exception
from core.dependencies import ClassManagerDep, JoinRequestManagerDep
from core.exceptions import CampusError
from schemas.class_schema import (
    JoinRequestInfo,
    JoinStatusResponse,
    RejectJoinRequest,
    SubmitJoinRequest,
)
from schemas.user import User
from utils.join_request_manager import JoinRequestStatus

router = APIRouter(prefix="/api/join-requests", tags=["Join Requests"])


def _require_class_authority(class_manager, class_id: str, user: User) -> None:
    try:
        class_manager.require_creator(class_id, user.user_id, is_admin=user.role == "admin")
    except CampusError as e:
        raise to_http_exception(e)


@router.post(
    "",
    response_model=JoinRequestInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Request to join a class",
)
def submit_join_request(
    req: SubmitJoinRequest,
    join_request_manager: JoinRequestManagerDep,
    current_user: User = Depends(get_current_user),
) -> JoinRequestInfo:
    """File a join request using a class code.

    The code is validated first; an unknown or expired code is a 404.
    """
    try:
        model = join_request_manager.submit_by_code(
            req.class_code,
            current_user.user_id,
            req.requester_name,
            req.requester_email,
            req.message,
        )
    except CampusError as e:
        raise to_http_exception(e)
    return JoinRequestInfo.model_validate(model)


@router.get("/mine", response_model=List[JoinRequestInfo], summary="My join requests")
def list_my_join_requests(
    join_request_manager: JoinRequestManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[JoinRequestInfo]:
    return [
        JoinRequestInfo.model_validate(model)
        for model in join_request_manager.list_for_user(current_user.user_id)
    ]


@router.get(
    "/status/{class_id}",
    response_model=JoinStatusResponse,
    summary="My latest join request status for a class",
)
def get_join_status(
    class_id: str,
    join_request_manager: JoinRequestManagerDep,
    current_user: User = Depends(get_current_user),
) -> JoinStatusResponse:
    latest = join_request_manager.status_for(class_id, current_user.user_id)
    return JoinStatusResponse(
        class_id=class_id, status=latest.value if latest else None
    )


@router.get(
    "/class/{class_id}",
    response_model=List[JoinRequestInfo],
    summary="List join requests for a class",
)
def list_class_join_requests(
    class_id: str,
    class_manager: ClassManagerDep,
    join_request_manager: JoinRequestManagerDep,
    request_status: Optional[JoinRequestStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
) -> List[JoinRequestInfo]:
    _require_class_authority(class_manager, class_id, current_user)
    return [
        JoinRequestInfo.model_validate(model)
        for model in join_request_manager.list_for_class(class_id, request_status)
    ]


@router.post(
    "/{request_id}/approve",
    response_model=JoinRequestInfo,
    summary="Approve a join request",
)
def approve_join_request(
    request_id: int,
    class_manager: ClassManagerDep,
    join_request_manager: JoinRequestManagerDep,
    current_user: User = Depends(get_current_user),
) -> JoinRequestInfo:
    """Approve a pending request and add the requester as a student.

    Only the class creator or an admin may approve.
    """
    try:
        request = join_request_manager.get_request(request_id)
    except CampusError as e:
        raise to_http_exception(e)
    _require_class_authority(class_manager, request.class_id, current_user)
    try:
        model = join_request_manager.approve(request_id)
    except CampusError as e:
        raise to_http_exception(e)
    return JoinRequestInfo.model_validate(model)


@router.post(
    "/{request_id}/reject",
    response_model=JoinRequestInfo,
    summary="Reject a join request",
)
def reject_join_request(
    request_id: int,
    req: RejectJoinRequest,
    class_manager: ClassManagerDep,
    join_request_manager: JoinRequestManagerDep,
    current_user: User = Depends(get_current_user),
) -> JoinRequestInfo:
    try:
        request = join_request_manager.get_request(request_id)
    except CampusError as e:
        raise to_http_exception(e)
    _require_class_authority(class_manager, request.class_id, current_user)
    try:
        model = join_request_manager.reject(request_id, req.reason)
    except CampusError as e:
        raise to_http_exception(e)
    return JoinRequestInfo.model_validate(model)
