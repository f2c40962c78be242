# backend/api/v1/groups.py
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.session import get_db
from core.group_manager import group_manager
from schemas.base import BaseResponse, ErrorResponse
from schemas.group import GroupCreate, GroupResponse
from .auth import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("", response_model=BaseResponse[List[GroupResponse]])
def list_groups(db: Session = Depends(get_db)):
    """List all groups ordered by name"""
    groups = group_manager.list_groups(db)
    return BaseResponse(
        success=True,
        data=[GroupResponse.model_validate(g) for g in groups]
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BaseResponse[GroupResponse],
    responses={
        400: {"description": "Name missing", "model": ErrorResponse},
        409: {"description": "Group exists", "model": ErrorResponse},
    }
)
def create_group(group: GroupCreate, db: Session = Depends(get_db)):
    """Create a new group"""
    created = group_manager.create_group(db, group.name)
    return BaseResponse(
        success=True,
        message=f"Group {created.name} created",
        data=GroupResponse.model_validate(created)
    )


@router.delete(
    "/{name}",
    response_model=BaseResponse,
    responses={409: {"description": "Group still owns IPs", "model": ErrorResponse}}
)
def delete_group(name: str, db: Session = Depends(get_db)):
    """Delete a group; deleting a missing group succeeds"""
    deleted = group_manager.delete_group(db, name)
    return BaseResponse(
        success=True,
        message=f"Group {name} deleted" if deleted else f"Group {name} did not exist"
    )
