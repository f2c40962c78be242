# backend/api/v1/ips.py
"""
Guacamole IP API Endpoints

- List address rows
- Bulk create (explicit list or sequential scan)
- Batch edit address/group
- Toggle self-service availability, delete
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database.session import get_db
from core.ip_manager import ip_manager
from core.ipam import generate_sequence
from schemas.base import BaseResponse, ErrorResponse
from schemas.ip import (
    IPAvailabilityUpdate,
    IPBulkCreate,
    IPResponse,
    IPSequencePreview,
    IPUpdateItem,
)
from .auth import verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get(
    "",
    response_model=BaseResponse[List[IPResponse]],
    summary="List IPs",
    description="Get all address rows, optionally filtered by group or availability"
)
def list_ips(
    group: Optional[str] = Query(None, description="Filter by group name"),
    available: Optional[bool] = Query(None, description="Filter by available_for_user"),
    db: Session = Depends(get_db)
):
    rows = ip_manager.list_ips(db, group=group, available=available)
    return BaseResponse(
        success=True,
        message="Available IPs fetched successfully",
        data=[IPResponse.model_validate(row) for row in rows]
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BaseResponse[List[IPResponse]],
    responses={
        400: {"description": "Inconsistent request", "model": ErrorResponse},
        409: {"description": "Address already exists", "model": ErrorResponse},
    },
    summary="Create IPs",
    description="Create count rows split across groups, all or nothing"
)
def create_ips(request: IPBulkCreate, db: Session = Depends(get_db)):
    rows = ip_manager.create_ips(db, request)
    return BaseResponse(
        success=True,
        message=f"{len(rows)} IP row(s) created",
        data=[IPResponse.model_validate(row) for row in rows]
    )


@router.put(
    "",
    response_model=BaseResponse[List[IPResponse]],
    responses={
        404: {"description": "Row not found", "model": ErrorResponse},
        409: {"description": "Address already exists", "model": ErrorResponse},
    },
    summary="Update IPs",
    description="Change address and/or group of several rows in one transaction"
)
def update_ips(changes: List[IPUpdateItem], db: Session = Depends(get_db)):
    rows = ip_manager.update_ips(db, changes)
    return BaseResponse(
        success=True,
        message="IP, Group updated successfully",
        data=[IPResponse.model_validate(row) for row in rows]
    )


@router.get(
    "/preview",
    response_model=BaseResponse[IPSequencePreview],
    summary="Preview a sequence",
    description="Addresses a sequential range would cover, ignoring existing rows"
)
def preview_sequence(
    start: str = Query(..., description="First address"),
    count: int = Query(..., ge=0, le=65536, description="How many addresses"),
):
    ips = generate_sequence(start, count)
    return BaseResponse(
        success=True,
        data=IPSequencePreview(start=start, count=count, ips=ips)
    )


@router.patch(
    "/{ip}/availability",
    response_model=BaseResponse[IPResponse],
    responses={404: {"description": "Row not found", "model": ErrorResponse}},
    summary="Set availability",
    description="Open or close an address for user self-service"
)
def set_availability(ip: str, body: IPAvailabilityUpdate, db: Session = Depends(get_db)):
    row = ip_manager.set_availability(db, ip, body.available_for_user)
    return BaseResponse(
        success=True,
        message=f"IP {ip} updated",
        data=IPResponse.model_validate(row)
    )


@router.delete(
    "/{ip}",
    response_model=BaseResponse,
    responses={404: {"description": "Row not found", "model": ErrorResponse}},
    summary="Delete IP"
)
def delete_ip(ip: str, db: Session = Depends(get_db)):
    ip_manager.delete_ip(db, ip)
    return BaseResponse(success=True, message=f"IP {ip} deleted")
