# backend/schemas/ip.py
"""
Pydantic Schemas for IP address rows and bulk allocation
"""

import ipaddress
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def _check_ipv4(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        return str(ipaddress.IPv4Address(value.strip()))
    except ValueError:
        raise ValueError(f"'{value}' is not a valid IPv4 address (e.g. 10.0.0.1)")


# =============================================================================
# Bulk allocation
# =============================================================================

class AllocationEntry(BaseModel):
    """One group's share of a bulk create"""
    amount: int = Field(..., ge=0, description="Number of addresses for this group")
    group: str = Field(..., min_length=1, max_length=128, description="Owning group name")
    first_ip: Optional[str] = Field(
        None,
        description="Address to start scanning from (required unless ips is given)"
    )
    gateway: Optional[str] = Field(None, description="Gateway stored with each row")

    @field_validator('first_ip', 'gateway')
    @classmethod
    def validate_ipv4(cls, v):
        return _check_ipv4(v)


class IPBulkCreate(BaseModel):
    """
    Bulk create request

    count must equal the sum of allocation amounts. When ips is given it is
    used verbatim, one address per unit in allocation order.
    """
    count: int = Field(..., description="Total number of addresses to create")
    allocations: List[AllocationEntry] = Field(..., description="Per-group allocations")
    ips: Optional[List[str]] = Field(None, description="Explicit addresses to insert")

    @field_validator('ips')
    @classmethod
    def validate_ips(cls, v):
        if v is None:
            return v
        return [_check_ipv4(ip) for ip in v]


# =============================================================================
# Row editing
# =============================================================================

class IPUpdateItem(BaseModel):
    """Move one row to a new address and/or group"""
    old_ip: str
    new_ip: str
    old_group: str = Field(..., min_length=1)
    new_group: str = Field(..., min_length=1)

    @field_validator('old_ip', 'new_ip')
    @classmethod
    def validate_ipv4(cls, v):
        return _check_ipv4(v)


class IPAvailabilityUpdate(BaseModel):
    available_for_user: bool


class IPResponse(BaseModel):
    """Schema for IP row response"""
    id: int
    ip: str
    group_name: str
    gateway: Optional[str]
    available_for_user: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class IPSequencePreview(BaseModel):
    start: str
    count: int
    ips: List[str]
