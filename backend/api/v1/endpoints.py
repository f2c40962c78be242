# backend/api/v1/endpoints.py
from fastapi import APIRouter

from .groups import router as groups_router
from .ips import router as ips_router

router = APIRouter()

router.include_router(ips_router, prefix="/guacamole-ip", tags=["ips"])
router.include_router(groups_router, prefix="/guacamole-groups", tags=["groups"])
