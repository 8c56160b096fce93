"""
Versioned HTTP surface: /api/v1/health* and /api/v1/facebook/*
"""
from fastapi import APIRouter

from adtier.api.v1 import facebook, health

api_router = APIRouter(prefix="/api/v1")
for module in (health, facebook):
    api_router.include_router(module.router)
