"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from sharecycle.api.v1.donations import router as donations_router
from sharecycle.api.v1.geocode import router as geocode_router
from sharecycle.api.v1.health import router as health_router
from sharecycle.api.v1.notifications import router as notifications_router
from sharecycle.api.v1.requests import router as requests_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(donations_router, prefix="/donations", tags=["donations"])
api_v1_router.include_router(requests_router, prefix="/requests", tags=["requests"])
api_v1_router.include_router(
    notifications_router, prefix="/notifications", tags=["notifications"]
)
api_v1_router.include_router(geocode_router, prefix="/geocode", tags=["geocode"])
