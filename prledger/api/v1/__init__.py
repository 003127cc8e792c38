"""API v1 router aggregation."""

from fastapi import APIRouter

from prledger.api.v1.endpoints import (
    exercises,
    health,
    lift_logs,
    personal_records,
    progression,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(exercises.router, tags=["exercises"])
api_router.include_router(lift_logs.router, prefix="/lift-logs", tags=["lift-logs"])
api_router.include_router(personal_records.router, prefix="/personal-records", tags=["personal-records"])
api_router.include_router(progression.router, prefix="/progression", tags=["progression"])
