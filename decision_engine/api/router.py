"""API router aggregation."""

from fastapi import APIRouter

from decision_engine.api.decisions import router as decisions_router
from decision_engine.api.health import router as health_router
from decision_engine.api.rules import router as rules_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(decisions_router)
api_router.include_router(rules_router)
