"""Insight REST API endpoint."""

from fastapi import APIRouter

from transit_monitor.core.insights import NORMAL_INSIGHT
from transit_monitor.schemas.snapshot import AiInsight

router = APIRouter(prefix="/api/insight", tags=["insight"])

# Will be set by main.py
engine = None


@router.get("", response_model=AiInsight)
async def get_insight():
    """The single active insight. Always present."""
    if engine is None:
        return NORMAL_INSIGHT
    return engine.insight
