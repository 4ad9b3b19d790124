# backend/api/routes/stats.py

from fastapi import APIRouter, Depends

from api.routes.utils import get_handler
from models.models import StatsResponse
from services.session_handler import SessionHandler

router = APIRouter()

@router.get("/api/stats", response_model=StatsResponse)
async def get_stats(handler: SessionHandler = Depends(get_handler)):
    """
    Usage statistics.

    Returns:
        dict: totalRooms, connectedUsers, totalMessages (including any the
              history cap has already evicted) and uptime in seconds
    """
    return StatsResponse(**handler.stats())
