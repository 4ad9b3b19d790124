# backend/api/routes/health.py

from fastapi import APIRouter, Depends

from api.routes.utils import get_handler
from models.models import HealthResponse
from services.session_handler import SessionHandler

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
async def health(handler: SessionHandler = Depends(get_handler)):
    """
    Health check endpoint.

    Returns current system status, connection count and room count.
    Used by container health probes and monitoring.
    """
    return handler.health()
