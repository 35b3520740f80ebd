from fastapi import APIRouter
from ..models import ImpactData
from ..services.impact_service import get_impact_data

router = APIRouter()

@router.get("", response_model=ImpactData)
async def get_impact():
    """
    Community impact figures: waste collected, reports submitted, tokens
    earned and the CO2 offset of the collected waste
    """
    return await get_impact_data()
