from fastapi import APIRouter, Depends, HTTPException
import logging
from ..crud import reward as reward_crud
from ..models import EarningsResponse
from ..services.identity import SessionIdentity
from .dependencies import get_identity, login_required

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/earnings", response_model=EarningsResponse)
async def get_total_earnings(identity: SessionIdentity = Depends(get_identity)):
    """
    Total reward points the session user can still redeem
    """
    try:
        user = await identity.resolve_user()
        if user is None:
            raise login_required()
        total = await reward_crud.get_available_rewards(user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching total earnings: {str(e)}")
        raise HTTPException(status_code=500, detail="Error fetching total earnings")

    return EarningsResponse(user_id=user.id, total_earnings=total)
