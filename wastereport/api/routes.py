from fastapi import APIRouter
from .session import router as session_router
from .report_workflow import router as report_workflow_router
from .reports import router as reports_router
from .impact import router as impact_router
from .rewards import router as rewards_router

router = APIRouter(prefix="/api", tags=["API"])

# Login / logout
router.include_router(session_router, prefix="/session")

# Upload, verify and submit a waste report
router.include_router(report_workflow_router, prefix="/report")

# Recent reports listing and status updates
router.include_router(reports_router, prefix="/reports")

# Community impact statistics
router.include_router(impact_router, prefix="/impact")

# Reward earnings
router.include_router(rewards_router, prefix="/rewards")
