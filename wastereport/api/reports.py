from fastapi import APIRouter, HTTPException, Path, Query
from bson.errors import InvalidId
import logging
from ..crud import report as report_crud
from ..models import Report, ReportList, ReportStatus, ReportSummary

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("", response_model=ReportList)
async def get_recent_reports(limit: int = Query(10, ge=1, le=100)):
    """
    Get the most recent waste reports

    Results are sorted by creation date (newest first).
    """
    try:
        reports = await report_crud.get_recent_reports(limit)
    except Exception as e:
        logger.error(f"Error retrieving reports: {str(e)}")
        raise HTTPException(status_code=500, detail="Error retrieving reports")

    results = [ReportSummary.from_report(Report.from_mongo(report)) for report in reports]
    return ReportList(count=len(results), results=results)

@router.get("/{report_id}", response_model=Report)
async def get_report(report_id: str = Path(..., description="The ID of the report")):
    """
    Get a specific waste report by ID
    """
    try:
        report = await report_crud.get_report(report_id)
    except InvalidId:
        raise HTTPException(status_code=400, detail=f"Invalid report ID format: {report_id}")
    except Exception as e:
        logger.error(f"Error retrieving report {report_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error retrieving report")

    if not report:
        raise HTTPException(status_code=404, detail=f"Report with ID {report_id} not found")
    return Report.from_mongo(report)

@router.patch("/{report_id}", response_model=Report)
async def update_report_status(
    report_id: str = Path(..., description="The ID of the report"),
    status: ReportStatus = Query(..., description="New status (pending, in_progress, completed)")
):
    """
    Update the status of a waste report
    """
    try:
        updated_report = await report_crud.update_report_status(report_id, status.value)
    except InvalidId:
        raise HTTPException(status_code=400, detail=f"Invalid report ID format: {report_id}")
    except Exception as e:
        logger.error(f"Error updating report {report_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error updating report status")

    if not updated_report:
        raise HTTPException(status_code=404, detail=f"Report with ID {report_id} not found")
    return Report.from_mongo(updated_report)
