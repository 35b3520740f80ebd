from datetime import datetime
from typing import Dict, Any, List, Optional
from bson import ObjectId
from wastereport.database import reports_collection

async def create_report(
    user_id: str,
    location: str,
    waste_type: str,
    amount: str,
    image_url: Optional[str] = None,
    verification_result: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a new waste report in the database.

    Args:
        user_id: ID of the reporting user
        location: Where the waste was found
        waste_type: Verified waste type
        amount: Verified quantity with unit
        image_url: Optional data URL of the uploaded image
        verification_result: Optional JSON encoded verification result

    Returns:
        The created report document
    """
    report_data = {
        "user_id": user_id,
        "location": location,
        "waste_type": waste_type,
        "amount": amount,
        "image_url": image_url,
        "verification_result": verification_result,
        "status": "pending",  # pending, in_progress, completed
        "created_at": datetime.utcnow()
    }

    result = await reports_collection.insert_one(report_data)

    report_data["_id"] = str(result.inserted_id)

    return report_data

async def get_report(report_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a report by ID

    Args:
        report_id: The ID of the report

    Returns:
        The report document or None if not found
    """
    report = await reports_collection.find_one({"_id": ObjectId(report_id)})
    if report:
        report["_id"] = str(report["_id"])
    return report

async def get_recent_reports(limit: int = 10) -> List[Dict[str, Any]]:
    """
    Get the most recent reports, newest first

    Args:
        limit: Maximum number of documents to return

    Returns:
        List of report documents
    """
    cursor = reports_collection.find().sort("created_at", -1).limit(limit)

    reports = []
    async for report in cursor:
        report["_id"] = str(report["_id"])
        reports.append(report)

    return reports

async def update_report_status(report_id: str, status: str) -> Optional[Dict[str, Any]]:
    """
    Update the status of a report

    Args:
        report_id: The ID of the report
        status: New status (pending, in_progress, completed)

    Returns:
        The report document (also when the status was already set) or None if not found
    """
    result = await reports_collection.update_one(
        {"_id": ObjectId(report_id)},
        {"$set": {"status": status}}
    )

    if result.matched_count:
        return await get_report(report_id)
    return None
