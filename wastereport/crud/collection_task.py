from typing import Dict, Any, List
from wastereport.database import collection_tasks_collection

async def get_waste_collection_tasks(limit: int = 20) -> List[Dict[str, Any]]:
    """Get the most recent waste collection tasks, newest first"""
    cursor = collection_tasks_collection.find().sort("created_at", -1).limit(limit)
    tasks = []
    async for task in cursor:
        task["_id"] = str(task["_id"])
        tasks.append(task)
    return tasks
