from typing import Dict, Any, List
from wastereport.database import rewards_collection

async def get_all_rewards() -> List[Dict[str, Any]]:
    """Get all rewards sorted by points, highest first"""
    cursor = rewards_collection.find().sort("points", -1)
    rewards = []
    async for reward in cursor:
        reward["_id"] = str(reward["_id"])
        rewards.append(reward)
    return rewards

async def get_available_rewards(user_id: str) -> int:
    """
    Get the total earnings of a user

    Sums the points of every reward the user can still redeem.
    """
    pipeline = [
        {"$match": {"user_id": user_id, "is_available": True}},
        {"$group": {"_id": None, "total": {"$sum": "$points"}}}
    ]
    cursor = rewards_collection.aggregate(pipeline)
    async for row in cursor:
        return int(row.get("total") or 0)
    return 0
