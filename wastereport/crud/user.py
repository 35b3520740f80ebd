from datetime import datetime
from typing import Optional, Dict, Any
from wastereport.database import users_collection

async def create_user(email: str, name: str) -> Dict[str, Any]:
    """Create a new user"""
    user_dict = {
        "email": email,
        "name": name,
        "created_at": datetime.utcnow()
    }

    result = await users_collection.insert_one(user_dict)
    user_dict["_id"] = str(result.inserted_id)

    return user_dict

async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """Get user by email"""
    return await users_collection.find_one({"email": email})
