from motor.motor_asyncio import AsyncIOMotorClient
from wastereport.config import get_settings

settings = get_settings()

client = AsyncIOMotorClient(settings.MONGO_URI)
database = client[settings.DATABASE_NAME]

# Collections
users_collection = database.users
reports_collection = database.reports
rewards_collection = database.rewards
collection_tasks_collection = database.collection_tasks

# Indexes
async def create_indexes():
    # User indexes
    await users_collection.create_index("email", unique=True)

    # Report indexes
    await reports_collection.create_index([("created_at", -1)])  # Sort newest first
    await reports_collection.create_index("status")  # Filter by status
    await reports_collection.create_index("user_id")  # Find reports by user

    # Reward indexes
    await rewards_collection.create_index("user_id")

    # Collection task indexes
    await collection_tasks_collection.create_index([("created_at", -1)])
    await collection_tasks_collection.create_index("status")
