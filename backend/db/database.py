from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from config import MONGODB_URL

_client: AsyncIOMotorClient | None = None


def _database_name(url: str) -> str:
    return url.rsplit("/", 1)[-1].split("?")[0]


async def init_db(url: str = MONGODB_URL):
    global _client

    from .models import (
        EmployeeDoc,
        SchedulePeriodDoc,
        ShiftAssignmentDoc,
        LeaveRequestDoc,
        ComplianceRuleDoc,
    )

    _client = AsyncIOMotorClient(url)
    database = _client[_database_name(url)]

    await init_beanie(
        database=database,
        document_models=[
            EmployeeDoc,
            SchedulePeriodDoc,
            ShiftAssignmentDoc,
            LeaveRequestDoc,
            ComplianceRuleDoc,
        ],
    )

    return database


def get_database():
    if _client is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _client[_database_name(MONGODB_URL)]


async def close_db():
    global _client
    if _client is not None:
        _client.close()
        _client = None
