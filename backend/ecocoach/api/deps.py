import logging
from typing import AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ecocoach.database import AsyncSessionLocal
from ecocoach.models.user import User
from ecocoach.services.coaching import CoachingService
from ecocoach.services.trip_store import TripStore

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


def get_trip_store(db: AsyncSession = Depends(get_db)) -> TripStore:
    return TripStore(db)


def get_coaching_service(store: TripStore = Depends(get_trip_store)) -> CoachingService:
    return CoachingService(store)


async def get_current_user(
    x_user_id: UUID = Header(..., description="ID of the calling user"),
    store: TripStore = Depends(get_trip_store),
) -> User:
    """Resolve the caller from the X-User-Id header."""
    user = await store.get_user(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user
