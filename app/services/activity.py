"""
Activity log service
Every mutating route records one entry in the same transaction as its change
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: AsyncSession,
    user_id: str,
    activity_type: str,
    description: str,
    entity_id: Optional[str] = None,
    entity_type: Optional[str] = None,
) -> ActivityLog:
    """
    Append an activity entry to the current session.
    It is committed together with the change it describes.
    """
    entry = ActivityLog(
        user_id=user_id,
        type=activity_type,
        description=description,
        entity_id=entity_id,
        entity_type=entity_type,
    )
    db.add(entry)
    logger.info("activity %s on %s %s by %s", activity_type, entity_type, entity_id, user_id)
    return entry


async def recent_activity(db: AsyncSession, limit: int = 10) -> List[ActivityLog]:
    result = await db.execute(
        select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())
