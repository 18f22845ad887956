# group_builder/infrastructure/repositories/configuration_repo.py
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from group_builder.domain.errors import PersistenceError
from group_builder.domain.models import Group, GroupConfiguration
from group_builder.infrastructure.db.session import AsyncSessionLocal
from group_builder.infrastructure.models import GroupConfigurationRecord

logger = logging.getLogger(__name__)

# ----------------------------
# Group configurations
# ----------------------------

async def create_configuration_repo(db: AsyncSession, config: GroupConfiguration) -> GroupConfigurationRecord:
    record = GroupConfigurationRecord(
        id=config.id or uuid.uuid4().hex,
        name=config.name,
        description=config.description,
        adventure_id=config.adventure_id,
        vendor_id=config.vendor_id,
        group_count=config.group_count,
        total_participants=config.total_participants,
        configuration_data={"groups": [g.model_dump(mode="json") for g in config.snapshot]},
        created_at=config.created_at,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def list_configurations_repo(db: AsyncSession, vendor_id: str, limit: Optional[int] = None) -> List[GroupConfigurationRecord]:
    stmt = (
        select(GroupConfigurationRecord)
        .where(GroupConfigurationRecord.vendor_id == vendor_id)
        .order_by(GroupConfigurationRecord.created_at.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def record_to_configuration(record: GroupConfigurationRecord) -> GroupConfiguration:
    data = record.configuration_data or {}
    return GroupConfiguration(
        id=record.id,
        name=record.name,
        description=record.description or "",
        adventure_id=record.adventure_id,
        vendor_id=record.vendor_id,
        group_count=record.group_count or 0,
        total_participants=record.total_participants or 0,
        snapshot=[Group.model_validate(g) for g in data.get("groups", [])],
        created_at=record.created_at,
    )


class SqlConfigurationStore:
    """Configuration store backed by the group_configurations table."""

    def __init__(self, sessionmaker: Optional[async_sessionmaker] = None):
        self.sessionmaker = sessionmaker or AsyncSessionLocal

    async def create_configuration(self, config: GroupConfiguration) -> GroupConfiguration:
        try:
            async with self.sessionmaker() as db:
                record = await create_configuration_repo(db, config)
                return record_to_configuration(record)
        except SQLAlchemyError as e:
            logger.exception("Saving configuration %r failed", config.name)
            raise PersistenceError(f"Could not save configuration: {e}") from e

    async def list_configurations(self, vendor_id: str) -> List[GroupConfiguration]:
        try:
            async with self.sessionmaker() as db:
                rows = await list_configurations_repo(db, vendor_id)
                return [record_to_configuration(r) for r in rows]
        except SQLAlchemyError as e:
            logger.exception("Listing configurations for vendor %s failed", vendor_id)
            raise PersistenceError(f"Could not list configurations: {e}") from e
