# group_builder/infrastructure/repositories/state_repo.py
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from group_builder.domain.errors import PersistenceError
from group_builder.domain.models import PersistedState
from group_builder.infrastructure.db.session import AsyncSessionLocal
from group_builder.infrastructure.models import EngineStateRecord

logger = logging.getLogger(__name__)


async def save_state_repo(db: AsyncSession, session_key: str, state: dict) -> EngineStateRecord:
    """Insert or overwrite the stored projection for a session."""
    existing = await db.get(EngineStateRecord, session_key)
    if existing:
        existing.state = state
        record = existing
    else:
        record = EngineStateRecord(session_key=session_key, state=state)
        db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def get_state_repo(db: AsyncSession, session_key: str) -> Optional[EngineStateRecord]:
    return await db.get(EngineStateRecord, session_key)


class SqlStateStore:
    def __init__(self, sessionmaker: Optional[async_sessionmaker] = None):
        self.sessionmaker = sessionmaker or AsyncSessionLocal

    async def save_state(self, session_key: str, state: PersistedState):
        try:
            async with self.sessionmaker() as db:
                await save_state_repo(db, session_key, state.model_dump(mode="json"))
        except SQLAlchemyError as e:
            logger.exception("Persisting session %s failed", session_key)
            raise PersistenceError(f"Could not persist session: {e}") from e

    async def load_state(self, session_key: str) -> Optional[PersistedState]:
        try:
            async with self.sessionmaker() as db:
                record = await get_state_repo(db, session_key)
        except SQLAlchemyError as e:
            logger.exception("Reading session %s failed", session_key)
            raise PersistenceError(f"Could not read session: {e}") from e
        if record is None:
            return None
        return PersistedState.model_validate(record.state or {})
