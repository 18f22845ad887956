# group_builder/services/sessions.py
"""
In-process registry of engine sessions, one AssignmentEngine per session id.
"""
import logging
import uuid
from typing import Callable, Dict, Optional, Protocol

from group_builder.adapters.compatibility import HttpCompatibilityService
from group_builder.adapters.optimizer import build_optimizer
from group_builder.adapters.participants import HttpParticipantSource
from group_builder.domain.errors import NotFoundError, PersistenceError, Result
from group_builder.domain.models import PersistedState
from group_builder.infrastructure.repositories.configuration_repo import SqlConfigurationStore
from group_builder.infrastructure.repositories.state_repo import SqlStateStore
from group_builder.services.engine import AssignmentEngine

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], AssignmentEngine]


class StateStore(Protocol):
    async def save_state(self, session_key: str, state: PersistedState):
        ...

    async def load_state(self, session_key: str) -> Optional[PersistedState]:
        ...


def default_engine_factory() -> AssignmentEngine:
    return AssignmentEngine(
        participant_source=HttpParticipantSource(),
        compatibility=HttpCompatibilityService(),
        configuration_store=SqlConfigurationStore(),
        optimizer=build_optimizer(),
    )


class SessionRegistry:
    def __init__(self, engine_factory: Optional[EngineFactory] = None, state_store: Optional[StateStore] = None):
        self.engine_factory = engine_factory or default_engine_factory
        self.state_store = state_store or SqlStateStore()
        self._sessions: Dict[str, AssignmentEngine] = {}

    def create(self) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = self.engine_factory()
        logger.info("Opened session %s", session_id)
        return session_id

    def get(self, session_id: str) -> Optional[AssignmentEngine]:
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        engine = self._sessions.pop(session_id, None)
        if engine is None:
            return False
        await engine.wait_for_compatibility()
        return True

    async def persist(self, session_id: str) -> Result:
        engine = self.get(session_id)
        if engine is None:
            return Result.fail(NotFoundError(f"Session {session_id} not found"))
        await engine.wait_for_compatibility()
        try:
            await self.state_store.save_state(session_id, engine.persisted_state())
        except PersistenceError as e:
            return Result.fail(e)
        return Result.ok(session_id)

    async def resume(self, session_id: str) -> Result:
        """Rebuild a session from its stored projection."""
        try:
            state = await self.state_store.load_state(session_id)
        except PersistenceError as e:
            return Result.fail(e)
        if state is None:
            return Result.fail(NotFoundError(f"No stored state for session {session_id}"))
        engine = self.engine_factory()
        result = engine.restore_state(state)
        if result.success:
            self._sessions[session_id] = engine
        return result

    async def shutdown(self):
        for session_id in list(self._sessions):
            await self.close(session_id)


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    return registry
