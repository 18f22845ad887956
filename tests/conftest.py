# tests/conftest.py
import asyncio
from typing import Dict, List, Optional

import pytest
from faker import Faker

from group_builder.domain.errors import CompatibilityComputeError, FetchError, PersistenceError
from group_builder.domain.models import Adventure, Compatibility, GroupConfiguration, PairwiseScore, Participant
from group_builder.infrastructure.db.session import build_engine, build_sessionmaker, init_models
from group_builder.services.engine import AssignmentEngine

FAKE = Faker()
NR_PARTICIPANTS = 10


# -------------------------------
# Fake collaborators
# -------------------------------

class FakeParticipantSource:
    def __init__(self, participants: List[Participant], error: Optional[str] = None):
        self.participants = participants
        self.error = error
        self.calls: List[str] = []

    async def fetch_participants(self, adventure_id: str) -> List[Participant]:
        self.calls.append(adventure_id)
        if self.error:
            raise FetchError(self.error)
        return [p.clone() for p in self.participants]


class FakeCompatibilityService:
    """Scores by member count so results are easy to predict."""

    def __init__(self):
        self.calls: List[List[str]] = []
        self.fail = False

    async def compute_compatibility(self, participants: List[Participant]) -> Compatibility:
        ids = [p.id for p in participants]
        self.calls.append(ids)
        if self.fail:
            raise CompatibilityComputeError("scorer unavailable")
        pairs = [
            PairwiseScore(a=a, b=b, score=75)
            for i, a in enumerate(ids) for b in ids[i + 1:]
        ]
        return Compatibility(
            average_score=min(100, 40 + 10 * len(ids)),
            pairwise_scores=pairs,
            group_dynamics={"members": len(ids)},
        )


class GatedCompatibilityService:
    """Every call blocks until the test resolves its future."""

    def __init__(self):
        self.requests: List[tuple] = []

    async def compute_compatibility(self, participants: List[Participant]) -> Compatibility:
        future = asyncio.get_running_loop().create_future()
        self.requests.append(([p.id for p in participants], future))
        return await future

    def resolve(self, index: int, score: float):
        self.requests[index][1].set_result(Compatibility(average_score=score))


class InMemoryConfigurationStore:
    def __init__(self):
        self.records: Dict[str, GroupConfiguration] = {}
        self.fail = False

    async def create_configuration(self, config: GroupConfiguration) -> GroupConfiguration:
        if self.fail:
            raise PersistenceError("store unavailable")
        saved = config.model_copy(update={"id": f"cfg-{len(self.records) + 1}"})
        self.records[saved.id] = saved
        return saved

    async def list_configurations(self, vendor_id: str) -> List[GroupConfiguration]:
        if self.fail:
            raise PersistenceError("store unavailable")
        rows = [c for c in self.records.values() if c.vendor_id == vendor_id]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)


# -------------------------------
# Fixtures
# -------------------------------

def make_participants(n: int = NR_PARTICIPANTS) -> List[Participant]:
    return [Participant(id=f"p{i}", profile_ref=FAKE.uuid4()) for i in range(1, n + 1)]


@pytest.fixture
def participants() -> List[Participant]:
    return make_participants()


@pytest.fixture
def compatibility() -> FakeCompatibilityService:
    return FakeCompatibilityService()


@pytest.fixture
def config_store() -> InMemoryConfigurationStore:
    return InMemoryConfigurationStore()


@pytest.fixture
async def engine(participants, compatibility, config_store):
    eng = AssignmentEngine(
        participant_source=FakeParticipantSource(participants),
        compatibility=compatibility,
        configuration_store=config_store,
    )
    eng.select_adventure(Adventure(id="adv-1", vendor_id="vendor-1", name=FAKE.city()))
    result = await eng.load_participants()
    assert result.success
    yield eng
    await eng.wait_for_compatibility()


@pytest.fixture
async def sessionmaker(tmp_path):
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'group_builder_test.db'}")
    await init_models(db_engine)
    yield build_sessionmaker(db_engine)
    await db_engine.dispose()


def member_ids(engine: AssignmentEngine, group_id: str) -> List[str]:
    return engine.get_group(group_id).member_ids()


def assert_invariants(engine: AssignmentEngine):
    seen = set()
    for g in engine.groups:
        ids = g.member_ids()
        assert len(ids) <= g.max_size
        assert not seen.intersection(ids)
        seen.update(ids)
