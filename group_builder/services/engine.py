# group_builder/services/engine.py
"""
AssignmentEngine: one per operator session.

Composes the entity manager, mutator, history, statistics and configuration
persistence behind a single object that callers hold by reference. Public
operations return Result and never raise for expected conditions.
"""
import logging
from typing import Dict, List, Optional

from group_builder.adapters.compatibility import CompatibilityService
from group_builder.adapters.optimizer import EvenSplitOptimizer, OptimizerService
from group_builder.adapters.participants import ParticipantSource
from group_builder.domain.errors import FetchError, GroupBuilderError, InvariantViolationError, Result, ValidationError
from group_builder.domain.grouping import OptimizationOptions
from group_builder.domain.models import Adventure, Group, Participant, PersistedState, clone_groups
from group_builder.domain.statistics import group_statistics
from group_builder.services.configurations import ConfigurationPersistence, ConfigurationStore
from group_builder.services.entity_manager import EntityManager, check_invariants
from group_builder.services.history import HistoryManager
from group_builder.services.mutator import TransactionalMutator

logger = logging.getLogger(__name__)


class AssignmentEngine:
    def __init__(
        self,
        participant_source: ParticipantSource,
        compatibility: CompatibilityService,
        configuration_store: ConfigurationStore,
        optimizer: Optional[OptimizerService] = None,
        history_limit: Optional[int] = None,
    ):
        self.participant_source = participant_source
        self.entities = EntityManager()
        self.history = HistoryManager(history_limit)
        self.mutator = TransactionalMutator(
            self.entities,
            self.history,
            compatibility,
            optimizer or EvenSplitOptimizer(),
            on_warning=self._on_warning,
        )
        self.configurations = ConfigurationPersistence(self.entities, self.mutator, configuration_store)

        # transient, never persisted
        self.loading: Dict[str, bool] = {
            "participants": False,
            "optimization": False,
            "saving": False,
        }
        self.error: Optional[str] = None
        self.dragged_participant: Optional[str] = None

        self.history.reset(self.entities.groups)

    # ----------------------------
    # Read access
    # ----------------------------

    @property
    def groups(self) -> List[Group]:
        return clone_groups(self.entities.groups)

    @property
    def participants(self) -> List[Participant]:
        return [p.clone() for p in self.entities.participants]

    @property
    def available_participants(self) -> List[Participant]:
        return [p.clone() for p in self.entities.available_participants]

    @property
    def selected_adventure(self) -> Optional[Adventure]:
        return self.entities.selected_adventure

    @property
    def history_length(self) -> int:
        return len(self.history)

    @property
    def warnings(self) -> List[str]:
        return list(self.mutator.warnings)

    def get_group(self, group_id: str) -> Optional[Group]:
        group = self.entities.find_group(group_id)
        return group.clone() if group else None

    def unassigned_participants(self) -> List[Participant]:
        return [p.clone() for p in self.entities.unassigned_participants()]

    def _on_warning(self, message: str):
        self.error = message

    def _track(self, result: Result) -> Result:
        self.error = None if result.success else result.error.message
        return result

    # ----------------------------
    # Context
    # ----------------------------

    def select_adventure(self, adventure: Adventure):
        """Switch context. Participants and groups of the old adventure are dropped."""
        self.entities.selected_adventure = adventure
        self.entities.set_participants([])
        self.mutator.clear()
        self.history.reset(self.entities.groups)
        self.error = None

    async def load_participants(self, adventure_id: Optional[str] = None) -> Result:
        if adventure_id is None and self.entities.selected_adventure:
            adventure_id = self.entities.selected_adventure.id
        if adventure_id is None:
            return self._track(Result.fail(FetchError("No adventure selected")))

        self.loading["participants"] = True
        try:
            participants = await self.participant_source.fetch_participants(adventure_id)
        except GroupBuilderError as e:
            return self._track(Result.fail(e))
        except Exception as e:
            logger.exception("Load participants error")
            return self._track(Result.fail(FetchError(str(e))))
        finally:
            self.loading["participants"] = False

        self.entities.set_participants(participants)
        logger.info("Loaded %s participants for adventure %s", len(participants), adventure_id)
        return self._track(Result.ok([p.clone() for p in participants]))

    # ----------------------------
    # Mutations
    # ----------------------------

    def create_group(self, name: Optional[str] = None, max_size: Optional[int] = None) -> Result:
        return self._track(self.mutator.create_group(name, max_size))

    async def add_participant_to_group(self, participant_id: str, group_id: str) -> Result:
        return self._track(await self.mutator.add_participant_to_group(participant_id, group_id))

    async def remove_participant_from_group(self, participant_id: str, group_id: str) -> Result:
        return self._track(await self.mutator.remove_participant_from_group(participant_id, group_id))

    async def move_participant(self, participant_id: str, from_group_id: str, to_group_id: str) -> Result:
        return self._track(await self.mutator.move_participant(participant_id, from_group_id, to_group_id))

    def delete_group(self, group_id: str) -> Result:
        return self._track(self.mutator.delete_group(group_id))

    async def generate_optimal_groups(self, options: Optional[OptimizationOptions] = None) -> Result:
        self.loading["optimization"] = True
        try:
            return self._track(await self.mutator.generate_optimal_groups(options))
        finally:
            self.loading["optimization"] = False

    async def wait_for_compatibility(self):
        await self.mutator.wait_for_compatibility()

    # ----------------------------
    # History
    # ----------------------------

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> Result:
        groups = self.history.undo()
        if groups is None:
            return Result.ok(self.groups)
        self.mutator.restore_snapshot(groups)
        return Result.ok(self.groups)

    def redo(self) -> Result:
        groups = self.history.redo()
        if groups is None:
            return Result.ok(self.groups)
        self.mutator.restore_snapshot(groups)
        return Result.ok(self.groups)

    # ----------------------------
    # Statistics
    # ----------------------------

    def get_group_statistics(self) -> Dict:
        return group_statistics(self.entities.groups)

    # ----------------------------
    # Configurations
    # ----------------------------

    @property
    def group_configurations(self):
        return list(self.configurations.configurations)

    async def save_group_configuration(self, name: str, description: str = "") -> Result:
        self.loading["saving"] = True
        try:
            return self._track(await self.configurations.save(name, description))
        finally:
            self.loading["saving"] = False

    async def load_group_configurations(self, vendor_id: Optional[str] = None) -> Result:
        return self._track(await self.configurations.list(vendor_id))

    def load_configuration(self, config_id: str) -> Result:
        return self._track(self.configurations.load(config_id))

    # ----------------------------
    # Durable projection
    # ----------------------------

    def persisted_state(self) -> PersistedState:
        return PersistedState(
            selected_adventure=self.entities.selected_adventure,
            groups=clone_groups(self.entities.groups),
            participants=[p.clone() for p in self.entities.participants],
            group_configurations=list(self.configurations.configurations),
        )

    def restore_state(self, state: PersistedState) -> Result:
        """Rehydrate from a stored projection. History starts over from here."""
        try:
            check_invariants(clone_groups(state.groups))
        except InvariantViolationError as e:
            return self._track(Result.fail(ValidationError(e.message)))
        self.entities.selected_adventure = state.selected_adventure
        self.entities.set_participants([p.clone() for p in state.participants])
        self.configurations.configurations = list(state.group_configurations)
        result = self.mutator.load_groups(state.groups)
        if result.success:
            self.history.reset(self.entities.groups)
        return self._track(result)

    def clear_all(self):
        self.entities.set_participants([])
        self.mutator.clear()
        self.history.reset(self.entities.groups)
        self.dragged_participant = None
        self.error = None

    def reset(self):
        self.clear_all()
        self.entities.selected_adventure = None
        self.configurations.configurations = []
