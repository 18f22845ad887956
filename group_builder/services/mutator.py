# group_builder/services/mutator.py
"""
Membership mutations with invariant checks, history and compatibility refresh.

Every public operation returns a Result. Preconditions are checked before any
state is touched, and nothing awaits between the check, the mutation and the
history snapshot, so other coroutines never observe a half-applied change.

Compatibility is recomputed in background tasks. Each task carries the version
token of the membership it scored; the response is dropped if the group is gone
or has moved on to another version by the time it arrives. Tokens come from one
counter per mutator, so a token names exactly one membership state even after
undo/redo puts an older group back.
"""
import asyncio
import itertools
import logging
import uuid
from typing import Callable, Dict, List, Optional, Set

from group_builder.adapters.compatibility import CompatibilityService
from group_builder.adapters.optimizer import OptimizerService
from group_builder.config.settings import settings
from group_builder.domain.errors import (
    AlreadyAssignedError,
    CapacityExceededError,
    CompatibilityComputeError,
    GroupBuilderError,
    InvariantViolationError,
    NotFoundError,
    OptimizationError,
    Result,
    ValidationError,
)
from group_builder.domain.grouping import OptimizationOptions
from group_builder.domain.models import Compatibility, Group, Participant
from group_builder.services.entity_manager import EntityManager, check_invariants
from group_builder.services.history import HistoryManager

logger = logging.getLogger(__name__)


class TransactionalMutator:
    def __init__(
        self,
        entities: EntityManager,
        history: HistoryManager,
        compatibility: CompatibilityService,
        optimizer: OptimizerService,
        on_warning: Optional[Callable[[str], None]] = None,
    ):
        self.entities = entities
        self.history = history
        self.compatibility = compatibility
        self.optimizer = optimizer
        self.on_warning = on_warning
        self.warnings: List[str] = []
        self._versions = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()
        # scores that arrived, by version token, so undo/redo can reuse them
        self._scores: Dict[int, Compatibility] = {}

    # ----------------------------
    # Helpers
    # ----------------------------

    def _next_version(self) -> int:
        return next(self._versions)

    def _require_group(self, group_id: str) -> Group:
        group = self.entities.find_group(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    def _commit(self):
        self.history.record(self.entities.groups)
        keep = self.history.versions() | {g.version for g in self.entities.groups}
        for version in list(self._scores):
            if version not in keep:
                del self._scores[version]

    def _attach(self, participant_id: str, group_id: str) -> Group:
        participant = self.entities.find_available(participant_id)
        group = self.entities.find_group(group_id)
        if participant is None or group is None:
            raise NotFoundError("Participant or group not found")
        if not self.entities.has_capacity(group):
            raise CapacityExceededError(f"Group {group.name} is full ({group.max_size})")
        if self.entities.is_assigned_anywhere(participant_id):
            raise AlreadyAssignedError(f"Participant {participant_id} is already in a group")
        group.participants.append(participant.clone())
        group.version = self._next_version()
        return group

    def _detach(self, participant_id: str, group: Group) -> int:
        for index, p in enumerate(group.participants):
            if p.id == participant_id:
                del group.participants[index]
                group.version = self._next_version()
                return index
        raise NotFoundError(f"Participant {participant_id} is not in group {group.id}")

    def _schedule_refresh(self, group: Group):
        token = group.version
        if not group.participants:
            group.compatibility = Compatibility.neutral()
            self._scores[token] = Compatibility.neutral()
            return
        members = [p.clone() for p in group.participants]
        task = asyncio.get_running_loop().create_task(self._refresh(group.id, token, members))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh(self, group_id: str, token: int, members: List[Participant]):
        try:
            compatibility = await self.compatibility.compute_compatibility(members)
        except CompatibilityComputeError as e:
            self._warn(f"Compatibility for group {group_id} unavailable: {e.message}")
            compatibility = Compatibility.neutral()
        except Exception as e:
            logger.exception("Compatibility service raised for group %s", group_id)
            self._warn(f"Compatibility for group {group_id} unavailable: {e}")
            compatibility = Compatibility.neutral()
        self._apply_compatibility(group_id, token, compatibility)

    def _apply_compatibility(self, group_id: str, token: int, compatibility: Compatibility):
        # the score is right for its own token even when the live group moved on
        self._scores[token] = compatibility.clone()
        group = self.entities.find_group(group_id)
        if group is None:
            logger.debug("Dropping compatibility for deleted group %s", group_id)
            return
        if group.version != token:
            logger.debug("Dropping stale compatibility for group %s (v%s, now v%s)", group_id, token, group.version)
            return
        group.compatibility = compatibility

    def _warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)
        if self.on_warning:
            self.on_warning(message)

    async def wait_for_compatibility(self):
        """Wait until every outstanding recompute has landed or been dropped."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ----------------------------
    # Operations
    # ----------------------------

    def create_group(self, name: Optional[str] = None, max_size: Optional[int] = None) -> Result:
        if max_size is None:
            max_size = settings.GROUP_SIZE_DEFAULT
        if max_size <= 0:
            return Result.fail(ValidationError("max_size must be a positive integer"))
        group = Group(
            id=f"group-{uuid.uuid4().hex}",
            name=name or f"Group {len(self.entities.groups) + 1}",
            max_size=max_size,
            version=self._next_version(),
        )
        self.entities.groups.append(group)
        self._commit()
        logger.info("Created group %s (%s, max %s)", group.id, group.name, max_size)
        return Result.ok(group.clone())

    async def add_participant_to_group(self, participant_id: str, group_id: str) -> Result:
        try:
            group = self._attach(participant_id, group_id)
        except GroupBuilderError as e:
            return Result.fail(e)
        self._schedule_refresh(group)
        self._commit()
        return Result.ok(group.clone())

    async def remove_participant_from_group(self, participant_id: str, group_id: str) -> Result:
        try:
            group = self._require_group(group_id)
            self._detach(participant_id, group)
        except GroupBuilderError as e:
            return Result.fail(e)
        self._schedule_refresh(group)
        self._commit()
        return Result.ok(group.clone())

    async def move_participant(self, participant_id: str, from_group_id: str, to_group_id: str) -> Result:
        """
        Remove from the source group, then add to the target.

        If the add is rejected the participant goes back into the source at its
        old position and the add error is returned. The two steps are not one
        atomic write: a crash between them leaves the participant unassigned.
        """
        try:
            source = self._require_group(from_group_id)
            participant = next((p for p in source.participants if p.id == participant_id), None)
            prior_version = source.version
            prior_compatibility = source.compatibility
            index = self._detach(participant_id, source)
        except GroupBuilderError as e:
            return Result.fail(e)

        try:
            target = self._attach(participant_id, to_group_id)
        except GroupBuilderError as e:
            source.participants.insert(index, participant)
            source.version = prior_version
            source.compatibility = prior_compatibility
            logger.info("Move of %s to %s rejected (%s), restored to %s", participant_id, to_group_id, e.code, from_group_id)
            return Result.fail(e)

        self._schedule_refresh(source)
        if target is not source:
            self._schedule_refresh(target)
        self._commit()
        return Result.ok({"from": source.clone(), "to": target.clone()})

    def delete_group(self, group_id: str) -> Result:
        try:
            group = self._require_group(group_id)
        except GroupBuilderError as e:
            return Result.fail(e)
        self.entities.groups = [g for g in self.entities.groups if g.id != group_id]
        self._commit()
        logger.info("Deleted group %s, %s participants unassigned", group_id, len(group.participants))
        return Result.ok(group.clone())

    async def generate_optimal_groups(self, options: Optional[OptimizationOptions] = None) -> Result:
        """
        Hand the unassigned pool to the optimizer and replace every group with
        its proposal. Groups holding already-assigned people are dropped too;
        they only stay out of the proposal because they were not in the pool.
        """
        options = options or OptimizationOptions(group_size=settings.GROUP_SIZE_DEFAULT)
        pool = self.entities.unassigned_participants()
        if not pool:
            return Result.fail(OptimizationError("No available participants to group"))

        try:
            proposed = await self.optimizer.optimize_partition([p.clone() for p in pool], options)
            check_invariants(proposed)
        except OptimizationError as e:
            logger.error("Group optimization failed: %s", e.message)
            return Result.fail(e)
        except InvariantViolationError as e:
            return Result.fail(OptimizationError(f"Optimizer returned an invalid partition: {e.message}"))
        except Exception as e:
            logger.exception("Group optimization failed")
            return Result.fail(OptimizationError(str(e)))

        pool_ids = {p.id for p in pool}
        strangers = [p.id for g in proposed for p in g.participants if p.id not in pool_ids]
        if strangers:
            return Result.fail(OptimizationError(f"Optimizer placed unknown participants: {strangers}"))

        for g in proposed:
            g.version = self._next_version()
        self.entities.replace_groups(proposed)
        # groups the optimizer did not score get a recompute like any other edit
        for g in proposed:
            if g.compatibility == Compatibility.neutral():
                self._schedule_refresh(g)
        self._commit()
        logger.info("Optimizer produced %s groups from %s participants", len(proposed), len(pool))
        return Result.ok([g.clone() for g in proposed])

    # ----------------------------
    # Wholesale replacement
    # ----------------------------

    def restore_snapshot(self, groups: List[Group]):
        """Put a history snapshot back without recording a new entry."""
        for g in groups:
            cached = self._scores.get(g.version)
            if cached is not None:
                g.compatibility = cached.clone()
        self.entities.replace_groups(groups)

    def clear(self):
        """Drop every group; in-flight recomputes will find nothing to update."""
        self.entities.groups = []
        self._scores.clear()

    def load_groups(self, groups: List[Group]) -> Result:
        """Replace every group with copies of ``groups`` and record the change."""
        fresh = [g.clone() for g in groups]
        try:
            check_invariants(fresh)
        except InvariantViolationError as e:
            return Result.fail(ValidationError(e.message))
        for g in fresh:
            g.version = self._next_version()
        self.entities.replace_groups(fresh)
        self._commit()
        return Result.ok([g.clone() for g in fresh])
