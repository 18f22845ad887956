# group_builder/services/entity_manager.py
from typing import List, Optional

from group_builder.domain.errors import InvariantViolationError
from group_builder.domain.models import Adventure, Group, Participant


class EntityManager:
    """
    Canonical storage for one session: the participant pool, the subset that
    is available for the current adventure, and the groups.

    Only the mutator writes to ``groups``.
    """

    def __init__(self):
        self.selected_adventure: Optional[Adventure] = None
        self.participants: List[Participant] = []
        self.available_participants: List[Participant] = []
        self.groups: List[Group] = []

    def set_participants(self, participants: List[Participant]):
        self.participants = list(participants)
        self.available_participants = list(participants)

    def find_group(self, group_id: str) -> Optional[Group]:
        for g in self.groups:
            if g.id == group_id:
                return g
        return None

    def find_available(self, participant_id: str) -> Optional[Participant]:
        for p in self.available_participants:
            if p.id == participant_id:
                return p
        return None

    def group_of(self, participant_id: str) -> Optional[Group]:
        for g in self.groups:
            if any(p.id == participant_id for p in g.participants):
                return g
        return None

    def is_assigned_anywhere(self, participant_id: str) -> bool:
        return self.group_of(participant_id) is not None

    @staticmethod
    def has_capacity(group: Group) -> bool:
        return not group.is_full()

    def assigned_ids(self) -> set:
        return {p.id for g in self.groups for p in g.participants}

    def unassigned_participants(self) -> List[Participant]:
        assigned = self.assigned_ids()
        return [p for p in self.available_participants if p.id not in assigned]

    def replace_groups(self, groups: List[Group]):
        check_invariants(groups)
        self.groups = groups


def check_invariants(groups: List[Group]):
    """Raise InvariantViolationError on duplicate ids, overfull groups or shared members."""
    seen_groups = set()
    seen_members = {}
    for g in groups:
        if g.id in seen_groups:
            raise InvariantViolationError(f"duplicate group id {g.id}")
        seen_groups.add(g.id)
        if g.max_size <= 0:
            raise InvariantViolationError(f"group {g.id} has non-positive capacity")
        if len(g.participants) > g.max_size:
            raise InvariantViolationError(
                f"group {g.id} holds {len(g.participants)} of {g.max_size}"
            )
        for p in g.participants:
            if p.id in seen_members:
                raise InvariantViolationError(
                    f"participant {p.id} is in {seen_members[p.id]} and {g.id}"
                )
            seen_members[p.id] = g.id
