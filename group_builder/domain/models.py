# group_builder/domain/models.py
"""
Domain records for the group builder.

Participants carry only an id and an opaque profile reference; profile data is
resolved elsewhere. Groups own their participant list and the last compatibility
summary reported for it. The clone() methods build fresh objects field by field
so history snapshots never share lists with live groups.
"""
import copy

from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Any
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Participant(BaseModel):
    id: str
    profile_ref: Optional[str] = None

    def clone(self) -> "Participant":
        return Participant(id=self.id, profile_ref=self.profile_ref)


class PairwiseScore(BaseModel):
    a: str
    b: str
    score: float


class Compatibility(BaseModel):
    average_score: float = Field(default=0, ge=0, le=100)
    pairwise_scores: List[PairwiseScore] = Field(default_factory=list)
    # opaque to the engine
    group_dynamics: Optional[Any] = None

    @classmethod
    def neutral(cls) -> "Compatibility":
        return cls(average_score=0, pairwise_scores=[], group_dynamics=None)

    def clone(self) -> "Compatibility":
        return Compatibility(
            average_score=self.average_score,
            pairwise_scores=[PairwiseScore(a=p.a, b=p.b, score=p.score) for p in self.pairwise_scores],
            group_dynamics=copy.deepcopy(self.group_dynamics),
        )


class Group(BaseModel):
    id: str
    name: str
    participants: List[Participant] = Field(default_factory=list)
    max_size: int = Field(default=6, gt=0)
    compatibility: Compatibility = Field(default_factory=Compatibility.neutral)
    created_at: datetime = Field(default_factory=utcnow)
    # token of the membership state the compatibility belongs to
    version: int = 0

    def member_ids(self) -> List[str]:
        return [p.id for p in self.participants]

    def is_full(self) -> bool:
        return len(self.participants) >= self.max_size

    def clone(self) -> "Group":
        return Group(
            id=self.id,
            name=self.name,
            participants=[p.clone() for p in self.participants],
            max_size=self.max_size,
            compatibility=self.compatibility.clone(),
            created_at=self.created_at,
            version=self.version,
        )

    def structure(self) -> Dict[str, Any]:
        """Membership layout without the compatibility summary."""
        return {
            "id": self.id,
            "name": self.name,
            "max_size": self.max_size,
            "participants": self.member_ids(),
        }


class Adventure(BaseModel):
    id: str
    vendor_id: Optional[str] = None
    name: Optional[str] = None


class GroupConfiguration(BaseModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    adventure_id: Optional[str] = None
    vendor_id: Optional[str] = None
    group_count: int = 0
    total_participants: int = 0
    snapshot: List[Group] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class PersistedState(BaseModel):
    """
    The part of an engine session that survives a reload.

    Loading flags, history, the dragged participant and error state are not
    part of it.
    """
    selected_adventure: Optional[Adventure] = None
    groups: List[Group] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    group_configurations: List[GroupConfiguration] = Field(default_factory=list)


def clone_groups(groups: List[Group]) -> List[Group]:
    return [g.clone() for g in groups]


def structure_of(groups: List[Group]) -> List[Dict[str, Any]]:
    return [g.structure() for g in groups]
