# tests/test_domain.py
import pytest
from pydantic import ValidationError

from group_builder.domain.errors import CapacityExceededError, NotFoundError, Result
from group_builder.domain.models import Compatibility, Group, PairwiseScore, Participant, structure_of
from group_builder.domain.statistics import compatibility_bucket, group_statistics


def make_group(gid, members, max_size=6, score=0):
    return Group(
        id=gid,
        name=gid,
        participants=[Participant(id=m) for m in members],
        max_size=max_size,
        compatibility=Compatibility(average_score=score),
    )

# -------------------------------
# Models
# -------------------------------

def test_group_clone_is_independent():
    g = make_group("A", ["p1", "p2"], score=80)
    g.compatibility.pairwise_scores.append(PairwiseScore(a="p1", b="p2", score=80))
    copy = g.clone()

    copy.participants.append(Participant(id="p3"))
    copy.compatibility.pairwise_scores.clear()
    copy.participants[0].profile_ref = "changed"

    assert g.member_ids() == ["p1", "p2"]
    assert len(g.compatibility.pairwise_scores) == 1
    assert g.participants[0].profile_ref is None
    assert copy.structure() != g.structure()

def test_group_rejects_non_positive_capacity():
    with pytest.raises(ValidationError):
        Group(id="A", name="A", max_size=0)

def test_structure_ignores_compatibility():
    a = make_group("A", ["p1"], score=10)
    b = make_group("A", ["p1"], score=90)
    assert structure_of([a]) == structure_of([b])

def test_neutral_compatibility():
    c = Compatibility.neutral()
    assert c.average_score == 0
    assert c.pairwise_scores == []
    assert c.group_dynamics is None

def test_result_wraps_error():
    r = Result.fail(CapacityExceededError("full"))
    assert not r.success
    assert r.error_code == "capacity_exceeded"
    assert r.error.to_dict() == {"code": "capacity_exceeded", "message": "full"}
    assert Result.ok(1).error_code is None
    assert NotFoundError("x").code == "not_found"

# -------------------------------
# Statistics
# -------------------------------

def test_statistics_zero_state():
    stats = group_statistics([])
    assert stats["total_groups"] == 0
    assert stats["total_participants"] == 0
    assert stats["average_group_size"] == 0
    assert stats["average_compatibility"] == 0
    assert stats["compatibility_distribution"] == {"excellent": 0, "good": 0, "moderate": 0, "poor": 0}
    assert stats["empty_groups"] == 0
    assert stats["full_groups"] == 0

@pytest.mark.parametrize("score, bucket", [
    (100, "excellent"),
    (85, "excellent"),
    (84.9, "good"),
    (70, "good"),
    (69, "moderate"),
    (50, "moderate"),
    (49.5, "poor"),
    (0, "poor"),
])
def test_compatibility_bucket_boundaries(score, bucket):
    assert compatibility_bucket(score) == bucket

def test_statistics_aggregates():
    groups = [
        make_group("A", ["p1", "p2"], max_size=2, score=90),
        make_group("B", ["p3"], max_size=4, score=72),
        make_group("C", [], max_size=3, score=0),
    ]
    stats = group_statistics(groups)
    assert stats["total_groups"] == 3
    assert stats["total_participants"] == 3
    assert stats["average_group_size"] == 1.0
    # (90 + 72 + 0) / 3 = 54
    assert stats["average_compatibility"] == 54
    assert stats["compatibility_distribution"] == {"excellent": 1, "good": 1, "moderate": 0, "poor": 1}
    assert stats["empty_groups"] == 1
    assert stats["full_groups"] == 1

def test_statistics_rounding():
    groups = [
        make_group("A", ["p1", "p2"], score=70),
        make_group("B", ["p3"], score=71),
        make_group("C", ["p4", "p5"], score=71),
    ]
    stats = group_statistics(groups)
    # 5 / 3 = 1.666.. → 1.7 ; 212 / 3 = 70.67 → 71
    assert stats["average_group_size"] == 1.7
    assert stats["average_compatibility"] == 71

def test_group_dynamics_is_opaque():
    c = Compatibility(average_score=60, group_dynamics=["calm", {"pace": "slow"}])
    copy = c.clone()
    copy.group_dynamics[1]["pace"] = "fast"
    assert c.group_dynamics == ["calm", {"pace": "slow"}]
    assert Compatibility(group_dynamics="steady").group_dynamics == "steady"

def test_is_full():
    assert make_group("A", ["p1", "p2"], max_size=2).is_full()
    assert not make_group("B", ["p1"], max_size=2).is_full()
