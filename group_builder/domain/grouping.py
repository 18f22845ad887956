# group_builder/domain/grouping.py

from typing import List, Dict, Any, Optional, TypeVar
from dataclasses import dataclass, field
import math

T = TypeVar("T")


@dataclass
class OptimizationOptions:
    group_size: int = 6
    strategy: Optional[str] = None
    preferences_key_weights: Dict[str, float] = field(default_factory=dict)
    random_seed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_size": self.group_size,
            "strategy": self.strategy,
            "preferences_key_weights": dict(self.preferences_key_weights),
            "random_seed": self.random_seed,
        }


def partition_into_groups(members: List[T], target_size: int) -> List[List[T]]:
    """
    Partition members into groups as evenly as possible.
    No group exceeds target_size; the first groups take the remainder.

    Example:
    >>> partition_into_groups([1, 2, 3, 4, 5], 2)
    [[1, 2], [3, 4], [5]]
    """
    n = len(members)
    if n == 0:
        return []
    if target_size <= 0:
        raise ValueError("target_size must be positive")

    num_groups = max(1, math.ceil(n / target_size))
    base_size = n // num_groups
    extra = n % num_groups  # first 'extra' groups get 1 more

    groups = []
    idx = 0
    for i in range(num_groups):
        size = base_size + (1 if i < extra else 0)
        groups.append(members[idx: idx + size])
        idx += size

    return groups
