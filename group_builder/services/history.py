# group_builder/services/history.py
"""
Bounded undo/redo over structural snapshots of the group collection.

Snapshots are tuples of cloned groups. Restoring hands out another clone, so
neither the live collection nor a caller can alter a stored snapshot.
"""
from typing import List, Optional, Tuple

from group_builder.config.settings import settings
from group_builder.domain.models import Group, clone_groups

HistorySnapshot = Tuple[Group, ...]


class HistoryManager:
    def __init__(self, limit: Optional[int] = None):
        self.limit = limit if limit is not None else settings.HISTORY_LIMIT
        if self.limit < 1:
            raise ValueError("history limit must be at least 1")
        self._entries: List[HistorySnapshot] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    def reset(self, groups: Optional[List[Group]] = None):
        """Drop everything; optionally seed a baseline entry."""
        self._entries = []
        self._index = -1
        if groups is not None:
            self.record(groups)

    def record(self, groups: List[Group]):
        # a new action discards any undone future
        del self._entries[self._index + 1:]
        self._entries.append(tuple(clone_groups(groups)))
        if len(self._entries) > self.limit:
            self._entries.pop(0)
        self._index = len(self._entries) - 1

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[List[Group]]:
        if not self.can_undo():
            return None
        self._index -= 1
        return clone_groups(list(self._entries[self._index]))

    def redo(self) -> Optional[List[Group]]:
        if not self.can_redo():
            return None
        self._index += 1
        return clone_groups(list(self._entries[self._index]))

    def versions(self) -> set:
        """Every group version referenced by a stored snapshot."""
        return {g.version for snap in self._entries for g in snap}
