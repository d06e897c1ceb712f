"""Keyed in-memory stores shared by the count coordinator and the detail cache."""

import logging
from types import MappingProxyType
from typing import Callable, Dict, Generic, Iterable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class KeyedStore(Generic[V]):
    """
    Store addressed by repository full name.

    Readers get immutable snapshots; writers apply merge-patches that touch
    only the keys present in the patch.
    """

    def __init__(self, merge: Optional[Callable[[V, V], V]] = None):
        """
        Args:
            merge: Combines an existing value with its patch. If None, the patch replaces the value.
        """
        self._entries: Dict[str, V] = {}
        self._merge = merge

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[V]:
        return self._entries.get(key)

    def snapshot(self) -> Mapping[str, V]:
        return MappingProxyType(dict(self._entries))

    def merge_patch(self, patch: Mapping[str, V]) -> None:
        for key, value in patch.items():
            current = self._entries.get(key)
            if current is not None and self._merge is not None:
                value = self._merge(current, value)
            self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()


class LoadCycle:
    """
    Tracks which repository list load is current.

    Every load bumps the generation. Background work captures the generation
    when it is dispatched and may only write while that generation is still
    current and the target repository belongs to its collection.
    """

    def __init__(self):
        self.generation = 0
        self._identities: frozenset = frozenset()

    def begin(self) -> int:
        self.generation += 1
        self._identities = frozenset()
        return self.generation

    def publish(self, generation: int, identities: Iterable[str]) -> bool:
        if generation != self.generation:
            return False
        self._identities = frozenset(identities)
        return True

    def is_current(self, generation: int, identity: Optional[str] = None) -> bool:
        if generation != self.generation:
            return False
        return identity is None or identity in self._identities

    def filter_patch(self, generation: int, patch: Mapping[str, V]) -> Dict[str, V]:
        """Drop the entries of a patch that belong to a superseded load."""
        accepted = {key: value for key, value in patch.items() if self.is_current(generation, key)}
        dropped = len(patch) - len(accepted)
        if dropped:
            logger.warning(f"Dropped {dropped} stale update(s) from load generation {generation}")
        return accepted
