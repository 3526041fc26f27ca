"""Aggregation of resolved call names."""
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional


@dataclass
class CallRecord:
    """How often a name was resolved as a call target."""
    name: str
    count: int = 1

    def inc_count(self, amount: int = 1):
        self.count += amount


class CallRegistry:
    """Name -> CallRecord mapping kept in first-seen order."""

    def __init__(self):
        self._records: Dict[str, CallRecord] = {}

    def record(self, name: str) -> CallRecord:
        """Count one more resolution of name, creating its record on first sight."""
        call = self._records.get(name)
        if call is None:
            call = CallRecord(name)
            self._records[name] = call
        else:
            call.inc_count()
        return call

    def get(self, name: str) -> Optional[CallRecord]:
        return self._records.get(name)

    def merge(self, other: 'CallRegistry') -> 'CallRegistry':
        """Add other's counts into this registry (names new to us keep other's order)."""
        for call in other:
            mine = self._records.get(call.name)
            if mine is None:
                self._records[call.name] = CallRecord(call.name, call.count)
            else:
                mine.inc_count(call.count)
        return self

    @classmethod
    def merged(cls, registries: Iterable['CallRegistry']) -> 'CallRegistry':
        total = cls()
        for registry in registries:
            total.merge(registry)
        return total

    def as_dict(self) -> Dict[str, int]:
        return {name: call.count for name, call in self._records.items()}

    def __iter__(self) -> Iterator[CallRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __repr__(self) -> str:
        return f"CallRegistry({self.as_dict()!r})"
