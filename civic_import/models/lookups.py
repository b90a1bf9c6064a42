from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

"""Lookup tables used to resolve human-readable names (categories, states) to references."""

__all__ = [
    "LookupEntry",
    "LookupTable",
]


@dataclass(frozen=True)
class LookupEntry:
    id: str
    name: str


@dataclass(frozen=True)
class LookupTable:
    """Ordered name -> entry resolver. Matching is case-insensitive and ignores surrounding blanks."""
    entries: tuple[LookupEntry, ...] = ()

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> LookupTable:
        """Build from `{"id": ..., "nombre": ...}` records (config file / DB rows)."""
        entries = []
        for rec in records:
            name = rec.get("nombre", rec.get("name"))
            if rec.get("id") is None or name is None:
                raise ValueError(f"lookup record needs id and nombre: {dict(rec)!r}")
            entries.append(LookupEntry(id=str(rec["id"]), name=str(name)))
        return cls(entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def resolve(self, name: str | None) -> LookupEntry | None:
        if name is None:
            return None
        key = name.strip().lower()
        if not key:
            return None
        for entry in self.entries:
            if entry.name.strip().lower() == key:
                return entry
        return None

    def default(self, preferred_name: str | None = None) -> LookupEntry | None:
        """Entry named `preferred_name`, else the first entry, else None when empty."""
        found = self.resolve(preferred_name)
        if found is not None:
            return found
        return self.entries[0] if self.entries else None
