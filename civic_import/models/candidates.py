from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from .lookups import LookupEntry

"""Candidate records: the fully resolved, default-applied values ready for persistence.

One frozen dataclass per entity kind. `to_record()` renders the column -> value
mapping handed to a repository (column names follow the dashboard's tables).
"""

__all__ = [
    "EntityKind",
    "Priority",
    "ReportCandidate",
    "StateCandidate",
    "CategoryCandidate",
    "Candidate",
]


class EntityKind(Enum):
    REPORT = "report"
    STATE = "state"
    CATEGORY = "category"


class Priority(Enum):
    ALTO = "alto"
    MEDIO = "medio"
    BAJO = "bajo"
    URGENTE = "urgente"


@dataclass(frozen=True)
class ReportCandidate:
    kind: ClassVar[EntityKind] = EntityKind.REPORT

    name: str
    description: str
    category: LookupEntry
    state: LookupEntry
    latitude: float
    longitude: float
    address: str | None
    address_reference: str | None
    priority: Priority

    def to_record(self) -> dict[str, Any]:
        return {
            "nombre": self.name,
            "descripcion": self.description,
            "categoria_id": self.category.id,
            "estado_id": self.state.id,
            "latitud": self.latitude,
            "longitud": self.longitude,
            "direccion": self.address,
            "referencia_direccion": self.address_reference,
            "priority": self.priority.value,
        }


@dataclass(frozen=True)
class StateCandidate:
    kind: ClassVar[EntityKind] = EntityKind.STATE

    name: str
    description: str
    color: str
    icon: str

    def to_record(self) -> dict[str, Any]:
        # 一括取込で作成されるものは常に有効
        return {
            "nombre": self.name,
            "descripcion": self.description,
            "color": self.color,
            "icono": self.icon,
            "activo": True,
        }


@dataclass(frozen=True)
class CategoryCandidate:
    kind: ClassVar[EntityKind] = EntityKind.CATEGORY

    name: str
    description: str
    color: str
    icon: str

    def to_record(self) -> dict[str, Any]:
        return {
            "nombre": self.name,
            "descripcion": self.description,
            "color": self.color,
            "icono": self.icon,
            "activo": True,
        }


Candidate = ReportCandidate | StateCandidate | CategoryCandidate
