from __future__ import annotations

from .candidates import CategoryCandidate, EntityKind, Priority, ReportCandidate, StateCandidate
from .schema import (
    ChoiceRule,
    CoordinateRule,
    EntitySchema,
    FieldSpec,
    HexColorRule,
    IconRule,
    LookupRule,
    OptionalTextRule,
    TextRule,
)

"""Concrete schemas for the importable entity kinds.

Field order is evaluation order: mandatory coordinates first for reports.
Defaults and template rows match what the dashboard's import screens offer.
"""

__all__ = [
    "REPORT_SCHEMA",
    "STATE_SCHEMA",
    "CATEGORY_SCHEMA",
    "DEFAULT_STATE_COLOR",
    "DEFAULT_CATEGORY_COLOR",
    "get_schema",
]

DEFAULT_STATE_COLOR = "#3B82F6"
DEFAULT_CATEGORY_COLOR = "#10B981"
DEFAULT_DESCRIPTION = "Sin descripción"


REPORT_SCHEMA = EntitySchema(
    kind=EntityKind.REPORT,
    fields=(
        FieldSpec("latitud", CoordinateRule(-90.0, 90.0), "latitude"),
        FieldSpec("longitud", CoordinateRule(-180.0, 180.0), "longitude"),
        FieldSpec("nombre", TextRule("Reporte {index}"), "name"),
        FieldSpec("descripcion", TextRule(DEFAULT_DESCRIPTION), "description"),
        FieldSpec("categoria", LookupRule("categories"), "category"),
        FieldSpec("estado", LookupRule("states"), "state"),
        FieldSpec("direccion", OptionalTextRule(), "address"),
        FieldSpec("referencia_direccion", OptionalTextRule(), "address_reference"),
        FieldSpec(
            "priority",
            ChoiceRule(tuple(p.value for p in Priority), Priority.URGENTE.value, convert=Priority),
            "priority",
        ),
    ),
    build=ReportCandidate,
    template_rows=(
        {
            "nombre": "Ejemplo de Reporte",
            "descripcion": "Descripción del reporte de ejemplo",
            "categoria": "Sin categoría",
            "estado": "Sin estado",
            "latitud": "-0.2299",
            "longitud": "-78.5249",
            "direccion": "Av. Amazonas y Naciones Unidas",
            "referencia_direccion": "Cerca del centro comercial",
            "priority": "urgente",
        },
    ),
    template_name="plantilla_reportes.csv",
    header=(
        "nombre", "descripcion", "categoria", "estado", "latitud", "longitud",
        "direccion", "referencia_direccion", "priority",
    ),
)

STATE_SCHEMA = EntitySchema(
    kind=EntityKind.STATE,
    fields=(
        FieldSpec("nombre", TextRule("Estado sin nombre"), "name"),
        FieldSpec("descripcion", TextRule(DEFAULT_DESCRIPTION), "description"),
        FieldSpec("color", HexColorRule(DEFAULT_STATE_COLOR), "color"),
        FieldSpec("icono", IconRule("🔹"), "icon"),
    ),
    build=StateCandidate,
    template_rows=(
        {"nombre": "Nuevo", "descripcion": "Estado para elementos nuevos", "color": "#10B981", "icono": "Plus"},
        {"nombre": "En Proceso", "descripcion": "Estado para elementos en proceso", "color": "#F59E0B", "icono": "Clock"},
    ),
    template_name="plantilla_estados.csv",
)

CATEGORY_SCHEMA = EntitySchema(
    kind=EntityKind.CATEGORY,
    fields=(
        FieldSpec("nombre", TextRule("Categoría sin nombre"), "name"),
        FieldSpec("descripcion", TextRule(DEFAULT_DESCRIPTION), "description"),
        FieldSpec("color", HexColorRule(DEFAULT_CATEGORY_COLOR), "color"),
        FieldSpec("icono", IconRule("Folder", use_catalogue=True), "icon"),
    ),
    build=CategoryCandidate,
    template_rows=(
        {
            "nombre": "Infraestructura",
            "descripcion": "Problemas relacionados con infraestructura urbana",
            "color": "#DC2626",
            "icono": "Building2",
        },
        {
            "nombre": "Servicios Públicos",
            "descripcion": "Reportes sobre servicios públicos",
            "color": "#2563EB",
            "icono": "Droplets",
        },
    ),
    template_name="plantilla_categorias.csv",
)

_SCHEMAS = {s.kind: s for s in (REPORT_SCHEMA, STATE_SCHEMA, CATEGORY_SCHEMA)}


def get_schema(kind: EntityKind | str) -> EntitySchema:
    """Return the schema for an entity kind (enum or its value, e.g. "report")."""
    try:
        return _SCHEMAS[EntityKind(kind)]
    except ValueError as e:
        raise ValueError(f"unknown entity kind: {kind!r}") from e
