from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .candidates import Candidate, EntityKind
from .errors import ValidationError, ValidationWarning
from .lookups import LookupTable

"""Entity schemas with per-field resolution rules.

Each entity kind declares an ordered tuple of FieldSpec. A FieldSpec pairs the
column name (as it appears in the file header) with one rule variant. A rule's
`resolve()` either returns a FieldOutcome (resolved value + optional warning) or
raises ValidationError for a hard defect.

Rule variants:
- CoordinateRule: mandatory float inside [minimum, maximum]
- TextRule: optional text, blank -> default (warning)
- OptionalTextRule: optional text, blank -> None (no warning)
- LookupRule: name resolved against a lookup table, blank/unknown -> default entry (warning)
- ChoiceRule: token from a fixed set, blank/invalid -> default (warning)
- HexColorRule: #RRGGBB, blank/malformed -> default (warning)
- IconRule: optional icon name, checked against the icon catalogue when one is configured
"""

__all__ = [
    "ValidationContext",
    "FieldOutcome",
    "CoordinateRule",
    "TextRule",
    "OptionalTextRule",
    "LookupRule",
    "ChoiceRule",
    "HexColorRule",
    "IconRule",
    "FieldRule",
    "FieldSpec",
    "EntitySchema",
]

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class ValidationContext:
    """Shared defaulting context. Changing it requires a global re-validation."""
    categories: LookupTable = field(default_factory=LookupTable)
    states: LookupTable = field(default_factory=LookupTable)
    default_category_name: str = "Sin categoría"
    default_state_name: str = "Sin estado"
    icon_catalogue: frozenset[str] | None = None  # None = any non-blank icon accepted

    def lookup(self, table: str) -> tuple[LookupTable, str]:
        if table == "categories":
            return self.categories, self.default_category_name
        if table == "states":
            return self.states, self.default_state_name
        raise ValueError(f"unknown lookup table: {table}")


@dataclass(frozen=True)
class FieldOutcome:
    value: Any
    warning: ValidationWarning | None = None


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


@dataclass(frozen=True)
class CoordinateRule:
    minimum: float
    maximum: float

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        text = _clean(value)
        if not text:
            raise ValidationError(name, f"{name} is required")
        try:
            number = float(text)
        except ValueError:
            number = math.nan
        if not math.isfinite(number) or not (self.minimum <= number <= self.maximum):
            raise ValidationError(
                name,
                f"{name} is invalid (must be between {self.minimum:g} and {self.maximum:g})",
            )
        return FieldOutcome(number)


@dataclass(frozen=True)
class TextRule:
    default: str  # may reference {index}

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        text = _clean(value)
        if text:
            return FieldOutcome(text)
        substitute = self.default.format(index=index)
        return FieldOutcome(substitute, ValidationWarning(name, None, substitute))


@dataclass(frozen=True)
class OptionalTextRule:
    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        return FieldOutcome(_clean(value) or None)


@dataclass(frozen=True)
class LookupRule:
    table: str  # "categories" | "states"

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        lookup, preferred = ctx.lookup(self.table)
        text = _clean(value)
        found = lookup.resolve(text)
        if found is not None:
            return FieldOutcome(found)
        fallback = lookup.default(preferred)
        if fallback is None:
            raise ValidationError(name, f"{name} cannot be defaulted: no {self.table} available")
        return FieldOutcome(fallback, ValidationWarning(name, text or None, fallback.name))


@dataclass(frozen=True)
class ChoiceRule:
    choices: tuple[str, ...]
    default: str
    convert: Callable[[str], Any] = str

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        text = _clean(value)
        token = text.lower()
        if token in self.choices:
            return FieldOutcome(self.convert(token))
        return FieldOutcome(self.convert(self.default), ValidationWarning(name, text or None, self.default))


@dataclass(frozen=True)
class HexColorRule:
    default: str

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        text = _clean(value)
        if HEX_COLOR_RE.match(text):
            return FieldOutcome(text)
        return FieldOutcome(self.default, ValidationWarning(name, text or None, self.default))


@dataclass(frozen=True)
class IconRule:
    default: str
    use_catalogue: bool = False

    def resolve(self, name: str, value: str | None, index: int, ctx: ValidationContext) -> FieldOutcome:
        text = _clean(value)
        if not text:
            return FieldOutcome(self.default, ValidationWarning(name, None, self.default))
        if self.use_catalogue and ctx.icon_catalogue is not None and text not in ctx.icon_catalogue:
            return FieldOutcome(self.default, ValidationWarning(name, text, self.default))
        return FieldOutcome(text)


FieldRule = (
    CoordinateRule | TextRule | OptionalTextRule | LookupRule | ChoiceRule | HexColorRule | IconRule
)


@dataclass(frozen=True)
class FieldSpec:
    name: str  # column header == raw key
    rule: FieldRule
    attribute: str  # candidate constructor keyword


@dataclass(frozen=True)
class EntitySchema:
    """Declarative description of one importable entity kind."""
    kind: EntityKind
    fields: tuple[FieldSpec, ...]
    build: Callable[..., Candidate]
    template_rows: tuple[Mapping[str, str], ...] = ()
    template_name: str = "plantilla.csv"
    header: tuple[str, ...] = ()  # file column order; defaults to field order

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def columns(self) -> list[str]:
        return list(self.header) if self.header else self.field_names

    def empty_raw(self) -> dict[str, str | None]:
        return {name: None for name in self.field_names}
