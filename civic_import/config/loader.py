from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.errors import ImportPipelineError
from ..models.lookups import LookupTable
from ..models.schema import ValidationContext

"""Config loader.

Responsibilities:
- Load the YAML config (config/import.yml by default)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults for every optional key
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "ImportConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "default_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"

DEFAULT_TABLES = {"report": "reportes", "state": "estados", "category": "categories"}


class ConfigError(ImportPipelineError):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback (environment variables take precedence)."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    delay_seconds: float = 0.1  # pacing between committed rows
    logs_directory: str = "./logs"
    default_category_name: str = "Sin categoría"
    default_state_name: str = "Sin estado"
    category_icons: frozenset[str] | None = None  # None = no catalogue check
    categories: LookupTable = field(default_factory=LookupTable)
    states: LookupTable = field(default_factory=LookupTable)
    tables: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TABLES))
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def validation_context(
        self, categories: LookupTable | None = None, states: LookupTable | None = None
    ) -> ValidationContext:
        """ValidationContext from the configured lookups (or the given live tables)."""
        return ValidationContext(
            categories=categories if categories is not None else self.categories,
            states=states if states is not None else self.states,
            default_category_name=self.default_category_name,
            default_state_name=self.default_state_name,
            icon_catalogue=self.category_icons,
        )


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def default_config() -> ImportConfig:
    return ImportConfig()


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    base = ImportConfig()
    pacing = data.get("pacing", {})
    defaults = data.get("defaults", {})
    lookups = data.get("lookups", {})
    db_raw = data.get("database", {})
    icons = data.get("category_icons")
    return ImportConfig(
        delay_seconds=float(pacing.get("delay_seconds", base.delay_seconds)),
        logs_directory=data.get("logs_directory", base.logs_directory),
        default_category_name=defaults.get("category_name", base.default_category_name),
        default_state_name=defaults.get("state_name", base.default_state_name),
        category_icons=frozenset(icons) if icons is not None else None,
        categories=LookupTable.from_records(lookups.get("categories", [])),
        states=LookupTable.from_records(lookups.get("states", [])),
        tables={**DEFAULT_TABLES, **data.get("tables", {})},
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
    )
