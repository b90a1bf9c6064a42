# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import pytest

from civic_import.logging.error_log import ErrorLogBuffer
from civic_import.logging.init import APP_LOGGER_NAME, reset_logging
from civic_import.models.lookups import LookupTable
from civic_import.models.schema import ValidationContext


@pytest.fixture(autouse=True)
def _detach_app_logger():
    yield
    # capsys のストリームを次のテストへ持ち越さない
    reset_logging()
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def categories() -> LookupTable:
    return LookupTable.from_records(
        [
            {"id": "c1", "nombre": "Infraestructura"},
            {"id": "c0", "nombre": "Sin categoría"},
            {"id": "c2", "nombre": "Servicios Públicos"},
        ]
    )


@pytest.fixture()
def states() -> LookupTable:
    return LookupTable.from_records(
        [
            {"id": "s1", "nombre": "Nuevo"},
            {"id": "s0", "nombre": "Sin estado"},
        ]
    )


@pytest.fixture()
def context(categories: LookupTable, states: LookupTable) -> ValidationContext:
    return ValidationContext(
        categories=categories,
        states=states,
        icon_catalogue=frozenset({"Folder", "Building2", "Droplets"}),
    )


@pytest.fixture()
def error_log(tmp_path: Path) -> ErrorLogBuffer:
    return ErrorLogBuffer(tmp_path / "logs")


@pytest.fixture()
def no_sleep():
    """Pacing sleep that records requested delays instead of waiting."""
    calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    fake_sleep.calls = calls  # type: ignore[attr-defined]
    return fake_sleep


@pytest.fixture()
def state_csv() -> str:
    return (
        "nombre,descripcion,color,icono\n"
        "Nuevo,Estado inicial,#10B981,Plus\n"
        "En Proceso,,,Clock\n"
        "Cerrado,Finalizado,notacolor,Check\n"
    )


@pytest.fixture()
def report_csv() -> str:
    return (
        "nombre,descripcion,categoria,estado,latitud,longitud,direccion,referencia_direccion,priority\n"
        "Bache,Hueco grande,Infraestructura,Nuevo,-0.2299,-78.5249,Av. Amazonas,Centro,alto\n"
        "Poste,Luz apagada,Infraestructura,Nuevo,,-78.5,,,medio\n"
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """pacing:
  delay_seconds: 0
logs_directory: ./logs
defaults:
  category_name: Sin categoría
  state_name: Sin estado
category_icons: [Folder, Building2, Droplets]
lookups:
  categories:
    - {id: "c1", nombre: "Infraestructura"}
    - {id: "c0", nombre: "Sin categoría"}
  states:
    - {id: "s1", nombre: "Nuevo"}
    - {id: "s0", nombre: "Sin estado"}
tables:
  report: reportes
  state: estados
  category: categories
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
