from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pandas as pd
import psycopg2

from civic_import.cli.__main__ import main as cli_main
from civic_import.db.repository import InMemoryRepository
from civic_import.models.errors import CommitError


def _write(temp_workdir: Path, name: str, content: str) -> Path:
    p = temp_workdir / "data" / name
    p.write_text(content, encoding="utf-8")
    return p


def test_dry_run_state_import_with_confirmation(write_config, temp_workdir: Path, state_csv: str, capsys):
    f = _write(temp_workdir, "estados.csv", state_csv)
    code = cli_main(["state", str(f), "--dry-run", "--yes"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY entity=state rows=3 success=3 error=0 warning=2 skipped=0 pending=0 elapsed_sec=" in out
    assert 'WARN row 3: color "notacolor" is not valid, using "#3B82F6"' in out


def test_warnings_without_yes_refused_off_tty(write_config, temp_workdir: Path, state_csv: str, capsys):
    f = _write(temp_workdir, "estados.csv", state_csv)
    code = cli_main(["state", str(f), "--dry-run"])
    out = capsys.readouterr().out
    assert code == 3
    assert "re-run with --yes" in out
    assert "SUMMARY" not in out


def test_error_rows_block_commit(write_config, temp_workdir: Path, report_csv: str, capsys):
    f = _write(temp_workdir, "reportes.csv", report_csv)
    code = cli_main(["report", str(f), "--dry-run", "--yes"])
    out = capsys.readouterr().out
    assert code == 3
    assert "ERROR row 2: latitud is required" in out
    assert "commit refused: 1 rows with errors" in out


def test_partial_failure_exit_code(write_config, temp_workdir: Path, capsys):
    f = _write(temp_workdir, "estados.csv", "nombre,descripcion,color,icono\nA,d,#000000,x\nB,d,#000000,x\n")

    class FlakyRepository(InMemoryRepository):
        def create(self, candidate):
            if candidate.name == "B":
                raise CommitError("duplicate key")
            return super().create(candidate)

    with patch("civic_import.cli.__main__.InMemoryRepository", FlakyRepository):
        code = cli_main(["state", str(f), "--dry-run"])
    out = capsys.readouterr().out
    assert code == 2
    assert "success=1 error=1" in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_missing_input_file_is_fatal(write_config, temp_workdir: Path, capsys):
    code = cli_main(["state", str(temp_workdir / "data" / "nope.csv"), "--dry-run"])
    assert code == 1
    assert "ERROR parse: file not found" in capsys.readouterr().out


def test_no_file_argument(write_config, capsys):
    assert cli_main(["state"]) == 1


def test_invalid_config_is_fatal(temp_workdir: Path, capsys):
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text("nope: 1\n", encoding="utf-8")
    code = cli_main(["state", "x.csv", "--dry-run"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_explicit_missing_config_is_fatal(temp_workdir: Path, capsys):
    code = cli_main(["state", "x.csv", "--config", "missing.yml"])
    assert code == 1


def test_template_written(temp_workdir: Path, capsys):
    out_path = temp_workdir / "plantilla.xlsx"
    code = cli_main(["category", "--template", str(out_path)])
    assert code == 0
    df = pd.read_excel(out_path, dtype=str)
    assert list(df.columns) == ["nombre", "descripcion", "color", "icono"]
    assert df["nombre"].tolist() == ["Infraestructura", "Servicios Públicos"]


def test_validate_only_with_search_and_export(write_config, temp_workdir: Path, report_csv: str, capsys):
    f = _write(temp_workdir, "reportes.csv", report_csv)
    export = temp_workdir / "errores.csv"
    code = cli_main(["report", str(f), "--dry-run", "--validate-only", "--search", "poste", "--export", str(export)])
    out = capsys.readouterr().out
    assert code == 0
    assert "match row 2 [error]" in out
    df = pd.read_csv(export, dtype=str, keep_default_na=False)
    assert df["nombre"].tolist() == ["Poste"]
    assert df["status"].tolist() == ["error"]


def test_database_failure_is_fatal(write_config, temp_workdir: Path, state_csv: str, capsys):
    f = _write(temp_workdir, "estados.csv", state_csv)
    with patch(
        "civic_import.db.connection.connect",
        side_effect=psycopg2.OperationalError("could not connect to server"),
    ):
        code = cli_main(["state", str(f), "--yes"])
    assert code == 1
    assert "ERROR database: could not connect" in capsys.readouterr().out


def test_debug_flag(write_config, temp_workdir: Path, state_csv: str, capsys):
    f = _write(temp_workdir, "estados.csv", state_csv)
    code = cli_main(["state", str(f), "--dry-run", "--yes", "--debug", "--delay", "0"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
