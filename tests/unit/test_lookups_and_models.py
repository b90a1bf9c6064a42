from __future__ import annotations

import pytest

from civic_import.models.candidates import Priority, ReportCandidate
from civic_import.models.commit_result import CommitSummary, RowUpdate
from civic_import.models.entities import get_schema
from civic_import.models.errors import RowNotFoundError, ValidationWarning
from civic_import.models.lookups import LookupEntry, LookupTable
from civic_import.models.pipeline_state import PipelineState
from civic_import.models.row import Row, RowStatus


def test_lookup_resolution_case_and_blank(categories: LookupTable):
    assert categories.resolve("  servicios públicos ").id == "c2"
    assert categories.resolve("") is None
    assert categories.resolve(None) is None
    assert categories.resolve("otra") is None


def test_lookup_default_preference(categories: LookupTable):
    assert categories.default("Sin categoría").id == "c0"
    assert categories.default("no existe").id == "c1"
    assert LookupTable().default("Sin categoría") is None


def test_lookup_from_records_validation():
    table = LookupTable.from_records([{"id": 3, "name": "Vial"}])
    assert table.entries == (LookupEntry("3", "Vial"),)
    with pytest.raises(ValueError):
        LookupTable.from_records([{"nombre": "sin id"}])


def test_warning_messages():
    assert ValidationWarning("color", None, "#3B82F6").message == 'color is empty, using "#3B82F6"'
    assert (
        ValidationWarning("priority", "máxima", "urgente").message
        == 'priority "máxima" is not valid, using "urgente"'
    )


def test_report_record_columns():
    cand = ReportCandidate(
        name="Bache",
        description="d",
        category=LookupEntry("c1", "Infraestructura"),
        state=LookupEntry("s1", "Nuevo"),
        latitude=-0.2,
        longitude=-78.5,
        address=None,
        address_reference=None,
        priority=Priority.MEDIO,
    )
    rec = cand.to_record()
    assert rec["categoria_id"] == "c1"
    assert rec["estado_id"] == "s1"
    assert rec["priority"] == "medio"


def test_get_schema():
    assert get_schema("state").template_name == "plantilla_estados.csv"
    with pytest.raises(ValueError):
        get_schema("user")


def test_pipeline_state_transitions():
    rows = (Row(index=1, raw={}), Row(index=3, raw={}, status=RowStatus.ERROR))
    state = PipelineState(kind=get_schema("report").kind, rows=rows)
    assert state.count(RowStatus.ERROR) == 1
    assert state.stats() == {"pending": 1, "processing": 0, "success": 0, "error": 1, "warning": 0}
    with pytest.raises(RowNotFoundError) as exc:
        state.row(2)
    assert str(exc.value) == "row 2 is not in the working set"
    assert isinstance(exc.value, KeyError)
    assert [r.index for r in state.without_row(1).rows] == [3]


def test_row_update_progress_and_summary_partial():
    row = Row(index=1, raw={})
    assert RowUpdate(row=row, processed=1, total=4).progress == 0.25
    assert RowUpdate(row=row, processed=0, total=0).progress == 0.0
    assert CommitSummary(total=2, success=1, error=0, warning=0, skipped=1, pending=0).is_partial
    assert not CommitSummary(total=1, success=0, error=1, warning=0, skipped=0, pending=0).is_partial
