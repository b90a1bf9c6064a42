from __future__ import annotations

import asyncio

import pytest

from civic_import.db.repository import InMemoryRepository
from civic_import.models.entities import DEFAULT_STATE_COLOR, STATE_SCHEMA
from civic_import.models.row import RowStatus
from civic_import.services.commit import ConfirmationRequiredError
from civic_import.services.controller import ImportController

"""State import: blank / malformed colors are defaulted and confirmed once."""


def test_three_state_rows_with_defaulted_colors(context, no_sleep, error_log):
    repo = InMemoryRepository()
    controller = ImportController(STATE_SCHEMA, context, repo.create, delay_seconds=0.1, sleep=no_sleep, error_log=error_log)
    controller.load_content(
        "nombre,descripcion,color,icono\n"
        "Nuevo,Recién creado,#10B981,Plus\n"
        "En Proceso,En atención,,Clock\n"
        "Cerrado,Resuelto,notacolor,Check\n",
        "estados.csv",
    )
    state = controller.state
    assert [r.status for r in state.rows] == [RowStatus.PENDING, RowStatus.WARNING, RowStatus.WARNING]
    assert state.row(2).final_data.color == DEFAULT_STATE_COLOR
    assert state.row(3).final_data.color == DEFAULT_STATE_COLOR

    with pytest.raises(ConfirmationRequiredError):
        asyncio.run(controller.commit())

    gate = controller.gate()
    assert gate.warning_rows == frozenset({2, 3})
    summary = asyncio.run(controller.commit(gate.confirmation()))

    assert (summary.success, summary.error, summary.warning) == (3, 0, 2)
    assert [r["color"] for r in repo.records] == ["#10B981", DEFAULT_STATE_COLOR, DEFAULT_STATE_COLOR]
    assert no_sleep.calls == [0.1, 0.1, 0.1]
    assert all(r.status is RowStatus.SUCCESS for r in controller.state.rows)
