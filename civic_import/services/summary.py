from __future__ import annotations

from ..models.candidates import EntityKind
from ..models.commit_result import CommitSummary

"""SUMMARY line rendering for a commit run.

Format:
SUMMARY entity={kind} rows={total} success={n} error={n} warning={n}
skipped={n} pending={n} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(kind: EntityKind, summary: CommitSummary) -> str:
    """Render the SUMMARY line for one run.

    Examples:
        >>> s = CommitSummary(total=3, success=3, error=0, warning=2, skipped=0, pending=0,
        ...                   elapsed_seconds=2.0)
        >>> render_summary_line(EntityKind.STATE, s)
        'SUMMARY entity=state rows=3 success=3 error=0 warning=2 skipped=0 pending=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY entity={kind.value} "
        f"rows={summary.total} "
        f"success={summary.success} "
        f"error={summary.error} "
        f"warning={summary.warning} "
        f"skipped={summary.skipped} "
        f"pending={summary.pending} "
        f"elapsed_sec={_format_number(summary.elapsed_seconds)}"
    )
