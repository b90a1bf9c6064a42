"""Bulk import of civic issue reports, states and categories.

A CSV/XLSX file is parsed into rows, each row is validated against the entity
schema (with documented defaults substituted for empty or invalid values), the
rows can be searched, edited, deleted and exported, and the eligible rows are
committed one at a time to a persistence collaborator.
"""

__version__ = "0.1.0"
