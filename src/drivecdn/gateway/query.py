"""Drive query-language (`q`) builders."""

from __future__ import annotations

from typing import Optional, Sequence

from drivecdn.util.mime import TYPE_FILTERS


def escape_query_value(value: str) -> str:
    """Backslash-escape single quotes for use inside a quoted Drive literal."""
    return value.replace("'", "\\'")


def build_parents_clause(parents: Sequence[str]) -> str:
    if not parents:
        return ""
    clauses = [f"'{parent_id}' in parents" for parent_id in parents]
    if len(clauses) == 1:
        return clauses[0]
    return f"({' or '.join(clauses)})"


def build_type_clause(file_type: Optional[str]) -> str:
    """Return the OR-group for a semantic class, or '' for unknown/empty classes."""
    if not file_type:
        return ""
    filters = TYPE_FILTERS.get(file_type)
    if not filters:
        return ""
    if len(filters) == 1:
        return filters[0]
    return f"({' or '.join(filters)})"


def build_list_query(
    parents: Sequence[str],
    *,
    search: Optional[str] = None,
    file_type: Optional[str] = None,
) -> str:
    """AND together: not trashed, parent membership, name match, type class."""
    parts = ["trashed = false"]

    parents_clause = build_parents_clause(parents)
    if parents_clause:
        parts.append(parents_clause)

    term = search.strip() if isinstance(search, str) else ""
    if term:
        parts.append(f"name contains '{escape_query_value(term)}'")

    type_clause = build_type_clause(file_type)
    if type_clause:
        parts.append(type_clause)

    return " and ".join(parts)
