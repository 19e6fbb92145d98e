"""Column weight resolution for the ``against`` option.

Accepted shapes, all normalized into one ordered tuple of ``SearchTarget``::

    against="content"
    against=["title", "content"]
    against=["content", ("title", "A")]
    against={"title": "A", "content": "B"}

Columns may be given by name or as mapped attributes (``Article.title``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql.expression import FromClause

from pgsearch.constants import LOWEST_RANK_LETTER, RankLetter
from pgsearch.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class SearchTarget:
    """A column contributing to the search document.

    Attributes:
        column: The table column.
        weight: Declared weight class, or None when the caller gave none.
    """

    column: ColumnElement
    weight: RankLetter | None = None

    @property
    def rank_letter(self) -> RankLetter:
        """Weight used for ranking; unweighted columns get the lowest class."""
        return self.weight if self.weight is not None else LOWEST_RANK_LETTER


def table_of(source: Any) -> FromClause:
    """Return the selectable behind a declarative model, or the selectable itself."""
    table = getattr(source, "__table__", source)
    if not isinstance(table, FromClause):
        raise ConfigurationError(f"Cannot search {source!r}: not a table or mapped class")
    return table


def parse_weight(value: Any) -> RankLetter | None:
    if value is None:
        return None
    if isinstance(value, RankLetter):
        return value
    if isinstance(value, str):
        try:
            return RankLetter(value.strip().upper())
        except ValueError:
            pass
    raise ConfigurationError(
        f"Unknown weight {value!r}; expected one of {', '.join(letter.value for letter in RankLetter)}"
    )


def _column_name(element: Any) -> str:
    if isinstance(element, str):
        name = element.strip()
    else:
        # mapped attributes and Column objects both carry .key
        name = getattr(element, "key", None)
        if not isinstance(name, str):
            raise ConfigurationError(f"Cannot use {element!r} as a search column")
    if not name:
        raise ConfigurationError("Search column names must not be empty")
    return name


def _iter_pairs(against: Any) -> list[tuple[Any, Any]]:
    if isinstance(against, Mapping):
        return list(against.items())
    if isinstance(against, (list, tuple)):
        pairs: list[tuple[Any, Any]] = []
        for element in against:
            if isinstance(element, (list, tuple)):
                if len(element) != 2:
                    raise ConfigurationError(f"Expected a (column, weight) pair, got {element!r}")
                pairs.append((element[0], element[1]))
            else:
                pairs.append((element, None))
        return pairs
    return [(against, None)]


def resolve_targets(against: Any, table: Any) -> tuple[SearchTarget, ...]:
    """Normalize ``against`` into an ordered tuple of weighted targets.

    Args:
        against: Any of the accepted shapes (see module docstring).
        table: Table or declarative model the columns belong to.

    Raises:
        ConfigurationError: On empty input, unknown columns, duplicate
            columns or unknown weights.
    """
    selectable = table_of(table)
    pairs = _iter_pairs(against)
    if not pairs:
        raise ConfigurationError("At least one column must be searched (against= is empty)")

    targets: list[SearchTarget] = []
    seen: set[str] = set()
    for element, raw_weight in pairs:
        name = _column_name(element)
        if name not in selectable.c:
            raise ConfigurationError(f"{selectable.description!r} has no column named {name!r}")
        if name in seen:
            raise ConfigurationError(f"Column {name!r} is listed more than once")
        seen.add(name)
        targets.append(SearchTarget(column=selectable.c[name], weight=parse_weight(raw_weight)))
    return tuple(targets)
