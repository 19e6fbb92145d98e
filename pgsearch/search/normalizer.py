"""Text normalization applied to searched columns and to query text."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func
from sqlalchemy.sql import ColumnElement

from pgsearch.constants import Normalization

PREFIX_MARKER = ":*"


class TextNormalizer:
    """Wraps column and query expressions according to the configured normalizations.

    Diacritic folding (``unaccent``) is applied to both sides so that matches
    stay symmetric. Prefix matching only touches the query side: each tsquery
    term gets the ``:*`` marker and then goes through the same folding as the
    columns.

    Args:
        normalizations: Any combination of ``Normalization`` members.
    """

    def __init__(self, normalizations: Iterable[Normalization] = ()) -> None:
        self._normalizations = frozenset(normalizations)

    @property
    def folds_diacritics(self) -> bool:
        return Normalization.DIACRITICS in self._normalizations

    @property
    def prefix_terms(self) -> bool:
        return Normalization.PREFIXES in self._normalizations

    def column(self, expr: ColumnElement) -> ColumnElement:
        if self.folds_diacritics:
            return func.unaccent(expr)
        return expr

    def query(self, expr: ColumnElement) -> ColumnElement:
        if self.folds_diacritics:
            return func.unaccent(expr)
        return expr

    def tsquery_term(self, term: str) -> str:
        """Build the to_tsquery source for one sanitized term."""
        source = f"' {term} '"
        if self.prefix_terms:
            source += PREFIX_MARKER
        return source
