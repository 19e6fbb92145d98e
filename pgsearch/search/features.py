"""Search features: tsearch (full-text) and trigram (pg_trgm similarity).

Each feature turns the resolved targets and an analyzed query into a
predicate and a rank expression. Only the query text is ever bound as a
parameter; every other literal in the generated SQL is a constant or a
validated identifier.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import reduce
from typing import Any, ClassVar, NamedTuple

from sqlalchemy import Float, String, Text, bindparam, cast, false, func, literal_column
from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql.elements import BindParameter

from pgsearch.constants import Feature
from pgsearch.search.columns import SearchTarget
from pgsearch.search.normalizer import TextNormalizer
from pgsearch.search.options import SearchConfiguration
from pgsearch.search.query_preprocessor import QueryAnalysis

logger = logging.getLogger(__name__)

_EMPTY_TEXT = "''"


class FeatureFragment(NamedTuple):
    """Predicate and rank contributed by a single feature."""

    feature: Feature
    predicate: ColumnElement
    rank: ColumnElement


def zero_rank() -> ColumnElement:
    return literal_column("0", type_=Float)


def column_text(target: SearchTarget) -> ColumnElement:
    """A target column as non-NULL text."""
    column = target.column
    expr = column if isinstance(column.type, String) else cast(column, Text)
    return func.coalesce(expr, literal_column(_EMPTY_TEXT))


class SearchFeature(ABC):
    """Base class for search features.

    Args:
        config: Resolved search configuration.
        normalizer: Normalizer shared by all features of one compile call.
    """

    feature: ClassVar[Feature]

    def __init__(self, config: SearchConfiguration, normalizer: TextNormalizer) -> None:
        self._config = config
        self._normalizer = normalizer
        self.params: list[BindParameter] = []

    def _bind(self, key: str, value: Any, type_: Any = Text) -> BindParameter:
        param = bindparam(key, value, type_=type_, unique=True)
        self.params.append(param)
        return param

    @abstractmethod
    def compile(self, analysis: QueryAnalysis) -> FeatureFragment:
        """Build this feature's predicate and rank for an analyzed query."""


class TsearchFeature(SearchFeature):
    """PostgreSQL full-text search.

    The document is the concatenation of every target column vectorized
    with the configured dictionary and tagged with its weight class. Each
    query term becomes its own ``to_tsquery`` and terms are ANDed (ORed with
    ``any_word``).
    """

    feature = Feature.TSEARCH

    @property
    def _dictionary(self) -> ColumnElement:
        # validated against the known configurations in options.resolve_dictionary
        return literal_column(f"'{self._config.dictionary}'")

    def document(self) -> ColumnElement:
        vectors = [
            func.setweight(
                func.to_tsvector(self._dictionary, self._normalizer.column(column_text(target))),
                literal_column(f"'{target.rank_letter.value}'"),
            )
            for target in self._config.targets
        ]
        return reduce(lambda left, right: left.op("||")(right), vectors)

    def tsquery(self, analysis: QueryAnalysis) -> ColumnElement:
        queries = [
            func.to_tsquery(
                self._dictionary,
                self._normalizer.query(self._bind("tsquery_term", self._normalizer.tsquery_term(term))),
            )
            for term in analysis.terms
        ]
        operator = "||" if self._config.tsearch.any_word else "&&"
        return reduce(lambda left, right: left.op(operator)(right), queries)

    def compile(self, analysis: QueryAnalysis) -> FeatureFragment:
        if analysis.is_empty:
            return FeatureFragment(self.feature, false(), zero_rank())

        document = self.document()
        tsquery = self.tsquery(analysis)
        predicate = document.op("@@", is_comparison=True)(tsquery)

        normalization = self._config.tsearch.normalization
        if normalization:
            rank = func.ts_rank(document, tsquery, literal_column(str(normalization)), type_=Float)
        else:
            rank = func.ts_rank(document, tsquery, type_=Float)
        return FeatureFragment(self.feature, predicate, rank)


class TrigramFeature(SearchFeature):
    """pg_trgm similarity between the query and all target columns joined by spaces.

    Column weights do not apply to similarity and are ignored.
    """

    feature = Feature.TRIGRAM

    def document(self) -> ColumnElement:
        texts = [self._normalizer.column(column_text(target)) for target in self._config.targets]
        return reduce(lambda left, right: left.op("||")(literal_column("' '")).op("||")(right), texts)

    def compile(self, analysis: QueryAnalysis) -> FeatureFragment:
        if not analysis.text:
            return FeatureFragment(self.feature, false(), zero_rank())

        document = self.document()
        query = self._normalizer.query(self._bind("trigram_query", analysis.text))
        similarity = func.similarity(document, query, type_=Float)

        threshold = self._config.trigram.threshold
        if threshold is None:
            predicate = document.op("%", is_comparison=True)(query)
        else:
            predicate = similarity >= self._bind("trigram_threshold", threshold, type_=Float)
        return FeatureFragment(self.feature, predicate, similarity)


FEATURES: dict[Feature, type[SearchFeature]] = {
    Feature.TSEARCH: TsearchFeature,
    Feature.TRIGRAM: TrigramFeature,
}
