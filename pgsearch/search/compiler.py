"""Compile a ``SearchConfiguration`` and a query into SQL fragments.

The compiler is a pure function of its inputs: each call builds fresh
SQLAlchemy expressions and keeps no state between calls.

Features are combined so that a row matching through any enabled feature is
returned, ranked by the sum of every feature's rank::

    predicate = tsearch_predicate OR trigram_predicate
    rank      = coalesce(tsearch_rank, 0) + coalesce(trigram_rank, 0)

A ``ranked_by`` expression is then applied by splicing the combined rank
(or a single feature's rank) into the caller's SQL in place of its
placeholders.
"""

from __future__ import annotations

import logging
from functools import reduce
from typing import Any, NamedTuple

from sqlalchemy import Float, func, literal_column, or_
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql.compiler import SQLCompiler

from pgsearch.constants import COMBINED_RANK_PLACEHOLDER, FEATURE_RANK_PLACEHOLDERS, Feature
from pgsearch.search.features import FEATURES, FeatureFragment, zero_rank
from pgsearch.search.normalizer import TextNormalizer
from pgsearch.search.options import PLACEHOLDER_RE, SearchConfiguration
from pgsearch.search.query_preprocessor import analyze_query

logger = logging.getLogger(__name__)


class CompiledFragment(NamedTuple):
    """SQL fragments for one search.

    Attributes:
        predicate: Boolean expression for the WHERE clause.
        rank: Finalized rank expression, for the select list and ORDER BY.
        params: Bound values referenced by the fragments, in creation order.
    """

    predicate: ColumnElement
    rank: ColumnElement
    params: tuple[Any, ...]


class RankExpression(ColumnElement):
    """Caller-written SQL with rank sub-expressions spliced in.

    ``parts`` alternates literal SQL strings and column expressions. Column
    expressions are rendered in parentheses so they keep their precedence
    inside the surrounding arithmetic. Bound parameters inside them are
    preserved.
    """

    inherit_cache = False
    type = Float()

    def __init__(self, parts: list[str | ColumnElement]) -> None:
        self.parts = parts

    def get_children(self, **kw: Any) -> list[ColumnElement]:
        return [part for part in self.parts if not isinstance(part, str)]

    @property
    def _from_objects(self) -> list[Any]:
        return [from_obj for child in self.get_children() for from_obj in child._from_objects]


@compiles(RankExpression)
def _compile_rank_expression(element: RankExpression, compiler: SQLCompiler, **kw: Any) -> str:
    rendered = []
    for part in element.parts:
        if isinstance(part, str):
            rendered.append(compiler.process(literal_column(part), **kw))
        else:
            rendered.append(f"({compiler.process(part, **kw)})")
    return "".join(rendered)


def combine(fragments: list[FeatureFragment]) -> tuple[ColumnElement, ColumnElement]:
    """OR the predicates and add up the ranks of the given feature fragments."""
    if len(fragments) == 1:
        return fragments[0].predicate, fragments[0].rank
    predicate = or_(*(fragment.predicate for fragment in fragments))
    ranks = [func.coalesce(fragment.rank, zero_rank()) for fragment in fragments]
    return predicate, reduce(lambda left, right: left + right, ranks)


def finalize_rank(
    ranked_by: str | None,
    combined_rank: ColumnElement,
    feature_ranks: dict[Feature, ColumnElement],
) -> ColumnElement:
    """Apply a custom rank expression, or return the combined rank unchanged."""
    if ranked_by is None:
        return combined_rank

    parts: list[str | ColumnElement] = []
    position = 0
    for match in PLACEHOLDER_RE.finditer(ranked_by):
        if match.start() > position:
            parts.append(ranked_by[position : match.start()])
        placeholder = match.group(0)
        if placeholder == COMBINED_RANK_PLACEHOLDER:
            parts.append(combined_rank)
        else:
            parts.append(feature_ranks[FEATURE_RANK_PLACEHOLDERS[placeholder]])
        position = match.end()
    if position < len(ranked_by):
        parts.append(ranked_by[position:])
    return RankExpression(parts)


def compile_search(config: SearchConfiguration, query: str | None) -> CompiledFragment:
    """Compile a configuration and a raw query string into SQL fragments.

    Args:
        config: A resolved configuration (see ``build_configuration``).
        query: Raw user input. It only ever reaches the database as bound
            parameters.

    Returns:
        A fresh CompiledFragment.
    """
    analysis = analyze_query(query)
    normalizer = TextNormalizer(config.normalizations)

    fragments: list[FeatureFragment] = []
    params: list[Any] = []
    for feature in config.features:
        strategy = FEATURES[feature](config, normalizer)
        fragments.append(strategy.compile(analysis))
        params.extend(param.value for param in strategy.params)

    predicate, combined_rank = combine(fragments)
    rank = finalize_rank(
        config.ranked_by,
        combined_rank,
        {fragment.feature: fragment.rank for fragment in fragments},
    )
    logger.debug(
        "Compiled search over %d column(s) using %s with %d term(s)",
        len(config.targets),
        ", ".join(feature.value for feature in config.features),
        len(analysis.terms),
    )
    return CompiledFragment(predicate=predicate, rank=rank, params=tuple(params))
