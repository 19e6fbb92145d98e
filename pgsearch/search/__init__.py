"""Search configuration compiler and SQLAlchemy search scopes."""

from pgsearch.constants import Feature, Normalization, RankLetter
from pgsearch.exceptions import ConfigurationError
from pgsearch.search.columns import SearchTarget, resolve_targets
from pgsearch.search.compiler import CompiledFragment, compile_search
from pgsearch.search.options import SearchConfiguration, build_configuration
from pgsearch.search.query_preprocessor import QueryAnalysis, analyze_query
from pgsearch.search.scope import SearchHit, SearchScope, search_scope

__all__ = [
    "CompiledFragment",
    "ConfigurationError",
    "Feature",
    "Normalization",
    "QueryAnalysis",
    "RankLetter",
    "SearchConfiguration",
    "SearchHit",
    "SearchScope",
    "SearchTarget",
    "analyze_query",
    "build_configuration",
    "compile_search",
    "resolve_targets",
    "search_scope",
]
