"""Search scopes: attach compiled search fragments to SQLAlchemy queries.

Declare a scope on a model and call it with a query string to get a
``Select`` filtered by the search and ordered by rank::

    class Article(Base):
        ...
        search_content = search_scope(against="content")
        search_title_or_content = search_scope(
            lambda query, pick_content: {
                "query": query,
                "against": "content" if pick_content else "title",
            }
        )

    stmt = Article.search_content("foo")
    hits = await Article.search_content.search(session, "foo")

Ordering is ``rank DESC`` then primary key ``ASC`` so that ties are
returned in a stable order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from pgsearch.config import get_settings
from pgsearch.exceptions import ConfigurationError
from pgsearch.search.columns import table_of
from pgsearch.search.compiler import CompiledFragment, compile_search
from pgsearch.search.options import SearchConfiguration, build_configuration, split_dynamic_options

logger = logging.getLogger(__name__)

DynamicOptions = Callable[..., Mapping[str, Any]]


class SearchHit(BaseModel):
    """A single row returned by a search scope.

    Attributes:
        record: The mapped instance.
        rank: Value of the finalized rank expression for that row.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    record: Any
    rank: float | None


class SearchScope:
    """A named search over one mapped class.

    Static options are resolved once, on construction, so configuration
    errors surface as soon as the scope is built. A scope declared with
    ``search_scope`` is built on first attribute access, once the class is
    mapped, so its errors surface there. Dynamic options (a callable
    returning the options plus a ``query`` entry) are resolved on each call.

    Args:
        model: Mapped class to search.
        options: Options mapping, or a callable producing one per call.
        name: Scope name, used in log messages.
    """

    def __init__(
        self,
        model: type,
        options: Mapping[str, Any] | DynamicOptions,
        name: str | None = None,
    ) -> None:
        self._model = model
        self._name = name or "search"
        self._dynamic: DynamicOptions | None = None
        self._config: SearchConfiguration | None = None

        if callable(options):
            self._dynamic = options
        else:
            self._config = build_configuration(model, **options)
            logger.info(
                "Declared search scope %s.%s over %s",
                model.__name__,
                self._name,
                ", ".join(target.column.name for target in self._config.targets),
            )

    @property
    def model(self) -> type:
        return self._model

    def resolve(self, query: Any, *args: Any) -> tuple[SearchConfiguration, str]:
        """Return the configuration and query text to compile for one call."""
        if self._dynamic is None:
            if args:
                raise TypeError(f"{self._name}() takes a single query argument for a static scope")
            return self._config, query
        resolved_query, options = split_dynamic_options(self._dynamic(query, *args))
        return build_configuration(self._model, **options), resolved_query

    def compile(self, query: Any, *args: Any) -> CompiledFragment:
        config, resolved_query = self.resolve(query, *args)
        return compile_search(config, resolved_query)

    def statement(self, query: Any, *args: Any) -> Select:
        """Build ``SELECT model, rank ... WHERE predicate ORDER BY rank DESC, pk ASC``."""
        fragment = self.compile(query, *args)
        table = table_of(self._model)
        primary_key = list(table.primary_key.columns)
        if not primary_key:
            raise ConfigurationError(f"{self._model.__name__} has no primary key to break rank ties with")

        rank = fragment.rank.label(get_settings().SEARCH_RANK_LABEL)
        return (
            select(self._model, rank)
            .where(fragment.predicate)
            .order_by(rank.desc(), *(column.asc() for column in primary_key))
        )

    def __call__(self, query: Any, *args: Any) -> Select:
        return self.statement(query, *args)

    async def search(self, session: AsyncSession, query: Any, *args: Any) -> list[SearchHit]:
        """Execute the scope and return hits in rank order."""
        result = await session.execute(self.statement(query, *args))
        return [
            SearchHit(record=record, rank=float(rank) if rank is not None else None) for record, rank in result.all()
        ]


class ScopeDescriptor:
    """Class attribute that turns into a ``SearchScope`` on first access.

    The scope is built lazily, once the class is fully mapped, and then
    replaces the descriptor on the class.
    """

    def __init__(self, options: Mapping[str, Any] | DynamicOptions) -> None:
        self._options = options
        self._name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self._name = name

    def __get__(self, instance: Any, owner: type) -> SearchScope | ScopeDescriptor:
        if getattr(owner, "__table__", None) is None:
            # still being mapped
            return self
        scope = SearchScope(owner, self._options, name=self._name)
        if self._name is not None:
            setattr(owner, self._name, scope)
        return scope


def search_scope(options: DynamicOptions | None = None, /, **static_options: Any) -> ScopeDescriptor:
    """Declare a search scope on a mapped class.

    Pass keyword options for a static scope, or a single callable for a
    dynamic one.
    """
    if options is not None and static_options:
        raise ConfigurationError("Pass either a callable or keyword options to search_scope, not both")
    return ScopeDescriptor(options if options is not None else static_options)
