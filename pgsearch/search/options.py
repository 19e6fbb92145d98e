"""Search scope options and their resolution into a ``SearchConfiguration``.

Options are declared as keyword arguments, mirroring what a caller writes
when declaring a scope::

    build_configuration(
        Article,
        against={"title": "A", "content": "B"},
        using=["tsearch", "trigram"],
        dictionary="simple",
        normalizing="diacritics",
        ranked_by=":tsearch_rank * importance",
    )

Everything is validated here, eagerly, so that compilation never has to deal
with malformed input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from pgsearch.config import get_settings
from pgsearch.constants import (
    BUILTIN_DICTIONARIES,
    COMBINED_RANK_PLACEHOLDER,
    FEATURE_RANK_PLACEHOLDERS,
    Feature,
    Normalization,
)
from pgsearch.exceptions import ConfigurationError
from pgsearch.search.columns import SearchTarget, resolve_targets

logger = logging.getLogger(__name__)

_DICTIONARY_RE = re.compile(r"^[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)?$")
PLACEHOLDER_RE = re.compile(r":(?:tsearch_rank|tsearch|trigram)\b")


class TsearchOptions(BaseModel):
    """Options specific to the tsearch feature.

    Attributes:
        normalization: ts_rank normalization bitmask (0 = ignore document length).
        any_word: Match rows containing any term instead of all terms.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    normalization: int = Field(default=0, ge=0, le=63)
    any_word: bool = False


class TrigramOptions(BaseModel):
    """Options specific to the trigram feature.

    Attributes:
        threshold: Minimum similarity. None uses the ``%`` operator, i.e. the
            server's ``pg_trgm.similarity_threshold`` (0.3 by default).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class SearchOptions(BaseModel):
    """Raw, caller-supplied scope options."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    against: Any
    using: list[Feature] = Field(default_factory=lambda: [Feature.TSEARCH])
    dictionary: str | None = Field(default=None, validation_alias=AliasChoices("dictionary", "with_dictionary"))
    normalizing: list[Normalization] = Field(default_factory=list)
    ranked_by: str | None = None
    tsearch: TsearchOptions = Field(default_factory=TsearchOptions)
    trigram: TrigramOptions = Field(default_factory=TrigramOptions)

    @field_validator("using", "normalizing", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return [item.lower() if isinstance(item, str) else item for item in value]
        return value


@dataclass(frozen=True, slots=True)
class SearchConfiguration:
    """Fully resolved, immutable search configuration.

    Attributes:
        targets: Weighted columns, in declaration order.
        features: Enabled features, duplicates collapsed, declaration order kept.
        dictionary: Text search configuration used by tsearch.
        normalizations: Normalizations applied to columns and query.
        ranked_by: Optional custom rank expression with placeholders.
        tsearch: tsearch-specific options.
        trigram: trigram-specific options.
    """

    targets: tuple[SearchTarget, ...]
    features: tuple[Feature, ...]
    dictionary: str
    normalizations: frozenset[Normalization] = frozenset()
    ranked_by: str | None = None
    tsearch: TsearchOptions = field(default_factory=TsearchOptions)
    trigram: TrigramOptions = field(default_factory=TrigramOptions)


def resolve_dictionary(name: str | None) -> str:
    """Validate a text search configuration name against the known set."""
    settings = get_settings()
    if name is None:
        name = settings.SEARCH_DEFAULT_DICTIONARY
    normalized = str(name).strip().lower()
    known = BUILTIN_DICTIONARIES | {extra.strip().lower() for extra in settings.SEARCH_EXTRA_DICTIONARIES}
    if not _DICTIONARY_RE.match(normalized) or normalized not in known:
        raise ConfigurationError(f"Unknown text search dictionary {name!r}")
    return normalized


def _check_ranked_by(ranked_by: str | None, features: tuple[Feature, ...]) -> str | None:
    if ranked_by is None:
        return None
    if not ranked_by.strip():
        raise ConfigurationError("ranked_by must not be empty")
    for placeholder in PLACEHOLDER_RE.findall(ranked_by):
        if placeholder == COMBINED_RANK_PLACEHOLDER:
            continue
        feature = FEATURE_RANK_PLACEHOLDERS[placeholder]
        if feature not in features:
            raise ConfigurationError(f"ranked_by references {placeholder} but {feature.value} is not enabled")
    return ranked_by


def build_configuration(table: Any, **options: Any) -> SearchConfiguration:
    """Resolve raw scope options against a table or mapped class.

    Raises:
        ConfigurationError: On any malformed or contradictory option.
    """
    try:
        parsed = SearchOptions.model_validate(options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid search options: {exc}") from exc

    features = tuple(dict.fromkeys(parsed.using))
    if not features:
        raise ConfigurationError("At least one search feature must be enabled (using= is empty)")

    targets = resolve_targets(parsed.against, table)

    if Feature.TRIGRAM in features and any(target.weight is not None for target in targets):
        logger.debug("Column weights are ignored by the trigram feature")

    return SearchConfiguration(
        targets=targets,
        features=features,
        dictionary=resolve_dictionary(parsed.dictionary),
        normalizations=frozenset(parsed.normalizing),
        ranked_by=_check_ranked_by(parsed.ranked_by, features),
        tsearch=parsed.tsearch,
        trigram=parsed.trigram,
    )


def split_dynamic_options(options: Mapping[str, Any]) -> tuple[Any, dict[str, Any]]:
    """Separate the ``query`` entry returned by a dynamic scope from the rest."""
    if not isinstance(options, Mapping):
        raise ConfigurationError(f"Dynamic search options must be a mapping, got {type(options).__name__}")
    remaining = dict(options)
    if "query" not in remaining:
        raise ConfigurationError("Dynamic search options must include a 'query' entry")
    return remaining.pop("query"), remaining
