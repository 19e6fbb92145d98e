from enum import StrEnum


class Feature(StrEnum):
    TSEARCH = "tsearch"
    TRIGRAM = "trigram"


class Normalization(StrEnum):
    DIACRITICS = "diacritics"
    PREFIXES = "prefixes"


class RankLetter(StrEnum):
    """setweight() classes. A dominates B dominates C dominates D under ts_rank."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def default_weight(self) -> float:
        return _TS_RANK_DEFAULT_WEIGHTS[self]

    def _coerce(self, other: object) -> "RankLetter | None":
        if isinstance(other, RankLetter):
            return other
        if isinstance(other, str) and other.upper() in _TS_RANK_DEFAULT_WEIGHTS:
            return RankLetter(other.upper())
        return None

    def __lt__(self, other: object) -> bool:
        letter = self._coerce(other)
        if letter is None:
            return NotImplemented
        return self.default_weight < letter.default_weight

    def __gt__(self, other: object) -> bool:
        letter = self._coerce(other)
        if letter is None:
            return NotImplemented
        return self.default_weight > letter.default_weight

    def __le__(self, other: object) -> bool:
        return self == other or self < other

    def __ge__(self, other: object) -> bool:
        return self == other or self > other


# ts_rank defaults when no weights array is given: {D, C, B, A}
_TS_RANK_DEFAULT_WEIGHTS: dict[str, float] = {"A": 1.0, "B": 0.4, "C": 0.2, "D": 0.1}

LOWEST_RANK_LETTER = RankLetter.D

# Built-in PostgreSQL text search configurations (pg_catalog.pg_ts_config)
BUILTIN_DICTIONARIES: frozenset[str] = frozenset(
    {
        "simple",
        "arabic",
        "armenian",
        "basque",
        "catalan",
        "danish",
        "dutch",
        "english",
        "finnish",
        "french",
        "german",
        "greek",
        "hindi",
        "hungarian",
        "indonesian",
        "irish",
        "italian",
        "lithuanian",
        "nepali",
        "norwegian",
        "portuguese",
        "romanian",
        "russian",
        "serbian",
        "spanish",
        "swedish",
        "tamil",
        "turkish",
        "yiddish",
    }
)

# Placeholders accepted inside a ranked_by expression
COMBINED_RANK_PLACEHOLDER = ":tsearch_rank"
FEATURE_RANK_PLACEHOLDERS: dict[str, Feature] = {
    ":tsearch": Feature.TSEARCH,
    ":trigram": Feature.TRIGRAM,
}
