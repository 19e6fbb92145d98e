"""Tests for resolving the ``against`` option into weighted search targets.

Covers all accepted shapes (single column, list, list with pairs, mapping),
default weights, ordering, and configuration errors.
"""

from __future__ import annotations

import pytest
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pgsearch.constants import RankLetter
from pgsearch.exceptions import ConfigurationError
from pgsearch.search.columns import SearchTarget, parse_weight, resolve_targets, table_of


class _Base(DeclarativeBase):
    pass


class Article(_Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    importance: Mapped[int | None] = mapped_column(Integer, nullable=True)


def _names(targets: tuple[SearchTarget, ...]) -> list[tuple[str, RankLetter | None]]:
    return [(target.column.name, target.weight) for target in targets]


# ---------------------------------------------------------------------------
# 1. Accepted shapes
# ---------------------------------------------------------------------------


class TestAcceptedShapes:
    """Every accepted shape resolves to the same canonical form."""

    def test_single_column_name(self):
        """A bare string is a single unweighted column."""
        assert _names(resolve_targets("content", Article)) == [("content", None)]

    def test_mapped_attribute(self):
        """Mapped attributes are accepted in place of names."""
        assert _names(resolve_targets(Article.title, Article)) == [("title", None)]

    def test_list_of_names_keeps_order(self):
        """A list of names keeps declaration order."""
        targets = resolve_targets(["title", "content"], Article)
        assert _names(targets) == [("title", None), ("content", None)]

    def test_list_of_pairs(self):
        """A list of (column, weight) pairs."""
        targets = resolve_targets([["content", "B"], ["title", "A"]], Article)
        assert _names(targets) == [("content", RankLetter.B), ("title", RankLetter.A)]

    def test_mixed_list(self):
        """Unweighted names and pairs can be mixed."""
        targets = resolve_targets(["content", ("title", "A")], Article)
        assert _names(targets) == [("content", None), ("title", RankLetter.A)]

    def test_mapping(self):
        """A mapping of column to weight keeps insertion order."""
        targets = resolve_targets({"content": "B", "title": "A"}, Article)
        assert _names(targets) == [("content", RankLetter.B), ("title", RankLetter.A)]

    def test_accepts_table(self):
        """A Table works as well as a mapped class."""
        targets = resolve_targets("title", Article.__table__)
        assert targets[0].column is Article.__table__.c.title

    def test_columns_come_from_the_table(self):
        """Resolved columns are the table's own Column objects."""
        targets = resolve_targets(["title"], Article)
        assert targets[0].column is Article.__table__.c.title


# ---------------------------------------------------------------------------
# 2. Weights
# ---------------------------------------------------------------------------


class TestWeights:
    """Weight parsing and defaults."""

    def test_unweighted_column_ranks_lowest(self):
        """Columns without a weight rank with the lowest class."""
        target = resolve_targets("content", Article)[0]
        assert target.weight is None
        assert target.rank_letter == RankLetter.D

    def test_weight_is_case_insensitive(self):
        """Lowercase letters are accepted."""
        assert parse_weight("a") == RankLetter.A
        assert parse_weight(" b ") == RankLetter.B

    def test_rank_letter_passthrough(self):
        """RankLetter members are returned unchanged."""
        assert parse_weight(RankLetter.C) is RankLetter.C

    def test_rank_letters_are_ordered(self):
        """A > B > C > D, consistent with ts_rank default weights."""
        assert RankLetter.A > RankLetter.B > RankLetter.C > RankLetter.D
        assert sorted([RankLetter.C, RankLetter.A, RankLetter.D, RankLetter.B]) == [
            RankLetter.D,
            RankLetter.C,
            RankLetter.B,
            RankLetter.A,
        ]

    def test_rank_letters_compare_with_plain_strings(self):
        """Plain letters are ordered like the members they name."""
        assert not RankLetter.A < "B"
        assert RankLetter.A > "B"
        assert RankLetter.D < "c"
        assert RankLetter.B <= "B"
        assert RankLetter.B >= "C"

    @pytest.mark.parametrize("weight", ["E", "AA", "", 1, 0.5])
    def test_unknown_weight_raises(self, weight):
        """Anything other than A-D is a configuration error."""
        with pytest.raises(ConfigurationError):
            resolve_targets({"title": weight}, Article)


# ---------------------------------------------------------------------------
# 3. Errors
# ---------------------------------------------------------------------------


class TestResolveErrors:
    """Malformed against= values raise ConfigurationError."""

    def test_empty_list(self):
        with pytest.raises(ConfigurationError, match="empty"):
            resolve_targets([], Article)

    def test_empty_mapping(self):
        with pytest.raises(ConfigurationError):
            resolve_targets({}, Article)

    def test_empty_name(self):
        with pytest.raises(ConfigurationError, match="empty"):
            resolve_targets("  ", Article)

    def test_unknown_column(self):
        with pytest.raises(ConfigurationError, match="no column named 'body'"):
            resolve_targets(["title", "body"], Article)

    def test_duplicate_column(self):
        with pytest.raises(ConfigurationError, match="more than once"):
            resolve_targets(["title", ("title", "A")], Article)

    def test_malformed_pair(self):
        with pytest.raises(ConfigurationError, match="pair"):
            resolve_targets([("title", "A", "extra")], Article)

    def test_non_column_element(self):
        with pytest.raises(ConfigurationError):
            resolve_targets([42], Article)

    def test_not_a_table(self):
        with pytest.raises(ConfigurationError):
            table_of(object())
