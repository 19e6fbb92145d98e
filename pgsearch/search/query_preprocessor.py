"""Query preprocessing for tsquery construction.

Splits free-form user input into terms that are safe to hand to
``to_tsquery``. Characters that carry meaning in the tsquery grammar are
blanked out so that input such as ``foo &,'`` or ``a | !b`` can neither
break the expression nor change its boolean structure.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import NamedTuple

logger = logging.getLogger(__name__)


class QueryAnalysis(NamedTuple):
    """Result of analyzing a search query.

    Attributes:
        original: The original query string.
        text: Trimmed, NFC-normalized text (used for similarity matching).
        terms: Sanitized whitespace-separated terms, in input order.
    """

    original: str
    text: str
    terms: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.terms


# Operators, grouping, quoting, weights/prefix and phrase syntax of to_tsquery
_TSQUERY_SYNTAX_RE = re.compile(r"['\\:&|!()<>*?\-]")
_WORD_RE = re.compile(r"\w")
# NUL and lone surrogates cannot be stored in PostgreSQL text
_UNSTORABLE_RE = re.compile(r"[\x00\ud800-\udfff]")


def sanitize_term(term: str) -> str:
    """Blank out tsquery syntax characters inside a single term.

    Returns an empty string when nothing searchable is left.
    """
    cleaned = " ".join(_TSQUERY_SYNTAX_RE.sub(" ", _UNSTORABLE_RE.sub("", term)).split())
    if not _WORD_RE.search(cleaned):
        return ""
    return cleaned


def analyze_query(query: str | None) -> QueryAnalysis:
    """Analyze a raw query string into sanitized terms.

    Args:
        query: Raw search query string. ``None`` is treated as empty.

    Returns:
        QueryAnalysis with all fields populated.
        For queries with nothing searchable, ``terms`` is empty.
    """
    original = query or ""
    text = unicodedata.normalize("NFC", _UNSTORABLE_RE.sub("", original).strip())

    terms: list[str] = []
    for token in text.split():
        cleaned = sanitize_term(token)
        if cleaned:
            terms.append(cleaned)
        else:
            logger.debug("Dropping query term with no searchable characters: %r", token)

    if text and not terms:
        logger.debug("Query %r has no searchable terms; it will match nothing via tsearch", original)

    return QueryAnalysis(original=original, text=text, terms=tuple(terms))
