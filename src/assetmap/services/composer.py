"""Autocomplete and connector-aware query building."""

from __future__ import annotations

import re

from assetmap.models.dialects import PlatformDialect, SyntaxHint, dialect_for
from assetmap.models.platforms import Platform, parse_platform
from assetmap.models.search import SearchResultPage

_TOKEN_SPLIT = re.compile(r"[\s&|()]")


def last_token(text: str) -> str:
    """Return the case-folded substring after the last whitespace or operator char."""
    return _TOKEN_SPLIT.split(text)[-1].casefold()


def autocomplete(platform: str | Platform, text: str) -> list[SyntaxHint]:
    """Return the hints matching the token currently being typed.

    Blank text yields every hint in registry order. Otherwise a hint matches
    when its example or its description contains the token, ignoring case.
    """
    dialect = dialect_for(platform)
    if not text.strip():
        return list(dialect.hints)
    token = last_token(text)
    return [
        hint
        for hint in dialect.hints
        if token in hint.example.casefold() or token in hint.description.casefold()
    ]


def compose_append(platform: str | Platform, query: str, fragment: str) -> str:
    """Append a fragment with the dialect connector, or replace an empty query."""
    if not query.strip():
        return fragment
    return f"{query} {dialect_for(platform).connector} {fragment}"


def location_clause(dialect: PlatformDialect, province: str = "", city: str = "") -> str:
    """Build the province/city clause in the dialect's field syntax."""
    clauses: list[str] = []
    if province:
        clauses.append(dialect.province_clause(province))
    if city:
        clauses.append(dialect.city_clause(city))
    return f" {dialect.connector} ".join(clauses)


def apply_location_filter(
    platform: str | Platform,
    query: str,
    province: str = "",
    city: str = "",
    *,
    append: bool = True,
) -> str | None:
    """Return the new query text, or None when neither province nor city is set."""
    dialect = dialect_for(platform)
    clause = location_clause(dialect, province, city)
    if not clause:
        return None
    if append and query:
        return f"{query} {dialect.connector} {clause}"
    return clause


class QueryComposer:
    """Composing state for one query view: platform, text, suggestions, results."""

    def __init__(self, platform: str | Platform = Platform.HUNTER) -> None:
        self._platform = parse_platform(platform)
        self.query = ""
        self.suggestions: list[SyntaxHint] = []
        self.results = SearchResultPage()

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def dialect(self) -> PlatformDialect:
        return dialect_for(self._platform)

    def switch_platform(self, platform: str | Platform) -> None:
        """Change dialect and drop state that is only valid in the old one."""
        self._platform = parse_platform(platform)
        self.query = ""
        self.results = SearchResultPage()
        self.suggestions = []

    def set_text(self, text: str) -> list[SyntaxHint]:
        """Record a keystroke and recompute suggestions."""
        self.query = text
        self.suggestions = autocomplete(self._platform, text)
        return self.suggestions

    def select(self, fragment: str) -> str:
        """Apply a chosen suggestion or hint tag."""
        self.query = compose_append(self._platform, self.query, fragment)
        return self.query

    def apply_location(self, province: str = "", city: str = "", *, append: bool = True) -> str:
        """Apply a location filter; leaves the query untouched when nothing is set."""
        updated = apply_location_filter(
            self._platform, self.query, province, city, append=append
        )
        if updated is not None:
            self.query = updated
        return self.query
