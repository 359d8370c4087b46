"""
Cache-key normalization strategies.

A normalizer maps a raw user query to the canonical text whose sha256
digest becomes the cache key. Two queries share a cache entry exactly
when their normalized forms are equal.

Dependencies: hashlib, unicodedata
System role: Query cache key derivation
"""

import hashlib
import re
import unicodedata
from typing import Protocol

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)


class QueryNormalizer(Protocol):
    """Strategy interface for cache-key normalization."""

    name: str

    def normalize(self, query: str) -> str: ...


class ExactNormalizer:
    """
    Case- and whitespace-insensitive match.

    Applies NFKC, case folding, collapses internal whitespace and trims.
    """

    name = "exact"

    def normalize(self, query: str) -> str:
        text = unicodedata.normalize("NFKC", query).casefold()
        return _WHITESPACE.sub(" ", text).strip()


class TokenSetNormalizer(ExactNormalizer):
    """
    Order-insensitive match on distinct words.

    On top of ExactNormalizer, drops punctuation and sorts the distinct
    tokens, so "What is article 5?" and "article 5 what is" share a key.
    """

    name = "token_set"

    def normalize(self, query: str) -> str:
        text = _NON_WORD.sub(" ", super().normalize(query))
        return " ".join(sorted(set(text.split())))


NORMALIZERS: dict[str, type[ExactNormalizer]] = {
    ExactNormalizer.name: ExactNormalizer,
    TokenSetNormalizer.name: TokenSetNormalizer,
}


def get_normalizer(name: str) -> QueryNormalizer:
    """
    Build a normalizer by registered name.

    Raises:
        ValueError: If no normalizer is registered under name
    """
    try:
        return NORMALIZERS[name]()
    except KeyError as e:
        raise ValueError(
            f"Unknown query normalization '{name}'. Available: {sorted(NORMALIZERS)}"
        ) from e


def cache_key(normalized_query: str) -> str:
    """sha256 hex digest of an already-normalized query."""
    return hashlib.sha256(normalized_query.encode("utf-8")).hexdigest()
