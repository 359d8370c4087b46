"""
Test suite for cache-key normalization strategies.

Exact matching and near-duplicate matching are tested separately.

System role: Verification of query cache key derivation
"""

import hashlib

import pytest

from retrieval_backend.core.query_normalization import (
    ExactNormalizer,
    TokenSetNormalizer,
    cache_key,
    get_normalizer,
)


class TestExactNormalizer:
    """Test suite for ExactNormalizer."""

    def test_case_and_whitespace_insensitive(self) -> None:
        # Arrange
        normalizer = ExactNormalizer()

        # Act / Assert
        assert normalizer.normalize("  What is  Article 5? ") == "what is article 5?"
        assert normalizer.normalize("WHAT IS\tARTICLE 5?") == normalizer.normalize("what is article 5?")

    def test_word_order_matters(self) -> None:
        normalizer = ExactNormalizer()
        assert normalizer.normalize("article 5 what is") != normalizer.normalize("what is article 5")

    def test_unicode_compatibility_forms(self) -> None:
        normalizer = ExactNormalizer()
        assert normalizer.normalize("ＡＢＣ") == "abc"


class TestTokenSetNormalizer:
    """Test suite for TokenSetNormalizer (near-duplicate queries)."""

    def test_reordered_punctuated_queries_share_form(self) -> None:
        # Arrange
        normalizer = TokenSetNormalizer()

        # Act
        first = normalizer.normalize("What is article 5?")
        second = normalizer.normalize("article 5, what is")

        # Assert
        assert first == second == "5 article is what"

    def test_repeated_tokens_collapse(self) -> None:
        normalizer = TokenSetNormalizer()
        assert normalizer.normalize("tax tax law") == normalizer.normalize("law tax")

    def test_different_words_differ(self) -> None:
        normalizer = TokenSetNormalizer()
        assert normalizer.normalize("article 5") != normalizer.normalize("article 6")


class TestRegistry:
    """Test suite for get_normalizer() and cache_key()."""

    def test_lookup_by_name(self) -> None:
        assert isinstance(get_normalizer("exact"), ExactNormalizer)
        assert isinstance(get_normalizer("token_set"), TokenSetNormalizer)

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown query normalization"):
            get_normalizer("embedding")

    def test_cache_key_is_sha256_hex(self) -> None:
        expected = hashlib.sha256("what is article 5?".encode("utf-8")).hexdigest()
        assert cache_key("what is article 5?") == expected
        assert len(cache_key("x")) == 64
