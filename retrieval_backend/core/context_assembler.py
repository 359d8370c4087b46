"""
Context assembly for retrieval-augmented answers.

Pure functions turning ranked search results into a deduplicated subset,
an LLM-ready context string and citation references.

Dependencies: retrieval_backend.models.search
System role: Search result post-processing
"""

import re
from typing import Sequence

from retrieval_backend.models.search import SearchResult, SourceReference

UNKNOWN_DOCUMENT = "Unknown document"
DEFAULT_RELEVANCE_THRESHOLD = 0.4
BLOCK_SEPARATOR = "\n\n"

_BLANK_LINES = re.compile(r"\n\s*\n")


def _display_name(result: SearchResult) -> str:
    name = (result.document_filename or "").strip()
    if not name:
        return UNKNOWN_DOCUMENT
    return " ".join(name.split())


def deduplicate_by_document(results: Sequence[SearchResult]) -> list[SearchResult]:
    """
    Keep the most similar result per document.

    Ties keep the first result encountered. The output is sorted by
    similarity, descending (stable, so equal scores keep input order).

    Args:
        results: Ranked search results

    Returns:
        list[SearchResult]: At most one result per document_id
    """
    best: dict[str, SearchResult] = {}
    for result in results:
        current = best.get(result.document_id)
        if current is None or result.similarity > current.similarity:
            best[result.document_id] = result
    return sorted(best.values(), key=lambda r: r.similarity, reverse=True)


def _format_content(content: str) -> str:
    # A blank line only ever separates blocks
    return _BLANK_LINES.sub("\n", content.strip())


def build_context(
    results: Sequence[SearchResult],
    deduplicate_documents: bool = False,
) -> str:
    """
    Format results as numbered document blocks.

    Each block is "[Document {n}: {filename}]" followed by the chunk text;
    blocks are separated by one blank line.

    Args:
        results: Search results in the order they should appear
        deduplicate_documents: Keep one (best) chunk per document first

    Returns:
        str: Context string, empty when there are no results
    """
    selected = deduplicate_by_document(results) if deduplicate_documents else list(results)
    blocks = [
        f"[Document {index}: {_display_name(result)}]\n{_format_content(result.content)}"
        for index, result in enumerate(selected, start=1)
    ]
    return BLOCK_SEPARATOR.join(blocks)


def extract_unique_document_names(results: Sequence[SearchResult]) -> list[str]:
    """Distinct filenames in order of first appearance (placeholder when missing)."""
    seen: dict[str, None] = {}
    for result in results:
        seen.setdefault(_display_name(result), None)
    return list(seen)


def calculate_average_similarity(results: Sequence[SearchResult]) -> float:
    """Arithmetic mean of similarity; 0.0 for no results."""
    if not results:
        return 0.0
    return sum(r.similarity for r in results) / len(results)


def filter_relevant_results(
    results: Sequence[SearchResult],
    threshold: float = DEFAULT_RELEVANCE_THRESHOLD,
) -> list[SearchResult]:
    """Results with similarity at or above threshold, order preserved."""
    return [r for r in results if r.similarity >= threshold]


def build_sources(
    results: Sequence[SearchResult],
    limit: int | None = None,
) -> list[SourceReference]:
    """
    Citation references matching the context block numbering.

    Args:
        results: Results in context order
        limit: Maximum number of references (None for all)

    Returns:
        list[SourceReference]: 1-based references
    """
    selected = list(results) if limit is None else list(results)[:limit]
    return [
        SourceReference(
            index=index,
            filename=_display_name(result),
            document_id=result.document_id,
            similarity=result.similarity,
        )
        for index, result in enumerate(selected, start=1)
    ]
