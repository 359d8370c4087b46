"""
Search result domain models.

Search results are produced by the vector-search collaborator and consumed
read-only by the context assembler.

Dependencies: pydantic
System role: Retrieval data structures
"""

from typing import Any

from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    """One retrieved chunk with its relevance score."""

    document_id: str = Field(description="Source document identifier (grouping key)")
    document_filename: str | None = Field(default=None, description="Source document filename")
    content: str = Field(description="Chunk text")
    similarity: float = Field(description="Relevance score, higher is more relevant")
    chunk_id: str | None = Field(default=None, description="Chunk identifier for tracing")
    metadata: dict[str, Any] | None = Field(default=None, description="Collaborator-specific extras")


class SourceReference(BaseModel):
    """Citation entry returned alongside an assembled context."""

    index: int = Field(description="1-based position matching the context block label")
    filename: str = Field(description="Document filename or placeholder")
    document_id: str = Field(description="Source document identifier")
    similarity: float = Field(description="Relevance score of the cited chunk")
