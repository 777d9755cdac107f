"""
Search response models.
"""

from pydantic import BaseModel, Field


class DocumentSummary(BaseModel):
    """A matching document as shown to the caller."""

    id: int = Field(..., description="Document ID")
    title: str = Field(..., description="Document title")
    author: str = Field(..., description="Document author")
    preview: str = Field(..., description="First characters of the raw content")


class SearchResponse(BaseModel):
    """Result of a search over one corpus version."""

    query: list[str] = Field(default_factory=list, description="Query words")
    version: str | None = Field(None, description="Corpus version searched")
    ids: list[int] = Field(
        default_factory=list, description="Matching document IDs, ascending"
    )
    count: int = Field(0, description="Number of matching documents")
    documents: list[DocumentSummary] = Field(
        default_factory=list, description="Matching documents in ID order"
    )
