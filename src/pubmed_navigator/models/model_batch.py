"""Pydantic models for batch processing runs."""

from enum import Enum
from typing import Any

from pydantic import BaseModel

from pubmed_navigator.models.model_pubmed import (
    CitationCountRecord,
    FullAbstract,
    FullTextRecord,
    SimilarArticle,
)


class OperationKind(str, Enum):
    ABSTRACT = "abstract"
    CITATIONS = "citations"
    SIMILAR = "similar"
    RIS_EXPORT = "ris_export"
    FULL_TEXT = "full_text"


class OperationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class BatchOperation(BaseModel):
    """One (pmid, operation) pair and its lifecycle status."""

    pmid: str
    operation: OperationKind
    status: OperationStatus = OperationStatus.PENDING
    result: Any = None
    error: str | None = None


class BatchSummary(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    processing: int = 0


class BatchResults(BaseModel):
    """Per-kind result buckets. A bucket stays None unless its kind ran."""

    abstracts: list[FullAbstract] | None = None
    citations: list[CitationCountRecord] | None = None
    similar: dict[str, list[SimilarArticle]] | None = None  # keyed by source PMID
    ris_exports: str | None = None
    full_texts: list[FullTextRecord] | None = None


class BatchResult(BaseModel):
    task_id: str
    operations: list[BatchOperation] = []
    summary: BatchSummary = BatchSummary()
    results: BatchResults = BatchResults()
