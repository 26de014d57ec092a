"""Data models for pubmed-navigator."""

from pubmed_navigator.models.model_batch import (
    BatchOperation,
    BatchResult,
    BatchResults,
    BatchSummary,
    OperationKind,
    OperationStatus,
)
from pubmed_navigator.models.model_pubmed import (
    ArticleRecord,
    ArticleSummary,
    CitationCountRecord,
    FullAbstract,
    FullTextRecord,
    RISExportResult,
    SearchResult,
    Section,
    SimilarArticle,
)

__all__ = [
    "ArticleRecord",
    "ArticleSummary",
    "BatchOperation",
    "BatchResult",
    "BatchResults",
    "BatchSummary",
    "CitationCountRecord",
    "FullAbstract",
    "FullTextRecord",
    "OperationKind",
    "OperationStatus",
    "RISExportResult",
    "SearchResult",
    "Section",
    "SimilarArticle",
]
