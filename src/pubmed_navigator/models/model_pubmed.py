"""
Pydantic models for PubMed / PMC data.

These are the data contracts between the PubMed client and its callers.
Callers receive these models and never see raw E-utilities XML.
"""

from pydantic import BaseModel

from pubmed_navigator.constants import (
    NO_TITLE,
    UNKNOWN_DATE,
    UNKNOWN_JOURNAL,
    UNKNOWN_TITLE,
)

# ------------------------------------------------------------------
# ESearch
# ------------------------------------------------------------------


class SearchResult(BaseModel):
    """One page of ESearch hits.

    ``ret_max`` echoes the request window; it is not a bound on ``id_list``.
    """

    id_list: list[str] = []
    count: int = 0
    ret_max: int = 0
    ret_start: int = 0
    query_translation: str | None = None


# ------------------------------------------------------------------
# Article records
# ------------------------------------------------------------------


class ArticleSummary(BaseModel):
    """A DocSum from ESummary."""

    pmid: str
    title: str = NO_TITLE
    authors: list[str] = []
    journal: str = UNKNOWN_JOURNAL
    publication_date: str = UNKNOWN_DATE
    doi: str = ""
    pmc_id: str = ""


class ArticleRecord(BaseModel):
    """A PubmedArticle from EFetch with every field default-filled."""

    pmid: str
    title: str = NO_TITLE
    authors: list[str] = []
    journal: str = UNKNOWN_JOURNAL
    publication_date: str = UNKNOWN_DATE
    abstract: str = ""
    doi: str = ""
    pmc_id: str = ""
    url: str = ""


class FullAbstract(BaseModel):
    """Untruncated abstract plus bibliographic fields."""

    pmid: str
    title: str = NO_TITLE
    authors: list[str] = []
    journal: str = UNKNOWN_JOURNAL
    publication_date: str = UNKNOWN_DATE
    full_abstract: str = ""
    doi: str = ""
    pmc_id: str = ""

    @classmethod
    def from_article(cls, article: ArticleRecord) -> "FullAbstract":
        return cls(
            pmid=article.pmid,
            title=article.title,
            authors=article.authors,
            journal=article.journal,
            publication_date=article.publication_date,
            full_abstract=article.abstract,
            doi=article.doi,
            pmc_id=article.pmc_id,
        )


class SimilarArticle(BaseModel):
    """An ELink neighbour of a reference article."""

    pmid: str
    title: str = NO_TITLE
    authors: list[str] = []
    journal: str = UNKNOWN_JOURNAL
    publication_date: str = UNKNOWN_DATE
    abstract: str = ""
    similarity_score: float | None = None
    doi: str = ""
    pmc_id: str = ""

    @classmethod
    def from_article(
        cls, article: ArticleRecord, score: float | None = None
    ) -> "SimilarArticle":
        return cls(
            pmid=article.pmid,
            title=article.title,
            authors=article.authors,
            journal=article.journal,
            publication_date=article.publication_date,
            abstract=article.abstract,
            similarity_score=score,
            doi=article.doi,
            pmc_id=article.pmc_id,
        )


# ------------------------------------------------------------------
# Full text (PMC)
# ------------------------------------------------------------------


class Section(BaseModel):
    """A titled block of reconstructed article body text."""

    title: str
    content: str


class FullTextRecord(BaseModel):
    """Full text of a PMC article.

    When sections came from the structured walk, ``full_text`` is the
    concatenation of ``f"{title}\\n{content}\\n"`` for each section in order.
    """

    pmid: str = ""
    pmc_id: str
    title: str = UNKNOWN_TITLE
    full_text: str = ""
    sections: list[Section] = []


# ------------------------------------------------------------------
# Citations & exports
# ------------------------------------------------------------------


class CitationCountRecord(BaseModel):
    """Articles citing a PMID, as reported by ELink ``pubmed_pubmed_citedin``."""

    pmid: str
    title: str = UNKNOWN_TITLE
    citation_count: int = 0
    citing_pmids: list[str] = []  # capped at MAX_CITING_PMIDS
    error: str | None = None


class RISExportResult(BaseModel):
    """Concatenated RIS text from the Literature Citation Exporter."""

    pmids: list[str] = []
    ris_data: str = ""
    success_count: int = 0
    error_count: int = 0
    errors: list[str] = []
