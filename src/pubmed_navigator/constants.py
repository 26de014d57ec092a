"""Project-wide constants."""

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0

# -- PubMed / NCBI ----------------------------------------------------------
NCBI_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
PUBMED_SEARCH_URL: str = f"{NCBI_BASE_URL}/esearch.fcgi"
PUBMED_FETCH_URL: str = f"{NCBI_BASE_URL}/efetch.fcgi"
PUBMED_SUMMARY_URL: str = f"{NCBI_BASE_URL}/esummary.fcgi"
PUBMED_LINK_URL: str = f"{NCBI_BASE_URL}/elink.fcgi"
PUBMED_ARTICLE_URL: str = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"

# Literature Citation Exporter
LIT_CITATION_URL: str = "https://api.ncbi.nlm.nih.gov/lit/ctxp/v1/pubmed/"

# -- ELink link names -------------------------------------------------------
CITED_IN_LINK_NAME: str = "pubmed_pubmed_citedin"
SIMILAR_LINK_NAMES: tuple[str, ...] = ("pubmed_pubmed", "pubmed_pubmed_five")

# -- Identifiers ------------------------------------------------------------
PMC_PREFIX: str = "PMC"

# -- Placeholders for missing fields ----------------------------------------
NO_TITLE: str = "No title available"
UNKNOWN_TITLE: str = "Unknown title"
UNKNOWN_AUTHOR: str = "Unknown Author"
UNKNOWN_JOURNAL: str = "Unknown journal"
UNKNOWN_DATE: str = "Unknown date"

# -- Full-text section reconstruction ---------------------------------------
DEFAULT_SECTION_TITLE: str = "Content"
FALLBACK_SECTION_TITLE: str = "Full Article Content"

# -- Limits -----------------------------------------------------------------
MAX_CITING_PMIDS: int = 100
MAX_BATCH_PMIDS: int = 50
MAX_SEARCH_RESULTS: int = 100
MAX_SIMILAR_RESULTS: int = 50
MAX_ABSTRACT_PMIDS: int = 20
MAX_CITATION_PMIDS: int = 20
MAX_FULL_TEXT_IDS: int = 10
BATCH_SIMILAR_RESULTS: int = 5

# -- Pacing (seconds between successive requests) ---------------------------
CITATION_REQUEST_DELAY: float = 0.2
RIS_BATCH_SIZE: int = 10
RIS_REQUEST_DELAY: float = 0.4

# Batch orchestration: operation kind -> (chunk size, delay between chunks)
BATCH_CHUNK_PLANS: dict[str, tuple[int, float]] = {
    "abstract": (20, 0.3),
    "citations": (10, 0.4),
    "similar": (1, 0.3),
    "ris_export": (50, 0.5),
    "full_text": (10, 0.6),
}
