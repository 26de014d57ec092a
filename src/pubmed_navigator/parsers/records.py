"""
Record normalization for E-utilities payloads.

Every function here is pure and total: missing or oddly-shaped optional data
falls back to a documented default instead of raising. Only transport and
XML-parse failures (handled by the client) are errors.
"""

from __future__ import annotations

import logging

from pubmed_navigator.constants import (
    NO_TITLE,
    PUBMED_ARTICLE_URL,
    UNKNOWN_AUTHOR,
    UNKNOWN_DATE,
    UNKNOWN_JOURNAL,
    UNKNOWN_TITLE,
)
from pubmed_navigator.models.model_pubmed import (
    ArticleRecord,
    ArticleSummary,
    SearchResult,
)
from pubmed_navigator.parsers.xml_tree import Element, flatten_text

logger = logging.getLogger(__name__)


def _to_int(raw: str, default: int = 0) -> int:
    try:
        return int(raw)
    except ValueError:
        return default


# ------------------------------------------------------------------
# ESearch
# ------------------------------------------------------------------


def normalize_search_result(root: Element) -> SearchResult:
    """Map an ``<eSearchResult>`` document to a SearchResult."""
    id_list = [elem.text for elem in root.findall("IdList/Id") if elem.text]
    translation = root.child_text("QueryTranslation")
    return SearchResult(
        id_list=id_list,
        count=_to_int(root.child_text("Count")),
        ret_max=_to_int(root.child_text("RetMax")),
        ret_start=_to_int(root.child_text("RetStart")),
        query_translation=translation or None,
    )


# ------------------------------------------------------------------
# ESummary
# ------------------------------------------------------------------


def _summary_authors(item: Element | None) -> list[str]:
    """AuthorList is either nested ``Author`` items or one comma-separated string."""
    if item is None:
        return []
    nested = item.children_named("Item")
    if nested:
        return [a.text for a in nested if a.text]
    return [name.strip() for name in item.text.split(",") if name.strip()]


def normalize_summary(doc_sum: Element) -> ArticleSummary:
    items = {
        item.attr("Name"): item
        for item in doc_sum.children_named("Item")
        if item.attr("Name")
    }

    def item_text(name: str) -> str:
        item = items.get(name)
        return item.text if item is not None else ""

    pmc_id = item_text("PMCID")
    if not pmc_id and "ArticleIds" in items:
        for id_item in items["ArticleIds"].children_named("Item"):
            if id_item.attr("Name") == "pmc":
                pmc_id = id_item.text
                break

    return ArticleSummary(
        pmid=doc_sum.child_text("Id"),
        title=item_text("Title") or NO_TITLE,
        authors=_summary_authors(items.get("AuthorList")),
        journal=item_text("Source") or UNKNOWN_JOURNAL,
        publication_date=item_text("PubDate") or UNKNOWN_DATE,
        doi=item_text("DOI"),
        pmc_id=pmc_id,
    )


def normalize_summaries(root: Element) -> list[ArticleSummary]:
    """Map an ``<eSummaryResult>`` document to one summary per DocSum."""
    return [normalize_summary(doc_sum) for doc_sum in root.children_named("DocSum")]


# ------------------------------------------------------------------
# EFetch (PubmedArticleSet)
# ------------------------------------------------------------------


def normalize_author(author: Element) -> str:
    """``"Fore Last"``, else the collective name, else a placeholder."""
    fore_name = author.child_text("ForeName")
    last_name = author.child_text("LastName")
    if fore_name and last_name:
        return f"{fore_name} {last_name}"
    collective = author.child_text("CollectiveName")
    if collective:
        return collective
    return UNKNOWN_AUTHOR


def normalize_abstract(abstract: Element | None) -> str:
    """Join AbstractText segments.

    Several segments become ``"Label: text"`` (bare text when unlabeled)
    separated by a blank line. A single segment is used as-is, label and all
    dropped.
    """
    if abstract is None:
        return ""
    segments = abstract.children_named("AbstractText")
    if not segments:
        return ""
    if len(segments) == 1:
        return segments[0].text

    parts = []
    for segment in segments:
        label = segment.attr("Label")
        text = segment.text
        if label and text:
            parts.append(f"{label}: {text}")
        else:
            parts.append(text)
    return "\n\n".join(parts)


def normalize_publication_date(pub_date: Element | None) -> str:
    """Space-join the Year, Month and Day tokens that are present."""
    if pub_date is None:
        return UNKNOWN_DATE
    tokens = [pub_date.child_text(name) for name in ("Year", "Month", "Day")]
    return " ".join(t for t in tokens if t) or UNKNOWN_DATE


def extract_article_ids(
    id_nodes: list[Element], type_attr: str = "IdType"
) -> dict[str, str]:
    """Map identifier type -> value from a flat list of typed id nodes.

    A later node of the same type overwrites an earlier one.
    """
    ids: dict[str, str] = {}
    for node in id_nodes:
        id_type = node.attr(type_attr)
        if id_type:
            ids[id_type] = node.text
    return ids


def normalize_article(article: Element) -> ArticleRecord | None:
    """Map one ``<PubmedArticle>``; returns None when it carries no PMID."""
    citation = article.child("MedlineCitation")
    if citation is None:
        return None
    pmid = citation.child_text("PMID")
    if not pmid:
        return None

    data = citation.child("Article") or Element(tag="Article")
    names = (normalize_author(a) for a in data.findall("AuthorList/Author"))
    authors = [name for name in names if name]
    ids = extract_article_ids(article.findall("PubmedData/ArticleIdList/ArticleId"))

    return ArticleRecord(
        pmid=pmid,
        title=data.child_text("ArticleTitle") or NO_TITLE,
        authors=authors,
        journal=flatten_text(data.find("Journal/Title")) or UNKNOWN_JOURNAL,
        publication_date=normalize_publication_date(
            data.find("Journal/JournalIssue/PubDate")
        ),
        abstract=normalize_abstract(data.child("Abstract")),
        doi=ids.get("doi", ""),
        pmc_id=ids.get("pmc", ""),
        url=PUBMED_ARTICLE_URL.format(pmid=pmid),
    )


def normalize_articles(root: Element) -> list[ArticleRecord]:
    """Map a ``<PubmedArticleSet>`` document; articles without a PMID are skipped."""
    records = []
    for article in root.children_named("PubmedArticle"):
        record = normalize_article(article)
        if record is None:
            logger.warning("Skipping PubmedArticle without PMID")
            continue
        records.append(record)
    return records


# ------------------------------------------------------------------
# ELink
# ------------------------------------------------------------------


def _link_set_dbs(root: Element, link_names: tuple[str, ...]) -> list[Element]:
    return [
        db
        for db in root.findall("LinkSet/LinkSetDb")
        if db.child_text("LinkName") in link_names
    ]


def extract_linked_ids(root: Element, link_name: str) -> list[str]:
    """Linked ids from the first ``LinkSetDb`` named *link_name*.

    An ``<eLinkResult>`` with no matching LinkSetDb (no citations, no
    neighbours) yields an empty list.
    """
    dbs = _link_set_dbs(root, (link_name,))
    if not dbs:
        return []
    ids = (link.child_text("Id") for link in dbs[0].children_named("Link"))
    return [link_id for link_id in ids if link_id]


def extract_scored_links(
    root: Element, link_names: tuple[str, ...]
) -> list[tuple[str, float | None]]:
    """(id, score) pairs from the first matching LinkSetDb of the first LinkSet."""
    link_set = root.child("LinkSet")
    if link_set is None:
        return []
    for db in link_set.children_named("LinkSetDb"):
        if db.child_text("LinkName") not in link_names:
            continue
        pairs: list[tuple[str, float | None]] = []
        for link in db.children_named("Link"):
            link_id = link.child_text("Id")
            if not link_id:
                continue
            raw_score = link.child_text("Score")
            try:
                score = float(raw_score) if raw_score else None
            except ValueError:
                score = None
            pairs.append((link_id, score))
        return pairs
    return []


# ------------------------------------------------------------------
# PMC article metadata
# ------------------------------------------------------------------


def normalize_full_text_metadata(article: Element) -> tuple[str, str]:
    """Return (pmid, title) from a PMC ``<article>``'s front matter."""
    meta = article.find("front/article-meta")
    if meta is None:
        return "", UNKNOWN_TITLE
    title = flatten_text(meta.find("title-group/article-title")) or UNKNOWN_TITLE
    ids = extract_article_ids(meta.children_named("article-id"), "pub-id-type")
    return ids.get("pmid", ""), title
