"""
PubMed / PMC E-utilities client.

One HTTP GET per logical operation; normalization lives in
``pubmed_navigator.parsers``.

  1. search                 ESearch: query -> PMIDs
  2. get_article_summaries  ESummary: PMIDs -> DocSum records
  3. get_article_details    EFetch: PMIDs -> full article metadata + abstract
  4. get_full_abstracts     EFetch: PMIDs -> untruncated abstracts
  5. get_full_text          EFetch (db=pmc): PMC ids -> sectioned full text
  6. get_citation_counts    ELink citedin: PMIDs -> citing PMIDs
  7. find_similar_articles  ELink neighbours: PMID -> similar articles
  8. export_ris             Literature Citation Exporter: PMIDs -> RIS text
  9. search_and_fetch       search + get_article_details
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from pubmed_navigator.config import get_settings
from pubmed_navigator.constants import (
    CITATION_REQUEST_DELAY,
    CITED_IN_LINK_NAME,
    LIT_CITATION_URL,
    MAX_CITING_PMIDS,
    PUBMED_FETCH_URL,
    PUBMED_LINK_URL,
    PUBMED_SEARCH_URL,
    PUBMED_SUMMARY_URL,
    RIS_BATCH_SIZE,
    RIS_REQUEST_DELAY,
    SIMILAR_LINK_NAMES,
    UNKNOWN_TITLE,
)
from pubmed_navigator.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
    RequestContext,
)
from pubmed_navigator.helpers.identifiers import add_pmc_prefix, strip_pmc_prefix
from pubmed_navigator.models.model_pubmed import (
    ArticleRecord,
    ArticleSummary,
    CitationCountRecord,
    FullAbstract,
    FullTextRecord,
    RISExportResult,
    SearchResult,
    SimilarArticle,
)
from pubmed_navigator.parsers.records import (
    extract_linked_ids,
    extract_scored_links,
    normalize_articles,
    normalize_full_text_metadata,
    normalize_search_result,
    normalize_summaries,
)
from pubmed_navigator.parsers.sections import extract_sections
from pubmed_navigator.utils.pacing import SleepFn, chunked, paced

logger = logging.getLogger("pubmed_navigator.data_sources.pubmed")

_RIS_RECORD_START = re.compile(r"^TY  -", re.MULTILINE)


class PubMedClient(BaseClient):
    """Client for querying PubMed/NCBI APIs."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        citation_delay: float = CITATION_REQUEST_DELAY,
        ris_delay: float = RIS_REQUEST_DELAY,
    ) -> None:
        super().__init__(config)
        self._sleep = sleep
        self.citation_delay = citation_delay
        self.ris_delay = ris_delay

    @property
    def _source_name(self) -> str:
        return "pubmed"

    # -- Parameter construction -----------------------------------------------

    @staticmethod
    def _eutils_params(**params: Any) -> dict[str, str]:
        """Stringify request params and attach NCBI tool/contact identifiers."""
        settings = get_settings()
        out = {key: str(value) for key, value in params.items()}
        out["tool"] = settings.ncbi_tool
        if settings.ncbi_email:
            out["email"] = settings.ncbi_email
        if settings.ncbi_api_key:
            out["api_key"] = settings.ncbi_api_key
        return out

    def _context(self, method: str, params: dict[str, Any]) -> RequestContext:
        return RequestContext(source=self._source_name, method=method, params=params)

    # -- Search / summaries / details -----------------------------------------

    async def search(
        self, query: str, max_results: int = 20, start_index: int = 0
    ) -> SearchResult:
        """Search PubMed and return one window of PMIDs."""
        params = self._eutils_params(
            db="pubmed",
            term=query,
            retmax=max_results,
            retstart=start_index,
            retmode="xml",
        )
        try:
            root = await self._rest_get_xml(
                PUBMED_SEARCH_URL, params, context=self._context("search", params)
            )
        except DataSourceError as e:
            raise e.relabel("PubMed search failed") from e
        return normalize_search_result(root)

    async def get_article_summaries(self, pmids: list[str]) -> list[ArticleSummary]:
        """ESummary DocSums for the given PMIDs."""
        if not pmids:
            return []

        params = self._eutils_params(db="pubmed", id=",".join(pmids), retmode="xml")
        try:
            root = await self._rest_get_xml(
                PUBMED_SUMMARY_URL,
                params,
                context=self._context("get_article_summaries", params),
            )
        except DataSourceError as e:
            raise e.relabel("Failed to get article summaries") from e
        return normalize_summaries(root)

    async def _fetch_articles(self, pmids: list[str], method: str) -> list[ArticleRecord]:
        params = self._eutils_params(
            db="pubmed", id=",".join(pmids), retmode="xml", rettype="abstract"
        )
        root = await self._rest_get_xml(
            PUBMED_FETCH_URL, params, context=self._context(method, params)
        )
        return normalize_articles(root)

    async def get_article_details(self, pmids: list[str]) -> list[ArticleRecord]:
        """Full article metadata (authors, journal, date, abstract, ids) per PMID."""
        if not pmids:
            return []
        try:
            return await self._fetch_articles(pmids, "get_article_details")
        except DataSourceError as e:
            raise e.relabel("Failed to get article details") from e

    async def get_full_abstracts(self, pmids: list[str]) -> list[FullAbstract]:
        """Untruncated abstracts for the given PMIDs."""
        if not pmids:
            return []
        try:
            articles = await self._fetch_articles(pmids, "get_full_abstracts")
        except DataSourceError as e:
            raise e.relabel("Failed to get full abstracts") from e
        return [FullAbstract.from_article(a) for a in articles]

    async def search_and_fetch(
        self, query: str, max_results: int = 10
    ) -> list[ArticleRecord]:
        """Search, then fetch details for every hit."""
        try:
            search_result = await self.search(query, max_results)
            if not search_result.id_list:
                return []
            return await self.get_article_details(search_result.id_list)
        except DataSourceError as e:
            raise e.relabel("Search and fetch failed") from e

    # -- Full text ------------------------------------------------------------

    async def get_full_text(self, pmc_ids: list[str]) -> list[FullTextRecord]:
        """Sectioned full text from PMC, one request per id.

        Ids may carry the ``PMC`` prefix or not. Documents that cannot be
        fetched or contain no extractable text are logged and left out of
        the result rather than raised.
        """
        results: list[FullTextRecord] = []
        for pmc_id in pmc_ids:
            clean_id = strip_pmc_prefix(pmc_id)
            try:
                record = await self._fetch_full_text(clean_id)
            except Exception as e:
                logger.warning("Error processing %s: %s", add_pmc_prefix(clean_id), e)
                continue
            if record is not None:
                results.append(record)
        return results

    async def _fetch_full_text(self, clean_id: str) -> FullTextRecord | None:
        pmc_label = add_pmc_prefix(clean_id)
        params = self._eutils_params(db="pmc", id=clean_id, retmode="xml")
        xml_text = await self._rest_get_text(
            PUBMED_FETCH_URL, params, context=self._context("get_full_text", params)
        )

        if "Error occurred" in xml_text or "esearchresult" in xml_text:
            logger.warning("No full text available for %s", pmc_label)
            return None

        root = self._parse_xml(xml_text)
        article = root if root.tag == "article" else root.child("article")
        if article is None:
            logger.warning("No article found in %s", pmc_label)
            return None

        pmid, title = normalize_full_text_metadata(article)
        extracted = extract_sections(article)
        if extracted.is_empty:
            logger.warning("No extractable content found for %s", pmc_label)
            return None

        return FullTextRecord(
            pmid=pmid,
            pmc_id=pmc_label,
            title=title,
            full_text=extracted.full_text,
            sections=extracted.sections,
        )

    # -- Citations ------------------------------------------------------------

    async def get_citation_counts(self, pmids: list[str]) -> list[CitationCountRecord]:
        """Citing-article counts, one ELink request per PMID.

        Per-PMID failures are reported in ``CitationCountRecord.error``.
        """
        if not pmids:
            return []

        logger.info("Getting citation counts for %d PMIDs", len(pmids))
        results: list[CitationCountRecord] = []
        for index, pmid in enumerate(pmids):
            if index > 0 and self.citation_delay > 0:
                await self._sleep(self.citation_delay)
            results.append(await self._citation_count(pmid))
        return results

    async def _citation_count(self, pmid: str) -> CitationCountRecord:
        try:
            details = await self.get_article_details([pmid])
            title = details[0].title if details else UNKNOWN_TITLE

            params = self._eutils_params(
                dbfrom="pubmed",
                db="pubmed",
                id=pmid,
                linkname=CITED_IN_LINK_NAME,
                retmode="xml",
            )
            try:
                root = await self._rest_get_xml(
                    PUBMED_LINK_URL,
                    params,
                    context=self._context("get_citation_counts", params),
                )
            except DataSourceError as e:
                if e.status_code is None:
                    raise
                return CitationCountRecord(pmid=pmid, title=title, error=e.message)
        except DataSourceError as e:
            return CitationCountRecord(
                pmid=pmid, error=f"Failed to get citation count: {e.message}"
            )

        citing = extract_linked_ids(root, CITED_IN_LINK_NAME)
        return CitationCountRecord(
            pmid=pmid,
            title=title,
            citation_count=len(citing),
            citing_pmids=citing[:MAX_CITING_PMIDS],
        )

    # -- Similar articles -----------------------------------------------------

    async def find_similar_articles(
        self, pmid: str, max_results: int = 10
    ) -> list[SimilarArticle]:
        """PubMed "similar articles" for *pmid*, excluding *pmid* itself.

        Sorted by similarity score (highest first) when every hit has one.
        """
        params = self._eutils_params(
            dbfrom="pubmed",
            db="pubmed",
            id=pmid,
            linkname="pubmed_pubmed",
            cmd="neighbor",
            retmode="xml",
            # extra headroom for the source article and filtered links
            retmax=max_results + 10,
        )
        try:
            root = await self._rest_get_xml(
                PUBMED_LINK_URL,
                params,
                context=self._context("find_similar_articles", params),
            )
            links = extract_scored_links(root, SIMILAR_LINK_NAMES)
            candidates = [
                (link_id, score)
                for link_id, score in links[: max_results + 1]
                if link_id != pmid
            ][:max_results]
            if not candidates:
                logger.info("No similar articles found for PMID %s", pmid)
                return []
            logger.info("Found %d similar articles for PMID %s", len(links), pmid)
            articles = await self.get_article_details([c[0] for c in candidates])
        except DataSourceError as e:
            raise e.relabel("Failed to find similar articles") from e

        scores = dict(candidates)
        results = [SimilarArticle.from_article(a, scores.get(a.pmid)) for a in articles]
        if all(r.similarity_score is not None for r in results):
            results.sort(key=lambda r: r.similarity_score, reverse=True)
        return results

    # -- RIS export -----------------------------------------------------------

    async def export_ris(self, pmids: list[str]) -> RISExportResult:
        """RIS citations from the Literature Citation Exporter.

        PMIDs go out in batches of RIS_BATCH_SIZE. A failed or empty batch is
        recorded in ``errors`` and the export continues with the next one.
        """
        if not pmids:
            return RISExportResult()

        errors: list[str] = []
        ris_parts: list[str] = []
        success_count = 0

        batches = list(chunked(pmids, RIS_BATCH_SIZE))
        async for _, batch in paced(batches, lambda _: self.ris_delay, self._sleep):
            params = {"format": "ris", "id": ",".join(batch)}
            try:
                ris_data = await self._rest_get_text(
                    LIT_CITATION_URL, params, context=self._context("export_ris", params)
                )
            except DataSourceError as e:
                errors.append(
                    f"Failed to fetch RIS for PMIDs {', '.join(batch)}: {e.message}"
                )
                continue

            if ris_data.strip() and "Error" not in ris_data and "error" not in ris_data:
                ris_parts.append(ris_data if ris_data.endswith("\n") else ris_data + "\n")
                success_count += len(_RIS_RECORD_START.findall(ris_data))
            else:
                errors.append(f"No valid RIS data for PMIDs: {', '.join(batch)}")

        return RISExportResult(
            pmids=pmids,
            ris_data="".join(ris_parts),
            success_count=success_count,
            error_count=len(pmids) - success_count,
            errors=errors,
        )
