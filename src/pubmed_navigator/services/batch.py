"""Batch service: run several operation kinds over a list of PMIDs.

Work is grouped by operation kind, not interleaved per PMID. Each kind's
PMID list is chunked at that kind's batch size and the chunks are fetched one
after another with the kind's pacing delay in between. Kinds also run one
after another; nothing is dispatched in parallel.

Failure policy: a DataSourceError anywhere inside a kind marks every
operation of that kind ``error`` with the same message, including PMIDs
whose chunk had already succeeded. A kind that raises nothing is
``completed`` for all its PMIDs, even those that produced no data.
Similar-article lookups are the exception: a failed PMID gets an empty
list and the remaining PMIDs are still looked up.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, Awaitable, Callable

from pubmed_navigator.constants import BATCH_SIMILAR_RESULTS, MAX_BATCH_PMIDS
from pubmed_navigator.data_sources.base_client import DataSourceError
from pubmed_navigator.data_sources.pubmed import PubMedClient
from pubmed_navigator.models.model_batch import (
    BatchOperation,
    BatchResult,
    BatchResults,
    BatchSummary,
    OperationKind,
    OperationStatus,
)
from pubmed_navigator.utils.pacing import (
    FixedPacing,
    PacingPolicy,
    SleepFn,
    chunked,
    paced,
)

logger = logging.getLogger(__name__)


def summarize(operations: list[BatchOperation]) -> BatchSummary:
    """Tally final operation statuses."""
    statuses = [op.status for op in operations]
    return BatchSummary(
        total=len(operations),
        completed=statuses.count(OperationStatus.COMPLETED),
        failed=statuses.count(OperationStatus.ERROR),
        processing=statuses.count(OperationStatus.PROCESSING),
    )


def group_by_kind(
    pmids: list[str], kinds: list[OperationKind]
) -> dict[OperationKind, list[str]]:
    """Kind -> PMIDs to process, kinds in first-requested order."""
    groups: dict[OperationKind, list[str]] = {}
    for pmid in pmids:
        for kind in kinds:
            groups.setdefault(kind, []).append(pmid)
    return groups


class BatchProcessor:
    """Runs (PMID x operation kind) batches against a PubMedClient.

    Each ``run`` call owns its operation list; nothing is shared between runs.
    """

    def __init__(
        self,
        client: PubMedClient,
        pacing: PacingPolicy | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        max_pmids: int = MAX_BATCH_PMIDS,
    ) -> None:
        self.client = client
        self.pacing = pacing or FixedPacing()
        self._sleep = sleep
        self._clock = clock
        self.max_pmids = max_pmids
        self._handlers: dict[
            OperationKind, Callable[[list[str], BatchResults], Awaitable[None]]
        ] = {
            OperationKind.ABSTRACT: self._run_abstracts,
            OperationKind.CITATIONS: self._run_citations,
            OperationKind.SIMILAR: self._run_similar,
            OperationKind.RIS_EXPORT: self._run_ris_export,
            OperationKind.FULL_TEXT: self._run_full_text,
        }

    async def run(
        self, pmids: list[str], operations: list[OperationKind | str]
    ) -> BatchResult:
        """Execute every (PMID, operation) pair and return the aggregated result.

        Raises ValueError for an empty PMID or operation list, or an unknown
        operation kind.
        """
        if not pmids:
            raise ValueError("No valid PMIDs provided for batch processing")
        if not operations:
            raise ValueError("No operations specified for batch processing")
        kinds = [OperationKind(op) for op in operations]

        if len(pmids) > self.max_pmids:
            logger.warning(
                "Requested %d PMIDs, limiting to %d for batch processing",
                len(pmids),
                self.max_pmids,
            )
            pmids = pmids[: self.max_pmids]

        task_id = f"batch_{int(self._clock() * 1000)}"
        batch_operations = [
            BatchOperation(pmid=pmid, operation=kind) for pmid in pmids for kind in kinds
        ]
        results = BatchResults()

        for kind, kind_pmids in group_by_kind(pmids, kinds).items():
            logger.info("Processing %s for %d PMIDs", kind.value, len(kind_pmids))
            kind_operations = [op for op in batch_operations if op.operation == kind]
            for op in kind_operations:
                op.status = OperationStatus.PROCESSING

            try:
                await self._handlers[kind](kind_pmids, results)
            except DataSourceError as e:
                logger.error("Error processing %s: %s", kind.value, e)
                for op in kind_operations:
                    op.status = OperationStatus.ERROR
                    op.error = str(e)
            else:
                for op in kind_operations:
                    op.status = OperationStatus.COMPLETED

        summary = summarize(batch_operations)
        logger.info(
            "Batch %s finished: %d/%d completed, %d failed",
            task_id,
            summary.completed,
            summary.total,
            summary.failed,
        )
        return BatchResult(
            task_id=task_id,
            operations=batch_operations,
            summary=summary,
            results=results,
        )

    # -- Per-kind handlers ----------------------------------------------------

    def _paced_chunks(
        self, kind: OperationKind, items: list[str]
    ) -> AsyncIterator[tuple[int, list[str]]]:
        chunks = list(chunked(items, self.pacing.batch_size(kind.value)))
        return paced(chunks, lambda i: self.pacing.delay(kind.value, i), self._sleep)

    async def _run_abstracts(self, pmids: list[str], results: BatchResults) -> None:
        results.abstracts = []
        async for _, chunk in self._paced_chunks(OperationKind.ABSTRACT, pmids):
            results.abstracts.extend(await self.client.get_full_abstracts(chunk))

    async def _run_citations(self, pmids: list[str], results: BatchResults) -> None:
        results.citations = []
        async for index, chunk in self._paced_chunks(OperationKind.CITATIONS, pmids):
            logger.debug("Citation chunk %d: PMIDs %s", index + 1, ", ".join(chunk))
            citations = await self.client.get_citation_counts(chunk)
            results.citations.extend(citations)
        logger.info("Total citation results: %d", len(results.citations))

    async def _run_similar(self, pmids: list[str], results: BatchResults) -> None:
        results.similar = {}
        async for _, chunk in self._paced_chunks(OperationKind.SIMILAR, pmids):
            for pmid in chunk:
                try:
                    similar = await self.client.find_similar_articles(
                        pmid, BATCH_SIMILAR_RESULTS
                    )
                except DataSourceError as e:
                    logger.warning("Error finding similar articles for %s: %s", pmid, e)
                    similar = []
                results.similar[pmid] = similar

    async def _run_ris_export(self, pmids: list[str], results: BatchResults) -> None:
        ris_chunks: list[str] = []
        async for _, chunk in self._paced_chunks(OperationKind.RIS_EXPORT, pmids):
            export = await self.client.export_ris(chunk)
            if export.errors:
                logger.warning("RIS export issues: %s", "; ".join(export.errors))
            if export.ris_data:
                ris_chunks.append(export.ris_data)
        results.ris_exports = "\n\n".join(ris_chunks)

    async def _run_full_text(self, pmids: list[str], results: BatchResults) -> None:
        results.full_texts = []
        articles = await self.client.get_article_details(pmids)
        pmc_ids = [article.pmc_id for article in articles if article.pmc_id]
        if len(pmc_ids) < len(pmids):
            logger.info(
                "%d of %d PMIDs have no PMC full text",
                len(pmids) - len(pmc_ids),
                len(pmids),
            )
        async for _, chunk in self._paced_chunks(OperationKind.FULL_TEXT, pmc_ids):
            results.full_texts.extend(await self.client.get_full_text(chunk))


async def batch_process(
    pmids: list[str],
    operations: list[OperationKind | str],
    client: PubMedClient | None = None,
) -> BatchResult:
    """One-shot helper: run a batch with a fresh (or given) client."""
    if client is not None:
        return await BatchProcessor(client).run(pmids, operations)
    async with PubMedClient() as own_client:
        return await BatchProcessor(own_client).run(pmids, operations)
