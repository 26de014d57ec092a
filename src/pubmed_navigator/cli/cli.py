"""Command-line interface for pubmed-navigator."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import click
from pydantic import BaseModel

from pubmed_navigator.config import get_settings
from pubmed_navigator.constants import (
    MAX_ABSTRACT_PMIDS,
    MAX_CITATION_PMIDS,
    MAX_FULL_TEXT_IDS,
    MAX_SEARCH_RESULTS,
    MAX_SIMILAR_RESULTS,
)
from pubmed_navigator.data_sources.base_client import DataSourceError
from pubmed_navigator.data_sources.pubmed import PubMedClient
from pubmed_navigator.helpers.identifiers import parse_pmids
from pubmed_navigator.models.model_batch import OperationKind
from pubmed_navigator.services.batch import BatchProcessor


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def _limited(ids: list[str], cap: int) -> list[str]:
    if len(ids) > cap:
        click.echo(f"Requested {len(ids)} IDs, limiting to {cap}", err=True)
    return ids[:cap]


def _run(call: Callable[[PubMedClient], Awaitable[Any]], output: str | None) -> None:
    """Run *call* against a fresh client and print (or save) its result as JSON."""

    async def _with_client() -> Any:
        async with PubMedClient() as client:
            return await call(client)

    try:
        data = asyncio.run(_with_client())
    except (DataSourceError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    text = json.dumps(_to_jsonable(data), indent=2)
    if output:
        Path(output).write_text(text)
        click.echo(f"Results saved to: {output}")
    else:
        click.echo(text)


output_option = click.option(
    "-o", "--output", type=click.Path(), help="Output file path (JSON)"
)


@click.group()
@click.version_option(package_name="pubmed-navigator")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")
def main(verbose: bool):
    """pubmed-navigator: fetch and normalize PubMed / PMC records."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


@main.command()
@click.argument("query")
@click.option(
    "-n",
    "--max-results",
    default=10,
    show_default=True,
    help=f"Number of articles to return (max {MAX_SEARCH_RESULTS})",
)
@output_option
def search(query: str, max_results: int, output: str | None):
    """Search PubMed and fetch article details for the hits."""
    limit = min(max_results, MAX_SEARCH_RESULTS)
    _run(lambda client: client.search_and_fetch(query, limit), output)


@main.command()
@click.argument("pmids", nargs=-1, required=True)
@output_option
def summaries(pmids: tuple[str, ...], output: str | None):
    """ESummary records for PMIDS."""
    ids = parse_pmids(list(pmids))
    _run(lambda client: client.get_article_summaries(ids), output)


@main.command()
@click.argument("pmids", nargs=-1, required=True)
@output_option
def abstracts(pmids: tuple[str, ...], output: str | None):
    """Full abstracts for PMIDS."""
    ids = _limited(parse_pmids(list(pmids)), MAX_ABSTRACT_PMIDS)
    _run(lambda client: client.get_full_abstracts(ids), output)


@main.command("full-text")
@click.argument("pmc_ids", nargs=-1, required=True)
@output_option
def full_text(pmc_ids: tuple[str, ...], output: str | None):
    """Sectioned PMC full text for PMC_IDS (with or without the PMC prefix)."""
    ids = _limited(parse_pmids(list(pmc_ids)), MAX_FULL_TEXT_IDS)
    _run(lambda client: client.get_full_text(ids), output)


@main.command()
@click.argument("pmids", nargs=-1, required=True)
@output_option
def citations(pmids: tuple[str, ...], output: str | None):
    """Citing-article counts for PMIDS."""
    ids = _limited(parse_pmids(list(pmids)), MAX_CITATION_PMIDS)
    _run(lambda client: client.get_citation_counts(ids), output)


@main.command()
@click.argument("pmid")
@click.option(
    "-n",
    "--max-results",
    default=10,
    show_default=True,
    help=f"Number of similar articles (max {MAX_SIMILAR_RESULTS})",
)
@output_option
def similar(pmid: str, max_results: int, output: str | None):
    """Articles similar to PMID."""
    limit = min(max_results, MAX_SIMILAR_RESULTS)
    _run(lambda client: client.find_similar_articles(pmid, limit), output)


@main.command()
@click.argument("pmids", nargs=-1, required=True)
@output_option
def ris(pmids: tuple[str, ...], output: str | None):
    """RIS citation export for PMIDS."""
    ids = parse_pmids(list(pmids))
    _run(lambda client: client.export_ris(ids), output)


@main.command()
@click.argument("pmids", nargs=-1, required=True)
@click.option(
    "-p",
    "--operation",
    "operations",
    multiple=True,
    required=True,
    type=click.Choice([kind.value for kind in OperationKind]),
    help="Operation to run on every PMID (repeatable)",
)
@output_option
def batch(pmids: tuple[str, ...], operations: tuple[str, ...], output: str | None):
    """Run one or more operations over PMIDS (space or comma separated)."""
    ids = parse_pmids(" ".join(pmids))
    _run(lambda client: BatchProcessor(client).run(ids, list(operations)), output)


if __name__ == "__main__":
    main()
