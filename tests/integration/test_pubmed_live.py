"""Integration tests for PubMedClient against the live E-utilities."""

import pytest

from pubmed_navigator.services.batch import BatchProcessor

pytestmark = pytest.mark.integration


async def test_search_returns_numeric_pmids(pubmed_client):
    result = await pubmed_client.search("semaglutide diabetes", max_results=10)

    assert len(result.id_list) == 10
    assert result.count > 500
    assert all(pmid.isdigit() for pmid in result.id_list)


async def test_article_details_are_default_filled(pubmed_client):
    articles = await pubmed_client.get_article_details(["36038128"])

    [article] = articles
    assert article.pmid == "36038128"
    assert article.title
    assert article.journal
    assert article.url == "https://pubmed.ncbi.nlm.nih.gov/36038128/"


async def test_citation_counts(pubmed_client):
    [record] = await pubmed_client.get_citation_counts(["36038128"])

    assert record.error is None
    assert record.citation_count >= len(record.citing_pmids)


async def test_similar_articles_exclude_source(pubmed_client):
    similar = await pubmed_client.find_similar_articles("36038128", max_results=5)

    assert 0 < len(similar) <= 5
    assert all(article.pmid != "36038128" for article in similar)


async def test_ris_export(pubmed_client):
    result = await pubmed_client.export_ris(["36038128"])

    assert result.success_count == 1
    assert result.ris_data.startswith("TY  -")


async def test_full_text_sections(pubmed_client):
    records = await pubmed_client.get_full_text(["PMC9398957"])

    for record in records:
        assert record.sections
        expected = "".join(f"{s.title}\n{s.content}\n" for s in record.sections)
        assert record.full_text in (expected, record.sections[0].content)


async def test_batch_abstracts_and_citations(pubmed_client):
    result = await BatchProcessor(pubmed_client).run(
        ["36038128", "30105375"], ["abstract", "citations"]
    )

    assert result.summary.total == 4
    assert result.summary.completed + result.summary.failed == 4
