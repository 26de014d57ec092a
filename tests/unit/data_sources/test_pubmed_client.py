"""Unit tests for PubMedClient."""

from unittest.mock import AsyncMock, patch

import pytest

from pubmed_navigator.config import Settings
from pubmed_navigator.constants import (
    LIT_CITATION_URL,
    PUBMED_FETCH_URL,
    PUBMED_LINK_URL,
    PUBMED_SEARCH_URL,
    UNKNOWN_TITLE,
)
from pubmed_navigator.data_sources.base_client import DataSourceError
from pubmed_navigator.data_sources.pubmed import PubMedClient
from pubmed_navigator.models.model_pubmed import ArticleRecord

ESEARCH_XML = """<eSearchResult>
    <Count>2</Count><RetMax>2</RetMax><RetStart>0</RetStart>
    <IdList><Id>11111111</Id><Id>22222222</Id></IdList>
</eSearchResult>
"""

ESEARCH_EMPTY_XML = """<eSearchResult>
    <Count>0</Count><RetMax>0</RetMax><RetStart>0</RetStart><IdList/>
</eSearchResult>
"""

EFETCH_XML = """<PubmedArticleSet>
    <PubmedArticle>
        <MedlineCitation>
            <PMID>11111111</PMID>
            <Article>
                <ArticleTitle>First article</ArticleTitle>
                <Abstract><AbstractText>Abstract one.</AbstractText></Abstract>
            </Article>
        </MedlineCitation>
        <PubmedData>
            <ArticleIdList>
                <ArticleId IdType="pmc">PMC1000001</ArticleId>
            </ArticleIdList>
        </PubmedData>
    </PubmedArticle>
    <PubmedArticle>
        <MedlineCitation>
            <PMID>22222222</PMID>
            <Article><ArticleTitle>Second article</ArticleTitle></Article>
        </MedlineCitation>
    </PubmedArticle>
</PubmedArticleSet>
"""

EFETCH_ONE_XML = """<PubmedArticleSet>
    <PubmedArticle>
        <MedlineCitation>
            <PMID>36038128</PMID>
            <Article><ArticleTitle>Cited work</ArticleTitle></Article>
        </MedlineCitation>
    </PubmedArticle>
</PubmedArticleSet>
"""

ELINK_CITEDIN_XML = """<eLinkResult><LinkSet>
    <LinkSetDb>
        <LinkName>pubmed_pubmed_citedin</LinkName>
        <Link><Id>900</Id></Link>
        <Link><Id>901</Id></Link>
    </LinkSetDb>
</LinkSet></eLinkResult>
"""

ELINK_NO_CITATIONS_XML = """<eLinkResult><LinkSet>
    <DbFrom>pubmed</DbFrom>
    <IdList><Id>36038128</Id></IdList>
</LinkSet></eLinkResult>
"""

PMC_ARTICLE_XML = """<pmc-articleset>
<article>
    <front>
        <article-meta>
            <article-id pub-id-type="pmid">11111111</article-id>
            <title-group><article-title>Full text title</article-title></title-group>
        </article-meta>
    </front>
    <body>
        <sec><title>Results</title><p>A.</p><p>B.</p></sec>
    </body>
</article>
</pmc-articleset>
"""


def _settings(**overrides) -> Settings:
    values = {"ncbi_tool": "pubmed-navigator", "ncbi_email": "", "ncbi_api_key": ""}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def plain_settings():
    with patch(
        "pubmed_navigator.data_sources.pubmed.get_settings", return_value=_settings()
    ):
        yield


# ------------------------------------------------------------------
# Parameters
# ------------------------------------------------------------------


class TestEutilsParams:
    def test_tool_always_sent_and_values_stringified(self):
        params = PubMedClient._eutils_params(db="pubmed", retmax=20)

        assert params == {"db": "pubmed", "retmax": "20", "tool": "pubmed-navigator"}

    def test_email_and_api_key_only_when_configured(self):
        settings = _settings(ncbi_email="me@example.org", ncbi_api_key="k123")
        with patch(
            "pubmed_navigator.data_sources.pubmed.get_settings", return_value=settings
        ):
            params = PubMedClient._eutils_params(db="pubmed")

        assert params["email"] == "me@example.org"
        assert params["api_key"] == "k123"


# ------------------------------------------------------------------
# Search / details
# ------------------------------------------------------------------


@pytest.mark.asyncio
class TestSearch:
    async def test_search_sends_window_and_parses(self, pubmed_client):
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, return_value=ESEARCH_XML
        ) as mock_request:
            result = await pubmed_client.search("semaglutide", max_results=2, start_index=5)

        assert result.id_list == ["11111111", "22222222"]
        url = mock_request.call_args.args[0]
        params = mock_request.call_args.kwargs["params"]
        assert url == PUBMED_SEARCH_URL
        assert params["term"] == "semaglutide"
        assert params["retmax"] == "2"
        assert params["retstart"] == "5"

    async def test_search_failure_is_labeled(self, pubmed_client):
        error = DataSourceError("pubmed", "HTTP error! status: 500", status_code=500)
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, side_effect=error
        ):
            with pytest.raises(DataSourceError) as exc_info:
                await pubmed_client.search("x")

        assert exc_info.value.message == "PubMed search failed: HTTP error! status: 500"
        assert exc_info.value.status_code == 500

    async def test_search_and_fetch_with_no_hits_skips_fetch(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            return_value=ESEARCH_EMPTY_XML,
        ) as mock_request:
            result = await pubmed_client.search_and_fetch("nothing")

        assert result == []
        assert mock_request.await_count == 1

    async def test_search_and_fetch_returns_details(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[ESEARCH_XML, EFETCH_XML],
        ) as mock_request:
            result = await pubmed_client.search_and_fetch("semaglutide")

        assert [a.pmid for a in result] == ["11111111", "22222222"]
        fetch_params = mock_request.call_args_list[1].kwargs["params"]
        assert mock_request.call_args_list[1].args[0] == PUBMED_FETCH_URL
        assert fetch_params["id"] == "11111111,22222222"
        assert fetch_params["rettype"] == "abstract"


@pytest.mark.asyncio
class TestDetailsAndAbstracts:
    async def test_empty_input_makes_no_request(self, pubmed_client):
        with patch.object(pubmed_client, "_request", new_callable=AsyncMock) as mock_request:
            assert await pubmed_client.get_article_details([]) == []
            assert await pubmed_client.get_full_abstracts([]) == []
            assert await pubmed_client.get_article_summaries([]) == []

        mock_request.assert_not_awaited()

    async def test_full_abstracts(self, pubmed_client):
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, return_value=EFETCH_XML
        ):
            abstracts = await pubmed_client.get_full_abstracts(["11111111", "22222222"])

        assert abstracts[0].full_abstract == "Abstract one."
        assert abstracts[0].pmc_id == "PMC1000001"
        assert abstracts[1].full_abstract == ""

    async def test_parse_failure_is_labeled(self, pubmed_client):
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, return_value="<broken"
        ):
            with pytest.raises(DataSourceError) as exc_info:
                await pubmed_client.get_article_details(["1"])

        assert exc_info.value.message.startswith(
            "Failed to get article details: Failed to parse XML"
        )


# ------------------------------------------------------------------
# Full text
# ------------------------------------------------------------------


@pytest.mark.asyncio
class TestGetFullText:
    async def test_sectioned_full_text(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            return_value=PMC_ARTICLE_XML,
        ) as mock_request:
            records = await pubmed_client.get_full_text(["PMC1000001"])

        assert len(records) == 1
        record = records[0]
        assert record.pmc_id == "PMC1000001"
        assert record.pmid == "11111111"
        assert record.title == "Full text title"
        assert record.full_text == "Results\nA.\n\nB.\n"
        params = mock_request.call_args.kwargs["params"]
        assert params["db"] == "pmc"
        assert params["id"] == "1000001"

    async def test_bare_id_gets_prefixed(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            return_value=PMC_ARTICLE_XML,
        ):
            records = await pubmed_client.get_full_text(["1000001"])

        assert records[0].pmc_id == "PMC1000001"

    async def test_error_body_is_skipped(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[
                "<eFetchResult><ERROR>Error occurred</ERROR></eFetchResult>",
                PMC_ARTICLE_XML,
            ],
        ):
            records = await pubmed_client.get_full_text(["PMC1", "PMC1000001"])

        assert [r.pmc_id for r in records] == ["PMC1000001"]

    async def test_failed_document_is_skipped_not_raised(self, pubmed_client):
        error = DataSourceError("pubmed", "HTTP error! status: 404", status_code=404)
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[error, "<broken", PMC_ARTICLE_XML],
        ):
            records = await pubmed_client.get_full_text(["PMC1", "PMC2", "PMC1000001"])

        assert len(records) == 1

    async def test_unexpected_failure_skips_document(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[ValueError("bad body"), PMC_ARTICLE_XML],
        ):
            records = await pubmed_client.get_full_text(["PMC1", "PMC1000001"])

        assert [r.pmc_id for r in records] == ["PMC1000001"]

    async def test_missing_article_and_empty_article_are_skipped(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=["<pmc-articleset/>", "<article><body/></article>"],
        ):
            records = await pubmed_client.get_full_text(["PMC1", "PMC2"])

        assert records == []


# ------------------------------------------------------------------
# Citations
# ------------------------------------------------------------------


@pytest.mark.asyncio
class TestCitationCounts:
    async def test_zero_citations(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[EFETCH_ONE_XML, ELINK_NO_CITATIONS_XML],
        ):
            records = await pubmed_client.get_citation_counts(["36038128"])

        record = records[0]
        assert record.pmid == "36038128"
        assert record.title == "Cited work"
        assert record.citation_count == 0
        assert record.citing_pmids == []
        assert record.error is None

    async def test_citing_pmids_and_elink_params(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[EFETCH_ONE_XML, ELINK_CITEDIN_XML],
        ) as mock_request:
            records = await pubmed_client.get_citation_counts(["36038128"])

        assert records[0].citation_count == 2
        assert records[0].citing_pmids == ["900", "901"]
        link_call = mock_request.call_args_list[1]
        assert link_call.args[0] == PUBMED_LINK_URL
        assert link_call.kwargs["params"]["linkname"] == "pubmed_pubmed_citedin"

    async def test_citing_pmids_capped_at_100(self, pubmed_client):
        links = "".join(f"<Link><Id>{i}</Id></Link>" for i in range(150))
        elink = (
            "<eLinkResult><LinkSet><LinkSetDb>"
            f"<LinkName>pubmed_pubmed_citedin</LinkName>{links}"
            "</LinkSetDb></LinkSet></eLinkResult>"
        )
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[EFETCH_ONE_XML, elink],
        ):
            records = await pubmed_client.get_citation_counts(["36038128"])

        assert records[0].citation_count == 150
        assert len(records[0].citing_pmids) == 100

    async def test_elink_http_error_keeps_title(self, pubmed_client):
        error = DataSourceError("pubmed", "HTTP error! status: 500", status_code=500)
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[EFETCH_ONE_XML, error],
        ):
            records = await pubmed_client.get_citation_counts(["36038128"])

        assert records[0].title == "Cited work"
        assert records[0].error == "HTTP error! status: 500"
        assert records[0].citation_count == 0

    async def test_details_failure_is_embedded(self, pubmed_client):
        error = DataSourceError("pubmed", "Connection error: refused")
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, side_effect=error
        ):
            records = await pubmed_client.get_citation_counts(["36038128"])

        assert records[0].title == UNKNOWN_TITLE
        assert records[0].error.startswith("Failed to get citation count:")

    async def test_delay_only_between_pmids(self, pubmed_client, recording_sleep):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[EFETCH_ONE_XML, ELINK_NO_CITATIONS_XML] * 3,
        ):
            records = await pubmed_client.get_citation_counts(["1", "2", "3"])

        assert len(records) == 3
        assert recording_sleep.calls == [0.2, 0.2]


# ------------------------------------------------------------------
# Similar articles
# ------------------------------------------------------------------


ELINK_NEIGHBOR_XML = """<eLinkResult><LinkSet>
    <LinkSetDb>
        <LinkName>pubmed_pubmed</LinkName>
        <Link><Id>100</Id><Score>90000</Score></Link>
        <Link><Id>200</Id><Score>10000</Score></Link>
        <Link><Id>300</Id><Score>50000</Score></Link>
        <Link><Id>400</Id><Score>40000</Score></Link>
    </LinkSetDb>
</LinkSet></eLinkResult>
"""


@pytest.mark.asyncio
class TestFindSimilarArticles:
    async def test_excludes_source_and_sorts_by_score(self, pubmed_client):
        details = [
            ArticleRecord(pmid="200", title="B"),
            ArticleRecord(pmid="300", title="C"),
        ]
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            return_value=ELINK_NEIGHBOR_XML,
        ) as mock_request, patch.object(
            pubmed_client,
            "get_article_details",
            new_callable=AsyncMock,
            return_value=details,
        ) as mock_details:
            results = await pubmed_client.find_similar_articles("100", max_results=2)

        mock_details.assert_awaited_once_with(["200", "300"])
        assert [r.pmid for r in results] == ["300", "200"]
        assert [r.similarity_score for r in results] == [50000.0, 10000.0]
        params = mock_request.call_args.kwargs["params"]
        assert params["cmd"] == "neighbor"
        assert params["retmax"] == "12"

    async def test_no_links_returns_empty(self, pubmed_client):
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            return_value="<eLinkResult><LinkSet/></eLinkResult>",
        ):
            assert await pubmed_client.find_similar_articles("100") == []

    async def test_failure_is_labeled(self, pubmed_client):
        error = DataSourceError("pubmed", "HTTP error! status: 429", status_code=429)
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, side_effect=error
        ):
            with pytest.raises(DataSourceError) as exc_info:
                await pubmed_client.find_similar_articles("100")

        assert exc_info.value.message.startswith("Failed to find similar articles:")


# ------------------------------------------------------------------
# RIS export
# ------------------------------------------------------------------


RIS_TWO = "TY  - JOUR\nTI  - One\nER  - \n\nTY  - JOUR\nTI  - Two\nER  - \n"


@pytest.mark.asyncio
class TestExportRis:
    async def test_empty_input(self, pubmed_client):
        result = await pubmed_client.export_ris([])

        assert result.ris_data == ""
        assert result.success_count == 0

    async def test_counts_records(self, pubmed_client):
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, return_value=RIS_TWO
        ) as mock_request:
            result = await pubmed_client.export_ris(["1", "2"])

        assert result.ris_data == RIS_TWO
        assert result.success_count == 2
        assert result.error_count == 0
        assert result.errors == []
        assert mock_request.call_args.args[0] == LIT_CITATION_URL
        assert mock_request.call_args.kwargs["params"] == {"format": "ris", "id": "1,2"}

    async def test_batches_of_ten_with_delay_between(self, pubmed_client, recording_sleep):
        pmids = [str(i) for i in range(25)]
        with patch.object(
            pubmed_client, "_request", new_callable=AsyncMock, return_value=RIS_TWO
        ) as mock_request:
            result = await pubmed_client.export_ris(pmids)

        assert mock_request.await_count == 3
        assert recording_sleep.calls == [0.4, 0.4]
        assert result.success_count == 6
        assert result.error_count == 19

    async def test_failed_and_invalid_batches_recorded(self, pubmed_client):
        pmids = [str(i) for i in range(30)]
        error = DataSourceError("pubmed", "HTTP error! status: 500", status_code=500)
        with patch.object(
            pubmed_client,
            "_request",
            new_callable=AsyncMock,
            side_effect=[error, "An error has occurred", RIS_TWO],
        ):
            result = await pubmed_client.export_ris(pmids)

        assert len(result.errors) == 2
        assert result.errors[0].startswith("Failed to fetch RIS for PMIDs 0, 1")
        assert result.errors[1].startswith("No valid RIS data for PMIDs: 10, 11")
        assert result.ris_data == RIS_TWO
        assert result.success_count == 2
