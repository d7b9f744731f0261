"""
Unit tests for the report extractor
"""

import pytest
import httpx
from unittest.mock import MagicMock

from ingestion.extractors.argus_extractor import ArgusExtractor
from schemas.pipeline import StopReason


def _bodies(mock_client):
    return [call.kwargs["json"] for call in mock_client.post.call_args_list]


class TestArgusExtractor:
    """Test cursor pagination and soft-stop behavior"""

    @pytest.mark.asyncio
    async def test_pages_until_end_of_table(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        """Records from every page are concatenated in API order"""
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}, {"id": 2}], next_cursor=10)),
            make_response(make_page([{"id": 3}], next_cursor=20)),
            make_response(make_page([{"id": 4}], next_cursor=30, end_of_table=True)),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert [r["id"] for r in result.records] == [1, 2, 3, 4]
        assert result.pages_fetched == 3
        assert result.stop_reason == StopReason.COMPLETED
        assert result.complete
        assert [b["ultimoId"] for b in _bodies(mock_client)] == [0, 10, 20]

    @pytest.mark.asyncio
    async def test_stops_when_cursor_returns_to_zero(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}], next_cursor=7)),
            make_response(make_page([{"id": 2}], next_cursor=0)),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert len(result) == 2
        assert mock_client.post.call_count == 2
        assert result.complete

    @pytest.mark.asyncio
    async def test_request_carries_window_campaign_and_token(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.return_value = make_response(
            make_page([{"id": 1}], end_of_table=True)
        )
        extractor = ArgusExtractor(mock_client, "token-123")

        await extractor.extract(tabulacoes_endpoint, window)

        call = mock_client.post.call_args
        assert call.args[0] == tabulacoes_endpoint.source_url
        assert call.kwargs["headers"]["Token-Signature"] == "token-123"
        assert call.kwargs["json"] == {
            "idCampanha": 1,
            "periodoInicial": "2024-01-08T00:00:00",
            "periodoFinal": "2024-01-14T23:59:59",
            "ultimoId": 0,
        }

    @pytest.mark.asyncio
    async def test_failed_status_keeps_previous_pages(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        """A failure-flagged page ends extraction without raising"""
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}], next_cursor=5)),
            make_response(make_page([], status_code=0, description="Token invalido")),
            make_response(make_page([{"id": 99}], end_of_table=True)),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert [r["id"] for r in result.records] == [1]
        assert result.stop_reason == StopReason.API_FAILURE
        assert result.error == "Token invalido"
        assert mock_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_empty_first_page_returns_nothing(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.return_value = make_response(make_page([], next_cursor=3))
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert result.records == []
        assert result.stop_reason == StopReason.COMPLETED
        assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_page_after_data_keeps_prior_records(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}, {"id": 2}], next_cursor=12)),
            make_response(make_page([], next_cursor=13)),
            make_response(make_page([{"id": 99}], end_of_table=True)),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert [r["id"] for r in result.records] == [1, 2]
        assert result.stop_reason == StopReason.COMPLETED
        assert mock_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_final_page_with_null_cursor_keeps_its_records(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        """Null idProxPagina/qtdeRegistros do not discard a successful page"""
        last_page = make_page([{"id": 2}], end_of_table=True)
        last_page["idProxPagina"] = None
        last_page["qtdeRegistros"] = None
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}], next_cursor=5)),
            make_response(last_page),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert [r["id"] for r in result.records] == [1, 2]
        assert result.stop_reason == StopReason.COMPLETED

    @pytest.mark.asyncio
    async def test_records_under_other_key_count_as_empty(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.return_value = make_response(
            make_page([{"id": 1}], records_field="ligacoesDetalhadas", next_cursor=3)
        )
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert result.records == []
        assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_network_error_soft_stops(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        mock_client.post.side_effect = [
            make_response(make_page([{"id": 1}, {"id": 2}], next_cursor=5)),
            httpx.ConnectError("Connection refused"),
        ]
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert len(result) == 2
        assert result.stop_reason == StopReason.TRANSPORT_FAILURE
        assert not result.complete

    @pytest.mark.asyncio
    async def test_http_error_status_soft_stops(
        self, mock_client, tabulacoes_endpoint, window
    ):
        request = httpx.Request("POST", tabulacoes_endpoint.source_url)
        error_response = httpx.Response(502, text="Bad Gateway", request=request)
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Bad Gateway", request=request, response=error_response
        )
        mock_client.post.return_value = response
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert result.records == []
        assert result.stop_reason == StopReason.TRANSPORT_FAILURE
        assert "502" in result.error

    @pytest.mark.asyncio
    async def test_invalid_json_soft_stops(
        self, mock_client, tabulacoes_endpoint, window
    ):
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        response.text = "<html>maintenance</html>"
        mock_client.post.return_value = response
        extractor = ArgusExtractor(mock_client, "token-123")

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert result.records == []
        assert result.stop_reason == StopReason.TRANSPORT_FAILURE

    @pytest.mark.asyncio
    async def test_page_cap_stops_repeating_cursor(
        self, mock_client, make_page, make_response, tabulacoes_endpoint, window
    ):
        """A server that never signals the end is cut off at max_pages"""
        mock_client.post.return_value = make_response(
            make_page([{"id": 1}], next_cursor=42)
        )
        extractor = ArgusExtractor(mock_client, "token-123", max_pages=3)

        result = await extractor.extract(tabulacoes_endpoint, window)

        assert mock_client.post.call_count == 3
        assert len(result) == 3
        assert result.stop_reason == StopReason.PAGE_CAP
