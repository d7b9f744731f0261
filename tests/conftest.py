"""
Pytest configuration and fixtures
"""

import pytest
from datetime import date, time
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from schemas.pipeline import EndpointDescriptor, TimeWindow


class FakeObjectStore:
    """Records every put; optionally fails"""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.puts: List[Dict[str, Any]] = []

    async def put(self, bucket, key, content, content_type="text/csv", overwrite=True):
        if self.error is not None:
            raise self.error
        self.puts.append({
            "bucket": bucket,
            "key": key,
            "content": content,
            "content_type": content_type,
            "overwrite": overwrite,
        })


class FakeTableWriter:
    """In-memory destination table; fails on the chunk numbers in ``fail_on``"""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls: List[Dict[str, Any]] = []
        self.rows: Dict[str, List[Dict[str, Any]]] = {}

    async def insert_batch(self, table_name, rows):
        self.calls.append({"table": table_name, "size": len(rows)})
        if len(self.calls) in self.fail_on:
            raise RuntimeError("duplicate key value violates unique constraint")
        self.rows.setdefault(table_name, []).extend(dict(r) for r in rows)


@pytest.fixture
def window():
    return TimeWindow.from_parts(
        date(2024, 1, 8), time(0, 0, 0), date(2024, 1, 14), time(23, 59, 59)
    )


@pytest.fixture
def tabulacoes_endpoint():
    return EndpointDescriptor(
        name="tabulacoesdetalhadas",
        archive_target="tabulacoesdetalhadas-Argus",
        source_url="https://argus.example.com/report/tabulacoesdetalhadas",
        records_field="tabulacoes",
        campaign_id=1,
        table_target="argus_tabulacoes",
    )


@pytest.fixture
def ligacoes_endpoint():
    return EndpointDescriptor(
        name="ligacoesdetalhadas",
        archive_target="ligacoesdetalhadas-Argus",
        source_url="https://argus.example.com/report/ligacoesdetalhadas",
        records_field="ligacoesDetalhadas",
        campaign_id=1,
    )


@pytest.fixture
def make_page():
    """Build a report page body in the API's wire format"""

    def _make_page(
        records,
        records_field="tabulacoes",
        next_cursor=0,
        end_of_table=False,
        status_code=1,
        description="Sucesso",
    ):
        return {
            "codStatus": status_code,
            "descStatus": description,
            "qtdeRegistros": len(records),
            "idProxPagina": next_cursor,
            "endOfTable": end_of_table,
            records_field: records,
        }

    return _make_page


@pytest.fixture
def make_response():
    """Mock httpx response returning ``body`` from .json()"""

    def _make_response(body):
        response = MagicMock()
        response.json.return_value = body
        response.raise_for_status = MagicMock()
        response.text = str(body)
        return response

    return _make_response


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.post = AsyncMock()
    return client


@pytest.fixture
def mock_tabulacoes_data():
    """Mock tabulation records as returned by the API"""
    return [
        {
            "idTabulacao": 101,
            "idLigacao": 9001,
            "dataHora": "2024-01-08T09:12:44",
            "tabulacao": "Venda realizada",
            "observacao": "",
            "operador": "Silva, Ana",
        },
        {
            "idTabulacao": 102,
            "idLigacao": 9002,
            "dataHora": "2024-01-08T09:30:02",
            "tabulacao": "Sem interesse",
            "observacao": "Cliente pediu \"retorno\"",
            "operador": "Souza, Bruno",
        },
    ]


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def table_writer():
    return FakeTableWriter()
