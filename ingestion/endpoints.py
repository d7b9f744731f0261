"""
Report endpoints known to the pipeline
"""

from typing import List, Sequence

from core.exceptions import ConfigurationError
from schemas.pipeline import EndpointDescriptor

ALL_ENDPOINTS = "all"

ENDPOINTS: List[EndpointDescriptor] = [
    EndpointDescriptor(
        name="tabulacoesdetalhadas",
        archive_target="tabulacoesdetalhadas-Argus",
        source_url="https://argus.app.br/apiargus/report/tabulacoesdetalhadas",
        records_field="tabulacoes",
        campaign_id=1,
        table_target="argus_tabulacoes_duplicate",
    ),
    EndpointDescriptor(
        name="ligacoesdetalhadas",
        archive_target="ligacoesdetalhadas-Argus",
        source_url="https://argus.app.br/apiargus/report/ligacoesdetalhadas",
        records_field="ligacoesDetalhadas",
        campaign_id=1,
    ),
]


def select_endpoints(
    selection: str, endpoints: Sequence[EndpointDescriptor] = ENDPOINTS
) -> List[EndpointDescriptor]:
    """
    Return the endpoints matching ``selection`` ("all" or one name).

    Raises:
        ConfigurationError: If the name matches no configured endpoint
    """
    selection = (selection or ALL_ENDPOINTS).strip()
    if selection == ALL_ENDPOINTS:
        return list(endpoints)

    selected = [e for e in endpoints if e.name == selection]
    if not selected:
        raise ConfigurationError(
            f"Unknown endpoint: {selection}",
            context={
                "selection": selection,
                "available": [e.name for e in endpoints],
            },
        )
    return selected
