# apps/bff/app/automations/ativo_fixo_document.py
"""
Montagem do conteúdo do documento "Solicitação de Ativo Fixo".

Função pura: dado um `AssetRequest` validado e a data corrente, produz o
plano de conteúdo (título, cabeçalho, tabela de itens, observações, faixa de
urgência e assinaturas) consumido pelos renderizadores de PDF.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from app.automations.ativo_fixo_validation import AssetRequest

TITLE = "SOLICITAÇÃO DE ATIVO FIXO"
TABLE_HEADER: Tuple[str, str, str] = ("BEM (Descrição)", "PATRIMÔNIO", "TIPO")
NO_TAG = "---"
NO_OBSERVATION = "Sem observações."
BLANK_DATE = "Data: ____/____/______"
ATTACHMENT_PREFIX = "AssetRequest"


class SignatureSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    date_line: str


class DocumentContent(BaseModel):
    """Plano de conteúdo do documento (independente do renderizador)."""

    model_config = ConfigDict(frozen=True)

    title: str
    header: Tuple[Tuple[str, str], ...]
    table_header: Tuple[str, str, str]
    rows: Tuple[Tuple[str, str, str], ...]
    observation: str
    urgency_banner: str
    signatures: Tuple[SignatureSlot, SignatureSlot]


def format_date_br(d: date) -> str:
    """Data no padrão DD/MM/AAAA."""
    return d.strftime("%d/%m/%Y")


def build_document(request: AssetRequest, today: date) -> DocumentContent:
    """
    Mapeia o registro canônico para o conteúdo do documento.

    Parâmetros
    ----------
    request : AssetRequest
        Solicitação já validada.
    today : date
        Data da solicitação (injetada para manter a função determinística).

    Retorna
    -------
    DocumentContent
        Conteúdo completo; uma linha de tabela por item, na ordem original.
    """
    data = format_date_br(today)
    rows = tuple(
        (item.description, item.asset_tag or NO_TAG, item.kind.value)
        for item in request.items
    )
    return DocumentContent(
        title=TITLE,
        header=(
            ("Solicitante", request.requester_name),
            ("Setor", request.department),
            ("Data da Solicitação", data),
        ),
        table_header=TABLE_HEADER,
        rows=rows,
        observation=request.observation or NO_OBSERVATION,
        urgency_banner=f"NÍVEL DE URGÊNCIA: {request.urgency.value.upper()}",
        signatures=(
            SignatureSlot(name=request.requester_name, role="Solicitante", date_line=f"Data: {data}"),
            SignatureSlot(name="Gestão / Aprovação", role="Assinatura Responsável", date_line=BLANK_DATE),
        ),
    )


def attachment_filename(request: AssetRequest) -> str:
    """Nome do PDF anexado: espaços do solicitante viram '_'."""
    safe = re.sub(r"\s", "_", request.requester_name)
    return f"{ATTACHMENT_PREFIX}_{safe}.pdf"
