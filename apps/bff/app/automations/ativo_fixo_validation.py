# apps/bff/app/automations/ativo_fixo_validation.py
"""
Validação e normalização da Solicitação de Ativo Fixo.

Propósito
---------
Transformar os campos brutos do formulário multipart em um registro canônico
imutável (`AssetRequest`) ou em uma mensagem de rejeição legível. É a única
fonte das regras de negócio: a rota de envio e a rota de pré-validação da UI
usam as mesmas funções.

Regras
------
- `nome`, `setor` e `row_count` ausentes/inválidos são entrada malformada
  (`MalformedSubmission`), não rejeição de negócio.
- Linhas avaliadas em ordem; apenas a primeira falha é reportada:
  tipo ausente → patrimônio obrigatório para TAF/BAF → descrição obrigatória.
- Tipo RAF descarta qualquer patrimônio informado.
"""

from __future__ import annotations

import unicodedata
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class MalformedSubmission(ValueError):
    """Campos obrigatórios de topo ausentes ou `row_count` não numérico."""


class AssetKind(str, Enum):
    RAF = "RAF"  # Requisição de Ativo Fixo
    TAF = "TAF"  # Transferência de Ativo Fixo
    BAF = "BAF"  # Baixa de Ativo Fixo

    @property
    def requires_tag(self) -> bool:
        return self is not AssetKind.RAF


class Urgency(str, Enum):
    BAIXA = "Baixa"
    MEDIA = "Média"
    ALTA = "Alta"


DEFAULT_URGENCY = Urgency.BAIXA

_KIND_ALIASES: Dict[str, AssetKind] = {
    "raf": AssetKind.RAF,
    "request": AssetKind.RAF,
    "taf": AssetKind.TAF,
    "transfer": AssetKind.TAF,
    "baf": AssetKind.BAF,
    "writeoff": AssetKind.BAF,
}

_URGENCY_ALIASES: Dict[str, Urgency] = {
    "baixa": Urgency.BAIXA,
    "low": Urgency.BAIXA,
    "media": Urgency.MEDIA,
    "medium": Urgency.MEDIA,
    "alta": Urgency.ALTA,
    "high": Urgency.ALTA,
}


class AssetItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    asset_tag: str = ""
    kind: AssetKind


class AssetRequest(BaseModel):
    """Registro canônico de uma submissão (imutável, sem ciclo de vida)."""

    model_config = ConfigDict(frozen=True)

    requester_name: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    observation: str = ""
    urgency: Urgency = DEFAULT_URGENCY
    items: Tuple[AssetItem, ...] = Field(..., min_length=1)


class ValidationOutcome(BaseModel):
    """Resultado da validação: `request` quando ok, `error` quando rejeitado."""

    model_config = ConfigDict(frozen=True)

    request: Optional[AssetRequest] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.request is not None


# ---------------------- Helpers ----------------------
def _fold(txt: str) -> str:
    """Minúsculas e sem acentos (para comparar rótulos vindos da UI)."""
    norm = unicodedata.normalize("NFKD", txt.strip().lower())
    return "".join(c for c in norm if not unicodedata.combining(c))


def _text(fields: Mapping[str, Any], key: str) -> str:
    v = fields.get(key)
    return "" if v is None else str(v).strip()


def parse_kind(value: Optional[str]) -> Optional[AssetKind]:
    """Resolve o tipo pelo código (RAF/TAF/BAF) ou nome (Request/Transfer/Writeoff)."""
    if not value or not value.strip():
        return None
    return _KIND_ALIASES.get(_fold(value))


def parse_urgency(value: Optional[str]) -> Optional[Urgency]:
    """Resolve a urgência; vazio vira o padrão da UI (Baixa), desconhecido vira None."""
    if not value or not value.strip():
        return DEFAULT_URGENCY
    return _URGENCY_ALIASES.get(_fold(value))


def collapse_fields(raw: Any) -> Dict[str, str]:
    """
    Reduz campos possivelmente repetidos ao primeiro valor.

    Aceita um `FormData`/multidict do Starlette (via `multi_items`) ou um
    mapeamento simples cujos valores podem ser listas.
    """
    out: Dict[str, str] = {}
    if hasattr(raw, "multi_items"):
        for key, value in raw.multi_items():
            if key not in out:
                out[key] = value if isinstance(value, str) else str(value)
        return out
    for key, value in dict(raw or {}).items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        if value is None:
            continue
        out[key] = value if isinstance(value, str) else str(value)
    return out


def _row_count(fields: Mapping[str, Any]) -> int:
    raw = _text(fields, "row_count")
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        raise MalformedSubmission(f"Campo 'row_count' inválido: {raw!r}.") from None


def _validate_row(fields: Mapping[str, Any], i: int) -> Tuple[Optional[AssetItem], Optional[str]]:
    line = i + 1
    tipo_raw = _text(fields, f"tipo_{i}")
    if not tipo_raw:
        return None, f"Selecione o tipo (RAF, TAF, BAF) na linha {line}."
    kind = parse_kind(tipo_raw)
    if kind is None:
        return None, f"Tipo inválido '{tipo_raw}' na linha {line}."

    tag = _text(fields, f"patrimonio_{i}")
    if kind.requires_tag and not tag:
        return None, f"O campo PATRIMÔNIO é obrigatório para TAF ou BAF na linha {line}."

    description = _text(fields, f"bem_{i}")
    if not description:
        return None, f"Descreva o BEM na linha {line}."

    if not kind.requires_tag:
        tag = ""
    return AssetItem(description=description, asset_tag=tag, kind=kind), None


# ---------------------- API ----------------------
def validate_submission(fields: Mapping[str, Any]) -> ValidationOutcome:
    """
    Valida os campos (já colapsados) e monta o `AssetRequest`.

    Parâmetros
    ----------
    fields : Mapping[str, Any]
        Campos do formulário: nome, setor, observacao, urgencia, row_count
        e bem_i / patrimonio_i / tipo_i para cada linha.

    Retorna
    -------
    ValidationOutcome
        Registro canônico ou a primeira violação encontrada.

    Exceções
    --------
    MalformedSubmission
        Quando `nome`/`setor` faltam ou `row_count` não é inteiro.
    """
    nome = _text(fields, "nome")
    setor = _text(fields, "setor")
    if not nome:
        raise MalformedSubmission("Campo 'nome' é obrigatório.")
    if not setor:
        raise MalformedSubmission("Campo 'setor' é obrigatório.")
    count = _row_count(fields)

    if count <= 0:
        return ValidationOutcome(error="Adicione ao menos um item à solicitação.")

    urgency_raw = _text(fields, "urgencia")
    urgency = parse_urgency(urgency_raw)
    if urgency is None:
        return ValidationOutcome(error=f"Nível de urgência inválido: {urgency_raw}.")

    items: List[AssetItem] = []
    for i in range(count):
        item, error = _validate_row(fields, i)
        if error:
            return ValidationOutcome(error=error)
        items.append(item)

    request = AssetRequest(
        requester_name=nome,
        department=setor,
        observation=_text(fields, "observacao"),
        urgency=urgency,
        items=tuple(items),
    )
    return ValidationOutcome(request=request)
