# apps/bff/app/automations/ativo_fixo.py
"""
Automação "Solicitação de Ativo Fixo".

Propósito
---------
Receber o formulário (multipart) de requisição (RAF), transferência (TAF) ou
baixa (BAF) de bens patrimoniais, validar e normalizar os campos, gerar o PDF
do documento, enviá-lo por e-mail e notificar o webhook de chat.

Fluxo
-----
form → `collapse_fields` → `validate_submission` → `build_document` →
`DocumentRenderer.render` → `send_request_email` → `notify_webhook`.

Respostas
---------
- 200 {message}: enviado.
- 405 {message}: método diferente de POST.
- 422 {error, message}: regra de negócio violada (primeira linha inválida).
- 500 {error, message}: entrada malformada, falha de renderização ou de SMTP.

Efeitos colaterais
------------------
- Envio de e-mail (SMTP) e chamada HTTP ao webhook (opcional).
- Nenhuma persistência: cada submissão é independente.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool
from starlette.responses import StreamingResponse

from app.config import Settings, get_settings
from app.automations.ativo_fixo_document import attachment_filename, build_document
from app.automations.ativo_fixo_validation import (
    AssetKind,
    AssetRequest,
    MalformedSubmission,
    Urgency,
    DEFAULT_URGENCY,
    collapse_fields,
    validate_submission,
)
from app.utils.mail_tools import send_request_email
from app.utils.pdf_tools import DocumentRenderer, get_renderer
from app.utils.webhook_tools import notify_webhook

logger = logging.getLogger(__name__)

KIND = "ativo-fixo"
ATIVO_FIXO_VERSION = "1.0.0"
SUCCESS_MESSAGE = "Solicitação enviada e PDF gerado!"

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

SCHEMA = {
    "title": "Solicitação de Ativo Fixo",
    "version": ATIVO_FIXO_VERSION,
    "fields": [
        {"name": "nome", "type": "text", "label": "Nome Solicitante", "required": True},
        {"name": "setor", "type": "text", "label": "Setor", "required": True},
        {"name": "observacao", "type": "textarea", "label": "Observações"},
        {
            "name": "urgencia",
            "type": "select",
            "label": "Nível de Urgência",
            "options": [u.value for u in Urgency],
            "default": DEFAULT_URGENCY.value,
        },
        {"name": "row_count", "type": "integer", "label": "Quantidade de linhas"},
        {
            "name": "items",
            "type": "array",
            "label": "Itens",
            "fields": [
                {"name": "bem_{i}", "type": "text", "label": "BEM (Descrição)", "required": True},
                {"name": "tipo_{i}", "type": "radio", "label": "TIPO", "options": [k.value for k in AssetKind]},
                {
                    "name": "patrimonio_{i}",
                    "type": "text",
                    "label": "PATRIMÔNIO",
                    "requiredWhen": [k.value for k in AssetKind if k.requires_tag],
                },
            ],
        },
    ],
}


# ---------------------- Helpers ----------------------
def err_json(status: int, **payload):
    return StreamingResponse(
        BytesIO(json.dumps(payload, ensure_ascii=False).encode("utf-8")),
        status_code=status,
        media_type="application/json; charset=utf-8",
    )


def _now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


def get_document_renderer(settings: Settings = Depends(get_settings)) -> DocumentRenderer:
    """Dependência FastAPI: renderizador escolhido por `PDF_RENDERER`."""
    return get_renderer(settings.pdf_renderer)


def _dispatch_submission(
    request: AssetRequest,
    settings: Settings,
    renderer: DocumentRenderer,
    today: date,
    now: datetime,
) -> str:
    """Gera o PDF, envia o e-mail e, por último, notifica o webhook. Retorna o nome do anexo."""
    content = build_document(request, today)
    pdf_bytes = renderer.render(content)
    filename = attachment_filename(request)
    logger.info("[ATIVO] PDF gerado | renderer=%s | arquivo=%s | bytes=%d", renderer.name, filename, len(pdf_bytes))

    send_request_email(settings, request, pdf_bytes, filename)
    notify_webhook(settings, request, now)
    return filename


router = APIRouter(prefix=f"/api/{KIND}", tags=[f"automation:{KIND}"])


@router.get("/schema")
async def get_schema():
    return {"kind": KIND, "schema": SCHEMA}


@router.post("")
async def submit_ativo_fixo(
    request: Request,
    settings: Settings = Depends(get_settings),
    renderer: DocumentRenderer = Depends(get_document_renderer),
):
    try:
        form = await request.form()
        fields = collapse_fields(form)
        outcome = validate_submission(fields)
    except MalformedSubmission as e:
        logger.info("[ATIVO] malformed submission: %s", e)
        return err_json(500, code="malformed_request", message=str(e))
    except Exception as e:
        logger.exception("form parse failed")
        return err_json(500, code="parse_error", message=str(e) or "Erro interno.")

    if not outcome.ok:
        logger.info("[ATIVO] validation_error: %s", outcome.error)
        return err_json(422, code="validation_error", message=outcome.error)

    body = outcome.request
    logger.info(
        "[ATIVO] Solicitação de %s (%s) | urgência=%s | itens=%d",
        body.requester_name, body.department, body.urgency.value, len(body.items),
    )

    now = _now()
    try:
        filename = await run_in_threadpool(_dispatch_submission, body, settings, renderer, now.date(), now)
    except Exception as e:
        logger.exception("processing error")
        return err_json(500, code="internal_error", message=str(e) or "Erro interno.")

    logger.info("[ATIVO] Solicitação de %s finalizada | anexo=%s", body.requester_name, filename)
    return {"message": SUCCESS_MESSAGE}


@router.api_route("", methods=["GET", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def method_not_allowed():
    return err_json(405, message="Método não permitido")


@router.post("/validate")
async def validate_ativo_fixo(request: Request):
    """Pré-validação usada pela UI: mesmas regras do envio, sem gerar PDF nem enviar nada."""
    try:
        form = await request.form()
        outcome = validate_submission(collapse_fields(form))
    except MalformedSubmission as e:
        return err_json(500, code="malformed_request", message=str(e))
    except Exception as e:
        logger.exception("form parse failed (validate)")
        return err_json(500, code="parse_error", message=str(e) or "Erro interno.")

    if not outcome.ok:
        return err_json(422, code="validation_error", message=outcome.error)
    payload: Dict[str, Any] = outcome.request.model_dump(mode="json")
    return {"ok": True, "request": payload}


@router.get("/ui")
@router.get("/ui/")
async def ativo_fixo_ui(request: Request):
    return templates.TemplateResponse(
        request,
        "ativo_fixo/ui.html",
        {
            "kinds": [k.value for k in AssetKind],
            "urgencies": [u.value for u in Urgency],
            "default_urgency": DEFAULT_URGENCY.value,
            "today": _now().strftime("%d/%m/%Y"),
        },
    )
