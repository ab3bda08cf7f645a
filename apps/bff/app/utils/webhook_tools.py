# app/utils/webhook_tools.py
"""
Notificação da solicitação em webhook de chat (formato de embed do Discord).

Canal secundário e "best effort": ausência de URL ignora a chamada; qualquer
falha (rede ou status HTTP de erro) é registrada em log e descartada.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict

import requests

from app.config import Settings
from app.automations.ativo_fixo_validation import AssetRequest

logger = logging.getLogger(__name__)

COLOR_BY_URGENCY = {
    "Baixa": 0x00FF00,
    "Média": 0xFFFF00,
    "Alta": 0xFF0000,
}
DEFAULT_COLOR = 0x0099FF
FOOTER = "Sistema Maglog - Ativo Fixo"


def urgency_color(urgency: str) -> int:
    return COLOR_BY_URGENCY.get(urgency, DEFAULT_COLOR)


def build_payload(request: AssetRequest, now: datetime) -> Dict[str, Any]:
    """Monta o corpo JSON do webhook (conteúdo + um embed)."""
    lines = []
    for item in request.items:
        line = f"📦 **{item.kind.value}** - {item.description}"
        if item.asset_tag:
            line += f" (Pat: {item.asset_tag})"
        lines.append(line)

    return {
        "content": "🏢 **Nova Solicitação de ATIVO FIXO**",
        "embeds": [
            {
                "title": "Detalhes da Movimentação de Ativo",
                "color": urgency_color(request.urgency.value),
                "fields": [
                    {"name": "Solicitante", "value": request.requester_name, "inline": True},
                    {"name": "Setor", "value": request.department, "inline": True},
                    {"name": "Urgência", "value": request.urgency.value, "inline": True},
                    {"name": "Itens", "value": "\n".join(lines) or "Nenhum item"},
                    {"name": "Observações", "value": request.observation or "Nenhuma"},
                ],
                "timestamp": now.isoformat(),
                "footer": {"text": FOOTER},
            }
        ],
    }


def notify_webhook(settings: Settings, request: AssetRequest, now: datetime) -> bool:
    """
    Publica o resumo da solicitação no webhook configurado.

    Retorna
    -------
    bool
        True quando o webhook aceitou a mensagem; False quando ignorado ou em falha.
    """
    if not settings.webhook_url:
        return False
    try:
        resp = requests.post(
            settings.webhook_url,
            json=build_payload(request, now),
            timeout=settings.webhook_timeout,
        )
        resp.raise_for_status()
    except Exception:
        logger.exception("[webhook] notify failed for %s (non-blocking)", request.requester_name)
        return False
    logger.info("[webhook] Notificação enviada (%s)", request.requester_name)
    return True
