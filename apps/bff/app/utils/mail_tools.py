# app/utils/mail_tools.py
"""
Envio do PDF da solicitação por e-mail (SMTP).

Falhas de conexão/autenticação/envio não são tratadas aqui: propagam para a
rota, que responde 500 com a mensagem original.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from app.config import Settings
from app.automations.ativo_fixo_validation import AssetRequest

logger = logging.getLogger(__name__)


def build_message(settings: Settings, request: AssetRequest, pdf_bytes: bytes, filename: str) -> EmailMessage:
    """Monta a mensagem com o PDF anexado (remetente exibe o nome do solicitante)."""
    if not settings.email_to:
        raise RuntimeError("EMAIL_TO não configurado.")

    msg = EmailMessage()
    msg["From"] = formataddr((request.requester_name, settings.email_from))
    msg["To"] = ", ".join(settings.email_to)
    msg["Subject"] = f"Solicitação Ativo Fixo - {request.department}"
    msg.set_content(
        "Segue em anexo a solicitação de ativo fixo gerada pelo sistema.\n"
        f"Solicitante: {request.requester_name}\n"
        f"Urgência: {request.urgency.value}"
    )
    msg.add_attachment(pdf_bytes, maintype="application", subtype="pdf", filename=filename)
    return msg


def send_request_email(settings: Settings, request: AssetRequest, pdf_bytes: bytes, filename: str) -> None:
    """
    Envia a solicitação pelo servidor SMTP configurado.

    Usa STARTTLS quando o servidor oferece e autentica apenas se houver
    usuário configurado.
    """
    msg = build_message(settings, request, pdf_bytes, filename)
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls()
            server.ehlo()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password)
        server.send_message(msg)
    logger.info("[mail] Solicitação enviada: %s → %s (%s)", msg["Subject"], msg["To"], filename)
