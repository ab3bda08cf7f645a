# apps/bff/app/config.py
"""
Configuração da automação de Ativo Fixo.

Propósito
---------
Reunir em um único objeto imutável (`Settings`) tudo o que o fluxo de envio
consome do ambiente: servidor SMTP, remetente/destinatários, webhook de
notificação e o renderizador de PDF. O núcleo (validação e montagem do
documento) nunca lê variáveis de ambiente; recebe `Settings` explicitamente.

Variáveis de ambiente
---------------------
- EMAIL_SERVER_HOST / EMAIL_SERVER_PORT: servidor SMTP.
- EMAIL_SERVER_USER / EMAIL_SERVER_PASSWORD: credenciais (opcionais).
- EMAIL_FROM: endereço do remetente.
- EMAIL_TO: destinatários (separados por vírgula).
- DISCORD_WEBHOOK_URL: webhook de notificação (opcional; sem ele a notificação é ignorada).
- WEBHOOK_TIMEOUT: timeout (s) da chamada ao webhook.
- PDF_RENDERER: "canvas" (ReportLab) ou "markup" (HTML + WeasyPrint).
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RENDERERS = ("canvas", "markup")


def _split_csv(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings(BaseModel):
    """Configuração explícita do envio (SMTP, webhook e renderizador)."""

    model_config = ConfigDict(frozen=True)

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = ""
    email_to: List[str] = Field(default_factory=list)
    webhook_url: Optional[str] = None
    webhook_timeout: float = 10.0
    pdf_renderer: str = "canvas"

    @field_validator("pdf_renderer")
    @classmethod
    def _valid_renderer(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in RENDERERS:
            raise ValueError(f"PDF_RENDERER inválido: {v!r} (use {', '.join(RENDERERS)}).")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Constrói `Settings` a partir de um mapeamento de ambiente.

        Parâmetros
        ----------
        environ : Optional[Mapping[str, str]]
            Mapeamento a ser lido; `os.environ` quando omitido.

        Retorna
        -------
        Settings
            Configuração validada.
        """
        env = os.environ if environ is None else environ
        return cls(
            smtp_host=env.get("EMAIL_SERVER_HOST", "localhost"),
            smtp_port=int(env.get("EMAIL_SERVER_PORT") or 587),
            smtp_user=env.get("EMAIL_SERVER_USER", ""),
            smtp_password=env.get("EMAIL_SERVER_PASSWORD", ""),
            email_from=env.get("EMAIL_FROM", ""),
            email_to=_split_csv(env.get("EMAIL_TO")),
            webhook_url=(env.get("DISCORD_WEBHOOK_URL") or "").strip() or None,
            webhook_timeout=float(env.get("WEBHOOK_TIMEOUT") or 10.0),
            pdf_renderer=env.get("PDF_RENDERER", "canvas"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Dependência FastAPI: configuração lida uma única vez do ambiente."""
    return Settings.from_env()
