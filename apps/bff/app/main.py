# apps/bff/app/main.py
from __future__ import annotations

import logging
import os

import uvicorn
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from app.config import get_settings
from app.automations.ativo_fixo import router as ativo_fixo_router, ATIVO_FIXO_VERSION as ATIVO_VER

# ------------------------------------------------------------------------------
# Configuração (envs)
# ------------------------------------------------------------------------------
ENV = os.getenv("ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

# ------------------------------------------------------------------------------
# Logging básico (respeita LOG_LEVEL)
# ------------------------------------------------------------------------------
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
logger = logging.getLogger(__name__)
logger.info("Starting Ativo Fixo BFF (ENV=%s, LOG_LEVEL=%s)", ENV, LOG_LEVEL)
logger.info("CORS_ORIGINS=%s", ",".join(CORS_ORIGINS))

# ------------------------------------------------------------------------------
# App
# ------------------------------------------------------------------------------
APP = FastAPI(title="Ativo Fixo BFF", version="1.0.0", docs_url="/api/docs", redoc_url="/api/redoc")

APP.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------------------------------------------------------------
# Startup
# ------------------------------------------------------------------------------
@APP.on_event("startup")
def _startup() -> None:
    settings = get_settings()
    logger.info("ATIVO FIXO engine version: %s", ATIVO_VER)
    logger.info(
        "SMTP=%s:%s | EMAIL_TO=%s | renderer=%s | webhook=%s",
        settings.smtp_host,
        settings.smtp_port,
        ",".join(settings.email_to) or "-",
        settings.pdf_renderer,
        "on" if settings.webhook_url else "off",
    )

# ------------------------------------------------------------------------------
# Rotas base
# ------------------------------------------------------------------------------
@APP.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}

@APP.get("/version")
def version() -> Dict[str, Any]:
    return {
        "app": APP.version,
        "env": ENV,
        "ativo_fixo_version": ATIVO_VER,
        "pdf_renderer": get_settings().pdf_renderer,
        "cors_origins": CORS_ORIGINS,
    }

@APP.get("/")
def home() -> RedirectResponse:
    return RedirectResponse("/api/ativo-fixo/ui")

# ------------------------------------------------------------------------------
# Catálogo de automações (índice)
# ------------------------------------------------------------------------------
@APP.get("/api/automations")
def automations_index() -> Dict[str, Any]:
    """
    Lista de automações disponibilizadas pelo BFF.
    Cada automação expõe seu próprio router (ex.: /api/ativo-fixo/...).
    """
    return {
        "items": [
            {"kind": "ativo-fixo", "version": ATIVO_VER, "title": "Solicitação de Ativo Fixo"},
        ]
    }

# ------------------------------------------------------------------------------
# Routers de automações
# ------------------------------------------------------------------------------
APP.include_router(ativo_fixo_router)


def run() -> None:
    """Sobe o servidor (script `ativo-fixo-bff`). HOST/PORT vêm do ambiente."""
    uvicorn.run(APP, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")), log_level=LOG_LEVEL.lower())
