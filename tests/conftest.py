"""
Fixtures compartilhadas da suíte do BFF de Ativo Fixo.

O SMTP, o webhook e o renderizador de PDF são substituídos por dublês que
registram as chamadas em `calls`, na ordem em que acontecem.
"""
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.automations import ativo_fixo
from app.main import APP


class RecordingRenderer:
    name = "fake"

    def __init__(self, calls: List[tuple], fail: Exception = None):
        self.calls = calls
        self.fail = fail
        self.contents = []

    def render(self, content) -> bytes:
        self.calls.append(("render", content))
        self.contents.append(content)
        if self.fail:
            raise self.fail
        return b"%PDF-1.4 fake"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        smtp_host="smtp.test",
        smtp_port=2525,
        email_from="ativo@maglog.test",
        email_to=["patrimonio@maglog.test"],
        webhook_url="https://discord.test/api/webhooks/1/abc",
    )


@pytest.fixture
def calls() -> List[tuple]:
    return []


@pytest.fixture
def renderer(calls) -> RecordingRenderer:
    return RecordingRenderer(calls)


@pytest.fixture
def client(settings, renderer, calls, monkeypatch):
    def fake_send(cfg, request, pdf_bytes, filename):
        calls.append(("email", request, pdf_bytes, filename))

    def fake_notify(cfg, request, now):
        calls.append(("webhook", request))
        return True

    monkeypatch.setattr(ativo_fixo, "send_request_email", fake_send)
    monkeypatch.setattr(ativo_fixo, "notify_webhook", fake_notify)
    APP.dependency_overrides[get_settings] = lambda: settings
    APP.dependency_overrides[ativo_fixo.get_document_renderer] = lambda: renderer
    with TestClient(APP) as c:
        yield c
    APP.dependency_overrides.clear()


def form_fields(nome="Ana Silva", setor="TI", urgencia="Alta", observacao="", items=None) -> Dict[str, Any]:
    """Monta os campos do formulário como a UI envia (row_count + bem_i/patrimonio_i/tipo_i)."""
    items = items if items is not None else [{"bem": "Notebook Dell", "tipo": "Transfer", "patrimonio": "12345"}]
    data: Dict[str, Any] = {
        "nome": nome,
        "setor": setor,
        "observacao": observacao,
        "urgencia": urgencia,
        "row_count": str(len(items)),
    }
    for i, it in enumerate(items):
        data[f"bem_{i}"] = it.get("bem", "")
        data[f"patrimonio_{i}"] = it.get("patrimonio", "")
        data[f"tipo_{i}"] = it.get("tipo", "")
    return data


@pytest.fixture
def make_form():
    return form_fields
