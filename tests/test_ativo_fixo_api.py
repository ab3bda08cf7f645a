from datetime import datetime

import requests

from app.automations import ativo_fixo
from app.utils import webhook_tools

URL = "/api/ativo-fixo"


def _kinds(calls):
    return [c[0] for c in calls]


def test_submit_transfer_scenario(client, calls, renderer, make_form):
    resp = client.post(URL, data=make_form())
    assert resp.status_code == 200
    assert resp.json() == {"message": "Solicitação enviada e PDF gerado!"}

    assert _kinds(calls) == ["render", "email", "webhook"]
    doc = renderer.contents[0]
    assert doc.urgency_banner == "NÍVEL DE URGÊNCIA: ALTA"
    assert doc.rows == (("Notebook Dell", "12345", "TAF"),)

    _, req, pdf_bytes, filename = calls[1]
    assert filename == "AssetRequest_Ana_Silva.pdf"
    assert pdf_bytes.startswith(b"%PDF")
    assert req.department == "TI"


def test_submit_request_without_tag_shows_placeholder(client, renderer, make_form):
    form = make_form(items=[{"bem": "Notebook Dell", "tipo": "Request"}])
    resp = client.post(URL, data=form)
    assert resp.status_code == 200
    assert renderer.contents[0].rows[0][1] == "---"


def test_submit_multipart_body(client, calls, make_form):
    resp = client.post(URL, data=make_form(), files={"anexo": ("nota.txt", b"ignorado", "text/plain")})
    assert resp.status_code == 200
    assert _kinds(calls) == ["render", "email", "webhook"]


def test_transfer_without_tag_is_rejected_without_side_effects(client, calls, make_form):
    form = make_form(items=[{"bem": "Notebook Dell", "tipo": "Transfer"}])
    resp = client.post(URL, data=form)
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "validation_error"
    assert "linha 1" in body["message"]
    assert calls == []


def test_zero_rows_never_reaches_document_generation(client, calls, make_form):
    resp = client.post(URL, data=make_form(items=[]))
    assert resp.status_code == 422
    assert calls == []


def test_all_rows_without_description_rejected(client, calls, make_form):
    form = make_form(items=[{"bem": "", "tipo": "RAF"}, {"bem": " ", "tipo": "RAF"}])
    resp = client.post(URL, data=form)
    assert resp.status_code == 422
    assert resp.json()["message"] == "Descreva o BEM na linha 1."
    assert calls == []


def test_missing_requester_is_internal_error(client, calls, make_form):
    form = make_form()
    del form["nome"]
    resp = client.post(URL, data=form)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Campo 'nome' é obrigatório."
    assert calls == []


def test_repeated_fields_use_first_value(client, calls, make_form):
    form = make_form()
    form["nome"] = ["Ana Silva", "Outra Pessoa"]
    resp = client.post(URL, data=form)
    assert resp.status_code == 200
    assert calls[1][1].requester_name == "Ana Silva"


def test_render_failure_returns_500_with_message(client, calls, renderer, make_form):
    renderer.fail = RuntimeError("fonte indisponível")
    resp = client.post(URL, data=make_form())
    assert resp.status_code == 500
    assert resp.json()["message"] == "fonte indisponível"
    assert _kinds(calls) == ["render"]


def test_smtp_failure_returns_500_and_skips_webhook(client, calls, monkeypatch, make_form):
    def broken_send(*args):
        raise ConnectionRefusedError("SMTP recusou a conexão")

    monkeypatch.setattr(ativo_fixo, "send_request_email", broken_send)
    resp = client.post(URL, data=make_form())
    assert resp.status_code == 500
    assert resp.json()["message"] == "SMTP recusou a conexão"
    assert "webhook" not in _kinds(calls)


def test_webhook_failure_does_not_change_response(client, monkeypatch, make_form):
    def boom(*a, **kw):
        raise requests.ConnectionError("discord fora do ar")

    monkeypatch.setattr(ativo_fixo, "notify_webhook", webhook_tools.notify_webhook)
    monkeypatch.setattr(webhook_tools.requests, "post", boom)
    resp = client.post(URL, data=make_form())
    assert resp.status_code == 200


def test_get_is_method_not_allowed(client):
    resp = client.get(URL)
    assert resp.status_code == 405
    assert resp.json() == {"message": "Método não permitido"}


def test_validate_endpoint_has_no_side_effects(client, calls, make_form):
    ok = client.post(f"{URL}/validate", data=make_form(items=[{"bem": "Mesa", "tipo": "RAF", "patrimonio": "1"}]))
    assert ok.status_code == 200
    body = ok.json()
    assert body["ok"] is True
    assert body["request"]["items"][0]["asset_tag"] == ""

    bad = client.post(f"{URL}/validate", data=make_form(items=[{"bem": "Mesa", "tipo": "BAF"}]))
    assert bad.status_code == 422
    assert "PATRIMÔNIO" in bad.json()["message"]
    assert calls == []


def test_schema_and_ui(client):
    schema = client.get(f"{URL}/schema").json()
    assert schema["kind"] == "ativo-fixo"
    names = [f["name"] for f in schema["schema"]["fields"]]
    assert names[:5] == ["nome", "setor", "observacao", "urgencia", "row_count"]

    ui = client.get(f"{URL}/ui")
    assert ui.status_code == 200
    assert "Solicitação de Ativo Fixo" in ui.text
    assert datetime.now().strftime("%Y") in ui.text


def test_health_and_index(client):
    assert client.get("/health").json() == {"status": "ok"}
    items = client.get("/api/automations").json()["items"]
    assert items[0]["kind"] == "ativo-fixo"


def test_options_uses_the_same_405_envelope(client):
    resp = client.options(URL)
    assert resp.status_code == 405
    assert resp.json() == {"message": "Método não permitido"}


def test_run_starts_uvicorn_with_host_and_port(monkeypatch):
    from app import main

    started = {}
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kw: started.update(app=app, **kw))
    main.run()
    assert started["app"] is main.APP
    assert (started["host"], started["port"]) == ("127.0.0.1", 9001)
