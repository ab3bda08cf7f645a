import pytest

from app.automations.ativo_fixo_validation import validate_submission
from app.config import Settings
from app.utils import mail_tools


class FakeSMTP:
    instances = []

    def __init__(self, host, port):
        self.host, self.port = host, port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail_tools.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_build_message_headers_and_attachment(settings, make_form):
    req = validate_submission(make_form()).request
    msg = mail_tools.build_message(settings, req, b"%PDF-data", "AssetRequest_Ana_Silva.pdf")

    assert "Ana Silva" in msg["From"]
    assert "ativo@maglog.test" in msg["From"]
    assert msg["To"] == "patrimonio@maglog.test"
    assert msg["Subject"] == "Solicitação Ativo Fixo - TI"
    assert "Urgência: Alta" in msg.get_body(preferencelist=("plain",)).get_content()

    attachments = list(msg.iter_attachments())
    assert len(attachments) == 1
    part = attachments[0]
    assert part.get_filename() == "AssetRequest_Ana_Silva.pdf"
    assert part.get_content_type() == "application/pdf"
    assert part.get_content() == b"%PDF-data"


def test_multiple_recipients(make_form):
    cfg = Settings(email_from="a@x.test", email_to=["p@x.test", "q@x.test"])
    req = validate_submission(make_form()).request
    msg = mail_tools.build_message(cfg, req, b"x", "f.pdf")
    assert msg["To"] == "p@x.test, q@x.test"


def test_missing_recipient_is_an_error(make_form):
    req = validate_submission(make_form()).request
    with pytest.raises(RuntimeError, match="EMAIL_TO"):
        mail_tools.build_message(Settings(email_from="a@x.test"), req, b"x", "f.pdf")


def test_send_uses_starttls_and_login(make_form):
    cfg = Settings(
        smtp_host="smtp.test", smtp_port=2525, smtp_user="bot", smtp_password="s3cr3t",
        email_from="a@x.test", email_to=["p@x.test"],
    )
    req = validate_submission(make_form()).request
    mail_tools.send_request_email(cfg, req, b"%PDF", "f.pdf")

    (smtp,) = FakeSMTP.instances
    assert (smtp.host, smtp.port) == ("smtp.test", 2525)
    assert smtp.started_tls
    assert smtp.logged_in == ("bot", "s3cr3t")
    assert len(smtp.sent) == 1


def test_send_without_credentials_skips_login(settings, make_form):
    req = validate_submission(make_form()).request
    mail_tools.send_request_email(settings, req, b"%PDF", "f.pdf")
    assert FakeSMTP.instances[0].logged_in is None
