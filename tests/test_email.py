import smtplib

from bullet_catalyst.output import email_sender
from bullet_catalyst.output.email_sender import EmailSender, parse_recipients

FULL_ENV = {
    "SMTP_HOST": "smtp.example.com",
    "SMTP_PORT": "465",
    "SMTP_USER": "bot",
    "SMTP_PASS": "secret",
    "EMAIL_FROM": "bot@example.com",
    "EMAIL_TO": "a@example.com; b@example.com",
}


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, context=None):
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

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


def test_parse_recipients():
    assert parse_recipients("a@x.com, b@y.com;c@z.com") == ["a@x.com", "b@y.com", "c@z.com"]
    assert parse_recipients("") == []


def test_missing_settings_prints_markdown(capsys):
    sender = EmailSender.from_env({"SMTP_HOST": "smtp.example.com"})
    assert not sender.enabled
    assert "EMAIL_TO" in sender.missing
    assert sender.send("subject", "# Report body") is False
    assert "# Report body" in capsys.readouterr().out


def test_port_465_uses_ssl(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_sender.smtplib, "SMTP_SSL", FakeSMTP)
    sender = EmailSender.from_env(FULL_ENV)
    assert sender.send("Top 10", "body text") is True
    (server,) = FakeSMTP.instances
    assert (server.host, server.port) == ("smtp.example.com", 465)
    assert server.started_tls is False
    assert server.logged_in == ("bot", "secret")
    msg = server.sent[0]
    assert msg["To"] == "a@example.com, b@example.com"
    assert msg["Subject"] == "Top 10"
    assert msg.get_content().strip() == "body text"


def test_other_ports_use_starttls(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    sender = EmailSender.from_env({**FULL_ENV, "SMTP_PORT": "587"})
    sender.send("s", "b")
    assert FakeSMTP.instances[0].port == 587
    assert FakeSMTP.instances[0].started_tls is True
