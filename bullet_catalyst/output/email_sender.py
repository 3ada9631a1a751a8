from __future__ import annotations

import os
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import List, Mapping, Optional

from ..utils.logging import get_logger
from ..utils.pipeline_config import env_trim

logger = get_logger("bc.output.email")

REQUIRED_SETTINGS = ("SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "EMAIL_FROM", "EMAIL_TO")
SSL_PORT = 465


def parse_recipients(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [s.strip() for s in value.replace(";", ",").split(",") if s.strip()]


@dataclass(slots=True)
class EmailSender:
    """Plain-text SMTP delivery of the rendered report.

    Port 465 connects over implicit SSL; any other port uses STARTTLS.
    """

    host: str = ""
    port: int = SSL_PORT
    user: str = ""
    password: str = ""
    from_addr: str = ""
    recipients: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    timeout: float = 30.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EmailSender":
        env = os.environ if env is None else env
        missing = [k for k in REQUIRED_SETTINGS if not env_trim(env, k)]
        port_raw = env_trim(env, "SMTP_PORT", str(SSL_PORT))
        try:
            port = int(port_raw)
        except ValueError:
            logger.warning("SMTP_PORT=%r is not a number; using %d", port_raw, SSL_PORT)
            port = SSL_PORT
        return cls(
            host=env_trim(env, "SMTP_HOST"),
            port=port,
            user=env_trim(env, "SMTP_USER"),
            password=env_trim(env, "SMTP_PASS"),
            from_addr=env_trim(env, "EMAIL_FROM"),
            recipients=parse_recipients(env_trim(env, "EMAIL_TO")),
            missing=missing,
        )

    @property
    def enabled(self) -> bool:
        return not self.missing and bool(self.recipients)

    def build_message(self, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_addr
        msg["To"] = ", ".join(self.recipients)
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def send(self, subject: str, body: str) -> bool:
        """Send the report, or print it when SMTP is not configured.

        Returns True only when the message was handed to the server.
        """
        if not self.enabled:
            logger.info("Email disabled (missing env): %s", ", ".join(self.missing) or "EMAIL_TO")
            print("----- MARKDOWN -----\n" + body)
            return False

        secure = self.port == SSL_PORT
        logger.info("SMTP connecting %s:%s secure=%s", self.host, self.port, secure)
        msg = self.build_message(subject, body)
        context = ssl.create_default_context()
        if secure:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with server:
            server.ehlo()
            if not secure:
                server.starttls(context=context)
                server.ehlo()
            server.login(self.user, self.password)
            server.send_message(msg)
        logger.info("Email sent to %d recipient(s)", len(self.recipients))
        return True
