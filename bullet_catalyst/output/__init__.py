"""Report rendering and delivery."""

from .report_formatter import format_subject, render_markdown
from .email_sender import EmailSender

__all__ = ["format_subject", "render_markdown", "EmailSender"]
