"""
SMTP outreach transport.

Handles:
  - Building the message: plain-text body, an HTML <pre> alternative and the
    resume PDF as an attachment
  - Sending to every recipient of a listing in one message
  - Verifying the SMTP login at boot

smtplib is synchronous, so each send runs in the default executor to keep
the event loop (and the scheduler living on it) responsive.
"""
from __future__ import annotations

import asyncio
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Optional, Sequence

from coldapply.config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


def build_message(
    recipients: Sequence[str],
    subject: str,
    body: str,
    from_address: str,
    from_name: str = "",
    attachment: Optional[Path] = None,
) -> EmailMessage:
    """
    Build the outgoing message.

    Raises:
        ValueError: If there are no recipients or the body is empty.
        FileNotFoundError: If an attachment path is given but missing.
    """
    to_list = [r for r in recipients if r]
    if not to_list:
        raise ValueError("No valid recipients")
    if not body.strip():
        raise ValueError("No email body generated")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((from_name, from_address)) if from_name else from_address
    msg["To"] = ", ".join(to_list)
    msg.set_content(body)
    msg.add_alternative(
        '<pre style="font-family: Arial, sans-serif; white-space: pre-wrap;">'
        f"{html.escape(body)}</pre>",
        subtype="html",
    )

    if attachment is not None:
        attachment = Path(attachment)
        msg.add_attachment(
            attachment.read_bytes(),
            maintype="application",
            subtype="pdf",
            filename=attachment.name,
        )

    return msg


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.secure = settings.smtp_secure
        self.user = settings.smtp_user
        self.password = settings.smtp_pass
        self.from_address = settings.from_address
        self.from_name = settings.sender_name
        self.resume_path = settings.resume_file

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS, context=context)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS)
        try:
            if not self.secure:
                server.ehlo()
                server.starttls(context=context)
                server.ehlo()
            server.login(self.user, self.password)
        except Exception:
            server.close()
            raise
        return server

    def verify(self) -> None:
        """Connect and log in once. Raises on any SMTP or network error."""
        with self._connect() as server:
            server.noop()

    def send_sync(self, recipients: Sequence[str], subject: str, body: str) -> None:
        msg = build_message(
            recipients,
            subject,
            body,
            from_address=self.from_address,
            from_name=self.from_name,
            attachment=self.resume_path,
        )
        with self._connect() as server:
            server.send_message(msg)
        logger.info("Email sent to: %s (with resume attached)", msg["To"])

    async def send(self, recipients: Sequence[str], subject: str, body: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, lambda: self.send_sync(recipients, subject, body))
        except Exception as e:
            logger.error("Failed to send email to %s: %s", ", ".join(r for r in recipients if r), e)
            raise
