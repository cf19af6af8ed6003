"""Email Gateway — SMTP delivery in a worker thread, simulation mode without a password.

Invariants:
    - send() never raises: SMTP failures come back as DeliveryResult(success=False)
    - Port 465 uses implicit SSL; any other port upgrades with STARTTLS

Design Decisions:
    - stdlib smtplib wrapped in asyncio.to_thread: the blocking SMTP dialogue
      never stalls the event loop
"""

import asyncio
import logging
import smtplib
import ssl
import uuid
from email.message import EmailMessage

from vida.infrastructure.sms_gateway import DeliveryResult

logger = logging.getLogger(__name__)


class EmailGateway:
    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        sender: str,
        timeout: float = 15.0,
    ):
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._sender = sender
        self._timeout = timeout

    @property
    def simulation_mode(self) -> bool:
        return not (self._host and self._user and self._password)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"Sistema VIDA <{self._sender}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = f"<{uuid.uuid4().hex}@vida.mx>"
        msg.set_content("Este mensaje requiere un cliente de correo con soporte HTML.")
        msg.add_alternative(html, subtype="html")
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        context = ssl.create_default_context()
        if self._port == 465:
            with smtplib.SMTP_SSL(
                self._host, self._port, timeout=self._timeout, context=context,
            ) as smtp:
                smtp.login(self._user, self._password)
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                smtp.starttls(context=context)
                smtp.login(self._user, self._password)
                smtp.send_message(msg)

    async def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        msg = self._build_message(to, subject, html)
        if self.simulation_mode:
            logger.info(
                f"Simulated email to {to}: {subject}",
                extra={"channel": "EMAIL", "event": "email_simulated"},
            )
            return DeliveryResult(
                success=True, message_id=msg["Message-ID"], simulated=True,
            )
        try:
            await asyncio.to_thread(self._send_blocking, msg)
            return DeliveryResult(success=True, message_id=msg["Message-ID"])
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(
                f"Email delivery failed: {e}",
                extra={"channel": "EMAIL", "error_code": "EMAIL_FAILED"},
            )
            return DeliveryResult(success=False, error=str(e)[:240])
