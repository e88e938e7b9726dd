# leadcapture/services/messaging.py
"""
Email and SMS transports.

Each sender makes a single attempt and raises ``ExternalServiceError`` (or
``ConfigurationError``) when the provider does not accept the message. Callers
decide whether a failure is fatal.
"""
from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from functools import lru_cache
from typing import Optional, Protocol

import aiohttp

from leadcapture.core.catalog import get_app_config
from leadcapture.core.config import Settings, settings
from leadcapture.core.exceptions import ConfigurationError, ExternalServiceError
from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)


class EmailSender(Protocol):
    async def send(self, *, to: str, subject: str, html: str, text: str) -> None: ...


class SmsSender(Protocol):
    async def send(self, *, to: str, body: str) -> None: ...


class ConsoleEmailSender:
    """Logs the message instead of sending it."""

    async def send(self, *, to: str, subject: str, html: str, text: str) -> None:
        logger.info("email.console", to=to, subject=subject, body=text)


class ConsoleSmsSender:
    async def send(self, *, to: str, body: str) -> None:
        logger.info("sms.console", to=to, body=body)


class SmtpEmailSender:
    def __init__(
        self,
        *,
        host: Optional[str],
        port: int,
        username: Optional[str],
        password: Optional[str],
        use_tls: bool,
        from_email: Optional[str],
        from_name: str,
        timeout: int,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email or username
        self.from_name = from_name
        self.timeout = timeout

    def build_message(self, *, to: str, subject: str, html: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((self.from_name, self.from_email or ""))
        message["To"] = to
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, *, to: str, subject: str, html: str, text: str) -> None:
        if not self.host or not self.from_email:
            raise ConfigurationError(message="SMTP not configured (missing SMTP_HOST or sender)")

        message = self.build_message(to=to, subject=subject, html=html, text=text)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise ExternalServiceError(
                message="Email provider rejected the message",
                details={"provider": "smtp", "error": str(e)[:200]},
            ) from e


class TwilioSmsSender:
    def __init__(
        self,
        *,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        api_base: str,
        timeout: int,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, *, to: str, body: str) -> None:
        if not (self.account_sid and self.auth_token and self.from_number):
            raise ConfigurationError(message="Twilio not configured")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.messages_url,
                    data={"From": self.from_number, "To": to, "Body": body},
                    auth=aiohttp.BasicAuth(self.account_sid, self.auth_token),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if not 200 <= response.status < 300:
                        error_text = await response.text()
                        raise ExternalServiceError(
                            message="SMS provider rejected the message",
                            details={"provider": "twilio", "status": response.status, "error": error_text[:200]},
                        )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                message="SMS provider timed out",
                details={"provider": "twilio"},
            ) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError(
                message="SMS provider unreachable",
                details={"provider": "twilio", "error": str(e)[:200]},
            ) from e


@dataclass(frozen=True)
class Notifier:
    email: EmailSender
    sms: SmsSender


def build_notifier(config: Settings, brand_name: str = "Byrd's Garage") -> Notifier:
    if config.email_provider == "smtp":
        email: EmailSender = SmtpEmailSender(
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            from_email=config.smtp_from_email,
            from_name=brand_name,
            timeout=config.notification_timeout_seconds,
        )
    else:
        email = ConsoleEmailSender()

    if config.sms_provider == "twilio":
        sms: SmsSender = TwilioSmsSender(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_phone_number,
            api_base=config.twilio_api_base,
            timeout=config.notification_timeout_seconds,
        )
    else:
        sms = ConsoleSmsSender()

    return Notifier(email=email, sms=sms)


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    """FastAPI dependency for the configured transports."""
    return build_notifier(settings, brand_name=get_app_config().brand.name)
