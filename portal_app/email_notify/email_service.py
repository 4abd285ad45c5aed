import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from core.breaker import CircuitBreaker, smtp_breaker
from core.exceptions import NotificationError
from core.settings import settings

logger = logging.getLogger(__name__)


def _wrap(title: str, body: str) -> str:
    return f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6;">
            <h2>{title}</h2>
            {body}
            <p>Best regards,<br>{escape(settings.PROJECT_NAME)}</p>
        </body>
        </html>
        """


def _terms_table(terms: dict[str, str]) -> str:
    rows = "".join(
        f"<tr><td>{escape(name.replace('_', ' ').capitalize())}</td><td>{escape(value)}</td></tr>"
        for name, value in terms.items()
    )
    return f"<table>{rows}</table>"


class EmailNotifier:
    """Outbound mail for the portal.

    Every send goes through the SMTP circuit breaker. Any failure, including
    an open circuit, is re-raised as :class:`NotificationError`; retrying is
    left to the caller.
    """

    def __init__(self, breaker: CircuitBreaker = smtp_breaker):
        self.breaker = breaker

    async def _send(self, to: str, subject: str, html_content: str) -> None:
        async def handler():
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = settings.EMAIL_USER
            message["To"] = to
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=settings.EMAIL_SERVER,
                port=settings.EMAIL_PORT,
                username=settings.EMAIL_USER,
                password=settings.EMAIL_PASSWORD,
                start_tls=settings.EMAIL_USE_TLS,
            )

        try:
            await self.breaker.call(handler)
        except Exception as e:
            logger.error(f"Error sending '{subject}' email: {e}")
            raise NotificationError(f"Failed to send '{subject}' email") from e
        logger.info(f"Sent '{subject}' email")

    async def notify_tenant_approved(
        self, email: str, username: str, password: str, terms: dict[str, str]
    ) -> None:
        body = f"""
            <p>Hello,</p>
            <p>Your tenancy application has been approved and your tenant account is ready.</p>
            <p>Username: <strong>{escape(username)}</strong></p>
            <p>Password: <strong>{escape(password)}</strong></p>
            {_terms_table(terms)}
            <p>Please log in and change your password straight away.</p>
        """
        await self._send(email, "Your tenant account", _wrap("Welcome", body))

    async def notify_landlord_approved(
        self, email: str, application_id: int, tenant_id: int, terms: dict[str, str]
    ) -> None:
        body = f"""
            <p>Application #{application_id} was approved.</p>
            <p>Tenant account #{tenant_id} has been created and the tenant has been sent their login details.</p>
            {_terms_table(terms)}
        """
        await self._send(email, "New tenant account created", _wrap("Tenant account created", body))

    async def notify_landlord_new_application(
        self, email: str, application_id: int
    ) -> None:
        body = f"""
            <p>A new tenancy application (#{application_id}) is waiting for your review.</p>
            <p>Log in to your dashboard to approve or deny it.</p>
        """
        await self._send(email, "New tenancy application", _wrap("New application", body))

    async def notify_tenant_application_received(self, email: str) -> None:
        body = """
            <p>Hello,</p>
            <p>Thank you for applying. Your application is being processed and
            you will hear from us by email once a decision has been made.</p>
        """
        await self._send(email, "Application received", _wrap("Application received", body))

    async def notify_landlord_new_message(self, email: str, tenant_id: int) -> None:
        body = f"""
            <p>Tenant #{tenant_id} sent you a new message.</p>
            <p>Log in to your dashboard to read it.</p>
        """
        await self._send(email, "New message from a tenant", _wrap("New message", body))


def get_notifier() -> EmailNotifier:
    return EmailNotifier()
