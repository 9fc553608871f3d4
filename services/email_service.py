"""
Outgoing mail via fastapi-mail.
"""
from html import escape
from typing import Optional, TYPE_CHECKING

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from core.logger import logger
import config

if TYPE_CHECKING:
    from database.models import Contact


def build_mail_client() -> Optional[FastMail]:
    """FastMail client from the SMTP settings, or None when SMTP is not configured."""
    if not config.SMTP_USER or not config.SMTP_PASSWORD:
        logger.info("SMTP not configured; outgoing email disabled")
        return None
    conf = ConnectionConfig(
        MAIL_USERNAME=config.SMTP_USER,
        MAIL_PASSWORD=config.SMTP_PASSWORD,
        MAIL_FROM=config.SMTP_FROM_EMAIL or config.SMTP_USER,
        MAIL_FROM_NAME=config.SMTP_FROM_NAME,
        MAIL_PORT=config.SMTP_PORT,
        MAIL_SERVER=config.SMTP_HOST,
        MAIL_STARTTLS=config.SMTP_USE_TLS and not config.SMTP_USE_SSL,
        MAIL_SSL_TLS=config.SMTP_USE_SSL,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )
    return FastMail(conf)


class EmailService:
    """Service for sending notification emails."""

    @staticmethod
    def contact_response_body(contact: "Contact", message: str) -> str:
        return f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e40af;">{escape(config.SMTP_FROM_NAME)}</h2>
                <p>Dear {escape(contact.name)},</p>
                <p>Thank you for contacting us. Here is our response to your inquiry:</p>
                <div style="background-color: #f4f4f4; padding: 15px; margin: 20px 0; border-radius: 5px;">
                    {escape(message)}
                </div>
                <p>Best regards,<br>{escape(config.SMTP_FROM_NAME)}</p>
            </div>
        </body>
        </html>
        """

    @staticmethod
    async def send_contact_response(
        fm: Optional[FastMail],
        contact: "Contact",
        message: str,
    ) -> bool:
        """
        Mail an inquiry response back to the sender.

        Args:
            fm: FastMail instance (from request.app.state.mail), may be None
            contact: The inquiry being answered
            message: Response text

        Returns:
            True if sent successfully, False otherwise
        """
        if fm is None:
            logger.info(f"Email not configured; response to contact {contact.id} stored only")
            return False

        subject = getattr(contact.subject, "value", contact.subject)
        schema = MessageSchema(
            subject=f"Re: {subject}",
            recipients=[contact.email],
            body=EmailService.contact_response_body(contact, message),
            subtype=MessageType.html,
        )
        try:
            await fm.send_message(schema)
            logger.info(f"Contact response email sent to {contact.email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send contact response to {contact.email}: {e}", exc_info=True)
            return False
