"""
SendGrid email service for AJK CRM
- Customer visit reminders (en / de)
- Admin digest of upcoming visits
"""

import logging
from datetime import date
from typing import List, Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, ReplyTo, To

from config import Settings
from models.customer import Customer
from services.notifications import compose_admin_digest, compose_reminder

logger = logging.getLogger("email_service")


class EmailService:
    """Central entry point for outgoing mail"""

    def __init__(self, settings: Settings, client: Optional[SendGridAPIClient] = None):
        self.api_key = settings.sendgrid_api_key
        self.sender = settings.sender_email
        self.sender_name = settings.sender_name
        self.reply_to = settings.reply_to
        self.admin_recipient = settings.admin_email
        self.company = {
            "name": settings.company_name,
            "email": settings.reply_to,
            "phone": settings.company_phone,
            "website": settings.company_website,
        }
        self.client = client or SendGridAPIClient(self.api_key)

    def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send through SendGrid; False on any provider error"""
        try:
            message = Mail(
                from_email=Email(self.sender, self.sender_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )
            if self.reply_to:
                message.reply_to = ReplyTo(self.reply_to)

            response = self.client.send(message)

            if response.status_code in [200, 202]:
                logger.info(f"Email sent to {to_email}: {subject}")
                return True
            logger.error(f"Email send failed: status={response.status_code}")
            return False

        except Exception as e:
            logger.error(f"Email send exception: {str(e)}")
            return False

    # ==================== REMINDERS ====================

    def send_reminder(self, customer: Customer, language: str = "en",
                      message: Optional[str] = None) -> bool:
        subject, html_content = compose_reminder(customer, self.company, language, message)
        return self._send_email(customer.email, subject, html_content)

    # ==================== ADMIN DIGEST ====================

    def send_admin_digest(self, customers: List[Customer], today: date,
                          language: str = "en") -> bool:
        subject, html_content = compose_admin_digest(customers, today, self.company, language)
        return self._send_email(self.admin_recipient, subject, html_content)
