"""
AJK CRM - Notification composer

Bilingual (en / de) HTML bodies for customer reminders and the admin
digest. Pure string templating: nothing here talks to the mail provider.
"""

from datetime import date
from html import escape
from typing import List, Optional, Tuple

from models.customer import Customer, PaymentStatus, PriceType, Recurrence

SUPPORTED_LANGUAGES = ("en", "de")

MONTHS = {
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "de": ["Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
           "August", "September", "Oktober", "November", "Dezember"],
}

SERVICE_TYPES = {
    "en": {
        Recurrence.NONE: "One-Time Cleaning",
        Recurrence.WEEKLY: "Weekly Cleaning",
        Recurrence.BI_WEEKLY: "Bi-weekly Cleaning",
        Recurrence.MONTHLY: "Monthly Cleaning",
    },
    "de": {
        Recurrence.NONE: "Einmalige Reinigung",
        Recurrence.WEEKLY: "Wöchentliche Reinigung",
        Recurrence.BI_WEEKLY: "Zweiwöchentliche Reinigung",
        Recurrence.MONTHLY: "Monatliche Reinigung",
    },
}

PLAN_NAMES = {
    "en": {
        Recurrence.WEEKLY: "weekly",
        Recurrence.BI_WEEKLY: "bi-weekly",
        Recurrence.MONTHLY: "monthly",
    },
    "de": {
        Recurrence.WEEKLY: "wöchentlichen",
        Recurrence.BI_WEEKLY: "zweiwöchentlichen",
        Recurrence.MONTHLY: "monatlichen",
    },
}

STATUS_LABELS = {
    "en": {
        PaymentStatus.PENDING: "Pending",
        PaymentStatus.PAID: "Paid",
        PaymentStatus.OVERDUE: "Overdue",
    },
    "de": {
        PaymentStatus.PENDING: "Ausstehend",
        PaymentStatus.PAID: "Bezahlt",
        PaymentStatus.OVERDUE: "Überfällig",
    },
}

STATUS_COLORS = {
    PaymentStatus.PENDING: "#D97706",
    PaymentStatus.OVERDUE: "#D9534F",
    PaymentStatus.PAID: "#10B981",
}


def normalize_language(language: Optional[str]) -> str:
    if language and language.lower() in SUPPORTED_LANGUAGES:
        return language.lower()
    return "en"


def format_date(value: Optional[date], language: str = "en") -> str:
    if value is None:
        return "N/A"
    month = MONTHS[normalize_language(language)][value.month - 1]
    if normalize_language(language) == "de":
        return f"{value.day}. {month} {value.year}"
    return f"{month} {value.day}, {value.year}"


def format_currency(value: Optional[float], price_type: PriceType = PriceType.FIXED,
                    language: str = "en") -> str:
    """EUR in German notation: 1.234,50 €"""
    if value is None:
        return "N/A"
    amount = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    formatted = f"{amount} €"
    if price_type == PriceType.HOURLY:
        suffix = "/Std." if normalize_language(language) == "de" else "/hr"
        return f"{formatted}{suffix}"
    return formatted


def format_status(status: Optional[PaymentStatus], language: str = "en") -> str:
    if status is None:
        return "N/A"
    label = STATUS_LABELS[normalize_language(language)].get(status, status.value)
    color = STATUS_COLORS.get(status, "#333")
    return f'<span style="color: {color}; font-weight: bold;">{label}</span>'


def _footer(company: dict) -> str:
    return f"""
            <hr style="border: none; border-top: 1px solid #eee;">
            <p style="font-size: 0.9em; color: #777;">
              📧 <a href="mailto:{company['email']}">{company['email']}</a><br>
              🌐 <a href="{company['website']}">{company['website']}</a>
            </p>"""


def _note_block(message: Optional[str], title: str) -> str:
    if not message or not message.strip():
        return ""
    note = escape(message.strip()).replace("\n", "<br>")
    return f"""
            <div style="background-color: #f4f4f4; padding: 15px; border-radius: 5px; margin-top: 20px;">
              <p style="margin: 0;"><strong>{title}</strong></p>
              <p style="margin: 0; font-style: italic;">{note}</p>
            </div>"""


def compose_reminder(
    customer: Customer,
    company: dict,
    language: str = "en",
    message: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Reminder email for the customer's next visit.

    ``company`` carries name / email / phone / website for the body and
    footer. Returns (subject, html).
    """
    lang = normalize_language(language)
    visit_date = format_date(customer.next_visit, lang)
    service_type = SERVICE_TYPES[lang][customer.recurring]
    price = format_currency(customer.price, customer.price_type, lang)
    status = format_status(customer.payment_status, lang)
    name = escape(customer.name)
    plan = PLAN_NAMES[lang].get(customer.recurring)

    if lang == "de":
        subject = f"Erinnerung: Ihr bevorstehender Reinigungstermin am {visit_date}"
        thanks = (
            f"<p>Vielen Dank, dass Sie Teil unseres {plan} Serviceplans sind. "
            f"Wir schätzen Ihr anhaltendes Vertrauen in {company['name']} und freuen uns darauf, Sie zu bedienen.</p>"
            if plan else ""
        )
        body = f"""
          <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <p>Hallo {name},</p>
            <p>Dies ist eine freundliche Erinnerung an Ihren bevorstehenden Reinigungstermin am <strong>{visit_date}</strong>.</p>

            <h3 style="color: #0056b3; border-bottom: 1px solid #eee; padding-bottom: 5px;">Service-Details:</h3>
            <ul style="list-style-type: none; padding-left: 0;">
              <li><strong>Typ:</strong> {service_type}</li>
              <li><strong>Preis:</strong> {price}</li>
              <li><strong>Zahlungsstatus:</strong> {status}</li>
            </ul>
            {thanks}
            {_note_block(message, "Eine Anmerkung von unserem Team:")}

            <p style="margin-top: 20px;">Wenn Sie Fragen haben oder Ihren Termin verschieben möchten, kontaktieren Sie uns bitte unter <a href="mailto:{company['email']}">{company['email']}</a>, rufen Sie uns an unter {company['phone']} oder antworten Sie einfach auf diese E-Mail.</p>

            <p>Herzliche Grüße,<br>Das {company['name']} Team</p>
            {_footer(company)}
          </div>
        """
    else:
        subject = f"Reminder: Upcoming Cleaning Service on {visit_date}"
        thanks = (
            f"<p>Thank you for being part of our {plan} service plan. "
            f"We truly appreciate your continued trust in {company['name']} and look forward to serving you.</p>"
            if plan else ""
        )
        body = f"""
          <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <p>Hello {name},</p>
            <p>This is a friendly reminder of your upcoming cleaning appointment scheduled for <strong>{visit_date}</strong>.</p>

            <h3 style="color: #0056b3; border-bottom: 1px solid #eee; padding-bottom: 5px;">Service Details:</h3>
            <ul style="list-style-type: none; padding-left: 0;">
              <li><strong>Type:</strong> {service_type}</li>
              <li><strong>Price:</strong> {price}</li>
              <li><strong>Payment Status:</strong> {status}</li>
            </ul>
            {thanks}
            {_note_block(message, "A note from our team:")}

            <p style="margin-top: 20px;">If you have any questions or would like to postpone your appointment, please contact us at <a href="mailto:{company['email']}">{company['email']}</a>, call us at {company['phone']}, or simply reply to this email.</p>

            <p>Warm regards,<br>The {company['name']} Team</p>
            {_footer(company)}
          </div>
        """

    return subject, body


def compose_admin_digest(
    customers: List[Customer],
    today: date,
    company: dict,
    language: str = "en",
) -> Tuple[str, str]:
    """Summary of the visits due in the digest window, for the office inbox"""
    lang = normalize_language(language)

    rows = ""
    for customer in customers:
        rows += f"""
              <tr>
                <td style="padding: 6px; border-bottom: 1px solid #eee;">{format_date(customer.next_visit, lang)}</td>
                <td style="padding: 6px; border-bottom: 1px solid #eee;">{escape(customer.visit_time or "")}</td>
                <td style="padding: 6px; border-bottom: 1px solid #eee;"><strong>{escape(customer.name)}</strong></td>
                <td style="padding: 6px; border-bottom: 1px solid #eee;">{escape(customer.address or "")}</td>
                <td style="padding: 6px; border-bottom: 1px solid #eee;">{SERVICE_TYPES[lang][customer.recurring]}</td>
                <td style="padding: 6px; border-bottom: 1px solid #eee;">{format_status(customer.payment_status, lang)}</td>
              </tr>"""

    if lang == "de":
        subject = f"📅 Anstehende Termine - {len(customers)} Besuch(e) ab {format_date(today, lang)}"
        heading = "Anstehende Termine (nächste 2 Tage)"
        headers = ("Datum", "Uhrzeit", "Kunde", "Adresse", "Typ", "Zahlung")
        empty = "Keine Termine."
    else:
        subject = f"📅 Upcoming visits - {len(customers)} visit(s) from {format_date(today, lang)}"
        heading = "Upcoming visits (next 2 days)"
        headers = ("Date", "Time", "Customer", "Address", "Type", "Payment")
        empty = "No visits scheduled."

    header_html = "".join(
        f'<th style="text-align: left; padding: 6px; border-bottom: 2px solid #0056b3;">{h}</th>'
        for h in headers
    )
    body = f"""
          <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2 style="color: #0056b3;">{heading}</h2>
            <table style="border-collapse: collapse; width: 100%;">
              <tr>{header_html}</tr>
              {rows if rows else f'<tr><td colspan="6" style="color: #777;">{empty}</td></tr>'}
            </table>
            {_footer(company)}
          </div>
        """
    return subject, body
