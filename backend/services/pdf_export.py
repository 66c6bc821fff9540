"""
AJK CRM - PDF customer report (ReportLab)
"""

import io
from datetime import date, datetime
from html import escape
from typing import List, Optional

from fastapi import Response
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models.customer import Customer, PaymentStatus
from services.notifications import (
    SERVICE_TYPES,
    STATUS_LABELS,
    format_currency,
    normalize_language,
)

HEADERS = {
    "en": ["Name", "Email", "Next visit", "Time", "Service", "Price", "Work", "Payment"],
    "de": ["Name", "E-Mail", "Nächster Termin", "Uhrzeit", "Leistung", "Preis", "Arbeit", "Zahlung"],
}

WORK_LABELS = {
    "en": {"Pending": "Pending", "Completed": "Completed"},
    "de": {"Pending": "Ausstehend", "Completed": "Erledigt"},
}

TEXT = {
    "en": {
        "title": "Customer Report",
        "generated": "Generated",
        "total": "Customers",
        "overdue": "Overdue payments",
        "empty": "No customers selected.",
    },
    "de": {
        "title": "Kundenbericht",
        "generated": "Erstellt",
        "total": "Kunden",
        "overdue": "Überfällige Zahlungen",
        "empty": "Keine Kunden ausgewählt.",
    },
}

PAYMENT_COLORS = {
    PaymentStatus.PENDING: colors.HexColor("#D97706"),
    PaymentStatus.OVERDUE: colors.HexColor("#D9534F"),
    PaymentStatus.PAID: colors.HexColor("#10B981"),
}


def build_customer_rows(customers: List[Customer], language: str = "en") -> List[List[str]]:
    lang = normalize_language(language)
    rows = [HEADERS[lang]]
    for c in customers:
        rows.append([
            c.name,
            c.email or "",
            c.next_visit.isoformat(),
            c.visit_time or "",
            SERVICE_TYPES[lang][c.recurring],
            format_currency(c.price, c.price_type, lang) if c.price is not None else "",
            WORK_LABELS[lang][c.work_status.value],
            STATUS_LABELS[lang][c.payment_status],
        ])
    return rows


def build_totals_row(customers: List[Customer], language: str = "en") -> List[str]:
    """Last table row: customer count under Name, overdue count under Payment"""
    text = TEXT[normalize_language(language)]
    overdue = sum(1 for c in customers if c.payment_status == PaymentStatus.OVERDUE)
    row = [""] * len(HEADERS["en"])
    row[0] = f"{text['total']}: {len(customers)}"
    row[-1] = f"{text['overdue']}: {overdue}"
    return row


def render_customer_report(
    customers: List[Customer],
    generated_at: datetime,
    title: Optional[str] = None,
    language: str = "en",
) -> bytes:
    """Landscape A4 table of customers; returns the PDF bytes"""
    lang = normalize_language(language)
    text = TEXT[lang]
    styles = getSampleStyleSheet()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=title or text["title"],
    )

    story = [
        Paragraph(escape(title or text["title"]), styles["Title"]),
        Paragraph(f"{text['generated']}: {generated_at.strftime('%Y-%m-%d %H:%M')}", styles["Normal"]),
        Spacer(1, 6 * mm),
    ]

    if not customers:
        story.append(Paragraph(text["empty"], styles["Italic"]))
    else:
        rows = build_customer_rows(customers, lang) + [build_totals_row(customers, lang)]
        table = Table(rows, repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0056b3")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#DDDDDD")),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -2), [colors.white, colors.HexColor("#F4F4F4")]),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 1, colors.HexColor("#0056b3")),
        ]
        for row_index, customer in enumerate(customers, start=1):
            style.append(("TEXTCOLOR", (7, row_index), (7, row_index),
                          PAYMENT_COLORS.get(customer.payment_status, colors.black)))
        table.setStyle(TableStyle(style))
        story.append(table)

    doc.build(story)
    return buffer.getvalue()


def pdf_response(content: bytes, today: date) -> Response:
    filename = f"customers-{today.isoformat()}.pdf"
    return Response(
        content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
