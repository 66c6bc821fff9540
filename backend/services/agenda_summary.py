"""
AJK CRM - AI daily agenda summary

Builds a prompt from today's visits and the overdue payments and asks an
OpenAI-compatible chat completion endpoint for a short plain-text agenda.
"""

import logging
from datetime import date
from typing import List, Optional

import httpx

from config import Settings
from models.customer import Customer, PaymentStatus
from services.notifications import SERVICE_TYPES, format_currency, format_date, normalize_language

logger = logging.getLogger("agenda_summary")

AI_TIMEOUT = 30.0


class AgendaSummaryError(Exception):
    """The AI provider failed or answered something unusable"""
    pass


def split_agenda(customers: List[Customer], today: date):
    """(visits due today, customers with an overdue payment)"""
    visits = [c for c in customers if c.next_visit == today]
    overdue = [c for c in customers if c.payment_status == PaymentStatus.OVERDUE]
    return visits, overdue


def _describe(customer: Customer, language: str) -> str:
    parts = [customer.name]
    if customer.visit_time:
        parts.append(f"at {customer.visit_time}")
    if customer.address:
        parts.append(f"address: {customer.address}")
    parts.append(SERVICE_TYPES[language][customer.recurring])
    if customer.price is not None:
        parts.append(format_currency(customer.price, customer.price_type, language))
    parts.append(f"payment {customer.payment_status.value}")
    if customer.notes:
        parts.append(f"notes: {customer.notes}")
    return "- " + ", ".join(parts)


def build_prompt(visits: List[Customer], overdue: List[Customer], today: date,
                 language: str = "en") -> str:
    lang = normalize_language(language)
    reply_language = "German" if lang == "de" else "English"

    lines = [
        f"Today is {format_date(today, 'en')}. You are the office assistant of a cleaning company.",
        f"Write a short, friendly daily agenda in {reply_language} for the team.",
        "Mention the order of visits, anything notable in the notes, and which payments to follow up.",
        "Plain text only, no markdown tables, at most 150 words.",
        "",
        f"Visits today ({len(visits)}):",
    ]
    lines += [_describe(c, lang) for c in visits] or ["- none"]
    lines += ["", f"Overdue payments ({len(overdue)}):"]
    lines += [
        f"- {c.name}, visit was {format_date(c.next_visit, 'en')}" for c in overdue
    ] or ["- none"]
    return "\n".join(lines)


def empty_agenda(overdue: List[Customer], language: str = "en") -> str:
    """Answer produced locally when nothing is scheduled today"""
    if normalize_language(language) == "de":
        text = "Heute sind keine Reinigungstermine geplant."
        if overdue:
            text += f" {len(overdue)} Zahlung(en) überfällig: " + ", ".join(c.name for c in overdue) + "."
        return text
    text = "No cleaning visits are scheduled for today."
    if overdue:
        text += f" {len(overdue)} overdue payment(s): " + ", ".join(c.name for c in overdue) + "."
    return text


async def generate_agenda_summary(
    settings: Settings,
    visits: List[Customer],
    overdue: List[Customer],
    today: date,
    language: str = "en",
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Ask the AI provider for the agenda text.

    Raises AgendaSummaryError on timeout, HTTP error or malformed answer.
    """
    payload = {
        "model": settings.ai_model,
        "messages": [
            {"role": "system", "content": "You summarise the daily schedule of a small cleaning business."},
            {"role": "user", "content": build_prompt(visits, overdue, today, language)},
        ],
        "temperature": 0.4,
    }
    headers = {
        "Authorization": f"Bearer {settings.ai_api_key}",
        "Content-Type": "application/json"
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=AI_TIMEOUT) as http_client:
                response = await http_client.post(settings.ai_api_url, json=payload, headers=headers)
        else:
            response = await client.post(settings.ai_api_url, json=payload, headers=headers)
    except httpx.TimeoutException:
        logger.error("[AGENDA] AI provider timeout")
        raise AgendaSummaryError("AI provider timeout")
    except httpx.HTTPError as e:
        logger.error(f"[AGENDA] AI provider error: {str(e)}")
        raise AgendaSummaryError(str(e))

    if response.status_code != 200:
        logger.error(f"[AGENDA] AI provider status={response.status_code} body={response.text[:300]}")
        raise AgendaSummaryError(f"AI provider answered {response.status_code}")

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error(f"[AGENDA] unexpected AI payload: {response.text[:300]}")
        raise AgendaSummaryError("Unexpected AI response")

    return (content or "").strip()
