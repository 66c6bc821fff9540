"""
FastAPI dependencies resolving the components wired on app.state at startup
"""

from fastapi import Request

from config import Clock, Settings
from email_service import EmailService
from services.customer_store import CustomerStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    return request.app.state.db


def get_store(request: Request) -> CustomerStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service
