"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  AJK CRM - Models Package                                                    ║
║                                                                              ║
║  from models import CustomerCreate, CustomerUpdate, AdminLogin, etc.         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from .auth import AdminLogin, SessionInfo
from .customer import (
    Customer,
    CustomerCreate,
    CustomerUpdate,
    PaymentStatus,
    PdfExportRequest,
    PriceType,
    Recurrence,
    ReminderRequest,
    WorkStatus,
    is_valid_email_format,
)

__all__ = [
    "AdminLogin",
    "SessionInfo",
    "Customer",
    "CustomerCreate",
    "CustomerUpdate",
    "PaymentStatus",
    "PdfExportRequest",
    "PriceType",
    "Recurrence",
    "ReminderRequest",
    "WorkStatus",
    "is_valid_email_format",
]
