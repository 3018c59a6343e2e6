"""
Invoice and project numbering.

``next_*`` only previews the number a settings row would hand out;
``increment_*`` persists the move to the following counter value. Saving
code uses ``reserve_*``, which does both under a row lock so that two
concurrent saves can never end up with the same number. Counter values
whose number is already on an invoice, typed in by hand, are skipped.
"""

import logging
import re
import uuid
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from invoicing.models import CompanySettings, Invoice

logger = logging.getLogger(__name__)

# kind -> (settings prefix, settings counter, invoice field)
SEQUENCES = {
    "invoice": ("invoice_prefix", "next_invoice_number", "invoice_number"),
    "project": ("project_prefix", "next_project_number", "project_number"),
}


def format_number(prefix, counter) -> str:
    return f"{prefix}-{counter:04d}"


def next_number(settings: CompanySettings, kind: str) -> str:
    prefix_field, counter_field, _ = SEQUENCES[kind]
    return format_number(getattr(settings, prefix_field), getattr(settings, counter_field))


def increment_number(settings: CompanySettings, kind: str) -> int:
    _, counter_field, _ = SEQUENCES[kind]
    value = getattr(settings, counter_field) + 1
    setattr(settings, counter_field, value)
    settings.save(update_fields=[counter_field, "updated_at"])
    return value


def number_taken(kind: str, number: str) -> bool:
    _, _, number_field = SEQUENCES[kind]
    return Invoice.objects.filter(**{number_field: number}).exists()


def in_sequence(settings: CompanySettings, kind: str, number) -> bool:
    """True if ``number`` looks like one this sequence hands out, e.g. INV-0042."""
    prefix_field, _, _ = SEQUENCES[kind]
    pattern = rf"{re.escape(getattr(settings, prefix_field))}-\d{{4,}}"
    return bool(number) and re.fullmatch(pattern, number) is not None


def reserve_number(kind: str) -> str:
    _, counter_field, _ = SEQUENCES[kind]
    with transaction.atomic():
        CompanySettings.load()
        settings = CompanySettings.objects.select_for_update().get(
            pk=CompanySettings.SINGLETON_ID
        )
        number = next_number(settings, kind)
        while number_taken(kind, number):
            logger.info("Skipping %s number %s, already in use", kind, number)
            setattr(settings, counter_field, getattr(settings, counter_field) + 1)
            number = next_number(settings, kind)
        increment_number(settings, kind)
    logger.debug("Reserved %s number %s", kind, number)
    return number


def next_invoice_number(settings):
    return next_number(settings, "invoice")


def next_project_number(settings):
    return next_number(settings, "project")


def increment_invoice_number(settings):
    return increment_number(settings, "invoice")


def increment_project_number(settings):
    return increment_number(settings, "project")


def reserve_invoice_number():
    return reserve_number("invoice")


def reserve_project_number():
    return reserve_number("project")


def new_invoice_draft(settings: CompanySettings) -> dict:
    """Field values for a fresh invoice. Numbers are previews, nothing is reserved."""
    return {
        "id": str(uuid.uuid4()),
        "invoice_number": next_invoice_number(settings),
        "project_number": next_project_number(settings),
        "date": timezone.localdate().isoformat(),
        "due_date": None,
        "client_name": "",
        "client_email": "",
        "client_phone": "",
        "client_address": "",
        "items": [],
        "currency": settings.default_currency,
        "tax_enabled": settings.default_tax_rate > 0,
        "tax_rate": settings.default_tax_rate,
        "discount_code": "",
        "discount_amount": Decimal("0.00"),
        "notes": "",
        "po_number": "",
        "bank_details": settings.bank_details,
        "payment_status": "pending",
        "amount_paid": Decimal("0.00"),
        "is_recurring": False,
        "recurring_interval": "",
        "signature": settings.signature,
        "attachments": [],
    }
