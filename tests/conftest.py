from decimal import Decimal
from unittest.mock import Mock

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from invoicing.models import CompanySettings, Invoice, InvoiceItem


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def rate_provider_settings(settings):
    settings.EXCHANGE_RATE_API_URL = "https://rates.test/v4/latest"
    settings.EXCHANGE_RATE_TIMEOUT = 5.0
    settings.EXCHANGE_RATE_CACHE_SECONDS = 3600
    settings.COUPON_REDEMPTION_MODE = "rotate"


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def company(db):
    return CompanySettings.load()


def item(description="Consulting", quantity=1, unit_price="0", extra_hours="0", type="service"):
    return InvoiceItem(
        description=description,
        type=type,
        quantity=quantity,
        unit_price=Decimal(str(unit_price)),
        extra_hours=Decimal(str(extra_hours)),
    )


@pytest.fixture
def make_invoice(db):
    """Store an invoice directly through the ORM, bypassing numbering."""
    counter = {"n": 0}

    def _make(items=None, **fields):
        counter["n"] += 1
        fields.setdefault("invoice_number", f"TEST-{counter['n']:04d}")
        fields.setdefault("client_name", "Acme Pvt Ltd")
        fields.setdefault("tax_enabled", False)
        invoice = Invoice.objects.create(**fields)
        for position, it in enumerate(items or []):
            it.invoice = invoice
            it.position = position
            it.save()
        return invoice

    return _make


def rates_response(rates, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = {"base": "X", "rates": rates}
    return response
