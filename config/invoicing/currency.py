"""
Exchange rates and invoice currency conversion.

Rates come from an HTTP provider (``EXCHANGE_RATE_API_URL/<base>``) and are
cached per base currency. When the provider is down the static table below
is used instead; a pair missing from both converts at 1 so that switching
currency never fails outright.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings
from django.core.cache import cache
from requests.exceptions import RequestException

from invoicing.exceptions import RateFetchFailure, ValidationError
from invoicing.models import CURRENCY_CHOICES
from invoicing.totals import round_money, to_decimal

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = tuple(code for code, _ in CURRENCY_CHOICES)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "INR": "₹",
    "GBP": "£",
}

# Approximate; only used when the provider cannot be reached.
FALLBACK_RATES = {
    ("USD", "EUR"): Decimal("0.92"),
    ("USD", "GBP"): Decimal("0.79"),
    ("USD", "INR"): Decimal("83.5"),
    ("EUR", "USD"): Decimal("1.09"),
    ("EUR", "GBP"): Decimal("0.86"),
    ("EUR", "INR"): Decimal("90.5"),
    ("GBP", "USD"): Decimal("1.27"),
    ("GBP", "EUR"): Decimal("1.16"),
    ("GBP", "INR"): Decimal("105.5"),
    ("INR", "USD"): Decimal("0.012"),
    ("INR", "EUR"): Decimal("0.011"),
    ("INR", "GBP"): Decimal("0.0095"),
}

ONE = Decimal("1")


@dataclass(frozen=True)
class ExchangeRate:
    rate: Decimal
    source: str  # identity, live, cache or fallback

    @property
    def approximate(self) -> bool:
        return self.source == "fallback"


def _cache_key(base):
    return f"exchange-rates:{base}"


def fetch_rates(base) -> dict:
    url = f"{settings.EXCHANGE_RATE_API_URL.rstrip('/')}/{base}"
    try:
        response = requests.get(url, timeout=settings.EXCHANGE_RATE_TIMEOUT)
    except RequestException as exc:
        raise RateFetchFailure(f"Exchange rate request failed: {exc}")

    if response.status_code != 200:
        raise RateFetchFailure(
            f"Exchange rate provider returned {response.status_code}"
        )

    try:
        rates = response.json()["rates"]
        return {code: Decimal(str(value)) for code, value in rates.items()}
    except (ValueError, KeyError, TypeError, AttributeError, InvalidOperation):
        raise RateFetchFailure("Malformed exchange rate payload")


def get_exchange_rate(from_currency, to_currency) -> ExchangeRate:
    if from_currency == to_currency:
        return ExchangeRate(ONE, "identity")

    key = _cache_key(from_currency)
    rates = cache.get(key)
    if rates is not None:
        return ExchangeRate(rates.get(to_currency, ONE), "cache")

    try:
        rates = fetch_rates(from_currency)
    except RateFetchFailure as exc:
        rate = FALLBACK_RATES.get((from_currency, to_currency), ONE)
        logger.warning(
            "%s; using static rate %s for %s->%s",
            exc.message,
            rate,
            from_currency,
            to_currency,
        )
        return ExchangeRate(rate, "fallback")

    cache.set(key, rates, settings.EXCHANGE_RATE_CACHE_SECONDS)
    logger.info("Fetched %d exchange rates for %s", len(rates), from_currency)
    return ExchangeRate(rates.get(to_currency, ONE), "live")


def convert_invoice(invoice, items, to_currency) -> ExchangeRate:
    """
    Reprice ``invoice`` and its ``items`` in ``to_currency``.

    Each unit price and the discount are rounded to cents on their own, so
    a long invoice can drift by a few cents against converting the total.
    Nothing is assigned until every new value has been computed. Saving is
    left to the caller.
    """
    if to_currency not in SUPPORTED_CURRENCIES:
        raise ValidationError({"currency": f"Unsupported currency '{to_currency}'."})

    exchange = get_exchange_rate(invoice.currency, to_currency)
    prices = [round_money(to_decimal(item.unit_price) * exchange.rate) for item in items]
    discount = round_money(to_decimal(invoice.discount_amount) * exchange.rate)

    for item, price in zip(items, prices):
        item.unit_price = price
    invoice.discount_amount = discount
    invoice.currency = to_currency
    return exchange
