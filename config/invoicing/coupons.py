"""
Coupon lookup, application to invoices, creation and redemption.

A coupon's discount is copied onto the invoice as a plain amount when it is
applied. Later edits to the coupon never reach invoices that already carry it.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from invoicing.exceptions import DuplicateCode, InvalidCoupon, ValidationError
from invoicing.models import Coupon
from invoicing.totals import ZERO, compute_totals, round_money

logger = logging.getLogger(__name__)

DISCOUNT_TYPES = ("percentage", "fixed")
REDEMPTION_MODES = ("rotate", "reusable")

_SUFFIX_RE = re.compile(r"-(\d+)$")


@dataclass
class Redemption:
    coupon: Coupon
    replacement: Optional[Coupon] = None


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def find_by_code(code) -> Optional[Coupon]:
    code = normalize_code(code)
    if not code:
        return None
    return Coupon.objects.filter(code__iexact=code).first()


def discount_for(coupon: Coupon, total_with_tax) -> Decimal:
    if coupon.discount_type == "percentage":
        amount = total_with_tax * coupon.discount_value / Decimal("100")
    else:
        amount = coupon.discount_value
    return round_money(amount)


def apply_to_invoice(invoice, items, code):
    """
    Snapshot a coupon's discount onto ``invoice``.

    Percentage coupons are taken off the tax-inclusive total of ``items``;
    fixed coupons are used as-is. Raises ``InvalidCoupon`` and leaves the
    invoice alone when the code is unknown or inactive.
    """
    coupon = find_by_code(code)
    if coupon is None or not coupon.is_active:
        raise InvalidCoupon("Invalid or expired coupon code")

    totals = compute_totals(items, invoice.tax_enabled, invoice.tax_rate)
    invoice.discount_code = coupon.code
    invoice.discount_amount = discount_for(coupon, totals.total_with_tax)
    logger.debug(
        "Applied coupon %s to invoice %s: %s",
        coupon.code,
        invoice.pk,
        invoice.discount_amount,
    )
    return coupon


def remove_from_invoice(invoice):
    invoice.discount_code = ""
    invoice.discount_amount = ZERO


def _check_terms(code, discount_type, discount_value):
    errors = {}
    if not code:
        errors["code"] = "Please enter a coupon code."
    if discount_type not in DISCOUNT_TYPES:
        errors["discount_type"] = "Must be 'percentage' or 'fixed'."
    try:
        value = Decimal(str(discount_value))
    except (InvalidOperation, TypeError, ValueError):
        errors["discount_value"] = "Must be a valid number."
        value = None
    if value is not None:
        if value < 0:
            errors["discount_value"] = "Cannot be negative."
        elif discount_type == "percentage" and value > 100:
            errors["discount_value"] = "Percentage cannot exceed 100."
    if errors:
        raise ValidationError(errors)
    return value


def create_coupon(code, discount_type, discount_value, description="") -> Coupon:
    code = normalize_code(code)
    value = _check_terms(code, discount_type, discount_value)

    try:
        with transaction.atomic():
            # re-check inside the transaction; the unique index backs this up
            if Coupon.objects.filter(code__iexact=code).exists():
                raise DuplicateCode("A coupon with this code already exists")
            coupon = Coupon.objects.create(
                code=code,
                discount_type=discount_type,
                discount_value=value,
                description=description or "",
                is_active=True,
                usage_count=0,
            )
    except IntegrityError:
        raise DuplicateCode("A coupon with this code already exists")

    logger.info("Created coupon %s (%s %s)", code, discount_type, value)
    return coupon


def toggle_active(coupon: Coupon) -> Coupon:
    coupon.is_active = not coupon.is_active
    coupon.save(update_fields=["is_active"])
    return coupon


def delete_coupon(coupon: Coupon):
    logger.info("Deleting coupon %s", coupon.code)
    coupon.delete()


def successor_code(code, rotated=False) -> str:
    """
    Next free code in a coupon's rotation: SAVE20 -> SAVE20-0001 -> SAVE20-0002.

    A trailing ``-<digits>`` only counts as a rotation suffix when ``rotated``
    is set, i.e. the coupon was itself issued as a replacement. A campaign
    code such as NEWYEAR-2024 therefore rotates to NEWYEAR-2024-0001.
    """
    match = _SUFFIX_RE.search(code) if rotated else None
    if match:
        base, n = code[: match.start()], int(match.group(1))
    else:
        base, n = code, 0

    while True:
        n += 1
        candidate = f"{base}-{n:04d}"
        if not Coupon.objects.filter(code__iexact=candidate).exists():
            return candidate


def redeem(code, mode=None) -> Redemption:
    """
    Consume one use of an active coupon.

    In ``rotate`` mode the coupon is retired and a replacement carrying the
    same terms under a successor code is issued, so a campaign never runs
    out of codes. In ``reusable`` mode only the usage count moves.
    """
    mode = mode or settings.COUPON_REDEMPTION_MODE
    if mode not in REDEMPTION_MODES:
        raise ValidationError(f"Unknown coupon redemption mode: {mode}")

    with transaction.atomic():
        coupon = (
            Coupon.objects.select_for_update()
            .filter(code__iexact=normalize_code(code))
            .first()
        )
        if coupon is None or not coupon.is_active:
            raise InvalidCoupon("Invalid or expired coupon code")

        coupon.usage_count += 1
        if mode == "reusable":
            coupon.save(update_fields=["usage_count"])
            logger.info("Redeemed coupon %s (uses: %d)", coupon.code, coupon.usage_count)
            return Redemption(coupon=coupon)

        replacement = Coupon.objects.create(
            code=successor_code(coupon.code, rotated=hasattr(coupon, "replaces")),
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            description=coupon.description,
            is_active=True,
            usage_count=0,
        )
        coupon.is_active = False
        coupon.replaced_by = replacement
        coupon.save(update_fields=["usage_count", "is_active", "replaced_by"])

    logger.info("Redeemed coupon %s, replaced by %s", coupon.code, replacement.code)
    return Redemption(coupon=coupon, replacement=replacement)
