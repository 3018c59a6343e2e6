import logging

from django.db import DatabaseError, transaction

from invoicing import coupons
from invoicing.currency import SUPPORTED_CURRENCIES, convert_invoice
from invoicing.exceptions import DuplicateNumber, InvalidCoupon, PersistenceFailure
from invoicing.exceptions import ValidationError
from invoicing.models import CompanySettings, Invoice, InvoiceItem
from invoicing.numbering import in_sequence, next_number, number_taken, reserve_number
from invoicing.totals import to_decimal

logger = logging.getLogger(__name__)

# everything a save copies over; ids and timestamps are managed here
EDITABLE_FIELDS = [
    f.attname
    for f in Invoice._meta.concrete_fields
    if f.name not in ("id", "created_at", "updated_at")
]

# what an item row is rebuilt from; its invoice and position are set on save
ITEM_FIELDS = [
    f.attname
    for f in InvoiceItem._meta.concrete_fields
    if f.name not in ("invoice", "position")
]


def validate_invoice(invoice, items):
    errors = {}

    if not (invoice.client_name or "").strip():
        errors["client_name"] = "Please enter a client name."

    if not items:
        errors["items"] = ["Please add at least one item."]
    else:
        item_errors = []
        for i, item in enumerate(items, start=1):
            if not (item.description or "").strip():
                item_errors.append(f"Item {i}: Description is required.")
            if item.quantity is None or item.quantity <= 0:
                item_errors.append(f"Item {i}: Quantity must be greater than 0.")
            if item.unit_price is None or to_decimal(item.unit_price) < 0:
                item_errors.append(f"Item {i}: Price cannot be negative.")
            if to_decimal(item.extra_hours) < 0:
                item_errors.append(f"Item {i}: Extra hours cannot be negative.")
        if item_errors:
            errors["items"] = item_errors

    tax_rate = to_decimal(invoice.tax_rate)
    if tax_rate < 0 or tax_rate > 100:
        errors["tax_rate"] = "Must be between 0 and 100."
    if to_decimal(invoice.amount_paid) < 0:
        errors["amount_paid"] = "Cannot be negative."
    if to_decimal(invoice.discount_amount) < 0:
        errors["discount_amount"] = "Cannot be negative."
    if invoice.currency not in SUPPORTED_CURRENCIES:
        errors["currency"] = f"Unsupported currency '{invoice.currency}'."

    if errors:
        raise ValidationError(errors)


def _needs_number(settings, kind, number):
    if number in ("", None) or number == next_number(settings, kind):
        return True
    # a preview gone stale because another draft was saved first
    return in_sequence(settings, kind, number) and number_taken(kind, number)


def _assign_numbers(invoice):
    # a blank or previewed number takes the next free counter value;
    # anything else was typed in and is kept
    settings = CompanySettings.load()
    if _needs_number(settings, "invoice", invoice.invoice_number):
        invoice.invoice_number = reserve_number("invoice")
    if _needs_number(settings, "project", invoice.project_number):
        invoice.project_number = reserve_number("project")


def _attaches_new_code(invoice, existing):
    code = coupons.normalize_code(invoice.discount_code)
    if not code:
        return False
    return existing is None or coupons.normalize_code(existing.discount_code) != code


def _redeem_discount(invoice):
    try:
        coupons.redeem(invoice.discount_code)
    except InvalidCoupon:
        # the invoice keeps the discount it was quoted
        logger.warning(
            "Coupon %s no longer redeemable; invoice %s keeps discount %s",
            invoice.discount_code,
            invoice.invoice_number,
            invoice.discount_amount,
        )


def save_invoice(invoice, items) -> Invoice:
    """
    Validate and upsert an invoice with its items, by id. Last write wins.

    New invoices get their numbers reserved, and a newly attached coupon
    code is redeemed, in the same transaction as the write, so a failed
    save leaves no trace.
    Returns the stored invoice.
    """
    validate_invoice(invoice, items)

    previewed = (invoice.invoice_number, invoice.project_number)
    try:
        with transaction.atomic():
            existing = Invoice.objects.select_for_update().filter(pk=invoice.pk).first()

            if existing is None:
                _assign_numbers(invoice)
            elif not invoice.invoice_number:
                invoice.invoice_number = existing.invoice_number

            if (
                Invoice.objects.filter(invoice_number=invoice.invoice_number)
                .exclude(pk=invoice.pk)
                .exists()
            ):
                raise DuplicateNumber("Invoice number already exists.")

            if _attaches_new_code(invoice, existing):
                _redeem_discount(invoice)

            if existing is None:
                invoice.save(force_insert=True)
                stored = invoice
            else:
                for field in EDITABLE_FIELDS:
                    setattr(existing, field, getattr(invoice, field))
                existing.save()
                stored = existing
                stored.items.all().delete()

            # the caller's items are left untouched
            InvoiceItem.objects.bulk_create(
                [
                    InvoiceItem(
                        invoice=stored,
                        position=position,
                        **{field: getattr(item, field) for field in ITEM_FIELDS},
                    )
                    for position, item in enumerate(items)
                ]
            )
    except DuplicateNumber:
        invoice.invoice_number, invoice.project_number = previewed
        raise
    except DatabaseError as exc:
        invoice.invoice_number, invoice.project_number = previewed
        logger.exception("Failed to save invoice %s", invoice.pk)
        raise PersistenceFailure(f"Could not save invoice: {exc}")

    logger.info(
        "Saved invoice %s (%s, %d items)",
        stored.invoice_number,
        "new" if existing is None else "updated",
        len(items),
    )
    return stored


def delete_invoice(invoice):
    number = invoice.invoice_number
    try:
        invoice.delete()
    except DatabaseError as exc:
        logger.exception("Failed to delete invoice %s", number)
        raise PersistenceFailure(f"Could not delete invoice: {exc}")
    logger.info("Deleted invoice %s", number)


def apply_coupon(invoice, code):
    """Apply a coupon to a stored invoice, consuming the code."""
    items = list(invoice.items.all())
    before = (invoice.discount_code, invoice.discount_amount)
    coupon = coupons.apply_to_invoice(invoice, items, code)
    try:
        with transaction.atomic():
            coupons.redeem(coupon.code)
            invoice.save(update_fields=["discount_code", "discount_amount", "updated_at"])
    except InvalidCoupon:
        invoice.discount_code, invoice.discount_amount = before
        raise
    except DatabaseError as exc:
        invoice.discount_code, invoice.discount_amount = before
        logger.exception("Failed to apply coupon to invoice %s", invoice.invoice_number)
        raise PersistenceFailure(f"Could not save invoice: {exc}")
    return invoice


def remove_coupon(invoice):
    coupons.remove_from_invoice(invoice)
    invoice.save(update_fields=["discount_code", "discount_amount", "updated_at"])
    return invoice


def change_currency(invoice, to_currency):
    """Convert a stored invoice to ``to_currency`` and save it."""
    items = list(invoice.items.all())
    before = (
        invoice.currency,
        invoice.discount_amount,
        [item.unit_price for item in items],
    )
    exchange = convert_invoice(invoice, items, to_currency)
    try:
        with transaction.atomic():
            invoice.save(update_fields=["currency", "discount_amount", "updated_at"])
            InvoiceItem.objects.bulk_update(items, ["unit_price"])
    except DatabaseError as exc:
        invoice.currency, invoice.discount_amount, prices = before
        for item, price in zip(items, prices):
            item.unit_price = price
        logger.exception("Failed to convert invoice %s", invoice.invoice_number)
        raise PersistenceFailure(f"Could not save invoice: {exc}")

    logger.info(
        "Converted invoice %s from %s to %s at %s (%s)",
        invoice.invoice_number,
        before[0],
        to_currency,
        exchange.rate,
        exchange.source,
    )
    return exchange
