import logging

from invoicing.exceptions import ValidationError
from invoicing.totals import invoice_totals, round_money, to_decimal

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = ("pending", "partial", "paid", "overdue")


def derive_payment_status(amount_paid, total) -> str:
    amount_paid = to_decimal(amount_paid)
    if amount_paid >= to_decimal(total):
        return "paid"
    if amount_paid > 0:
        return "partial"
    return "pending"


def record_amount_paid(invoice, amount):
    """Set the amount paid and move the status to match it."""
    amount = round_money(amount)
    if amount < 0:
        raise ValidationError({"amount_paid": "Cannot be negative."})

    total = invoice_totals(invoice).total
    invoice.amount_paid = amount
    invoice.payment_status = derive_payment_status(amount, total)
    invoice.save(update_fields=["amount_paid", "payment_status", "updated_at"])
    logger.info(
        "Invoice %s: amount paid %s, status %s",
        invoice.invoice_number,
        amount,
        invoice.payment_status,
    )
    return invoice


def set_payment_status(invoice, status):
    # manual choice wins, even if it disagrees with the amount paid
    if status not in PAYMENT_STATUSES:
        raise ValidationError({"payment_status": f"Unknown status '{status}'."})
    invoice.payment_status = status
    invoice.save(update_fields=["payment_status", "updated_at"])
    return invoice


def mark_as_paid(invoice):
    invoice.amount_paid = round_money(invoice_totals(invoice).total)
    invoice.payment_status = "paid"
    invoice.save(update_fields=["amount_paid", "payment_status", "updated_at"])
    logger.info("Invoice %s marked as paid", invoice.invoice_number)
    return invoice
