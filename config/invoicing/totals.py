from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    """Exact invoice figures. Use ``rounded()`` for anything shown to a user."""

    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    amount_paid: Decimal
    remaining: Decimal

    @property
    def total_with_tax(self) -> Decimal:
        return self.subtotal + self.tax

    def rounded(self) -> dict:
        return {
            "subtotal": round_money(self.subtotal),
            "tax": round_money(self.tax),
            "discount": round_money(self.discount),
            "total": round_money(self.total),
            "amount_paid": round_money(self.amount_paid),
            "remaining": round_money(self.remaining),
        }


def line_total(item) -> Decimal:
    """quantity * unit_price, plus extra hours billed at the same unit price."""
    unit_price = to_decimal(item.unit_price)
    quantity = to_decimal(item.quantity)
    extra_hours = to_decimal(getattr(item, "extra_hours", None))
    return quantity * unit_price + extra_hours * unit_price


def compute_totals(
    items, tax_enabled, tax_rate, discount_amount=ZERO, amount_paid=ZERO
) -> InvoiceTotals:
    """
    Subtotal, tax, discount, total and remaining balance of an invoice.

    Nothing is rounded here; the discount is an absolute amount frozen when
    the coupon was applied, so changing the tax rate afterwards does not
    rescale it. Total and remaining are allowed to go negative.
    """
    subtotal = ZERO
    for item in items or ():
        subtotal += line_total(item)

    tax = ZERO
    if tax_enabled:
        tax = subtotal * to_decimal(tax_rate) / Decimal("100")

    discount = to_decimal(discount_amount)
    paid = to_decimal(amount_paid)
    total = subtotal + tax - discount

    return InvoiceTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        total=total,
        amount_paid=paid,
        remaining=total - paid,
    )


def invoice_totals(invoice, items=None) -> InvoiceTotals:
    """Totals for an invoice; ``items`` overrides the stored items (drafts)."""
    if items is None:
        items = list(invoice.items.all())
    return compute_totals(
        items,
        invoice.tax_enabled,
        invoice.tax_rate,
        invoice.discount_amount,
        invoice.amount_paid,
    )
