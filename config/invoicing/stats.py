from invoicing.totals import ZERO, invoice_totals, round_money


def dashboard_stats(invoices) -> dict:
    """Headline numbers for the dashboard. Pass invoices with items prefetched."""
    counts = {"pending": 0, "partial": 0, "paid": 0, "overdue": 0}
    revenue = ZERO
    pending_amount = ZERO
    total_invoices = 0

    for invoice in invoices:
        total_invoices += 1
        counts[invoice.payment_status] = counts.get(invoice.payment_status, 0) + 1
        totals = invoice_totals(invoice)
        if invoice.payment_status == "paid":
            revenue += totals.total
        elif invoice.payment_status in ("pending", "partial"):
            pending_amount += totals.remaining

    return {
        "total_invoices": total_invoices,
        "paid_invoices": counts["paid"],
        "pending_invoices": counts["pending"],
        "partial_invoices": counts["partial"],
        "overdue_invoices": counts["overdue"],
        "total_revenue": round_money(revenue),
        "pending_amount": round_money(pending_amount),
    }
