import re
from urllib.parse import quote

from invoicing.currency import CURRENCY_SYMBOLS
from invoicing.totals import round_money

# same set encodeURIComponent leaves alone, which UPI apps expect
_URI_SAFE = "-_.!~*'()"


def _encode(value) -> str:
    return quote(value, safe=_URI_SAFE)


def upi_id_for(settings):
    upi_id = re.sub(r"\s", "", settings.upi_id or "")
    if "@" in upi_id:
        return upi_id
    return None


def payment_payload(invoice, settings, total) -> str:
    """
    Content of the payment QR code printed on an invoice.

    A UPI ``pay`` URI when the company has a UPI id configured, otherwise a
    plain text block with the amount and how to pay.
    """
    amount = f"{round_money(total):.2f}"
    upi_id = upi_id_for(settings)

    if upi_id:
        # '@' in the payee address is left as-is; several apps reject %40
        return (
            f"upi://pay?pa={upi_id}"
            f"&pn={_encode(settings.name.strip())}"
            f"&am={amount}"
            f"&cu={invoice.currency}"
            f"&tn={_encode(f'Invoice {invoice.invoice_number}')}"
        )

    symbol = CURRENCY_SYMBOLS.get(invoice.currency, "$")
    lines = [
        f"Payment for Invoice {invoice.invoice_number or 'N/A'}",
        f"Amount: {symbol}{amount}",
        f"Company: {settings.name}",
        f"Email: {settings.email}",
    ]
    text = "\n".join(lines)
    if settings.bank_details:
        text += f"\n\nBank Details:\n{settings.bank_details}"
    return text
