from decimal import Decimal

from invoicing.models import CompanySettings, Invoice
from invoicing.payment_info import payment_payload, upi_id_for


def company(**fields):
    fields.setdefault("name", "SyncSpire Technologies")
    fields.setdefault("email", "billing@syncspire.test")
    return CompanySettings(**fields)


def invoice(number="INV-0001", currency="INR"):
    return Invoice(invoice_number=number, currency=currency, client_name="Acme")


class TestUpiPayload:
    def test_pay_uri(self):
        payload = payment_payload(invoice(), company(upi_id="merchant@upi"), Decimal("118"))

        assert payload == (
            "upi://pay?pa=merchant@upi"
            "&pn=SyncSpire%20Technologies"
            "&am=118.00"
            "&cu=INR"
            "&tn=Invoice%20INV-0001"
        )

    def test_amount_rounded_half_up(self):
        payload = payment_payload(invoice(), company(upi_id="merchant@upi"), Decimal("10.005"))
        assert "&am=10.01&" in payload

    def test_reserved_characters_encoded(self):
        payload = payment_payload(
            invoice(number="A&B=1"), company(name="Smith & Sons", upi_id="pay@bank"), 5
        )
        assert "&pn=Smith%20%26%20Sons&" in payload
        assert payload.endswith("&tn=Invoice%20A%26B%3D1")

    def test_currency_follows_invoice(self):
        payload = payment_payload(invoice(currency="USD"), company(upi_id="pay@bank"), 5)
        assert "&cu=USD&" in payload

    def test_whitespace_stripped_from_upi_id(self):
        assert upi_id_for(company(upi_id=" merchant @upi ")) == "merchant@upi"


class TestTextPayload:
    def test_without_upi_id(self):
        payload = payment_payload(invoice(currency="EUR"), company(), Decimal("59"))

        assert payload == (
            "Payment for Invoice INV-0001\n"
            "Amount: €59.00\n"
            "Company: SyncSpire Technologies\n"
            "Email: billing@syncspire.test"
        )

    def test_upi_id_without_at_sign_is_ignored(self):
        assert upi_id_for(company(upi_id="merchant.upi")) is None
        payload = payment_payload(invoice(), company(upi_id="merchant.upi"), 1)
        assert payload.startswith("Payment for Invoice INV-0001\nAmount: ₹1.00")

    def test_bank_details_appended(self):
        settings = company(bank_details="HDFC Bank\nA/C 0001")
        payload = payment_payload(invoice(currency="GBP"), settings, 20)

        assert payload.endswith("Email: billing@syncspire.test\n\nBank Details:\nHDFC Bank\nA/C 0001")
        assert "Amount: £20.00" in payload

    def test_missing_invoice_number(self):
        payload = payment_payload(invoice(number=""), company(), 0)
        assert payload.startswith("Payment for Invoice N/A\n")
