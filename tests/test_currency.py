from decimal import Decimal
from unittest.mock import patch

import pytest
from requests.exceptions import ConnectionError, Timeout

from conftest import item, rates_response
from invoicing.currency import convert_invoice, get_exchange_rate
from invoicing.exceptions import ValidationError
from invoicing.models import Invoice


def usd_invoice(discount="0"):
    return Invoice(client_name="Acme", currency="USD", discount_amount=Decimal(discount))


class TestGetExchangeRate:
    @patch("invoicing.currency.requests.get")
    def test_same_currency_is_identity(self, mock_get):
        rate = get_exchange_rate("USD", "USD")
        assert (rate.rate, rate.source) == (Decimal("1"), "identity")
        mock_get.assert_not_called()

    @patch("invoicing.currency.requests.get")
    def test_live_rate(self, mock_get):
        mock_get.return_value = rates_response({"EUR": 0.91, "GBP": 0.78})

        rate = get_exchange_rate("USD", "EUR")

        assert rate.rate == Decimal("0.91")
        assert rate.source == "live"
        assert rate.approximate is False
        mock_get.assert_called_once_with("https://rates.test/v4/latest/USD", timeout=5.0)

    @patch("invoicing.currency.requests.get")
    def test_rates_cached_per_base_currency(self, mock_get):
        mock_get.return_value = rates_response({"EUR": 0.91, "GBP": 0.78})

        get_exchange_rate("USD", "EUR")
        cached = get_exchange_rate("USD", "GBP")

        assert cached.rate == Decimal("0.78")
        assert cached.source == "cache"
        assert mock_get.call_count == 1

        mock_get.return_value = rates_response({"USD": 1.1})
        assert get_exchange_rate("EUR", "USD").source == "live"
        assert mock_get.call_count == 2

    @patch("invoicing.currency.requests.get")
    def test_target_missing_from_live_rates(self, mock_get):
        mock_get.return_value = rates_response({"EUR": 0.91})
        assert get_exchange_rate("USD", "INR").rate == Decimal("1")

    @patch("invoicing.currency.requests.get")
    def test_non_200_falls_back_to_static_table(self, mock_get):
        mock_get.return_value = rates_response({}, status_code=503)

        rate = get_exchange_rate("USD", "EUR")

        assert rate.rate == Decimal("0.92")
        assert rate.source == "fallback"
        assert rate.approximate is True

    @pytest.mark.parametrize("error", [ConnectionError("down"), Timeout("slow")])
    def test_network_errors_fall_back(self, error):
        with patch("invoicing.currency.requests.get", side_effect=error):
            assert get_exchange_rate("GBP", "INR").rate == Decimal("105.5")

    @patch("invoicing.currency.requests.get")
    def test_malformed_payload_falls_back(self, mock_get):
        mock_get.return_value = rates_response({})
        mock_get.return_value.json.side_effect = ValueError("not json")

        assert get_exchange_rate("EUR", "USD").rate == Decimal("1.09")

    @patch("invoicing.currency.requests.get", side_effect=ConnectionError("down"))
    def test_fallback_not_cached(self, mock_get):
        get_exchange_rate("USD", "EUR")
        get_exchange_rate("USD", "EUR")
        assert mock_get.call_count == 2

    @patch("invoicing.currency.requests.get", side_effect=ConnectionError("down"))
    def test_unknown_pair_converts_at_one(self, mock_get):
        assert get_exchange_rate("USD", "JPY").rate == Decimal("1")


class TestConvertInvoice:
    @patch("invoicing.currency.requests.get", side_effect=ConnectionError("down"))
    def test_every_price_and_discount_rounded_per_field(self, mock_get):
        invoice = usd_invoice(discount="5")
        items = [item(unit_price="10.00"), item(unit_price="19.99")]

        exchange = convert_invoice(invoice, items, "EUR")

        assert exchange.source == "fallback"
        assert invoice.currency == "EUR"
        assert [i.unit_price for i in items] == [Decimal("9.20"), Decimal("18.39")]
        assert invoice.discount_amount == Decimal("4.60")

    @patch("invoicing.currency.requests.get")
    def test_round_trip_within_a_cent(self, mock_get):
        def provider(url, timeout):
            if url.endswith("/USD"):
                return rates_response({"EUR": 0.8})
            return rates_response({"USD": 1.25})

        mock_get.side_effect = provider
        for price in ("19.99", "0.01", "1234.56", "7.77"):
            invoice, items = usd_invoice(), [item(unit_price=price)]

            convert_invoice(invoice, items, "EUR")
            convert_invoice(invoice, items, "USD")

            assert abs(items[0].unit_price - Decimal(price)) <= Decimal("0.01")

    @patch("invoicing.currency.requests.get")
    def test_per_field_rounding_drift_is_bounded(self, mock_get):
        mock_get.return_value = rates_response({"EUR": 0.5})
        items = [item(unit_price="0.01") for _ in range(10)]
        invoice = usd_invoice()
        converted_at_once = Decimal("0.10") * Decimal("0.5")

        convert_invoice(invoice, items, "EUR")
        converted_per_item = sum(i.unit_price for i in items)

        # each 0.005 rounds up on its own: 0.10 instead of 0.05
        assert converted_per_item == Decimal("0.10")
        assert abs(converted_per_item - converted_at_once) <= Decimal("0.005") * len(items)

    @patch("invoicing.currency.requests.get", side_effect=ConnectionError("down"))
    def test_currency_label_changes_even_without_a_rate(self, mock_get):
        invoice, items = Invoice(client_name="Acme", currency="USD"), [item(unit_price="10")]
        with patch.dict("invoicing.currency.FALLBACK_RATES", {}, clear=True):
            convert_invoice(invoice, items, "INR")
        assert invoice.currency == "INR"
        assert items[0].unit_price == Decimal("10.00")

    @patch("invoicing.currency.requests.get")
    def test_unsupported_currency_leaves_invoice_untouched(self, mock_get):
        invoice, items = usd_invoice(discount="5"), [item(unit_price="10")]

        with pytest.raises(ValidationError):
            convert_invoice(invoice, items, "JPY")

        mock_get.assert_not_called()
        assert invoice.currency == "USD"
        assert items[0].unit_price == Decimal("10")
        assert invoice.discount_amount == Decimal("5")
