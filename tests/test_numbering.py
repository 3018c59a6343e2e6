from decimal import Decimal

import pytest

from invoicing import numbering
from invoicing.models import CompanySettings

pytestmark = pytest.mark.django_db


def test_settings_created_lazily_with_defaults():
    assert CompanySettings.objects.count() == 0
    settings = CompanySettings.load()
    assert CompanySettings.objects.count() == 1
    assert (settings.invoice_prefix, settings.next_invoice_number) == ("INV", 1)
    assert (settings.project_prefix, settings.next_project_number) == ("PRJ", 1)
    assert CompanySettings.load().pk == settings.pk


def test_next_number_is_stable_until_incremented(company):
    company.next_invoice_number = 7
    company.save()

    assert numbering.next_invoice_number(company) == "INV-0007"
    assert numbering.next_invoice_number(company) == "INV-0007"

    numbering.increment_invoice_number(company)

    assert numbering.next_invoice_number(company) == "INV-0008"
    company.refresh_from_db()
    assert company.next_invoice_number == 8


def test_counter_past_four_digits_not_truncated(company):
    company.next_invoice_number = 10000
    assert numbering.next_invoice_number(company) == "INV-10000"


def test_project_counter_is_independent(company):
    company.project_prefix = "JOB"
    company.next_project_number = 42
    company.save()

    numbering.increment_invoice_number(company)

    assert numbering.next_project_number(company) == "JOB-0042"
    numbering.increment_project_number(company)
    company.refresh_from_db()
    assert company.next_project_number == 43
    assert company.next_invoice_number == 2


def test_reserve_hands_out_each_number_once(company):
    first = numbering.reserve_invoice_number()
    second = numbering.reserve_invoice_number()

    assert (first, second) == ("INV-0001", "INV-0002")
    company.refresh_from_db()
    assert company.next_invoice_number == 3
    assert numbering.reserve_project_number() == "PRJ-0001"


def test_reserve_skips_numbers_already_on_an_invoice(company, make_invoice):
    make_invoice(invoice_number="INV-0001")
    make_invoice(invoice_number="INV-0002")

    assert numbering.reserve_invoice_number() == "INV-0003"
    company.refresh_from_db()
    assert company.next_invoice_number == 4


@pytest.mark.parametrize(
    "number,expected",
    [("INV-0001", True), ("INV-12345", True), ("INV-1", False), ("ACME-0001", False), ("", False)],
)
def test_in_sequence(company, number, expected):
    assert numbering.in_sequence(company, "invoice", number) is expected


def test_new_draft_previews_without_reserving(company):
    company.default_currency = "INR"
    company.bank_details = "HDFC 0001"
    company.save()

    draft = numbering.new_invoice_draft(company)

    assert draft["invoice_number"] == "INV-0001"
    assert draft["project_number"] == "PRJ-0001"
    assert draft["currency"] == "INR"
    assert draft["tax_enabled"] is True
    assert draft["tax_rate"] == Decimal("18.00")
    assert draft["bank_details"] == "HDFC 0001"
    assert draft["payment_status"] == "pending"
    company.refresh_from_db()
    assert company.next_invoice_number == 1


def test_new_draft_without_default_tax(company):
    company.default_tax_rate = Decimal("0")
    assert numbering.new_invoice_draft(company)["tax_enabled"] is False


def test_each_draft_gets_its_own_id(company):
    assert numbering.new_invoice_draft(company)["id"] != numbering.new_invoice_draft(company)["id"]
