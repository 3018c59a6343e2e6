from rest_framework import serializers

from invoicing.models import CompanySettings, Coupon, Customer, Invoice, InvoiceItem
from invoicing.totals import invoice_totals


class InvoiceItemSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)
    # lenient on purpose: the invoice validator reports bad items in one place
    quantity = serializers.IntegerField(default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, default=0)
    extra_hours = serializers.DecimalField(
        max_digits=8, decimal_places=2, required=False, allow_null=True, default=0
    )
    description = serializers.CharField(allow_blank=True, default="")

    class Meta:
        model = InvoiceItem
        fields = ["id", "description", "type", "quantity", "unit_price", "extra_hours"]


class TotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    amount_paid = serializers.DecimalField(max_digits=14, decimal_places=2)
    remaining = serializers.DecimalField(max_digits=14, decimal_places=2)


INVOICE_FIELDS = [
    "id",
    "invoice_number",
    "project_number",
    "date",
    "due_date",
    "client_name",
    "client_email",
    "client_phone",
    "client_address",
    "currency",
    "tax_enabled",
    "tax_rate",
    "discount_code",
    "discount_amount",
    "notes",
    "po_number",
    "bank_details",
    "payment_status",
    "amount_paid",
    "is_recurring",
    "recurring_interval",
    "signature",
    "attachments",
]


class InvoiceSerializer(serializers.ModelSerializer):
    """
    Read side. Drafts that were never saved pass their items in
    ``context["items"]``; saved invoices read them from the database.
    """

    items = serializers.SerializerMethodField()
    totals = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = INVOICE_FIELDS + ["items", "totals", "created_at", "updated_at"]

    def _items(self, obj):
        items = self.context.get("items")
        if items is None:
            items = list(obj.items.all())
        return items

    def get_items(self, obj) -> list:
        return InvoiceItemSerializer(self._items(obj), many=True).data

    def get_totals(self, obj) -> dict:
        totals = invoice_totals(obj, self._items(obj))
        return TotalsSerializer(totals.rounded()).data


class InvoiceDraftSerializer(serializers.ModelSerializer):
    """
    Write side: parses an invoice payload into unsaved model instances.

    Only types are checked here. Business rules live in
    ``invoicing.invoices.validate_invoice``.
    """

    id = serializers.UUIDField(required=False)
    invoice_number = serializers.CharField(required=False, allow_blank=True, default="")
    client_name = serializers.CharField(required=False, allow_blank=True, default="")
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)
    items = InvoiceItemSerializer(many=True, required=False)

    class Meta:
        model = Invoice
        fields = INVOICE_FIELDS + ["items"]

    def build(self):
        return build_invoice(self.validated_data)


def build_invoice(validated_data):
    """Unsaved ``Invoice`` and ``InvoiceItem`` instances from validated draft data."""
    data = dict(validated_data)
    item_data = data.pop("items", [])
    if data.get("id") is None:
        data.pop("id", None)
    invoice = Invoice(**data)

    items = []
    for position, fields in enumerate(item_data):
        fields = dict(fields)
        if fields.get("id") is None:
            fields.pop("id", None)
        if fields.get("extra_hours") is None:
            fields.pop("extra_hours", None)
        items.append(InvoiceItem(position=position, **fields))
    return invoice, items


class CouponApplySerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)


class DraftCouponSerializer(CouponApplySerializer):
    invoice = InvoiceDraftSerializer()


class CurrencyChangeSerializer(serializers.Serializer):
    currency = serializers.CharField(max_length=3)


class DraftCurrencySerializer(CurrencyChangeSerializer):
    invoice = InvoiceDraftSerializer()


class AmountPaidSerializer(serializers.Serializer):
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.CharField()


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "email", "phone", "address", "company", "created_at"]
        read_only_fields = ["id", "created_at"]


class CouponSerializer(serializers.ModelSerializer):
    replaced_by = serializers.SlugRelatedField(slug_field="code", read_only=True)

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "discount_type",
            "discount_value",
            "description",
            "is_active",
            "usage_count",
            "replaced_by",
            "created_at",
        ]
        read_only_fields = fields


class CouponCreateSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)
    discount_type = serializers.CharField()
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class CompanySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanySettings
        fields = [
            "name",
            "email",
            "phone",
            "address",
            "tax_id",
            "logo",
            "bank_details",
            "upi_id",
            "signature",
            "default_currency",
            "default_tax_rate",
            "invoice_prefix",
            "next_invoice_number",
            "project_prefix",
            "next_project_number",
        ]
