import logging
import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

logger = logging.getLogger(__name__)


CURRENCY_CHOICES = [
    ("USD", "US Dollar"),
    ("EUR", "Euro"),
    ("INR", "Indian Rupee"),
    ("GBP", "Pound Sterling"),
]


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    company = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "customer"
        ordering = ["-created_at"]


class Invoice(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("partial", "Partially paid"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
    ]
    INTERVAL_CHOICES = [
        ("monthly", "Monthly"),
        ("quarterly", "Quarterly"),
        ("yearly", "Yearly"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice_number = models.CharField(max_length=32, unique=True)
    project_number = models.CharField(max_length=32, blank=True, default="")

    date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    client_name = models.CharField(max_length=255)
    client_email = models.CharField(max_length=255, blank=True, default="")
    client_phone = models.CharField(max_length=50, blank=True, default="")
    client_address = models.TextField(blank=True, default="")

    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="USD")
    tax_enabled = models.BooleanField(default=False)
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("18.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    discount_code = models.CharField(max_length=64, blank=True, default="")
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    payment_status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default="pending"
    )
    amount_paid = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    notes = models.TextField(blank=True, default="")
    po_number = models.CharField(max_length=64, blank=True, default="")
    bank_details = models.TextField(blank=True, default="")
    is_recurring = models.BooleanField(default=False)
    recurring_interval = models.CharField(
        max_length=10, choices=INTERVAL_CHOICES, blank=True, default=""
    )
    signature = models.TextField(blank=True, default="")
    attachments = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "invoice"
        ordering = ["-created_at"]

    def __str__(self):
        return self.invoice_number


class InvoiceItem(models.Model):
    TYPE_CHOICES = [
        ("product", "Product"),
        ("service", "Service"),
        ("hourly", "Hourly"),
        ("miscellaneous", "Miscellaneous"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField(default=0)
    description = models.CharField(max_length=255)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default="service")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    extra_hours = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "invoice_item"
        ordering = ["position"]


class Coupon(models.Model):
    TYPE_CHOICES = [
        ("percentage", "Percentage"),
        ("fixed", "Fixed amount"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=64, unique=True)
    discount_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    usage_count = models.PositiveIntegerField(default=0)
    replaced_by = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="replaces",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "coupon"
        ordering = ["-created_at"]

    def __str__(self):
        return self.code


class CompanySettings(models.Model):
    """Per-tenant company configuration. Exactly one row, created on first read."""

    SINGLETON_ID = 1

    name = models.CharField(max_length=255, default="SyncSpire Technologies")
    email = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    tax_id = models.CharField(max_length=64, blank=True, default="")
    logo = models.TextField(blank=True, default="")
    bank_details = models.TextField(blank=True, default="")
    upi_id = models.CharField(max_length=128, blank=True, default="")
    signature = models.TextField(blank=True, default="")

    default_currency = models.CharField(
        max_length=3, choices=CURRENCY_CHOICES, default="USD"
    )
    default_tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("18.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )

    invoice_prefix = models.CharField(max_length=16, default="INV")
    next_invoice_number = models.PositiveIntegerField(default=1)
    project_prefix = models.CharField(max_length=16, default="PRJ")
    next_project_number = models.PositiveIntegerField(default=1)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "company_settings"

    @classmethod
    def load(cls):
        settings, created = cls.objects.get_or_create(pk=cls.SINGLETON_ID)
        if created:
            logger.info("Initialised default company settings")
        return settings
