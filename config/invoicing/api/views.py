import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from invoicing import coupons, invoices, numbering, payments
from invoicing.api.serializer import (
    AmountPaidSerializer,
    CompanySettingsSerializer,
    CouponApplySerializer,
    CouponCreateSerializer,
    CouponSerializer,
    CurrencyChangeSerializer,
    CustomerSerializer,
    DraftCouponSerializer,
    DraftCurrencySerializer,
    InvoiceDraftSerializer,
    InvoiceItemSerializer,
    InvoiceSerializer,
    PaymentStatusSerializer,
    build_invoice,
)
from invoicing.currency import convert_invoice
from invoicing.exceptions import BillingError
from invoicing.models import CompanySettings, Coupon, Customer, Invoice, InvoiceItem
from invoicing.payment_info import payment_payload
from invoicing.stats import dashboard_stats
from invoicing.totals import invoice_totals

logger = logging.getLogger(__name__)


def api_error(code: str, message, http_status=status.HTTP_400_BAD_REQUEST):
    return Response({"error": {"code": code, "message": message}}, status=http_status)


def error_response(exc: BillingError):
    return api_error(exc.code, exc.message, exc.status_code)


def invoice_response(invoice, items=None, http_status=status.HTTP_200_OK, **extra):
    data = InvoiceSerializer(invoice, context={"items": items}).data
    data.update(extra)
    return Response(data, status=http_status)


def exchange_info(exchange):
    return {
        "exchange_rate": str(exchange.rate),
        "rate_source": exchange.source,
        "approximate": exchange.approximate,
    }


# --- drafts -----------------------------------------------------------------


@extend_schema(
    summary="New invoice draft",
    description=(
        "Defaults for a new invoice taken from company settings. The invoice "
        "and project numbers are previews; nothing is reserved until the "
        "invoice is saved."
    ),
    responses={200: InvoiceDraftSerializer},
)
@api_view(["GET"])
def new_draft(request):
    draft = numbering.new_invoice_draft(CompanySettings.load())
    return Response(InvoiceDraftSerializer(draft).data, status=status.HTTP_200_OK)


@extend_schema(
    summary="Draft totals",
    description="Subtotal, tax, discount, total and payment QR payload of an unsaved invoice.",
    request=InvoiceDraftSerializer,
    responses={200: InvoiceSerializer, 400: OpenApiResponse(description="Validation error")},
)
@api_view(["POST"])
def draft_totals(request):
    serializer = InvoiceDraftSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)

    invoice, items = serializer.build()
    total = invoice_totals(invoice, items).total
    return invoice_response(
        invoice,
        items,
        payment_payload=payment_payload(invoice, CompanySettings.load(), total),
    )


@extend_schema(
    summary="Apply coupon to draft",
    description=(
        "Computes the coupon discount against the draft's tax-inclusive total "
        "and returns the draft with discount_code/discount_amount filled in. "
        "The coupon is not consumed until the invoice is saved."
    ),
    request=DraftCouponSerializer,
    responses={
        200: InvoiceSerializer,
        400: OpenApiResponse(description="Invalid or inactive coupon"),
    },
)
@api_view(["POST"])
def draft_apply_coupon(request):
    serializer = DraftCouponSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)

    invoice, items = build_invoice(serializer.validated_data["invoice"])
    try:
        coupons.apply_to_invoice(invoice, items, serializer.validated_data["code"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice, items)


@extend_schema(
    summary="Convert draft currency",
    description=(
        "Reprices every item and the discount at the current exchange rate. "
        "When the rate provider is unavailable a static approximate rate is "
        "used and `approximate` is true."
    ),
    request=DraftCurrencySerializer,
    responses={200: InvoiceSerializer},
)
@api_view(["POST"])
def draft_convert_currency(request):
    serializer = DraftCurrencySerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)

    invoice, items = build_invoice(serializer.validated_data["invoice"])
    try:
        exchange = convert_invoice(invoice, items, serializer.validated_data["currency"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice, items, **exchange_info(exchange))


# --- invoices ---------------------------------------------------------------


@extend_schema(
    summary="Save new invoice",
    description=(
        "Validates and stores an invoice with its items. A blank invoice/project "
        "number, or the previewed one, is replaced by the next reserved number."
    ),
    request=InvoiceDraftSerializer,
    responses={
        201: InvoiceSerializer,
        400: OpenApiResponse(description="Validation error"),
        409: OpenApiResponse(description="Duplicate invoice number"),
    },
    examples=[
        OpenApiExample(
            "Invoice Example",
            value={
                "client_name": "Acme Pvt Ltd",
                "currency": "USD",
                "tax_enabled": True,
                "tax_rate": "18.00",
                "items": [
                    {"description": "Website design", "type": "service", "quantity": 1, "unit_price": "750.00"}
                ],
            },
            request_only=True,
        )
    ],
)
@api_view(["POST"])
def create_invoice(request):
    serializer = InvoiceDraftSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)

    invoice, items = serializer.build()
    if Invoice.objects.filter(pk=invoice.pk).exists():
        return api_error(
            "DUPLICATE_ID",
            "Invoice already exists; use PUT to update it.",
            status.HTTP_409_CONFLICT,
        )

    try:
        invoice = invoices.save_invoice(invoice, items)
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice, http_status=status.HTTP_201_CREATED)


@extend_schema(
    summary="List invoices",
    description="Returns invoices, newest first, with computed totals.",
    parameters=[
        OpenApiParameter("status", str, description="pending, partial, paid or overdue"),
        OpenApiParameter("search", str, description="Matches invoice number or client name"),
    ],
    responses={200: InvoiceSerializer(many=True)},
)
@api_view(["GET"])
def list_invoices(request):
    qs = Invoice.objects.prefetch_related("items").order_by("-created_at")

    status_filter = request.query_params.get("status")
    if status_filter and status_filter != "all":
        qs = qs.filter(payment_status=status_filter)
    search = request.query_params.get("search")
    if search:
        qs = qs.filter(Q(invoice_number__icontains=search) | Q(client_name__icontains=search))

    return Response(InvoiceSerializer(qs, many=True).data, status=status.HTTP_200_OK)


@extend_schema(methods=["GET"], summary="Invoice detail", responses={200: InvoiceSerializer})
@extend_schema(
    methods=["PUT"],
    summary="Save invoice",
    description="Upserts the invoice under this id, replacing all of its items.",
    request=InvoiceDraftSerializer,
    responses={200: InvoiceSerializer, 400: OpenApiResponse(description="Validation error")},
)
@extend_schema(methods=["DELETE"], summary="Delete invoice", responses={204: None})
@api_view(["GET", "PUT", "DELETE"])
def invoice_detail(request, pk):
    if request.method == "PUT":
        serializer = InvoiceDraftSerializer(data=request.data)
        if not serializer.is_valid():
            return api_error("VALIDATION_ERROR", serializer.errors)
        invoice, items = serializer.build()
        invoice.pk = pk
        try:
            invoice = invoices.save_invoice(invoice, items)
        except BillingError as exc:
            return error_response(exc)
        return invoice_response(invoice)

    invoice = get_object_or_404(Invoice, pk=pk)

    if request.method == "DELETE":
        try:
            invoices.delete_invoice(invoice)
        except BillingError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return invoice_response(invoice)


@extend_schema(
    summary="Add item",
    description="Appends an item to a stored invoice.",
    request=InvoiceItemSerializer,
    responses={
        201: InvoiceSerializer,
        400: OpenApiResponse(description="Validation error"),
    },
)
@api_view(["POST"])
def add_item(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)

    serializer = InvoiceItemSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)

    fields = dict(serializer.validated_data)
    fields.pop("id", None)
    if fields.get("extra_hours") is None:
        fields.pop("extra_hours", None)

    items = list(invoice.items.all())
    items.append(InvoiceItem(**fields))
    try:
        invoice = invoices.save_invoice(invoice, items)
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice, http_status=status.HTTP_201_CREATED)


@extend_schema(
    methods=["POST"],
    summary="Apply coupon",
    description="Applies and consumes a coupon on a stored invoice.",
    request=CouponApplySerializer,
    responses={
        200: InvoiceSerializer,
        400: OpenApiResponse(description="Invalid or inactive coupon"),
    },
)
@extend_schema(methods=["DELETE"], summary="Remove coupon", responses={200: InvoiceSerializer})
@api_view(["POST", "DELETE"])
def invoice_coupon(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)

    if request.method == "DELETE":
        invoices.remove_coupon(invoice)
        return invoice_response(invoice)

    serializer = CouponApplySerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        invoices.apply_coupon(invoice, serializer.validated_data["code"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice)


@extend_schema(
    summary="Change invoice currency",
    request=CurrencyChangeSerializer,
    responses={200: InvoiceSerializer, 400: OpenApiResponse(description="Unsupported currency")},
)
@api_view(["POST"])
def convert_currency(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)

    serializer = CurrencyChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        exchange = invoices.change_currency(invoice, serializer.validated_data["currency"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice, **exchange_info(exchange))


@extend_schema(
    summary="Record amount paid",
    description="Sets the amount paid; status becomes pending, partial or paid to match.",
    request=AmountPaidSerializer,
    responses={200: InvoiceSerializer, 400: OpenApiResponse(description="Validation error")},
    examples=[OpenApiExample("Payment Example", value={"amount_paid": "500.00"}, request_only=True)],
)
@api_view(["POST"])
def update_amount_paid(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)

    serializer = AmountPaidSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        payments.record_amount_paid(invoice, serializer.validated_data["amount_paid"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice)


@extend_schema(
    summary="Set payment status",
    description="Manual override; accepted as-is regardless of the amount paid.",
    request=PaymentStatusSerializer,
    responses={200: InvoiceSerializer, 400: OpenApiResponse(description="Unknown status")},
)
@api_view(["POST"])
def update_payment_status(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)

    serializer = PaymentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        payments.set_payment_status(invoice, serializer.validated_data["payment_status"])
    except BillingError as exc:
        return error_response(exc)
    return invoice_response(invoice)


@extend_schema(summary="Mark as paid", request=None, responses={200: InvoiceSerializer})
@api_view(["POST"])
def mark_paid(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    payments.mark_as_paid(invoice)
    return invoice_response(invoice)


@extend_schema(
    summary="Payment QR payload",
    description="UPI pay URI when a UPI id is configured, otherwise a text block.",
    responses={200: OpenApiResponse(description="{'payload': str, 'kind': 'upi' | 'text'}")},
)
@api_view(["GET"])
def invoice_payment_payload(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    payload = payment_payload(invoice, CompanySettings.load(), invoice_totals(invoice).total)
    kind = "upi" if payload.startswith("upi://") else "text"
    return Response({"payload": payload, "kind": kind}, status=status.HTTP_200_OK)


@extend_schema(summary="Dashboard stats", responses={200: OpenApiResponse(description="Counts and amounts")})
@api_view(["GET"])
def dashboard(request):
    qs = Invoice.objects.prefetch_related("items")
    return Response(dashboard_stats(qs), status=status.HTTP_200_OK)


# --- customers --------------------------------------------------------------


@extend_schema(methods=["GET"], summary="List customers", responses={200: CustomerSerializer(many=True)})
@extend_schema(methods=["POST"], summary="Create customer", request=CustomerSerializer, responses={201: CustomerSerializer})
@api_view(["GET", "POST"])
def customers(request):
    if request.method == "GET":
        return Response(CustomerSerializer(Customer.objects.all(), many=True).data)

    serializer = CustomerSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    customer = serializer.save()
    logger.info("Created customer %s", customer.name)
    return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)


@extend_schema(methods=["PUT"], summary="Update customer", request=CustomerSerializer, responses={200: CustomerSerializer})
@extend_schema(methods=["DELETE"], summary="Delete customer", responses={204: None})
@api_view(["PUT", "DELETE"])
def customer_detail(request, pk):
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == "DELETE":
        customer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = CustomerSerializer(customer, data=request.data, partial=True)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    serializer.save()
    return Response(serializer.data)


# --- coupons ----------------------------------------------------------------


@extend_schema(methods=["GET"], summary="List coupons", responses={200: CouponSerializer(many=True)})
@extend_schema(
    methods=["POST"],
    summary="Create coupon",
    description="Codes are unique ignoring case and stored upper-case.",
    request=CouponCreateSerializer,
    responses={
        201: CouponSerializer,
        400: OpenApiResponse(description="Validation error"),
        409: OpenApiResponse(description="Duplicate code"),
    },
    examples=[
        OpenApiExample(
            "Coupon Example",
            value={"code": "SAVE20", "discount_type": "percentage", "discount_value": "20"},
            request_only=True,
        )
    ],
)
@api_view(["GET", "POST"])
def coupon_list(request):
    if request.method == "GET":
        return Response(CouponSerializer(Coupon.objects.all(), many=True).data)

    serializer = CouponCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        coupon = coupons.create_coupon(**serializer.validated_data)
    except BillingError as exc:
        return error_response(exc)
    return Response(CouponSerializer(coupon).data, status=status.HTTP_201_CREATED)


@extend_schema(summary="Toggle coupon", request=None, responses={200: CouponSerializer})
@api_view(["POST"])
def toggle_coupon(request, pk):
    coupon = get_object_or_404(Coupon, pk=pk)
    coupons.toggle_active(coupon)
    return Response(CouponSerializer(coupon).data)


@extend_schema(summary="Delete coupon", responses={204: None})
@api_view(["DELETE"])
def delete_coupon(request, pk):
    coupon = get_object_or_404(Coupon, pk=pk)
    coupons.delete_coupon(coupon)
    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    summary="Redeem coupon",
    description=(
        "Consumes one use of a coupon. In rotate mode the coupon is retired "
        "and a replacement with the same terms is returned."
    ),
    request=CouponApplySerializer,
    responses={
        200: OpenApiResponse(description="{'coupon': Coupon, 'replacement': Coupon | null}"),
        400: OpenApiResponse(description="Invalid or inactive coupon"),
    },
)
@api_view(["POST"])
def redeem_coupon(request):
    serializer = CouponApplySerializer(data=request.data)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    try:
        redemption = coupons.redeem(serializer.validated_data["code"])
    except BillingError as exc:
        return error_response(exc)

    replacement = None
    if redemption.replacement is not None:
        replacement = CouponSerializer(redemption.replacement).data
    return Response(
        {"coupon": CouponSerializer(redemption.coupon).data, "replacement": replacement},
        status=status.HTTP_200_OK,
    )


# --- settings ---------------------------------------------------------------


@extend_schema(methods=["GET"], summary="Company settings", responses={200: CompanySettingsSerializer})
@extend_schema(
    methods=["PUT"],
    summary="Update company settings",
    request=CompanySettingsSerializer,
    responses={200: CompanySettingsSerializer},
)
@api_view(["GET", "PUT"])
def company_settings(request):
    settings = CompanySettings.load()
    if request.method == "GET":
        return Response(CompanySettingsSerializer(settings).data)

    serializer = CompanySettingsSerializer(settings, data=request.data, partial=True)
    if not serializer.is_valid():
        return api_error("VALIDATION_ERROR", serializer.errors)
    serializer.save()
    logger.info("Company settings updated")
    return Response(serializer.data)
