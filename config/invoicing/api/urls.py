from django.urls import path
from .views import (
    add_item,
    company_settings,
    convert_currency,
    coupon_list,
    create_invoice,
    customer_detail,
    customers,
    dashboard,
    delete_coupon,
    draft_apply_coupon,
    draft_convert_currency,
    draft_totals,
    invoice_coupon,
    invoice_detail,
    invoice_payment_payload,
    list_invoices,
    mark_paid,
    new_draft,
    redeem_coupon,
    toggle_coupon,
    update_amount_paid,
    update_payment_status,
)

urlpatterns = [
    path("api/invoices", create_invoice, name="create invoice"),
    path("api/invoices/list/", list_invoices, name="list_invoices"),
    path("api/invoices/draft/", new_draft, name="new draft"),
    path("api/invoices/draft/totals/", draft_totals, name="draft totals"),
    path("api/invoices/draft/coupon/", draft_apply_coupon, name="draft coupon"),
    path("api/invoices/draft/currency/", draft_convert_currency, name="draft currency"),
    path("api/invoices/<uuid:pk>/", invoice_detail, name="invoice detail"),
    path("api/invoices/<uuid:pk>/items/", add_item, name="add item"),
    path("api/invoices/<uuid:pk>/coupon/", invoice_coupon, name="invoice coupon"),
    path("api/invoices/<uuid:pk>/currency/", convert_currency, name="invoice currency"),
    path("api/invoices/<uuid:pk>/amount-paid/", update_amount_paid, name="amount paid"),
    path("api/invoices/<uuid:pk>/status/", update_payment_status, name="payment status"),
    path("api/invoices/<uuid:pk>/mark-paid/", mark_paid, name="mark paid"),
    path(
        "api/invoices/<uuid:pk>/payment-payload/",
        invoice_payment_payload,
        name="payment payload",
    ),
    path("api/dashboard/", dashboard, name="dashboard"),
    path("api/customers/", customers, name="customers"),
    path("api/customers/<uuid:pk>/", customer_detail, name="customer detail"),
    path("api/coupons/", coupon_list, name="coupons"),
    path("api/coupons/redeem/", redeem_coupon, name="redeem coupon"),
    path("api/coupons/<uuid:pk>/", delete_coupon, name="delete coupon"),
    path("api/coupons/<uuid:pk>/toggle/", toggle_coupon, name="toggle coupon"),
    path("api/settings/", company_settings, name="company settings"),
]
