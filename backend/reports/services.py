"""
Report queries.

Every function returns plain rows (dicts) so the views can serve them as
JSON or CSV. Cancelled invoices never count.
"""
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce

from core.gst import ZERO, money
from inventory.models import Batch
from inventory.services import expiring_batches
from purchase.models import PurchaseInvoice
from sales.models import SalesInvoice, SalesItem

MONEY = DecimalField(max_digits=16, decimal_places=2)


def total(expr):
    return Coalesce(Sum(expr), Value(ZERO), output_field=MONEY)


def sales_in_range(start_date, end_date):
    return SalesInvoice.objects.filter(
        is_cancelled=False, is_deleted=False,
        invoice_date__gte=start_date, invoice_date__lte=end_date,
    )


def purchases_in_range(start_date, end_date):
    return PurchaseInvoice.objects.filter(
        is_cancelled=False, is_deleted=False,
        invoice_date__gte=start_date, invoice_date__lte=end_date,
    )


def sale_items_in_range(start_date, end_date):
    return SalesItem.objects.filter(
        invoice__is_cancelled=False, invoice__is_deleted=False,
        invoice__invoice_date__gte=start_date, invoice__invoice_date__lte=end_date,
    )


def daily_sales(start_date, end_date):
    rows = (
        sales_in_range(start_date, end_date)
        .values('invoice_date')
        .annotate(
            invoice_count=Count('id'),
            taxable_amount=total('taxable_amount'),
            total_gst=total('total_gst'),
            grand_total=total('grand_total'),
            paid_amount=total('paid_amount'),
            balance_amount=total('balance_amount'),
        )
        .order_by('invoice_date')
    )
    return list(rows)


def sales_by_payment_mode(start_date, end_date):
    rows = (
        sales_in_range(start_date, end_date)
        .values('payment_mode')
        .annotate(invoice_count=Count('id'), grand_total=total('grand_total'))
        .order_by('payment_mode')
    )
    return list(rows)


def sales_register(start_date, end_date):
    return list(
        sales_in_range(start_date, end_date)
        .order_by('invoice_date', 'invoice_no')
        .values(
            'invoice_no', 'invoice_date', 'customer_name', 'customer_phone', 'payment_mode',
            'taxable_amount', 'cgst_amount', 'sgst_amount', 'igst_amount', 'round_off',
            'grand_total', 'paid_amount', 'balance_amount', 'payment_status',
        )
    )


def product_sales(start_date, end_date):
    """Quantity, value and margin per product; cost is the batch rate captured at billing."""
    rows = (
        sale_items_in_range(start_date, end_date)
        .values('product_id', 'product__code', 'product__name')
        .annotate(
            qty=Sum('qty'),
            taxable_amount=total('taxable_amount'),
            total_gst=total(F('cgst_amount') + F('sgst_amount') + F('igst_amount')),
            total_amount=total('total_amount'),
            cost_amount=total(ExpressionWrapper(F('qty') * F('purchase_rate'), output_field=MONEY)),
        )
        .order_by('-total_amount')
    )
    return [
        {
            'product_code': row['product__code'],
            'product_name': row['product__name'],
            'qty': row['qty'],
            'taxable_amount': row['taxable_amount'],
            'total_gst': row['total_gst'],
            'total_amount': row['total_amount'],
            'cost_amount': money(row['cost_amount']),
            'profit': money(row['taxable_amount'] - row['cost_amount']),
        }
        for row in rows
    ]


def customer_sales(start_date, end_date):
    rows = (
        sales_in_range(start_date, end_date)
        .annotate(name=Coalesce('customer_name', Value('Walk-in')))
        .values('customer_id', 'name', 'customer_phone')
        .annotate(
            invoice_count=Count('id'),
            grand_total=total('grand_total'),
            paid_amount=total('paid_amount'),
            balance_amount=total('balance_amount'),
        )
        .order_by('-grand_total')
    )
    return [
        {
            'customer_name': row['name'],
            'customer_phone': row['customer_phone'],
            'invoice_count': row['invoice_count'],
            'grand_total': row['grand_total'],
            'paid_amount': row['paid_amount'],
            'balance_amount': row['balance_amount'],
        }
        for row in rows
    ]


def purchase_register(start_date, end_date):
    return list(
        purchases_in_range(start_date, end_date)
        .order_by('invoice_date', 'invoice_no')
        .values(
            'invoice_no', 'invoice_date', 'supplier__name', 'supplier_invoice_no', 'purchase_type',
            'taxable_amount', 'cgst_amount', 'sgst_amount', 'igst_amount', 'round_off',
            'grand_total', 'paid_amount', 'balance_amount', 'payment_status',
        )
    )


def supplier_purchases(start_date, end_date):
    rows = (
        purchases_in_range(start_date, end_date)
        .values('supplier_id', 'supplier__code', 'supplier__name')
        .annotate(
            invoice_count=Count('id'),
            taxable_amount=total('taxable_amount'),
            total_gst=total('total_gst'),
            grand_total=total('grand_total'),
            paid_amount=total('paid_amount'),
            balance_amount=total('balance_amount'),
        )
        .order_by('-grand_total')
    )
    return [
        {
            'supplier_code': row['supplier__code'],
            'supplier_name': row['supplier__name'],
            'invoice_count': row['invoice_count'],
            'taxable_amount': row['taxable_amount'],
            'total_gst': row['total_gst'],
            'grand_total': row['grand_total'],
            'paid_amount': row['paid_amount'],
            'balance_amount': row['balance_amount'],
        }
        for row in rows
    ]


def stock_valuation():
    batches = (
        Batch.objects
        .filter(available_qty__gt=0, is_deleted=False)
        .select_related('product')
        .order_by('product__name', 'expiry_date')
    )
    return [
        {
            'product_code': b.product.code,
            'product_name': b.product.name,
            'batch_no': b.batch_no,
            'expiry_date': b.expiry_date,
            'qty': b.available_qty,
            'purchase_rate': b.purchase_rate,
            'mrp': b.mrp,
            'cost_value': money(b.available_qty * b.purchase_rate),
            'mrp_value': money(b.available_qty * b.mrp),
        }
        for b in batches
    ]


def expiry_report(days):
    return [
        {
            'product_code': b.product.code,
            'product_name': b.product.name,
            'batch_no': b.batch_no,
            'expiry_date': b.expiry_date,
            'days_to_expiry': b.days_to_expiry,
            'status': b.expiry_status,
            'qty': b.available_qty,
            'mrp_value': money(b.available_qty * b.mrp),
        }
        for b in expiring_batches(days)
    ]


def hsn_summary(start_date, end_date):
    rows = (
        sale_items_in_range(start_date, end_date)
        .annotate(hsn_code=Coalesce('product__hsn__code', Value('N/A')))
        .values('hsn_code', 'gst_percent')
        .annotate(
            qty=Sum('qty'),
            taxable_amount=total('taxable_amount'),
            cgst_amount=total('cgst_amount'),
            sgst_amount=total('sgst_amount'),
            igst_amount=total('igst_amount'),
            total_amount=total('total_amount'),
        )
        .order_by('hsn_code', 'gst_percent')
    )
    return list(rows)


def gst_summary(start_date, end_date):
    """Output tax on sales against input tax on purchases."""
    fields = dict(
        taxable_amount=total('taxable_amount'),
        cgst_amount=total('cgst_amount'),
        sgst_amount=total('sgst_amount'),
        igst_amount=total('igst_amount'),
        total_gst=total('total_gst'),
    )
    output_tax = sales_in_range(start_date, end_date).aggregate(**fields)
    input_tax = purchases_in_range(start_date, end_date).aggregate(**fields)

    rows = []
    for label, values in (('Output (Sales)', output_tax), ('Input (Purchases)', input_tax)):
        rows.append({'type': label, **values})
    rows.append({
        'type': 'Net Payable',
        **{key: money(output_tax[key] - input_tax[key]) for key in fields},
    })
    return rows


def column_totals(rows, keys):
    return {key: money(sum((Decimal(str(row[key] or 0)) for row in rows), ZERO)) for key in keys}
