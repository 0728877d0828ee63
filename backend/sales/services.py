"""
Point-of-sale billing.

A sale is planned in full against locked batches before anything is
written, so a shortage on the last line leaves no partial invoice or
stock movement behind.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework import serializers

from core import gst
from core.numbering import create_numbered, next_invoice_no as next_number
from inventory.models import Batch
from inventory.services import allocate_fifo, fifo_batches, lock_batch, post_ledger, notify_stock_change
from .models import SalesInvoice, SalesItem

logger = logging.getLogger(__name__)

INVOICE_PREFIX = 'SI'


def next_invoice_no(on_date=None):
    return next_number(SalesInvoice, INVOICE_PREFIX, on_date)


def sellable_batches():
    return (
        Batch.objects
        .filter(available_qty__gt=0, is_active=True, is_deleted=False, product__isnull=False)
        .select_related('product', 'product__hsn')
        .order_by('expiry_date', 'created_at')
    )


def search_batches(query):
    """POS lookup by batch number, product code or name, or exact barcode."""
    query = (query or '').strip()
    qs = sellable_batches()
    if query:
        qs = qs.filter(
            Q(batch_no__icontains=query)
            | Q(product__code__icontains=query)
            | Q(product__name__icontains=query)
            | Q(product__barcode=query)
        )
    return qs[:settings.ERP_BATCH_SEARCH_LIMIT]


def available_batches():
    return sellable_batches()


class SalePlan:
    """Batch quantities a sale will take, worked out under row locks."""

    def __init__(self):
        self.batches = {}
        self.opening = {}
        self.lines = []

    def locked(self, batch):
        # Reuse the in-memory row so earlier lines of the same bill count
        if batch.id not in self.batches:
            self.batches[batch.id] = batch
            self.opening[batch.id] = batch.available_qty
        return self.batches[batch.id]

    def restore(self):
        for batch_id, batch in self.batches.items():
            batch.available_qty = self.opening[batch_id]

    def take(self, item, batch, qty):
        batch.available_qty -= qty
        self.lines.append((item, batch, qty))

    def add_batch_line(self, item):
        batch = self.batches.get(item['batch'].id) or self.locked(lock_batch(item['batch'].id))
        product = item.get('product')
        if product is not None and product.id != batch.product_id:
            raise serializers.ValidationError(f"Batch {batch.batch_no} does not belong to {product.name}.")
        if batch.available_qty < item['qty']:
            raise serializers.ValidationError(
                f"Insufficient stock for batch {batch.batch_no}. "
                f"Available: {batch.available_qty}, Requested: {item['qty']}"
            )
        self.take(item, batch, item['qty'])

    def add_product_line(self, item):
        product = item['product']
        candidates = [self.locked(batch) for batch in fifo_batches(product, lock=True)]
        allocation = allocate_fifo(candidates, item['qty'])
        allocated = sum(qty for _, qty in allocation)
        if allocated < item['qty']:
            available = sum(batch.available_qty for batch in candidates)
            raise serializers.ValidationError(
                f"Insufficient stock for {product.name}. Available: {available}, Requested: {item['qty']}"
            )
        for batch, qty in allocation:
            self.take(item, batch, qty)


def plan_sale(items):
    if not items:
        raise serializers.ValidationError("Add at least one item to the bill.")

    plan = SalePlan()
    for index, item in enumerate(items, start=1):
        if not item.get('qty') or item['qty'] <= 0:
            raise serializers.ValidationError(f"Item {index}: quantity must be greater than zero.")
        if item.get('batch') is not None:
            plan.add_batch_line(item)
        elif item.get('product') is not None:
            plan.add_product_line(item)
        else:
            raise serializers.ValidationError(f"Item {index}: choose a batch or a product.")
    return plan


def create_sales_invoice(header, items, user=None):
    """
    Bill a sale.

    ``items`` are dicts with ``qty`` and either a ``batch`` or just a
    ``product`` (split over batches earliest expiry first). ``selling_rate``
    defaults to the batch MRP and ``gst_percent`` to the product's rate;
    GST is charged on top of the discounted value.
    """
    header = dict(header)
    paid_amount = header.pop('paid_amount', None)
    now = timezone.localtime()
    invoice_date = header.pop('invoice_date', None) or now.date()
    invoice_time = header.pop('invoice_time', None) or now.time().replace(microsecond=0)
    interstate = bool(header.get('is_interstate'))

    customer = header.get('customer')
    if customer is not None:
        header['customer_name'] = header.get('customer_name') or customer.name
        header['customer_phone'] = header.get('customer_phone') or customer.phone

    with transaction.atomic():
        plan = plan_sale(items)

        invoice = create_numbered(
            SalesInvoice, INVOICE_PREFIX, invoice_date,
            invoice_date=invoice_date,
            invoice_time=invoice_time,
            created_by=user if user is not None and user.is_authenticated else None,
            **header,
        )

        plan.restore()
        lines = []
        for item, batch, qty in plan.lines:
            product = batch.product
            rate = item.get('selling_rate')
            if rate is None:
                rate = batch.mrp
            gst_percent = item.get('gst_percent')
            if gst_percent is None:
                gst_percent = product.effective_gst_percent

            line = gst.compute_line(
                qty, rate,
                discount_percent=item.get('discount_percent') or 0,
                gst_percent=gst_percent,
                interstate=interstate,
            )
            lines.append(line)

            row = SalesItem(
                invoice=invoice,
                product=product,
                batch=batch,
                batch_no=batch.batch_no,
                expiry_date=batch.expiry_date,
                qty=qty,
                mrp=batch.mrp,
                selling_rate=rate,
                purchase_rate=batch.purchase_rate,
                discount_percent=item.get('discount_percent') or 0,
            )
            row.apply_tax(line)
            row.save()

            batch.available_qty -= qty
            batch.save(update_fields=['available_qty', 'updated_at'])
            post_ledger(
                batch, 'sale',
                qty_out=qty,
                reference_type='sale',
                reference_id=invoice.id,
                rate=rate,
                notes=f"Sale {invoice.invoice_no}",
                user=user,
            )

        totals = gst.summarize(lines, round_off=settings.ERP_ROUND_OFF_INVOICES)
        for field, value in totals.items():
            setattr(invoice, field, value)

        if paid_amount is None:
            paid_amount = gst.ZERO if invoice.payment_mode == 'credit' else totals['grand_total']
        invoice.paid_amount = gst.money(paid_amount)
        invoice.balance_amount = max(totals['grand_total'] - invoice.paid_amount, gst.ZERO)
        invoice.payment_status = gst.payment_status(totals['grand_total'], invoice.paid_amount)
        invoice.save()

        notify_stock_change('sale', invoice.id, {batch.product_id for batch in plan.batches.values()})

    logger.info(
        "Sale %s billed: lines=%d total=%s mode=%s",
        invoice.invoice_no, len(plan.lines), invoice.grand_total, invoice.payment_mode,
    )
    return invoice


def update_payment(invoice, paid_amount):
    invoice.paid_amount = gst.money(paid_amount)
    invoice.balance_amount = max(gst.to_decimal(invoice.grand_total) - invoice.paid_amount, gst.ZERO)
    invoice.payment_status = gst.payment_status(invoice.grand_total, invoice.paid_amount)


def cancel_sales_invoice(invoice_id, user=None, reason=None):
    """Return every billed quantity to its batch and mark the invoice cancelled."""
    with transaction.atomic():
        invoice = SalesInvoice.objects.select_for_update().get(pk=invoice_id)
        if invoice.is_cancelled:
            raise serializers.ValidationError("Invoice is already cancelled.")

        items = list(invoice.items.all())
        batches = {}
        for item in items:
            batch = batches.get(item.batch_id) or lock_batch(item.batch_id)
            batches[item.batch_id] = batch
            batch.available_qty += item.qty
            batch.save(update_fields=['available_qty', 'updated_at'])
            post_ledger(
                batch, 'sale_cancel',
                qty_in=item.qty,
                reference_type='sale',
                reference_id=invoice.id,
                rate=item.selling_rate,
                notes=f"Cancelled {invoice.invoice_no}",
                user=user,
            )

        invoice.is_cancelled = True
        invoice.cancelled_at = timezone.now()
        invoice.cancelled_by = user if user is not None and user.is_authenticated else None
        invoice.cancel_reason = reason
        invoice.save()

        notify_stock_change('sale', invoice.id, {item.product_id for item in items})

    logger.info("Sale %s cancelled", invoice.invoice_no)
    return invoice
