"""
Purchase invoice posting and cancellation.

Posting receives stock: each line lands in the batch identified by
(product, batch_no), creating it on first receipt.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from core import gst
from core.numbering import create_numbered, next_invoice_no as next_number
from inventory.models import Batch
from inventory.services import lock_batch, post_ledger, notify_stock_change
from .models import PurchaseInvoice, PurchaseItem

logger = logging.getLogger(__name__)

INVOICE_PREFIX = 'PI'


def next_invoice_no(on_date=None):
    return next_number(PurchaseInvoice, INVOICE_PREFIX, on_date)


def receive_into_batch(item):
    """Locked batch for the line, created or topped up with qty + free qty."""
    product = item['product']
    received = item['qty'] + item.get('free_qty', 0)

    batch = (
        Batch.objects
        .select_for_update()
        .filter(product=product, batch_no=item['batch_no'])
        .first()
    )
    if batch is None:
        if not item.get('expiry_date'):
            raise serializers.ValidationError(f"Expiry date is required for new batch {item['batch_no']}.")
        return Batch.objects.create(
            product=product,
            batch_no=item['batch_no'],
            expiry_date=item['expiry_date'],
            mfg_date=item.get('mfg_date'),
            purchase_rate=item['purchase_rate'],
            mrp=item.get('mrp') or product.mrp,
            selling_rate=item.get('selling_rate') or item.get('mrp') or product.mrp,
            available_qty=received,
        )

    batch.available_qty += received
    batch.purchase_rate = item['purchase_rate']
    if item.get('mrp'):
        batch.mrp = item['mrp']
    if item.get('selling_rate'):
        batch.selling_rate = item['selling_rate']
    if item.get('expiry_date'):
        batch.expiry_date = item['expiry_date']
    if item.get('mfg_date'):
        batch.mfg_date = item['mfg_date']
    batch.is_active = True
    batch.is_deleted = False
    batch.save()
    return batch


def validate_items(items):
    if not items:
        raise serializers.ValidationError("Add at least one item to the invoice.")
    for index, item in enumerate(items, start=1):
        if not item.get('batch_no'):
            raise serializers.ValidationError(f"Item {index}: batch number is required.")
        if not item.get('qty') or item['qty'] <= 0:
            raise serializers.ValidationError(f"Item {index}: quantity must be greater than zero.")


def create_purchase_invoice(header, items, user=None):
    """
    Post a purchase invoice.

    ``header`` holds the invoice fields (``supplier``, ``invoice_date``,
    ``purchase_type``, ...); ``items`` are dicts with ``product``,
    ``batch_no``, ``expiry_date``, ``qty``, ``free_qty``, ``purchase_rate``,
    ``mrp`` and optional ``discount_percent`` / ``gst_percent``.
    Everything is written in one transaction.
    """
    validate_items(items)
    header = dict(header)
    paid_amount = header.pop('paid_amount', None)
    invoice_date = header.pop('invoice_date', None) or timezone.localdate()
    interstate = header.get('purchase_type') == 'out_of_state'

    with transaction.atomic():
        invoice = create_numbered(
            PurchaseInvoice, INVOICE_PREFIX, invoice_date,
            invoice_date=invoice_date,
            created_by=user if user is not None and user.is_authenticated else None,
            **header,
        )

        lines = []
        for item in items:
            product = item['product']
            gst_percent = item.get('gst_percent')
            if gst_percent is None:
                gst_percent = product.effective_gst_percent

            line = gst.compute_line(
                item['qty'], item['purchase_rate'],
                discount_percent=item.get('discount_percent') or 0,
                gst_percent=gst_percent,
                interstate=interstate,
            )
            lines.append(line)

            batch = receive_into_batch(item)
            received = item['qty'] + item.get('free_qty', 0)

            row = PurchaseItem(
                invoice=invoice,
                product=product,
                batch=batch,
                batch_no=batch.batch_no,
                expiry_date=batch.expiry_date,
                mfg_date=batch.mfg_date,
                qty=item['qty'],
                free_qty=item.get('free_qty', 0),
                total_qty=received,
                purchase_rate=item['purchase_rate'],
                mrp=batch.mrp,
                selling_rate=batch.selling_rate,
                discount_percent=item.get('discount_percent') or 0,
            )
            row.apply_tax(line)
            row.save()

            post_ledger(
                batch, 'purchase',
                qty_in=received,
                reference_type='purchase',
                reference_id=invoice.id,
                rate=item['purchase_rate'],
                notes=f"Purchase {invoice.invoice_no}",
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

        notify_stock_change('purchase', invoice.id, {item['product'].id for item in items})

    logger.info(
        "Purchase %s posted: supplier=%s items=%d total=%s",
        invoice.invoice_no, invoice.supplier.code, len(items), invoice.grand_total,
    )
    return invoice


def update_payment(invoice, paid_amount):
    invoice.paid_amount = gst.money(paid_amount)
    invoice.balance_amount = max(gst.to_decimal(invoice.grand_total) - invoice.paid_amount, gst.ZERO)
    invoice.payment_status = gst.payment_status(invoice.grand_total, invoice.paid_amount)


def cancel_purchase_invoice(invoice_id, user=None, reason=None):
    """Take the received stock back out and mark the invoice cancelled."""
    with transaction.atomic():
        invoice = PurchaseInvoice.objects.select_for_update().get(pk=invoice_id)
        if invoice.is_cancelled:
            raise serializers.ValidationError("Invoice is already cancelled.")

        items = list(invoice.items.all())
        batches = {}
        for item in items:
            batch = batches.get(item.batch_id) or lock_batch(item.batch_id)
            batches[item.batch_id] = batch
            if batch.available_qty < item.total_qty:
                raise serializers.ValidationError(
                    f"Cannot cancel: batch {batch.batch_no} has only {batch.available_qty} units left, "
                    f"{item.total_qty} were received on this invoice."
                )
            batch.available_qty -= item.total_qty
            batch.save(update_fields=['available_qty', 'updated_at'])
            post_ledger(
                batch, 'purchase_cancel',
                qty_out=item.total_qty,
                reference_type='purchase',
                reference_id=invoice.id,
                rate=item.purchase_rate,
                notes=f"Cancelled {invoice.invoice_no}",
                user=user,
            )

        invoice.is_cancelled = True
        invoice.cancelled_at = timezone.now()
        invoice.cancelled_by = user if user is not None and user.is_authenticated else None
        invoice.cancel_reason = reason
        invoice.save()

        notify_stock_change('purchase', invoice.id, {item.product_id for item in items})

    logger.info("Purchase %s cancelled", invoice.invoice_no)
    return invoice
