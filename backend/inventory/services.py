"""
Stock movements.

Every change to ``Batch.available_qty`` goes through this module (or the
invoice services built on it) so that a ledger row is written in the same
transaction as the quantity change.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, IntegerField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound

from masters.models import Product
from pharma_erp.sio import emit_stock_update
from .models import Batch, StockLedger

logger = logging.getLogger(__name__)

ADJUSTMENT_REASONS = [
    'Physical Count Correction',
    'Damaged/Broken',
    'Expired - Disposed',
    'Theft/Pilferage',
    'Return to Supplier',
    'Free Sample',
    'Opening Stock',
    'Other',
]

EXPIRED = 'expired'
CRITICAL = 'critical'
WARNING = 'warning'


def allocate_fifo(batches, required_qty):
    """
    Split ``required_qty`` across ``batches`` in the order given.

    Returns ``[(batch, qty), ...]``. Empty batches are skipped. When the
    batches cannot cover the request the allocation is short; callers
    compare the allocated total with what they asked for.
    """
    allocations = []
    remaining = required_qty

    for batch in batches:
        if remaining <= 0:
            break
        alloc_qty = min(batch.available_qty, remaining)
        if alloc_qty > 0:
            allocations.append((batch, alloc_qty))
            remaining -= alloc_qty

    return allocations


def fifo_batches(product, lock=False):
    """Batches of ``product`` with stock, nearest expiry first."""
    qs = (
        Batch.objects
        .filter(product=product, available_qty__gt=0, is_active=True, is_deleted=False)
        .select_related('product')
        .order_by('expiry_date', 'created_at')
    )
    if lock:
        qs = qs.select_for_update()
    return qs


def lock_batch(batch_id):
    try:
        return Batch.objects.select_for_update().select_related('product').get(pk=batch_id)
    except Batch.DoesNotExist:
        raise NotFound(f"Batch {batch_id} not found.")


def post_ledger(batch, transaction_type, qty_in=0, qty_out=0, reference_type=None,
                reference_id=None, rate=0, notes=None, user=None):
    """Record a movement. ``batch.available_qty`` must already hold the new balance."""
    return StockLedger.objects.create(
        product_id=batch.product_id,
        batch=batch,
        transaction_type=transaction_type,
        reference_type=reference_type,
        reference_id=reference_id,
        qty_in=qty_in,
        qty_out=qty_out,
        balance_qty=batch.available_qty,
        rate=rate or 0,
        notes=notes,
        created_by=user if user is not None and user.is_authenticated else None,
    )


def notify_stock_change(reference_type, reference_id, product_ids):
    product_ids = list(product_ids)
    transaction.on_commit(lambda: emit_stock_update(reference_type, reference_id, product_ids))


def stock_summary():
    """Stock position per product: quantity, MRP value and batch count."""
    rows = (
        Batch.objects
        .filter(available_qty__gt=0, is_deleted=False)
        .values('product_id', 'product__code', 'product__name')
        .annotate(
            total_qty=Sum('available_qty'),
            total_value=Sum(ExpressionWrapper(
                F('available_qty') * F('mrp'),
                output_field=DecimalField(max_digits=16, decimal_places=2),
            )),
            batch_count=Count('id'),
        )
        .order_by('product__name')
    )
    return [
        {
            'product_id': row['product_id'],
            'product_code': row['product__code'],
            'product_name': row['product__name'],
            'total_qty': row['total_qty'],
            'total_value': row['total_value'],
            'batch_count': row['batch_count'],
        }
        for row in rows
    ]


def product_stock(product_id):
    return (
        Batch.objects
        .filter(product_id=product_id, available_qty__gt=0, is_deleted=False)
        .aggregate(total=Coalesce(Sum('available_qty'), Value(0)))['total']
    )


def low_stock_products():
    """Active products with a reorder level whose total stock is below it."""
    return (
        Product.objects
        .filter(is_active=True, is_deleted=False, reorder_level__gt=0)
        .annotate(
            current_stock=Coalesce(
                Sum('batches__available_qty', filter=Q(batches__available_qty__gt=0)),
                Value(0),
                output_field=IntegerField(),
            ),
        )
        .filter(current_stock__lt=F('reorder_level'))
        .annotate(shortage=F('reorder_level') - F('current_stock'))
        .order_by('-shortage', 'name')
    )


def expiry_status(days_to_expiry):
    if days_to_expiry < 0:
        return EXPIRED
    if days_to_expiry <= settings.ERP_EXPIRY_CRITICAL_DAYS:
        return CRITICAL
    return WARNING


def expiring_batches(days=None, today=None):
    """Batches with stock expiring within ``days`` (already expired included)."""
    if days is None:
        days = settings.ERP_EXPIRY_ALERT_DAYS
    today = today or timezone.localdate()
    threshold = today + timedelta(days=days)

    batches = (
        Batch.objects
        .filter(available_qty__gt=0, is_deleted=False, expiry_date__lte=threshold)
        .select_related('product')
        .order_by('expiry_date')
    )
    for batch in batches:
        batch.days_to_expiry = (batch.expiry_date - today).days
        batch.expiry_status = expiry_status(batch.days_to_expiry)
    return batches


def create_stock_adjustment(batch_id, adjustment_qty, reason, notes=None, user=None):
    """Apply a signed quantity correction to one batch and ledger it."""
    if not adjustment_qty:
        raise serializers.ValidationError("Adjustment quantity cannot be zero.")
    if not reason:
        raise serializers.ValidationError("A reason is required for stock adjustments.")

    with transaction.atomic():
        batch = lock_batch(batch_id)

        new_qty = batch.available_qty + adjustment_qty
        if new_qty < 0:
            raise serializers.ValidationError("Adjustment would result in negative stock")

        batch.available_qty = new_qty
        batch.save(update_fields=['available_qty', 'updated_at'])

        entry = post_ledger(
            batch,
            'adjustment_in' if adjustment_qty > 0 else 'adjustment_out',
            qty_in=adjustment_qty if adjustment_qty > 0 else 0,
            qty_out=abs(adjustment_qty) if adjustment_qty < 0 else 0,
            reference_type='adjustment',
            rate=batch.purchase_rate,
            notes=f"{reason}: {notes}" if notes else reason,
            user=user,
        )
        notify_stock_change('adjustment', entry.id, [batch.product_id])

    logger.info(
        "Stock adjusted: batch %s (%s) by %+d -> %d [%s]",
        batch.batch_no, batch.product.code, adjustment_qty, new_qty, reason,
    )
    return entry
