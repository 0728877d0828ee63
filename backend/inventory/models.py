from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from core.models import BaseModel
from masters.models import Product


class Batch(BaseModel):
    """A manufacturer lot of one product; stock is always held per batch."""
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='batches')
    batch_no = models.CharField(max_length=50)
    expiry_date = models.DateField()
    mfg_date = models.DateField(null=True, blank=True)

    purchase_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    mrp = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    selling_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])

    available_qty = models.PositiveIntegerField(default=0)
    reserved_qty = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name_plural = 'Batches'
        ordering = ['expiry_date', 'created_at']
        constraints = [
            models.UniqueConstraint(fields=['product', 'batch_no'], name='unique_product_batch_no'),
        ]

    def __str__(self):
        return f"{self.product.name} ({self.batch_no})"


class StockLedger(BaseModel):
    TRANSACTION_TYPES = (
        ('purchase', 'Purchase'),
        ('sale', 'Sale'),
        ('adjustment_in', 'Adjustment In'),
        ('adjustment_out', 'Adjustment Out'),
        ('purchase_cancel', 'Purchase Cancelled'),
        ('sale_cancel', 'Sale Cancelled'),
    )
    REFERENCE_TYPES = (
        ('purchase', 'Purchase Invoice'),
        ('sale', 'Sales Invoice'),
        ('adjustment', 'Stock Adjustment'),
    )

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='ledger_entries')
    batch = models.ForeignKey(Batch, on_delete=models.PROTECT, related_name='ledger_entries')
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPES)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPES, null=True, blank=True)
    reference_id = models.UUIDField(null=True, blank=True)

    qty_in = models.PositiveIntegerField(default=0)
    qty_out = models.PositiveIntegerField(default=0)
    balance_qty = models.IntegerField(default=0, help_text="Batch quantity after this movement")
    rate = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['reference_type', 'reference_id']),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.batch.batch_no} +{self.qty_in}/-{self.qty_out}"
