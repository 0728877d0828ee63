from django.core.validators import MinValueValidator
from django.db import models

from core.models import InvoiceBase, InvoiceLineBase
from inventory.models import Batch
from masters.models import Supplier, Product


class PurchaseInvoice(InvoiceBase):
    PURCHASE_TYPE_CHOICES = (
        ('in_state', 'In State (CGST + SGST)'),
        ('out_of_state', 'Out of State (IGST)'),
    )
    PAYMENT_MODE_CHOICES = (
        ('cash', 'Cash'),
        ('credit', 'Credit'),
        ('bank', 'Bank Transfer'),
        ('upi', 'UPI'),
        ('cheque', 'Cheque'),
    )

    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchases')
    supplier_invoice_no = models.CharField(max_length=50, blank=True, null=True)
    supplier_invoice_date = models.DateField(null=True, blank=True)
    purchase_type = models.CharField(max_length=20, choices=PURCHASE_TYPE_CHOICES, default='in_state')
    payment_mode = models.CharField(max_length=20, choices=PAYMENT_MODE_CHOICES, default='cash')

    class Meta(InvoiceBase.Meta):
        pass

    @property
    def is_interstate(self):
        return self.purchase_type == 'out_of_state'


class PurchaseItem(InvoiceLineBase):
    invoice = models.ForeignKey(PurchaseInvoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='purchase_items')
    batch = models.ForeignKey(Batch, on_delete=models.PROTECT, related_name='purchase_items')
    mfg_date = models.DateField(null=True, blank=True)

    free_qty = models.PositiveIntegerField(default=0)
    total_qty = models.PositiveIntegerField(default=0, help_text="qty + free_qty received into stock")
    purchase_rate = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    selling_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product.name} x {self.qty} ({self.batch_no})"
