from django.core.validators import MinValueValidator
from django.db import models

from core.models import InvoiceBase, InvoiceLineBase
from inventory.models import Batch
from masters.models import Customer, Product


class SalesInvoice(InvoiceBase):
    PAYMENT_MODE_CHOICES = (
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('upi', 'UPI'),
        ('credit', 'Credit'),
    )

    invoice_time = models.TimeField(null=True, blank=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, null=True, blank=True, related_name='sales')
    customer_name = models.CharField(max_length=200, blank=True, null=True)
    customer_phone = models.CharField(max_length=20, blank=True, null=True)
    doctor_name = models.CharField(max_length=200, blank=True, null=True)
    is_interstate = models.BooleanField(default=False)
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES, default='cash')

    class Meta(InvoiceBase.Meta):
        pass


class SalesItem(InvoiceLineBase):
    invoice = models.ForeignKey(SalesInvoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='sales_items')
    batch = models.ForeignKey(Batch, on_delete=models.PROTECT, related_name='sales_items')
    selling_rate = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    purchase_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, help_text="Batch cost at the time of sale")

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product.name} x {self.qty} ({self.batch_no})"
