from django.contrib import admin
from .models import Batch, StockLedger


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = ('product', 'batch_no', 'expiry_date', 'available_qty', 'mrp', 'purchase_rate')
    search_fields = ('batch_no', 'product__name', 'product__code')
    list_filter = ('expiry_date',)


@admin.register(StockLedger)
class StockLedgerAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'product', 'batch', 'transaction_type', 'qty_in', 'qty_out', 'balance_qty')
    list_filter = ('transaction_type', 'reference_type')
    search_fields = ('batch__batch_no', 'product__name')
