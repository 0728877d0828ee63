from django.contrib import admin
from .models import PurchaseInvoice, PurchaseItem


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    fields = ('product', 'batch_no', 'expiry_date', 'qty', 'free_qty', 'purchase_rate', 'mrp', 'gst_percent', 'total_amount')
    readonly_fields = fields
    can_delete = False


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_no', 'invoice_date', 'supplier', 'purchase_type', 'grand_total', 'payment_status', 'is_cancelled')
    list_filter = ('purchase_type', 'payment_status', 'is_cancelled')
    search_fields = ('invoice_no', 'supplier_invoice_no', 'supplier__name')
    inlines = [PurchaseItemInline]
