from django.contrib import admin
from .models import SalesInvoice, SalesItem


class SalesItemInline(admin.TabularInline):
    model = SalesItem
    extra = 0
    fields = ('product', 'batch_no', 'expiry_date', 'qty', 'selling_rate', 'gst_percent', 'total_amount')
    readonly_fields = fields
    can_delete = False


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_no', 'invoice_date', 'customer_name', 'payment_mode', 'grand_total', 'payment_status', 'is_cancelled')
    list_filter = ('payment_mode', 'payment_status', 'is_cancelled')
    search_fields = ('invoice_no', 'customer_name', 'customer_phone')
    inlines = [SalesItemInline]
