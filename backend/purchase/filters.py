import django_filters
from .models import PurchaseInvoice


class PurchaseInvoiceFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='invoice_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='invoice_date', lookup_expr='lte')

    class Meta:
        model = PurchaseInvoice
        fields = ['supplier', 'purchase_type', 'payment_status', 'is_cancelled']
