import django_filters
from .models import SalesInvoice


class SalesInvoiceFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='invoice_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='invoice_date', lookup_expr='lte')

    class Meta:
        model = SalesInvoice
        fields = ['customer', 'payment_mode', 'payment_status', 'is_cancelled']
