import django_filters
from .models import StockLedger


class StockLedgerFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = StockLedger
        fields = ['product', 'batch', 'transaction_type', 'reference_type', 'reference_id']
