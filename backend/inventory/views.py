from collections import Counter

from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from core.permissions import IsStoreStaff
from masters.models import Product
from .filters import StockLedgerFilter
from .models import Batch, StockLedger
from .serializers import (
    BatchSerializer, ExpiryAlertSerializer, LowStockSerializer,
    StockLedgerSerializer, StockAdjustmentSerializer,
)
from . import services


class BatchViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = BatchSerializer
    permission_classes = [IsStoreStaff]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['batch_no', 'product__name', 'product__code']
    ordering_fields = ['expiry_date', 'available_qty', 'created_at']

    def get_queryset(self):
        qs = Batch.objects.filter(is_deleted=False).select_related('product', 'product__hsn')
        product_id = self.request.query_params.get('product')
        if product_id:
            qs = qs.filter(product_id=product_id)
        include_empty = self.request.query_params.get('include_empty', '').lower() in ('1', 'true', 'yes')
        if not include_empty:
            qs = qs.filter(available_qty__gt=0)
        return qs.order_by('expiry_date', 'created_at')

    @action(detail=False, methods=['get'])
    def summary(self, request):
        return Response(services.stock_summary())

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        return Response(LowStockSerializer(services.low_stock_products(), many=True).data)

    @action(detail=False, methods=['get'])
    def expiring(self, request):
        """
        Batches with stock expiring within ``days`` (default 90).
        Already expired batches are listed first with a negative ``days_to_expiry``.
        """
        try:
            days = int(request.query_params.get('days', settings.ERP_EXPIRY_ALERT_DAYS))
        except ValueError:
            raise ValidationError({"days": "Must be a whole number."})

        batches = list(services.expiring_batches(days))
        counts = Counter(b.expiry_status for b in batches)
        return Response({
            "days": days,
            "counts": {
                services.EXPIRED: counts.get(services.EXPIRED, 0),
                services.CRITICAL: counts.get(services.CRITICAL, 0),
                services.WARNING: counts.get(services.WARNING, 0),
            },
            "results": ExpiryAlertSerializer(batches, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def fifo(self, request):
        """FIFO order of sellable batches for ``?product=<id>``, optionally allocating ``qty``."""
        product_id = request.query_params.get('product')
        if not product_id:
            raise ValidationError({"product": "This parameter is required."})
        product = Product.objects.filter(pk=product_id, is_deleted=False).first()
        if not product:
            raise ValidationError({"product": "Unknown product."})

        batches = list(services.fifo_batches(product))
        data = {"results": BatchSerializer(batches, many=True).data}

        qty = request.query_params.get('qty')
        if qty:
            try:
                required = int(qty)
            except ValueError:
                raise ValidationError({"qty": "Must be a whole number."})
            allocation = services.allocate_fifo(batches, required)
            allocated = sum(q for _, q in allocation)
            data["allocation"] = [
                {"batch_id": batch.id, "batch_no": batch.batch_no, "qty": q} for batch, q in allocation
            ]
            data["allocated_qty"] = allocated
            data["shortfall"] = max(required - allocated, 0)
        return Response(data)


class StockLedgerViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockLedgerSerializer
    permission_classes = [IsStoreStaff]
    filterset_class = StockLedgerFilter
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    ordering_fields = ['created_at']
    pagination_class = None

    def get_queryset(self):
        return (
            StockLedger.objects
            .filter(is_deleted=False)
            .select_related('product', 'batch', 'created_by')
            .order_by('-created_at')
        )

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if self.action == 'list':
            queryset = queryset[:settings.ERP_STOCK_LEDGER_LIMIT]
        return queryset


class StockAdjustmentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Manual stock corrections; listed from the ledger."""
    permission_classes = [IsStoreStaff]
    serializer_class = StockLedgerSerializer

    def get_queryset(self):
        return (
            StockLedger.objects
            .filter(reference_type='adjustment', is_deleted=False)
            .select_related('product', 'batch', 'created_by')
            .order_by('-created_at')
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return StockAdjustmentSerializer
        return StockLedgerSerializer

    def create(self, request, *args, **kwargs):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        entry = services.create_stock_adjustment(
            batch_id=data['batch'],
            adjustment_qty=data['adjustment_qty'],
            reason=data['reason'],
            notes=data.get('notes'),
            user=request.user,
        )
        return Response(StockLedgerSerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def reasons(self, request):
        return Response(services.ADJUSTMENT_REASONS)
