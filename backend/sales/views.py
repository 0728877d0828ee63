from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from core.permissions import IsStoreStaff
from core.serializers import CancelSerializer
from .filters import SalesInvoiceFilter
from .models import SalesInvoice
from .serializers import (
    SalesInvoiceSerializer, SalesInvoiceUpdateSerializer, SaleBatchSerializer,
)
from . import services


class SalesInvoiceViewSet(viewsets.ModelViewSet):
    serializer_class = SalesInvoiceSerializer
    permission_classes = [IsStoreStaff]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = SalesInvoiceFilter
    search_fields = ['invoice_no', 'customer_name', 'customer_phone']
    ordering_fields = ['invoice_date', 'grand_total', 'created_at']

    def get_queryset(self):
        qs = SalesInvoice.objects.filter(is_deleted=False).select_related('customer', 'created_by')
        if self.action == 'retrieve':
            qs = qs.prefetch_related('items__product', 'items__batch')
        return qs.order_by('-invoice_date', '-created_at')

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return SalesInvoiceUpdateSerializer
        return SalesInvoiceSerializer

    def destroy(self, request, *args, **kwargs):
        invoice = self.get_object()
        if not invoice.is_cancelled:
            raise ValidationError("Only cancelled invoices can be deleted. Cancel the invoice first.")
        return super().destroy(request, *args, **kwargs)

    @action(detail=False, methods=['get'], url_path='next-number')
    def next_number(self, request):
        return Response({"invoice_no": services.next_invoice_no()})

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        invoice = self.get_object()
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = services.cancel_sales_invoice(
            invoice.id, user=request.user, reason=serializer.validated_data.get('reason')
        )
        return Response(SalesInvoiceSerializer(invoice, context=self.get_serializer_context()).data)


class SaleBatchViewSet(viewsets.ReadOnlyModelViewSet):
    """Batches the counter can bill from."""
    serializer_class = SaleBatchSerializer
    permission_classes = [IsStoreStaff]
    pagination_class = None

    def get_queryset(self):
        return services.available_batches()

    @action(detail=False, methods=['get'])
    def search(self, request):
        batches = services.search_batches(request.query_params.get('q', ''))
        return Response(self.get_serializer(batches, many=True).data)
