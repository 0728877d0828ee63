from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from core.permissions import IsStoreStaff
from core.serializers import CancelSerializer
from inventory.models import Batch
from inventory.serializers import BatchSerializer
from .filters import PurchaseInvoiceFilter
from .models import PurchaseInvoice
from .serializers import PurchaseInvoiceSerializer, PurchaseInvoiceUpdateSerializer
from . import services


class PurchaseInvoiceViewSet(viewsets.ModelViewSet):
    serializer_class = PurchaseInvoiceSerializer
    permission_classes = [IsStoreStaff]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = PurchaseInvoiceFilter
    search_fields = ['invoice_no', 'supplier_invoice_no', 'supplier__name', 'supplier__code']
    ordering_fields = ['invoice_date', 'grand_total', 'created_at']

    def get_queryset(self):
        qs = PurchaseInvoice.objects.filter(is_deleted=False).select_related('supplier', 'created_by')
        if self.action == 'retrieve':
            qs = qs.prefetch_related('items__product')
        return qs.order_by('-invoice_date', '-created_at')

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return PurchaseInvoiceUpdateSerializer
        return PurchaseInvoiceSerializer

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
        invoice = services.cancel_purchase_invoice(
            invoice.id, user=request.user, reason=serializer.validated_data.get('reason')
        )
        return Response(PurchaseInvoiceSerializer(invoice, context=self.get_serializer_context()).data)

    @action(detail=False, methods=['get'], url_path='batch-suggestions')
    def batch_suggestions(self, request):
        """Existing batches of ``?product=`` so a repeat receipt reuses the batch number."""
        product_id = request.query_params.get('product')
        if not product_id:
            raise ValidationError({"product": "This parameter is required."})
        batches = (
            Batch.objects
            .filter(product_id=product_id, is_deleted=False)
            .select_related('product', 'product__hsn')
            .order_by('expiry_date')
        )
        return Response(BatchSerializer(batches, many=True).data, status=status.HTTP_200_OK)
