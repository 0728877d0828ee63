from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db.models import Sum
from django.utils import timezone
from rest_framework import viewsets, mixins, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsStoreStaff
from inventory.models import Batch
from inventory.services import expiring_batches
from masters.models import Product
from purchase.models import PurchaseInvoice
from sales.models import SalesInvoice
from .models import Notification
from .serializers import NotificationSerializer, MarkReadSerializer


class DashboardStatsView(APIView):
    permission_classes = [IsStoreStaff]

    def get(self, request):
        today = timezone.localdate()
        month_start = today + relativedelta(day=1)

        product_count = Product.objects.filter(is_deleted=False, is_active=True).count()

        month_purchases = PurchaseInvoice.objects.filter(
            invoice_date__gte=month_start, invoice_date__lte=today, is_cancelled=False, is_deleted=False
        ).aggregate(total=Sum('grand_total'))['total'] or 0

        month_sales = SalesInvoice.objects.filter(
            invoice_date__gte=month_start, invoice_date__lte=today, is_cancelled=False, is_deleted=False
        )
        month_sales_total = month_sales.aggregate(total=Sum('grand_total'))['total'] or 0
        today_sales_total = month_sales.filter(invoice_date=today).aggregate(total=Sum('grand_total'))['total'] or 0

        low_stock_batches = Batch.objects.filter(
            available_qty__gt=0,
            available_qty__lt=settings.ERP_LOW_STOCK_BATCH_QTY,
            is_deleted=False,
        ).count()

        expiring_count = expiring_batches(settings.ERP_EXPIRY_ALERT_DAYS).count()

        recent_sales = SalesInvoice.objects.filter(is_cancelled=False, is_deleted=False).order_by('-created_at')[:5]
        recent_sales_data = [{
            "id": s.id,
            "invoice_no": s.invoice_no,
            "customer_name": s.customer_name or "Walk-in",
            "grand_total": float(s.grand_total),
            "payment_mode": s.payment_mode,
            "time": s.created_at,
        } for s in recent_sales]

        data = {
            "total_products": product_count,
            "month_purchases": float(month_purchases),
            "month_sales": float(month_sales_total),
            "today_sales": float(today_sales_total),
            "low_stock_batches": low_stock_batches,
            "expiring_batches": expiring_count,
            "recent_sales": recent_sales_data,
        }

        return Response(data)


class NotificationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin,
                          mixins.DestroyModelMixin, viewsets.GenericViewSet):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        qs = Notification.objects.filter(recipient=self.request.user, is_deleted=False).order_by('-created_at')
        if self.request.query_params.get('unread', '').lower() in ('1', 'true', 'yes'):
            qs = qs.filter(is_read=False)
        return qs

    @action(detail=False, methods=['post'])
    def mark_read(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data['ids']
        qs = self.get_queryset().filter(is_read=False)
        if ids:
            qs = qs.filter(id__in=ids)
        updated = qs.update(is_read=True)
        return Response({'status': 'ok', 'updated': updated})
