from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import SalesInvoiceViewSet, SaleBatchViewSet

router = DefaultRouter()
router.register(r'invoices', SalesInvoiceViewSet, basename='sales-invoices')
router.register(r'batches', SaleBatchViewSet, basename='sale-batches')

urlpatterns = [
    path('', include(router.urls)),
]
