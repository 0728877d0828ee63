from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BatchViewSet, StockLedgerViewSet, StockAdjustmentViewSet

router = DefaultRouter()
router.register(r'batches', BatchViewSet, basename='batches')
router.register(r'ledger', StockLedgerViewSet, basename='ledger')
router.register(r'adjustments', StockAdjustmentViewSet, basename='adjustments')

urlpatterns = [
    path('', include(router.urls)),
]
