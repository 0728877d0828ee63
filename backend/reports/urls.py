from django.urls import path
from .views import (
    DailySalesReportView, SalesRegisterReportView, ProductSalesReportView,
    CustomerSalesReportView, PurchaseRegisterReportView, SupplierPurchaseReportView,
    StockValuationReportView, ExpiryReportView, HsnSummaryReportView, GstSummaryReportView,
)

urlpatterns = [
    path('daily-sales/', DailySalesReportView.as_view(), name='daily-sales-report'),
    path('sales-register/', SalesRegisterReportView.as_view(), name='sales-register-report'),
    path('product-sales/', ProductSalesReportView.as_view(), name='product-sales-report'),
    path('customer-sales/', CustomerSalesReportView.as_view(), name='customer-sales-report'),
    path('purchase-register/', PurchaseRegisterReportView.as_view(), name='purchase-register-report'),
    path('supplier-purchase/', SupplierPurchaseReportView.as_view(), name='supplier-purchase-report'),
    path('stock-valuation/', StockValuationReportView.as_view(), name='stock-valuation-report'),
    path('expiry/', ExpiryReportView.as_view(), name='expiry-report'),
    path('hsn-summary/', HsnSummaryReportView.as_view(), name='hsn-summary-report'),
    path('gst-summary/', GstSummaryReportView.as_view(), name='gst-summary-report'),
]
