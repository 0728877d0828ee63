from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    CategoryViewSet, CompanyViewSet, HsnCodeViewSet, DrugScheduleViewSet,
    DrugFormulaViewSet, ProductTypeViewSet, SupplierViewSet, CustomerViewSet,
    ProductViewSet,
)

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='products')
router.register(r'categories', CategoryViewSet, basename='categories')
router.register(r'companies', CompanyViewSet, basename='companies')
router.register(r'hsn-codes', HsnCodeViewSet, basename='hsn-codes')
router.register(r'drug-schedules', DrugScheduleViewSet, basename='drug-schedules')
router.register(r'drug-formulas', DrugFormulaViewSet, basename='drug-formulas')
router.register(r'product-types', ProductTypeViewSet, basename='product-types')
router.register(r'suppliers', SupplierViewSet, basename='suppliers')
router.register(r'customers', CustomerViewSet, basename='customers')

urlpatterns = [
    path('', include(router.urls)),
]
