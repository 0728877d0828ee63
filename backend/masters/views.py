from django.conf import settings
from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from core.numbering import next_code
from core.permissions import IsStoreStaff
from .models import (
    Category, Company, HsnCode, DrugSchedule, DrugFormula, ProductType,
    Supplier, Customer, Product,
)
from .serializers import (
    CategorySerializer, CompanySerializer, HsnCodeSerializer, DrugScheduleSerializer,
    DrugFormulaSerializer, ProductTypeSerializer, SupplierSerializer, CustomerSerializer,
    ProductSerializer, ProductLookupSerializer,
)


def truthy(value):
    return str(value).lower() in ('1', 'true', 'yes')


class MasterViewSet(viewsets.ModelViewSet):
    """
    Shared behaviour of every master list:
    hidden rows are left out unless ``?include_hidden=true``,
    ``dropdown`` returns active visible rows and ``next_code`` proposes a code.
    """
    permission_classes = [IsStoreStaff]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['code', 'name']
    order_by = 'name'
    code_prefix = ''
    code_width = 3

    def get_base_queryset(self):
        return self.queryset.model.objects.all()

    def get_queryset(self):
        qs = self.get_base_queryset().filter(is_deleted=False)
        if self.action == 'list' and not truthy(self.request.query_params.get('include_hidden', '')):
            qs = qs.filter(is_hidden=False)
        return qs.order_by(self.order_by)

    @action(detail=False, methods=['get'])
    def dropdown(self, request):
        qs = self.get_base_queryset().filter(is_deleted=False, is_hidden=False, is_active=True).order_by(self.order_by)
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=False, methods=['get'], url_path='next-code')
    def next_code(self, request):
        return Response({"code": next_code(self.queryset.model, self.code_prefix, self.code_width)})


class CategoryViewSet(MasterViewSet):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    code_prefix = 'CAT'


class CompanyViewSet(MasterViewSet):
    queryset = Company.objects.all()
    serializer_class = CompanySerializer
    search_fields = ['code', 'name', 'gst_no']
    code_prefix = 'COM'


class HsnCodeViewSet(MasterViewSet):
    queryset = HsnCode.objects.all()
    serializer_class = HsnCodeSerializer
    search_fields = ['code', 'description']
    order_by = 'code'
    code_width = 4


class DrugScheduleViewSet(MasterViewSet):
    queryset = DrugSchedule.objects.all()
    serializer_class = DrugScheduleSerializer
    order_by = 'code'
    code_prefix = 'SCH'


class DrugFormulaViewSet(MasterViewSet):
    queryset = DrugFormula.objects.all()
    serializer_class = DrugFormulaSerializer
    code_prefix = 'FRM'


class ProductTypeViewSet(MasterViewSet):
    queryset = ProductType.objects.all()
    serializer_class = ProductTypeSerializer
    code_prefix = 'TYP'


class SupplierViewSet(MasterViewSet):
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer
    search_fields = ['code', 'name', 'phone', 'gst_no', 'drug_license_no']
    code_prefix = 'SUP'
    code_width = 5


class CustomerViewSet(MasterViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    search_fields = ['code', 'name', 'phone']
    code_prefix = 'CUS'
    code_width = 5

    @action(detail=False, methods=['get'])
    def search(self, request):
        query = request.query_params.get('q', '').strip()
        qs = self.get_base_queryset().filter(is_deleted=False, is_active=True, is_hidden=False)
        if query:
            qs = qs.filter(Q(name__icontains=query) | Q(phone__icontains=query))
        qs = qs.order_by('name')[:settings.ERP_MASTER_SEARCH_LIMIT]
        return Response(self.get_serializer(qs, many=True).data)


class ProductViewSet(MasterViewSet):
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    search_fields = ['code', 'name', 'barcode']
    filterset_fields = ['category', 'company', 'product_type', 'hsn', 'schedule', 'formula', 'is_active']
    code_prefix = 'PRD'
    code_width = 5

    def get_base_queryset(self):
        return Product.objects.select_related(
            'category', 'company', 'product_type', 'hsn', 'schedule', 'formula'
        )

    @action(detail=False, methods=['get'])
    def search(self, request):
        """
        Search box lookup: active, visible products whose name, code or
        barcode contains ``q``.
        """
        query = request.query_params.get('q', '').strip()
        qs = self.get_base_queryset().filter(is_deleted=False, is_active=True, is_hidden=False)
        if query:
            qs = qs.filter(
                Q(name__icontains=query) | Q(code__icontains=query) | Q(barcode__icontains=query)
            )
        qs = qs.order_by('name')[:settings.ERP_MASTER_SEARCH_LIMIT]
        return Response(ProductLookupSerializer(qs, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'barcode/(?P<barcode>[^/]+)')
    def barcode(self, request, barcode=None):
        product = (
            self.get_base_queryset()
            .filter(barcode=barcode, is_active=True, is_deleted=False)
            .order_by('name')
            .first()
        )
        if not product:
            raise NotFound("No active product with this barcode.")
        return Response(self.get_serializer(product).data)
