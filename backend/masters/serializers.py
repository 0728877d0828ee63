from rest_framework import serializers
from .models import (
    Category, Company, HsnCode, DrugSchedule, DrugFormula, ProductType,
    Supplier, Customer, Product,
)


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class HsnCodeSerializer(serializers.ModelSerializer):
    class Meta:
        model = HsnCode
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class DrugScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = DrugSchedule
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class DrugFormulaSerializer(serializers.ModelSerializer):
    class Meta:
        model = DrugFormula
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class ProductTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductType
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']


class SupplierSerializer(serializers.ModelSerializer):
    supplier_id = serializers.UUIDField(source='id', read_only=True)

    class Meta:
        model = Supplier
        exclude = ['is_deleted']
        read_only_fields = ['supplier_id', 'created_at', 'updated_at']


class CustomerSerializer(serializers.ModelSerializer):
    customer_id = serializers.UUIDField(source='id', read_only=True)

    class Meta:
        model = Customer
        exclude = ['is_deleted']
        read_only_fields = ['customer_id', 'created_at', 'updated_at']


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)
    product_type_name = serializers.CharField(source='product_type.name', read_only=True, default=None)
    hsn_code = serializers.CharField(source='hsn.code', read_only=True, default=None)
    hsn_gst_percent = serializers.DecimalField(source='hsn.gst_percent', max_digits=5, decimal_places=2, read_only=True, default=None)
    schedule_code = serializers.CharField(source='schedule.code', read_only=True, default=None)
    formula_name = serializers.CharField(source='formula.name', read_only=True, default=None)
    effective_gst_percent = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        exclude = ['is_deleted']
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        mrp = attrs.get('mrp', getattr(self.instance, 'mrp', 0))
        selling_rate = attrs.get('selling_rate', getattr(self.instance, 'selling_rate', 0))
        if mrp and selling_rate and selling_rate > mrp:
            raise serializers.ValidationError({"selling_rate": "Selling rate cannot exceed MRP."})
        return attrs


class ProductLookupSerializer(serializers.ModelSerializer):
    """Compact product row for POS and purchase-entry search boxes."""
    effective_gst_percent = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'code', 'name', 'barcode', 'unit', 'pack_size', 'mrp',
                  'purchase_rate', 'selling_rate', 'effective_gst_percent', 'hsn']
