from rest_framework import serializers

from inventory.models import Batch
from masters.models import Product
from .models import SalesInvoice, SalesItem
from . import services


class SalesItemInputSerializer(serializers.Serializer):
    batch = serializers.PrimaryKeyRelatedField(
        queryset=Batch.objects.filter(is_deleted=False), required=False, allow_null=True
    )
    product = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.filter(is_deleted=False), required=False, allow_null=True
    )
    qty = serializers.IntegerField(min_value=1)
    selling_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, default=0)
    gst_percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('batch') and not attrs.get('product'):
            raise serializers.ValidationError("Each item needs a batch or a product.")
        return attrs


class SalesItemSerializer(serializers.ModelSerializer):
    item_id = serializers.UUIDField(source='id', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = SalesItem
        exclude = ['is_deleted', 'purchase_rate']


class SalesInvoiceSerializer(serializers.ModelSerializer):
    sale_id = serializers.UUIDField(source='id', read_only=True)
    items = SalesItemInputSerializer(many=True, write_only=True)
    items_detail = SalesItemSerializer(source='items', many=True, read_only=True)
    invoice_date = serializers.DateField(required=False)
    invoice_time = serializers.TimeField(required=False)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = SalesInvoice
        exclude = ['is_deleted']
        read_only_fields = [
            'invoice_no', 'subtotal', 'discount_amount', 'discount_percent', 'taxable_amount',
            'cgst_amount', 'sgst_amount', 'igst_amount', 'total_gst', 'round_off', 'grand_total',
            'balance_amount', 'payment_status', 'created_by',
            'is_cancelled', 'cancelled_at', 'cancelled_by', 'cancel_reason',
            'created_at', 'updated_at',
        ]

    def create(self, validated_data):
        items = validated_data.pop('items')
        request = self.context.get('request')
        return services.create_sales_invoice(validated_data, items, user=getattr(request, 'user', None))


class SalesInvoiceUpdateSerializer(serializers.ModelSerializer):

    class Meta:
        model = SalesInvoice
        fields = ['customer_name', 'customer_phone', 'doctor_name', 'notes', 'paid_amount']

    def update(self, instance, validated_data):
        if instance.is_cancelled:
            raise serializers.ValidationError("Cancelled invoices cannot be edited.")
        paid_amount = validated_data.pop('paid_amount', None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if paid_amount is not None:
            services.update_payment(instance, paid_amount)
        instance.save()
        return instance

    def to_representation(self, instance):
        return SalesInvoiceSerializer(instance, context=self.context).data


class SaleBatchSerializer(serializers.ModelSerializer):
    """Batch row as the POS picks it: stock, prices and the product's tax rate."""
    batch_id = serializers.UUIDField(source='id', read_only=True)
    product_id = serializers.UUIDField(source='product.id', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    barcode = serializers.CharField(source='product.barcode', read_only=True)
    gst_percent = serializers.DecimalField(
        source='product.effective_gst_percent', max_digits=5, decimal_places=2, read_only=True
    )

    class Meta:
        model = Batch
        fields = [
            'id', 'batch_id', 'batch_no', 'expiry_date', 'available_qty', 'mrp', 'selling_rate',
            'product_id', 'product_code', 'product_name', 'barcode', 'gst_percent',
        ]
