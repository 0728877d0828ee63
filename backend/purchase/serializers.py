from rest_framework import serializers

from masters.models import Product
from .models import PurchaseInvoice, PurchaseItem
from . import services


class PurchaseItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_deleted=False))
    batch_no = serializers.CharField(max_length=50)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    mfg_date = serializers.DateField(required=False, allow_null=True)
    qty = serializers.IntegerField(min_value=1)
    free_qty = serializers.IntegerField(min_value=0, default=0)
    purchase_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    mrp = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    selling_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, default=0)
    gst_percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True)

    def validate_batch_no(self, value):
        return value.strip()


class PurchaseItemSerializer(serializers.ModelSerializer):
    item_id = serializers.UUIDField(source='id', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = PurchaseItem
        exclude = ['is_deleted']


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    purchase_id = serializers.UUIDField(source='id', read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    supplier_code = serializers.CharField(source='supplier.code', read_only=True)
    items = PurchaseItemInputSerializer(many=True, write_only=True)
    items_detail = PurchaseItemSerializer(source='items', many=True, read_only=True)
    invoice_date = serializers.DateField(required=False)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = PurchaseInvoice
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
        return services.create_purchase_invoice(validated_data, items, user=getattr(request, 'user', None))


class PurchaseInvoiceUpdateSerializer(serializers.ModelSerializer):
    """Posted invoices only take reference and payment corrections."""

    class Meta:
        model = PurchaseInvoice
        fields = ['supplier_invoice_no', 'supplier_invoice_date', 'notes', 'paid_amount']

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
        return PurchaseInvoiceSerializer(instance, context=self.context).data
