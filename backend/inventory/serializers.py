from rest_framework import serializers
from .models import Batch, StockLedger


class BatchSerializer(serializers.ModelSerializer):
    batch_id = serializers.UUIDField(source='id', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    gst_percent = serializers.DecimalField(
        source='product.effective_gst_percent', max_digits=5, decimal_places=2, read_only=True
    )

    class Meta:
        model = Batch
        exclude = ['is_deleted']
        read_only_fields = ['batch_id', 'available_qty', 'reserved_qty', 'created_at', 'updated_at']


class ExpiryAlertSerializer(BatchSerializer):
    days_to_expiry = serializers.IntegerField(read_only=True)
    expiry_status = serializers.CharField(read_only=True)


class LowStockSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(source='id')
    code = serializers.CharField()
    name = serializers.CharField()
    reorder_level = serializers.IntegerField()
    current_stock = serializers.IntegerField()
    shortage = serializers.IntegerField()


class StockLedgerSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    batch_no = serializers.CharField(source='batch.batch_no', read_only=True)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = StockLedger
        exclude = ['is_deleted']


class StockAdjustmentSerializer(serializers.Serializer):
    """Input for a manual correction; the response is the ledger row written."""
    batch = serializers.UUIDField()
    adjustment_qty = serializers.IntegerField()
    reason = serializers.CharField(max_length=100)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_adjustment_qty(self, value):
        if value == 0:
            raise serializers.ValidationError("Adjustment quantity cannot be zero.")
        return value
