from rest_framework import serializers

from .models import Order, OrderStatus
from .repository import ORDERING_FIELDS, PageParams


class OrderSerializer(serializers.ModelSerializer):
    """Public projection of an order."""
    tenant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "description",
            "status",
            "destination_address",
            "weight",
            "latitude",
            "longitude",
            "tracking_notes",
            "tenant_id",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.ModelSerializer):
    # status is accepted and dropped: every new order starts PENDING
    status = serializers.CharField(required=False, write_only=True)
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)

    class Meta:
        model = Order
        fields = [
            "order_number",
            "description",
            "destination_address",
            "weight",
            "latitude",
            "longitude",
            "tracking_notes",
            "status",
        ]
        extra_kwargs = {
            "order_number": {"allow_blank": False},
        }

    def validate_order_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Order number is required.")
        return value

    def validate(self, attrs):
        attrs.pop("status", None)
        return attrs


class OrderStatusUpdateSerializer(serializers.Serializer):
    # exact, case-sensitive match against the status names
    new_status = serializers.ChoiceField(choices=OrderStatus.values)


class PageParamsSerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    size = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)
    ordering = serializers.ChoiceField(
        required=False,
        default="-created_at",
        choices=[f for name in ORDERING_FIELDS for f in (name, f"-{name}")],
    )

    def to_page_params(self):
        return PageParams(**self.validated_data)


class StatusSummarySerializer(serializers.Serializer):
    tenant_id = serializers.UUIDField()
    orders_by_status = serializers.DictField(child=serializers.IntegerField())
