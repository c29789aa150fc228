from rest_framework import serializers
from .models import (
    Order, OrderItem, OrderLog, OrderNotification, OrderStatus, OwnerNotification, Table, TableSession
)
from .services import MAX_QUANTITY, OrderLine, PlaceOrderCommand, get_order_assembler


class TableSerializer(serializers.ModelSerializer):
    class Meta:
        model = Table
        fields = ['id', 'table_number', 'capacity', 'qr_code', 'is_available', 'label']
        read_only_fields = ['id', 'label']


class TableSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = TableSession
        fields = ['id', 'session_start', 'session_end', 'is_active']


class AdminTableSerializer(TableSerializer):
    """Table with its open session, for the admin console"""
    active_session = serializers.SerializerMethodField()

    class Meta(TableSerializer.Meta):
        fields = TableSerializer.Meta.fields + ['date_added', 'active_session']
        read_only_fields = TableSerializer.Meta.read_only_fields + ['date_added']
        extra_kwargs = {'capacity': {'min_value': 1}}

    def get_active_session(self, obj):
        session = next((s for s in obj.sessions.all() if s.is_active), None)
        return TableSessionSerializer(session).data if session else None


class OrderLineSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(default=1, min_value=1, max_value=MAX_QUANTITY)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class OrderCreateSerializer(serializers.Serializer):
    """Translate a cart payload into a PlaceOrderCommand and hand it to the assembler"""
    table_id = serializers.UUIDField()
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    items = OrderLineSerializer(many=True)

    def to_command(self):
        data = self.validated_data
        return PlaceOrderCommand(
            table_id=data['table_id'],
            customer_name=data.get('customer_name', ''),
            lines=tuple(
                OrderLine(
                    menu_item_id=line['menu_item_id'],
                    quantity=line['quantity'],
                    special_instructions=line.get('special_instructions', ''),
                )
                for line in data['items']
            ),
        )

    def create(self, validated_data):
        return get_order_assembler().create_order(self.to_command())


class OrderItemReadSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.UUIDField(source='menu_item.id', read_only=True)
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    foodcourt_id = serializers.UUIDField(read_only=True)
    foodcourt_name = serializers.CharField(source='foodcourt.name', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item_id', 'menu_item_name', 'foodcourt_id', 'foodcourt_name',
            'quantity', 'unit_price', 'subtotal', 'special_instructions', 'status',
            'created_at', 'updated_at'
        ]


class OrderLogSerializer(serializers.ModelSerializer):
    updated_by_name = serializers.CharField(source='updated_by.email', read_only=True)

    class Meta:
        model = OrderLog
        fields = ['id', 'order_item', 'previous_status', 'new_status', 'updated_by', 'updated_by_name', 'created_at']


class OrderReadSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()
    table_details = TableSerializer(source='table', read_only=True)
    table_session = TableSessionSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer_name', 'table_details', 'table_session', 'total_amount',
            'status', 'items', 'created_at', 'updated_at'
        ]

    def get_items(self, obj):
        """Items, optionally narrowed to the foodcourt given in context"""
        items = obj.items.all()
        foodcourt = self.context.get('foodcourt')
        if foodcourt is not None:
            items = [item for item in items if item.foodcourt_id == foodcourt.pk]
        return OrderItemReadSerializer(items, many=True).data


class OrderDetailSerializer(OrderReadSerializer):
    logs = OrderLogSerializer(many=True, read_only=True)

    class Meta(OrderReadSerializer.Meta):
        fields = OrderReadSerializer.Meta.fields + ['logs']


class ItemStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class OrderNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderNotification
        fields = ['id', 'order', 'message', 'is_displayed', 'created_at']
        read_only_fields = ['id', 'order', 'message', 'created_at']


class OwnerNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = OwnerNotification
        fields = ['id', 'foodcourt', 'order', 'message', 'is_read', 'created_at']
        read_only_fields = ['id', 'foodcourt', 'order', 'message', 'created_at']
