from django.db import models
from django.utils import timezone
from inventory.models import MenuItem
from authentication.models import CustomUser, Foodcourt
from decimal import Decimal
import uuid

# Create your models here.


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PREPARING = "PREPARING", "Preparing"
    READY = "READY", "Ready"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELED = "CANCELED", "Canceled"


class Table(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    table_number = models.PositiveIntegerField(unique=True)
    capacity = models.PositiveIntegerField(default=4)
    qr_code = models.URLField(blank=True)
    is_available = models.BooleanField(default=True)
    date_added = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.label

    @property
    def label(self):
        return f"Table #{self.table_number}"

    class Meta:
        db_table = 'tables'
        ordering = ['table_number']


class TableSession(models.Model):
    """An open tab for a physical table"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    table = models.ForeignKey(Table, on_delete=models.CASCADE, related_name='sessions')
    session_start = models.DateTimeField(default=timezone.now)
    session_end = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.table} session from {self.session_start:%Y-%m-%d %H:%M}"

    def close(self):
        self.is_active = False
        self.session_end = timezone.now()
        self.save(update_fields=['is_active', 'session_end'])

    class Meta:
        db_table = 'table_sessions'
        ordering = ['-session_start']


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_name = models.CharField(max_length=255)
    table = models.ForeignKey(Table, on_delete=models.PROTECT, related_name='orders')
    table_session = models.ForeignKey(
        TableSession, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # Derived from the items, see orders.workflow.derive_order_status
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"#{self.id} - {self.customer_name} - {self.table}"

    def foodcourt_ids(self):
        return set(self.items.values_list('foodcourt_id', flat=True))

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    # Copied from the menu item at order time; makes an order span several stalls
    foodcourt = models.ForeignKey(Foodcourt, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    special_instructions = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.quantity} x {self.menu_item.name} ({self.status})"

    class Meta:
        db_table = 'order_items'
        ordering = ['created_at', 'id']


class OrderLog(models.Model):
    """Append-only audit row, one per status transition"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='logs')
    order_item = models.ForeignKey(
        OrderItem, on_delete=models.CASCADE, null=True, blank=True, related_name='logs'
    )
    previous_status = models.CharField(max_length=20, choices=OrderStatus.choices, null=True, blank=True)
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    updated_by = models.ForeignKey(CustomUser, on_delete=models.PROTECT, related_name='order_logs')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order_id}: {self.previous_status} -> {self.new_status}"

    class Meta:
        db_table = 'order_logs'
        ordering = ['created_at']


class OrderNotification(models.Model):
    """Customer facing notification, polled by the table UI"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='notifications')
    message = models.CharField(max_length=500)
    is_displayed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_notifications'
        ordering = ['-created_at']


class OwnerNotification(models.Model):
    """Owner facing notification for one foodcourt"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    foodcourt = models.ForeignKey(Foodcourt, on_delete=models.CASCADE, related_name='notifications')
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='owner_notifications')
    message = models.CharField(max_length=500)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'owner_notifications'
        ordering = ['-created_at']
