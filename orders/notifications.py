"""
Notification fan-out: who hears about an order and what they are told.

Planning is pure; emitting writes rows and must run inside the caller's
transaction so notifications never outlive a rolled back order.
"""
from dataclasses import dataclass, field

from .models import OrderNotification, OwnerNotification

NEW_ORDER_OWNER_MESSAGE = "New order #{order_id} received"
NEW_ORDER_CUSTOMER_MESSAGE = "Your order has been received and is being processed."
ITEM_STATUS_CUSTOMER_MESSAGE = "Your order item {item_name} is now {status}"


@dataclass
class NotificationPlan:
    owner_messages: dict = field(default_factory=dict)
    customer_message: str = ''


def plan_order_notifications(order_id, foodcourt_ids):
    """One owner message per distinct foodcourt and one customer message"""
    message = NEW_ORDER_OWNER_MESSAGE.format(order_id=order_id)
    owner_messages = {}
    for foodcourt_id in foodcourt_ids:
        owner_messages.setdefault(foodcourt_id, message)
    return NotificationPlan(owner_messages=owner_messages, customer_message=NEW_ORDER_CUSTOMER_MESSAGE)


def emit_order_notifications(order, plan):
    OwnerNotification.objects.bulk_create([
        OwnerNotification(foodcourt_id=foodcourt_id, order=order, message=message)
        for foodcourt_id, message in plan.owner_messages.items()
    ])
    OrderNotification.objects.create(order=order, message=plan.customer_message)


def emit_item_status_notification(order, item, status):
    item_name = item.menu_item.name if item.menu_item_id else ''
    return OrderNotification.objects.create(
        order=order,
        message=ITEM_STATUS_CUSTOMER_MESSAGE.format(item_name=item_name, status=status),
    )
