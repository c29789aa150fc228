"""
Item status workflow.

    PENDING -> PREPARING -> READY -> DELIVERED
    (any non-terminal) -> CANCELED

Items may move forward (skipping steps is allowed) or be canceled; they never
move backwards and never leave DELIVERED or CANCELED. The order's own status
is derived from its items and rewritten inside the same transaction as every
item transition.
"""
import logging

from django.db import transaction
from django.utils import timezone

from authentication.exceptions import InvalidTransition, NotFound
from . import notifications
from .models import Order, OrderItem, OrderLog, OrderStatus

logger = logging.getLogger(__name__)

PROGRESSION = [
    OrderStatus.PENDING.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
    OrderStatus.DELIVERED.value,
]
TERMINAL_STATES = frozenset([OrderStatus.DELIVERED.value, OrderStatus.CANCELED.value])


def is_terminal(status):
    return status in TERMINAL_STATES


def allowed_transitions(current):
    if is_terminal(current):
        return set()
    later = PROGRESSION[PROGRESSION.index(current) + 1:]
    return set(later) | {OrderStatus.CANCELED.value}


def validate_transition(current, new_status):
    if new_status not in OrderStatus.values:
        raise InvalidTransition(f"Unknown status: {new_status}")
    if is_terminal(current):
        raise InvalidTransition(f"Cannot update order item that is already {current}")
    if new_status not in allowed_transitions(current):
        raise InvalidTransition(f"Cannot move order item from {current} to {new_status}")


def derive_order_status(item_statuses):
    """
    CANCELED when every item is canceled, DELIVERED once nothing is left in
    progress, otherwise the least progressed status among the open items.
    """
    statuses = list(item_statuses)
    if not statuses:
        return OrderStatus.PENDING

    if all(status == OrderStatus.CANCELED for status in statuses):
        return OrderStatus.CANCELED

    open_statuses = [status for status in statuses if not is_terminal(status)]
    if not open_statuses:
        return OrderStatus.DELIVERED

    return min(open_statuses, key=PROGRESSION.index)


def refresh_order_status(order, actor):
    """Recompute the order status from its items; log when it changes"""
    new_status = derive_order_status(order.items.values_list('status', flat=True))
    if new_status == order.status:
        return order

    previous = order.status
    order.status = new_status
    order.save(update_fields=['status', 'updated_at'])
    OrderLog.objects.create(
        order=order,
        previous_status=previous,
        new_status=new_status,
        updated_by=actor,
    )
    return order


def transition_item(item, new_status, actor):
    """
    Move ``item`` to ``new_status`` on behalf of ``actor``.

    The stored status is compared-and-swapped, so two concurrent requests
    for the same transition produce one log row and one InvalidTransition.
    """
    new_status = str(new_status)
    validate_transition(item.status, new_status)
    previous = item.status

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=item.order_id)

        updated = OrderItem.objects.filter(pk=item.pk, status=previous).update(
            status=new_status, updated_at=timezone.now()
        )
        if updated == 0:
            if not OrderItem.objects.filter(pk=item.pk).exists():
                raise NotFound('Order item not found.')
            raise InvalidTransition('Order item status changed concurrently; reload and retry.')

        OrderLog.objects.create(
            order=order,
            order_item_id=item.pk,
            previous_status=previous,
            new_status=new_status,
            updated_by=actor,
        )
        notifications.emit_item_status_notification(order, item, new_status)
        refresh_order_status(order, actor)

    item.status = new_status
    logger.info(f"Order item {item.pk} moved {previous} -> {new_status} by {actor.pk}")
    return item
