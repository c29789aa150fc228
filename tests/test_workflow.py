"""
Item status transitions and the order status derived from them.
"""
import pytest

from authentication.exceptions import InvalidTransition
from orders.models import OrderItem, OrderLog, OrderNotification, OrderStatus
from orders.workflow import (
    allowed_transitions, derive_order_status, transition_item, validate_transition
)

PENDING = OrderStatus.PENDING
PREPARING = OrderStatus.PREPARING
READY = OrderStatus.READY
DELIVERED = OrderStatus.DELIVERED
CANCELED = OrderStatus.CANCELED


# ============================================================================
# Transition rules
# ============================================================================

class TestTransitionRules:

    def test_pending_can_go_anywhere_forward(self):
        assert allowed_transitions(PENDING) == {PREPARING, READY, DELIVERED, CANCELED}

    def test_ready_can_only_be_delivered_or_canceled(self):
        assert allowed_transitions(READY) == {DELIVERED, CANCELED}

    @pytest.mark.parametrize('terminal', [DELIVERED, CANCELED])
    def test_terminal_states_have_no_exits(self, terminal):
        assert allowed_transitions(terminal) == set()
        for target in OrderStatus.values:
            with pytest.raises(InvalidTransition):
                validate_transition(terminal, target)

    @pytest.mark.parametrize('current, target', [
        (PREPARING, PENDING),
        (READY, PREPARING),
        (READY, PENDING),
        (PREPARING, PREPARING),
    ])
    def test_no_backward_or_same_state_moves(self, current, target):
        with pytest.raises(InvalidTransition):
            validate_transition(current, target)

    def test_unknown_status(self):
        with pytest.raises(InvalidTransition):
            validate_transition(PENDING, 'SERVED')


# ============================================================================
# Order status derivation
# ============================================================================

class TestDeriveOrderStatus:

    @pytest.mark.parametrize('statuses, expected', [
        ([PENDING, PENDING], PENDING),
        ([PREPARING, PENDING], PENDING),
        ([PREPARING, READY], PREPARING),
        ([READY, DELIVERED], READY),
        ([READY, CANCELED], READY),
        ([DELIVERED, DELIVERED], DELIVERED),
        ([DELIVERED, CANCELED], DELIVERED),
        ([CANCELED, CANCELED], CANCELED),
        ([], PENDING),
    ])
    def test_derivation(self, statuses, expected):
        assert derive_order_status(statuses) == expected


# ============================================================================
# Persisted transitions
# ============================================================================

@pytest.mark.django_db
class TestTransitionItem:

    def test_moves_item_and_logs(self, multi_stall_order, burger, owner_a):
        item = multi_stall_order.items.get(menu_item=burger)

        transition_item(item, PREPARING, owner_a)

        item.refresh_from_db()
        assert item.status == PREPARING
        log = OrderLog.objects.get(order_item=item)
        assert (log.previous_status, log.new_status, log.updated_by) == (PENDING, PREPARING, owner_a)

    def test_order_status_follows_slowest_item(self, multi_stall_order, owner_a, owner_b, burger, fries, noodles):
        order = multi_stall_order
        for menu_item, actor in ((burger, owner_a), (fries, owner_a)):
            transition_item(order.items.get(menu_item=menu_item), READY, actor)

        order.refresh_from_db()
        assert order.status == PENDING

        transition_item(order.items.get(menu_item=noodles), PREPARING, owner_b)
        order.refresh_from_db()
        assert order.status == PREPARING

        order_logs = OrderLog.objects.filter(order=order, order_item__isnull=True)
        assert list(order_logs.values_list('previous_status', 'new_status')) == [
            (None, PENDING),
            (PENDING, PREPARING),
        ]

    def test_order_delivered_when_nothing_left_open(self, place_order, burger, fries, owner_a):
        order = place_order((burger, 1), (fries, 1))
        transition_item(order.items.get(menu_item=burger), DELIVERED, owner_a)
        transition_item(order.items.get(menu_item=fries), CANCELED, owner_a)

        order.refresh_from_db()
        assert order.status == DELIVERED

    def test_order_canceled_when_every_item_canceled(self, place_order, burger, owner_a):
        order = place_order((burger, 1))
        transition_item(order.items.get(), CANCELED, owner_a)

        order.refresh_from_db()
        assert order.status == CANCELED

    def test_terminal_item_is_immutable(self, place_order, burger, owner_a):
        order = place_order((burger, 1))
        item = order.items.get()
        transition_item(item, DELIVERED, owner_a)
        logs_before = OrderLog.objects.count()

        with pytest.raises(InvalidTransition):
            transition_item(item, CANCELED, owner_a)

        item.refresh_from_db()
        assert item.status == DELIVERED
        assert OrderLog.objects.count() == logs_before

    def test_stale_item_loses_the_race(self, place_order, burger, owner_a):
        order = place_order((burger, 1))
        stale = order.items.get()
        OrderItem.objects.filter(pk=stale.pk).update(status=PREPARING)
        logs_before = OrderLog.objects.count()

        with pytest.raises(InvalidTransition):
            transition_item(stale, READY, owner_a)

        assert OrderItem.objects.get(pk=stale.pk).status == PREPARING
        assert OrderLog.objects.count() == logs_before

    def test_customer_notified_of_item_change(self, place_order, burger, owner_a):
        order = place_order((burger, 1))
        transition_item(order.items.get(), READY, owner_a)

        assert OrderNotification.objects.filter(order=order, message='Your order item Burger is now READY').exists()
        assert OrderNotification.objects.filter(order=order).count() == 2
