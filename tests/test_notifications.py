import uuid

from orders.notifications import (
    NEW_ORDER_CUSTOMER_MESSAGE, plan_order_notifications
)


class TestPlanOrderNotifications:

    def test_one_message_per_distinct_foodcourt(self):
        order_id = uuid.uuid4()
        stall_a, stall_b = uuid.uuid4(), uuid.uuid4()

        plan = plan_order_notifications(order_id, [stall_a, stall_a, stall_b])

        assert set(plan.owner_messages) == {stall_a, stall_b}
        assert plan.owner_messages[stall_a] == f"New order #{order_id} received"
        assert plan.customer_message == NEW_ORDER_CUSTOMER_MESSAGE

    def test_single_stall(self):
        stall = uuid.uuid4()
        plan = plan_order_notifications(uuid.uuid4(), [stall])
        assert list(plan.owner_messages) == [stall]
