"""
Order assembly: turn a multi-foodcourt cart into one atomic order aggregate.
"""
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
import logging
import uuid

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import ValidationError

from authentication.exceptions import ConfigurationError, InvalidState, NotFound
from authentication.models import CustomUser
from inventory import catalog
from . import notifications
from .workflow import TERMINAL_STATES
from .models import Order, OrderItem, OrderLog, OrderStatus, Table, TableSession

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
MAX_QUANTITY = 1000
# Largest value the subtotal and total_amount columns can hold
MAX_AMOUNT = Decimal('9999999999.99')


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: uuid.UUID
    quantity: int
    special_instructions: str = ''


@dataclass(frozen=True)
class PlaceOrderCommand:
    table_id: uuid.UUID
    lines: tuple
    customer_name: str = ''


@dataclass
class PricedLine:
    line: OrderLine
    unit_price: Decimal
    subtotal: Decimal
    foodcourt_id: object


def _as_uuid(value):
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def resolve_system_principal():
    """
    The account that authors system generated audit rows: the user named by
    FOODHALL_SYSTEM_USER_EMAIL, or the first admin.
    """
    email = getattr(settings, 'FOODHALL_SYSTEM_USER_EMAIL', None)
    admins = CustomUser.objects.filter(role=CustomUser.ADMIN, is_active=True)
    if email:
        principal = admins.filter(email__iexact=email).first()
    else:
        principal = admins.order_by('date_joined').first()

    if principal is None:
        raise ConfigurationError('System configuration error: no admin user found for system operations.')
    return principal


def get_or_open_table_session(table):
    session = TableSession.objects.filter(table=table, is_active=True).order_by('-session_start').first()
    if session is None:
        session = TableSession.objects.create(table=table)
        logger.info(f"Opened session {session.pk} for {table}")
    return session


@transaction.atomic
def close_table_sessions(table):
    """End every open session of the table; its next order opens a fresh one"""
    sessions = list(TableSession.objects.select_for_update().filter(table=table, is_active=True))
    for session in sessions:
        session.close()
    if sessions:
        logger.info(f"Closed {len(sessions)} session(s) for {table}")
    return len(sessions)


@transaction.atomic
def retire_table(table):
    """
    Delete a table, or take it out of service when orders still reference it.

    Tables with unfinished orders are refused; otherwise open sessions are
    closed first. Returns True when the row was deleted.
    """
    table = Table.objects.select_for_update().get(pk=table.pk)
    active_orders = table.orders.exclude(status__in=TERMINAL_STATES).count()
    if active_orders:
        raise InvalidState({
            'error': 'Cannot delete table with active orders',
            'active_orders': active_orders,
        })

    close_table_sessions(table)

    # Orders hold a protected reference to their table
    if table.orders.exists():
        table.is_available = False
        table.save(update_fields=['is_available'])
        logger.info(f"{table} has order history; marked unavailable instead of deleted")
        return False

    table.delete()
    logger.info(f"{table} deleted")
    return True


class OrderAssembler:
    def __init__(self, system_principal):
        if system_principal is None:
            raise ConfigurationError('System configuration error: no system principal configured.')
        self.system_principal = system_principal

    def current_principal(self):
        """The cached principal, re-resolved once it is deactivated, demoted or deleted"""
        still_valid = CustomUser.objects.filter(
            pk=self.system_principal.pk, role=CustomUser.ADMIN, is_active=True
        ).exists()
        if not still_valid:
            logger.warning(f"System principal {self.system_principal.pk} is no longer an active admin; resolving again")
            self.system_principal = resolve_system_principal()
        return self.system_principal

    def validate(self, command):
        if not command.lines:
            raise ValidationError({'items': ['An order needs at least one item.']})

        errors = {}
        for index, line in enumerate(command.lines):
            if line.quantity is None or line.quantity <= 0:
                errors[str(index)] = ['Quantity must be greater than zero.']
            elif line.quantity > MAX_QUANTITY:
                errors[str(index)] = [f'Quantity must be at most {MAX_QUANTITY}.']
        if errors:
            raise ValidationError({'items': errors})

    def validate_amounts(self, priced):
        """Reject carts whose subtotals or total do not fit the money columns"""
        errors = {}
        for index, p in enumerate(priced):
            if p.subtotal > MAX_AMOUNT:
                errors[str(index)] = ['Line subtotal is too large.']
        if errors:
            raise ValidationError({'items': errors})

        total_amount = sum((p.subtotal for p in priced), Decimal('0.00')).quantize(CENTS)
        if total_amount > MAX_AMOUNT:
            raise ValidationError({'items': ['Order total is too large.']})
        return total_amount

    def price_lines(self, lines):
        """Snapshot unit prices and foodcourt ids from the catalog"""
        requested = {_as_uuid(line.menu_item_id) for line in lines}
        entries = catalog.get_available_items(requested)

        if len(entries) != len(requested):
            missing = sorted(str(item_id) for item_id in requested - set(entries))
            logger.warning(f"Rejected cart with unavailable menu items: {missing}")
            raise InvalidState({
                'error': 'Some menu items are not available or do not exist',
                'menu_item_ids': missing,
            })

        priced = []
        for line in lines:
            entry = entries[_as_uuid(line.menu_item_id)]
            subtotal = (entry.price * line.quantity).quantize(CENTS)
            priced.append(PricedLine(
                line=line,
                unit_price=entry.price,
                subtotal=subtotal,
                foodcourt_id=entry.foodcourt_id,
            ))
        return priced

    def create_order(self, command):
        self.validate(command)
        principal = self.current_principal()

        table = Table.objects.filter(pk=command.table_id).first()
        if table is None:
            raise NotFound('Table not found.')

        customer_name = (command.customer_name or '').strip() or table.label

        with transaction.atomic():
            # Serializes session handling per table
            table = Table.objects.select_for_update().get(pk=table.pk)
            priced = self.price_lines(command.lines)
            # Checked before the first write
            total_amount = self.validate_amounts(priced)

            session = get_or_open_table_session(table)

            order = Order.objects.create(
                customer_name=customer_name,
                table=table,
                table_session=session,
                total_amount=total_amount,
                status=OrderStatus.PENDING,
            )
            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    menu_item_id=p.line.menu_item_id,
                    foodcourt_id=p.foodcourt_id,
                    quantity=p.line.quantity,
                    unit_price=p.unit_price,
                    subtotal=p.subtotal,
                    special_instructions=p.line.special_instructions or '',
                    status=OrderStatus.PENDING,
                )
                for p in priced
            ])
            OrderLog.objects.create(
                order=order,
                previous_status=None,
                new_status=OrderStatus.PENDING,
                updated_by=principal,
            )

            plan = notifications.plan_order_notifications(order.pk, [p.foodcourt_id for p in priced])
            notifications.emit_order_notifications(order, plan)

        logger.info(
            f"Order {order.pk} placed at {table} for {total_amount} "
            f"across {len(plan.owner_messages)} foodcourt(s)"
        )
        return order


@lru_cache(maxsize=None)
def get_order_assembler():
    """Process wide assembler; the principal is re-checked on every order"""
    return OrderAssembler(resolve_system_principal())
