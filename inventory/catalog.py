"""
Read-only lookups the order assembler uses to price a cart.

Only items that can be ordered right now are returned: the item is marked
available and its foodcourt is active and open.
"""
from dataclasses import dataclass
from decimal import Decimal

from authentication.models import Foodcourt
from .models import MenuItem


@dataclass(frozen=True)
class CatalogEntry:
    id: object
    price: Decimal
    foodcourt_id: object
    name: str = ''


def orderable_items():
    return MenuItem.objects.filter(
        is_available=True,
        foodcourt__is_active=True,
        foodcourt__operating_status=Foodcourt.OPEN,
    )


def get_available_items(ids):
    """Return ``{item_id: CatalogEntry}`` for the orderable subset of ``ids``"""
    rows = orderable_items().filter(id__in=set(ids)).values('id', 'price', 'foodcourt_id', 'name')
    return {
        row['id']: CatalogEntry(
            id=row['id'],
            price=row['price'],
            foodcourt_id=row['foodcourt_id'],
            name=row['name'],
        )
        for row in rows
    }
