import logging

from rest_framework import permissions
from django.shortcuts import get_object_or_404

from .exceptions import Forbidden
from .models import Foodcourt, OwnerPermission

logger = logging.getLogger(__name__)


# Action constants
class Actions:
    EDIT_MENU = 'edit_menu'
    VIEW_ORDERS = 'view_orders'
    UPDATE_ORDERS = 'update_orders'
    EDIT_STALL = 'edit_stall'

    ALL = (EDIT_MENU, VIEW_ORDERS, UPDATE_ORDERS, EDIT_STALL)


# Flag on OwnerPermission that grants each action. EDIT_STALL has none: only
# admins and the direct owner may edit a stall.
ACTION_FLAGS = {
    Actions.EDIT_MENU: 'can_edit_menu',
    Actions.VIEW_ORDERS: 'can_view_orders',
    Actions.UPDATE_ORDERS: 'can_update_orders',
}


def can_perform(principal, action, foodcourt):
    """
    Decide whether ``principal`` may perform ``action`` on ``foodcourt``.

    First match wins:
      1. admins are always allowed
      2. an inactive foodcourt denies everyone else
      3. the direct owner is always allowed
      4. an OwnerPermission row allows iff the action's flag is set
      5. deny

    ``foodcourt`` must already be resolved; missing foodcourts are the
    caller's NotFound.
    """
    if action not in Actions.ALL:
        raise ValueError(f"Unknown action: {action}")

    if principal is None or not principal.is_authenticated:
        return False

    if principal.is_admin:
        return True

    if not foodcourt.is_active:
        return False

    if foodcourt.owner_id is not None and foodcourt.owner_id == principal.id:
        return True

    flag = ACTION_FLAGS.get(action)
    if flag is None:
        return False

    grant = OwnerPermission.objects.filter(owner_id=principal.id, foodcourt_id=foodcourt.pk).first()
    if grant is None:
        return False
    return grant.allows(flag)


class IsAdmin(permissions.BasePermission):
    """
    Permission to only allow platform administrators
    """
    message = 'Unauthorized: Admin access required'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_admin)


class HasFoodcourtAction(permissions.BasePermission):
    """
    Resolve the foodcourt named in the URL and run the permission resolver
    for ``action``. The resolved foodcourt is stored on the request.
    """
    action = None
    foodcourt_kwarg = 'foodcourt_id'
    message = 'You do not have permission to perform this action on this foodcourt.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False

        foodcourt_id = view.kwargs.get(self.foodcourt_kwarg)
        if not foodcourt_id:
            return False

        foodcourt = get_object_or_404(Foodcourt, pk=foodcourt_id)
        request.foodcourt = foodcourt

        if not can_perform(request.user, self.action, foodcourt):
            logger.info(f"Denied {self.action} on foodcourt {foodcourt.pk} for user {request.user.pk}")
            raise Forbidden(self.message)
        return True


class CanEditMenu(HasFoodcourtAction):
    action = Actions.EDIT_MENU


class CanViewOrders(HasFoodcourtAction):
    action = Actions.VIEW_ORDERS


class CanUpdateOrders(HasFoodcourtAction):
    action = Actions.UPDATE_ORDERS


class CanEditFoodcourt(HasFoodcourtAction):
    action = Actions.EDIT_STALL
