"""
Permission administration: default permission bootstrap, ownership
assignment, explicit permission updates and bulk template application.

Changing the DefaultPermission singleton only affects assignments made
afterwards; existing OwnerPermission rows are never rewritten by it.
"""
import logging

from django.db import DatabaseError, transaction
from django.core.exceptions import ValidationError as DjangoValidationError

from .exceptions import InvalidState
from .models import (
    CustomUser, DefaultPermission, Foodcourt, OwnerPermission, PermissionHistory
)

logger = logging.getLogger(__name__)


# =============== DEFAULTS ===============

def get_default_permission():
    return DefaultPermission.load()


def update_default_permission(flags, updated_by=None):
    default = DefaultPermission.load()
    default.set_flags(flags)
    default.updated_by = updated_by
    default.save()
    logger.info(f"Default permissions updated by {updated_by}: {default.get_flags()}")
    return default


# =============== GRANTS ===============

def bootstrap_permission(owner, foodcourt, template=None):
    """Create the grant for a freshly assigned owner from a template or the defaults"""
    source = template if template is not None else DefaultPermission.load()
    permission, _ = OwnerPermission.objects.update_or_create(
        owner=owner,
        foodcourt=foodcourt,
        defaults=source.get_flags(),
    )
    return permission


def update_permission(permission, flags, changed_by=None):
    """Explicitly change the flags of one grant, keeping a history row"""
    with transaction.atomic():
        previous = permission.get_flags()
        permission.set_flags(flags)
        permission.save()
        PermissionHistory.objects.create(
            permission=permission,
            previous_settings=previous,
            new_settings=permission.get_flags(),
            changed_by=changed_by,
        )
    return permission


def upsert_from_template(owner, foodcourt, template, changed_by=None):
    """Write the template's flags onto (owner, foodcourt), recording history"""
    new_settings = template.get_flags()
    permission = OwnerPermission.objects.filter(owner=owner, foodcourt=foodcourt).first()

    if permission is not None:
        previous = permission.get_flags()
        permission.set_flags(new_settings)
        permission.save()
        created = False
    else:
        previous = DefaultPermission.load().get_flags()
        permission = OwnerPermission.objects.create(owner=owner, foodcourt=foodcourt, **new_settings)
        created = True

    PermissionHistory.objects.create(
        permission=permission,
        previous_settings=previous,
        new_settings=new_settings,
        changed_by=changed_by,
    )
    return permission, created


# =============== OWNERSHIP ===============

@transaction.atomic
def assign_owner(foodcourt, owner, template=None):
    """Make ``owner`` the owner of ``foodcourt`` and bootstrap their grant"""
    if owner.role != CustomUser.OWNER:
        raise InvalidState('Invalid owner or owner does not have the OWNER role.')

    if Foodcourt.objects.filter(owner=owner).exclude(pk=foodcourt.pk).exists():
        raise InvalidState('Owner already has a foodcourt assigned.')

    if foodcourt.owner_id is not None:
        OwnerPermission.objects.filter(foodcourt=foodcourt).delete()

    foodcourt.owner = owner
    foodcourt.save(update_fields=['owner', 'updated_at'])

    permission = bootstrap_permission(owner, foodcourt, template=template)
    logger.info(f"Assigned owner {owner.pk} to foodcourt {foodcourt.pk}")
    return permission


@transaction.atomic
def unassign_owner(foodcourt):
    if foodcourt.owner_id is None:
        raise InvalidState('Foodcourt does not have an owner assigned.')

    OwnerPermission.objects.filter(foodcourt=foodcourt).delete()
    previous_owner = foodcourt.owner_id
    foodcourt.owner = None
    foodcourt.save(update_fields=['owner', 'updated_at'])
    logger.info(f"Removed owner {previous_owner} from foodcourt {foodcourt.pk}")
    return foodcourt


# =============== FOODCOURT STATUS ===============

def toggle_active(foodcourt):
    foodcourt.is_active = not foodcourt.is_active
    foodcourt.save(update_fields=['is_active', 'updated_at'])
    return foodcourt


def set_operating_status(foodcourt, operating_status):
    if not foodcourt.is_active:
        raise InvalidState('Foodcourt is deactivated; its operating status cannot change.')
    if operating_status not in dict(Foodcourt.OPERATING_STATUS_CHOICES):
        raise InvalidState(f"Unknown operating status: {operating_status}")

    foodcourt.operating_status = operating_status
    foodcourt.save(update_fields=['operating_status', 'updated_at'])
    return foodcourt


# =============== TEMPLATES ===============

def apply_template(template, owner_ids, applied_by=None):
    """
    Apply ``template`` to every foodcourt owned by each owner in ``owner_ids``.

    Owners are processed independently: a failure for one owner is recorded
    in the results and does not undo the others.
    """
    # Repeated ids are processed once, in first-seen order
    owner_ids = list(dict.fromkeys(str(owner_id) for owner_id in owner_ids))
    owners = {
        str(owner.pk): owner
        for owner in CustomUser.objects.filter(pk__in=owner_ids, role=CustomUser.OWNER)
    }
    results = []

    for owner_id in owner_ids:
        owner = owners.get(str(owner_id))
        if owner is None:
            results.append({
                'owner_id': str(owner_id),
                'success': False,
                'message': 'Owner not found or does not have the OWNER role',
            })
            continue

        foodcourts = list(owner.owned_foodcourts.all())
        if not foodcourts:
            results.append({
                'owner_id': str(owner.pk),
                'owner_name': str(owner),
                'success': False,
                'message': 'Owner does not have a foodcourt assigned',
            })
            continue

        try:
            with transaction.atomic():
                created_any = False
                for foodcourt in foodcourts:
                    _, created = upsert_from_template(owner, foodcourt, template, changed_by=applied_by)
                    created_any = created_any or created
        except (DatabaseError, DjangoValidationError) as exc:
            logger.exception(f"Failed to apply template {template.pk} to owner {owner.pk}")
            results.append({
                'owner_id': str(owner.pk),
                'owner_name': str(owner),
                'success': False,
                'message': str(exc),
            })
            continue

        results.append({
            'owner_id': str(owner.pk),
            'owner_name': str(owner),
            'foodcourt_ids': [str(foodcourt.pk) for foodcourt in foodcourts],
            'success': True,
            'message': (
                'Template applied successfully (created new permissions)'
                if created_any else
                'Template applied successfully (updated existing permissions)'
            ),
        })

    successful = sum(1 for result in results if result['success'])
    summary = {
        'total': len(results),
        'successful': successful,
        'failed': len(results) - successful,
    }
    logger.info(f"Applied template {template.pk}: {summary}")
    return {'results': results, 'summary': summary}
