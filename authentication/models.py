from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.utils import timezone
import uuid


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', CustomUser.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class TimeStampedModel(models.Model):
    """Base model with created_at and updated_at fields"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# =============== USER MANAGEMENT ===============

class CustomUser(AbstractUser):
    """Platform user. The global role decides admin override in the permission resolver."""
    ADMIN = 'ADMIN'
    OWNER = 'OWNER'
    CUSTOMER = 'CUSTOMER'
    ROLE_CHOICES = [
        (ADMIN, 'Administrator'),
        (OWNER, 'Foodcourt Owner'),
        (CUSTOMER, 'Customer'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=CUSTOMER)

    # Remove username requirement
    username = None
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []
    objects = CustomUserManager()

    class Meta:
        db_table = 'users'

    def __str__(self):
        return self.name or self.email

    @property
    def is_admin(self):
        return self.role == self.ADMIN

    @property
    def is_owner(self):
        return self.role == self.OWNER


# =============== FOODCOURT (STALL) ===============

class Foodcourt(TimeStampedModel):
    """An independently owned food stall inside the venue"""
    OPEN = 'OPEN'
    CLOSED = 'CLOSED'
    OPERATING_STATUS_CHOICES = [
        (OPEN, 'Open'),
        (CLOSED, 'Closed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=500, blank=True)
    description = models.TextField(blank=True)
    logo_url = models.URLField(blank=True)
    owner = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='owned_foodcourts',
    )

    # Admin controlled
    is_active = models.BooleanField(default=True)
    # Owner controlled, daily open/closed
    operating_status = models.CharField(max_length=10, choices=OPERATING_STATUS_CHOICES, default=OPEN)

    class Meta:
        db_table = 'foodcourts'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def is_open(self):
        return self.is_active and self.operating_status == self.OPEN


# =============== PERMISSION MANAGEMENT ===============

class PermissionFlags(models.Model):
    """The three fine-grained flags shared by grants, defaults and templates"""
    FLAG_FIELDS = ('can_edit_menu', 'can_view_orders', 'can_update_orders')

    can_edit_menu = models.BooleanField(default=True)
    can_view_orders = models.BooleanField(default=True)
    can_update_orders = models.BooleanField(default=True)

    class Meta:
        abstract = True

    def get_flags(self):
        return {field: getattr(self, field) for field in self.FLAG_FIELDS}

    def set_flags(self, flags):
        for field in self.FLAG_FIELDS:
            if field in flags and flags[field] is not None:
                setattr(self, field, bool(flags[field]))


class OwnerPermission(PermissionFlags, TimeStampedModel):
    """Explicit per-(owner, foodcourt) grant"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='foodcourt_permissions')
    foodcourt = models.ForeignKey(Foodcourt, on_delete=models.CASCADE, related_name='owner_permissions')

    class Meta:
        db_table = 'owner_permissions'
        unique_together = ['owner', 'foodcourt']

    def __str__(self):
        return f"{self.owner} @ {self.foodcourt}"

    def allows(self, flag):
        if flag not in self.FLAG_FIELDS:
            return False
        return getattr(self, flag)


class DefaultPermission(PermissionFlags, TimeStampedModel):
    """Singleton holding the flags given to newly assigned owners"""
    updated_by = models.ForeignKey(CustomUser, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    class Meta:
        db_table = 'default_permissions'

    def save(self, *args, **kwargs):
        if not self.pk and DefaultPermission.objects.exists():
            raise ValidationError('There can only be one default permission row.')
        super().save(*args, **kwargs)

    @classmethod
    def load(cls):
        instance = cls.objects.order_by('created_at').first()
        if instance is None:
            instance = cls.objects.create()
        return instance

    def __str__(self):
        return 'Default permissions'


class PermissionTemplate(PermissionFlags, TimeStampedModel):
    """Named bundle of flags applied in bulk to owners"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(CustomUser, on_delete=models.SET_NULL, null=True, related_name='permission_templates')

    class Meta:
        db_table = 'permission_templates'
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class PermissionHistory(models.Model):
    """Audit trail of changes made to an owner permission row"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    permission = models.ForeignKey(OwnerPermission, on_delete=models.CASCADE, related_name='history')
    previous_settings = models.JSONField(default=dict)
    new_settings = models.JSONField(default=dict)
    changed_by = models.ForeignKey(CustomUser, on_delete=models.SET_NULL, null=True, related_name='+')
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'permission_history'
        ordering = ['-changed_at']
