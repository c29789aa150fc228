from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
import uuid

from authentication.models import Foodcourt, TimeStampedModel


class MenuCategory(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    foodcourt = models.ForeignKey(Foodcourt, on_delete=models.CASCADE, related_name='menu_categories')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    display_order = models.IntegerField(default=0)

    def __str__(self):
        return str(self.name)

    class Meta:
        db_table = 'menu_categories'
        unique_together = ['foodcourt', 'name']
        ordering = ['display_order', 'name']
        verbose_name_plural = "Menu Categories"


class MenuItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    foodcourt = models.ForeignKey(Foodcourt, on_delete=models.CASCADE, related_name='menu_items')
    category = models.ForeignKey(
        MenuCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='items'
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    image_url = models.URLField(blank=True)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))]
    )
    is_available = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'menu_items'
        ordering = ['name']
