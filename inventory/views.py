from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters
import logging

from authentication.models import Foodcourt
from authentication.permissions import CanEditMenu
from .models import MenuCategory, MenuItem
from .serializers import MenuCategorySerializer, MenuItemSerializer, MenuAvailabilitySerializer

logger = logging.getLogger(__name__)


class FoodcourtContextMixin:
    """Scope querysets and created objects to the foodcourt resolved by the permission class"""

    def get_queryset(self):
        return super().get_queryset().filter(foodcourt=self.request.foodcourt)

    def perform_create(self, serializer):
        serializer.save(foodcourt=self.request.foodcourt)


# Category Views
class MenuCategoryListCreateView(FoodcourtContextMixin, generics.ListCreateAPIView):
    """
    get: List the foodcourt's menu categories
    post: Create a category (requires edit-menu rights)
    """
    queryset = MenuCategory.objects.all()
    serializer_class = MenuCategorySerializer
    permission_classes = [CanEditMenu]


# Menu Views
class MenuItemListCreateView(FoodcourtContextMixin, generics.ListCreateAPIView):
    """
    get: List all menu items of the foodcourt
    post: Create a new menu item
    """
    queryset = MenuItem.objects.select_related('category', 'foodcourt')
    serializer_class = MenuItemSerializer
    permission_classes = [CanEditMenu]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_available', 'category']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'created_at']
    ordering = ['name']


class MenuItemDetailView(FoodcourtContextMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Menu item details
    put/patch: Update menu item
    delete: Delete menu item
    """
    queryset = MenuItem.objects.select_related('category', 'foodcourt')
    serializer_class = MenuItemSerializer
    permission_classes = [CanEditMenu]
    lookup_url_kwarg = 'menu_id'

    def perform_update(self, serializer):
        item = serializer.save()
        logger.info(f"Menu item {item.pk} updated by {self.request.user.pk}")


@api_view(['PATCH'])
@permission_classes([CanEditMenu])
def update_menu_availability(request, foodcourt_id, menu_id):
    """Mark a menu item available or unavailable"""
    menu_item = get_object_or_404(MenuItem, id=menu_id, foodcourt=request.foodcourt)

    serializer = MenuAvailabilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    menu_item.is_available = serializer.validated_data['is_available']
    menu_item.save(update_fields=['is_available', 'updated_at'])

    return Response(MenuItemSerializer(menu_item).data, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_menu(request, foodcourt_id):
    """Menu of an active foodcourt as shown to customers at a table"""
    foodcourt = get_object_or_404(Foodcourt, id=foodcourt_id, is_active=True)
    items = MenuItem.objects.filter(foodcourt=foodcourt).select_related('category', 'foodcourt')

    if request.query_params.get('available') == 'true':
        items = items.filter(is_available=True)

    return Response({
        'foodcourt': {
            'id': str(foodcourt.id),
            'name': foodcourt.name,
            'operating_status': foodcourt.operating_status,
        },
        'menu_items': MenuItemSerializer(items, many=True).data,
    })
