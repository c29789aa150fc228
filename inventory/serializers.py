from rest_framework import serializers
from .models import MenuCategory, MenuItem


class MenuCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuCategory
        fields = ['id', 'name', 'description', 'display_order', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_name(self, value):
        """Validate unique category name within the foodcourt"""
        request = self.context.get('request')
        if request and hasattr(request, 'foodcourt'):
            queryset = MenuCategory.objects.filter(foodcourt=request.foodcourt, name=value)
            if self.instance:
                queryset = queryset.exclude(id=self.instance.id)
            if queryset.exists():
                raise serializers.ValidationError("Category with this name already exists in this foodcourt.")
        return value


class MenuItemSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    foodcourt_id = serializers.UUIDField(source='foodcourt.id', read_only=True)
    category = serializers.PrimaryKeyRelatedField(
        queryset=MenuCategory.objects.none(),
        required=False,
        allow_null=True
    )

    class Meta:
        model = MenuItem
        fields = [
            'id', 'foodcourt_id', 'category', 'category_name', 'name', 'description',
            'image_url', 'price', 'is_available', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        if request and hasattr(request, 'foodcourt'):
            # Categories of other foodcourts cannot be referenced
            self.fields['category'].queryset = MenuCategory.objects.filter(foodcourt=request.foodcourt)


class MenuAvailabilitySerializer(serializers.Serializer):
    is_available = serializers.BooleanField()
