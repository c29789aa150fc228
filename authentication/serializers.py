from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth.password_validation import validate_password
from .models import (
    CustomUser, Foodcourt, OwnerPermission, DefaultPermission,
    PermissionTemplate, PermissionHistory
)


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password], required=False)

    class Meta:
        model = CustomUser
        fields = ['id', 'email', 'name', 'role', 'password', 'is_active', 'date_joined']
        read_only_fields = ['id', 'date_joined']

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        return CustomUser.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        if password:
            instance.set_password(password)

        instance.save()
        return instance


class LoginSerializer(TokenObtainPairSerializer):
    """JWT pair whose tokens carry the user's role"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        token['email'] = user.email
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        data['role'] = self.user.role
        data['foodcourt_ids'] = [str(pk) for pk in self.user.owned_foodcourts.values_list('id', flat=True)]
        return data


class FoodcourtSerializer(serializers.ModelSerializer):
    owner_email = serializers.EmailField(source='owner.email', read_only=True, default=None)
    is_open = serializers.ReadOnlyField()

    class Meta:
        model = Foodcourt
        fields = [
            'id', 'name', 'address', 'description', 'logo_url', 'owner', 'owner_email',
            'is_active', 'operating_status', 'is_open', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'owner', 'is_active', 'created_at', 'updated_at']


class AssignOwnerSerializer(serializers.Serializer):
    owner_id = serializers.UUIDField()
    template_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_owner_id(self, value):
        try:
            return CustomUser.objects.get(pk=value)
        except CustomUser.DoesNotExist:
            raise serializers.ValidationError('Owner not found.')

    def validate_template_id(self, value):
        if value is None:
            return None
        try:
            return PermissionTemplate.objects.get(pk=value)
        except PermissionTemplate.DoesNotExist:
            raise serializers.ValidationError('Permission template not found.')


class OperatingStatusSerializer(serializers.Serializer):
    operating_status = serializers.ChoiceField(choices=Foodcourt.OPERATING_STATUS_CHOICES)


class PermissionFlagsSerializer(serializers.Serializer):
    """Partial flag payload; omitted flags are left untouched"""
    can_edit_menu = serializers.BooleanField(required=False)
    can_view_orders = serializers.BooleanField(required=False)
    can_update_orders = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('At least one permission flag is required.')
        return attrs


class OwnerPermissionSerializer(serializers.ModelSerializer):
    owner_email = serializers.EmailField(source='owner.email', read_only=True)
    foodcourt_name = serializers.CharField(source='foodcourt.name', read_only=True)

    class Meta:
        model = OwnerPermission
        fields = [
            'id', 'owner', 'owner_email', 'foodcourt', 'foodcourt_name',
            'can_edit_menu', 'can_view_orders', 'can_update_orders', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'owner', 'foodcourt', 'created_at', 'updated_at']


class DefaultPermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = DefaultPermission
        fields = ['can_edit_menu', 'can_view_orders', 'can_update_orders', 'updated_by', 'updated_at']
        read_only_fields = ['updated_by', 'updated_at']


class PermissionTemplateSerializer(serializers.ModelSerializer):
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = PermissionTemplate
        fields = [
            'id', 'name', 'description', 'can_edit_menu', 'can_view_orders', 'can_update_orders',
            'created_by', 'created_by_email', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']

    def validate_name(self, value):
        queryset = PermissionTemplate.objects.filter(name__iexact=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A template with this name already exists.')
        return value


class ApplyTemplateSerializer(serializers.Serializer):
    owner_ids = serializers.ListField(child=serializers.UUIDField(), min_length=1)


class PermissionHistorySerializer(serializers.ModelSerializer):
    foodcourt = serializers.UUIDField(source='permission.foodcourt_id', read_only=True)
    changed_by_email = serializers.EmailField(source='changed_by.email', read_only=True, default=None)

    class Meta:
        model = PermissionHistory
        fields = [
            'id', 'permission', 'foodcourt', 'previous_settings', 'new_settings',
            'changed_by', 'changed_by_email', 'changed_at'
        ]
