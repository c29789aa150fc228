from rest_framework import generics, status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.db import connection, DatabaseError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiExample
import logging

from . import services
from .models import CustomUser, Foodcourt, OwnerPermission, PermissionTemplate, PermissionHistory
from .serializers import (
    UserSerializer, LoginSerializer, FoodcourtSerializer, AssignOwnerSerializer,
    OperatingStatusSerializer, PermissionFlagsSerializer, OwnerPermissionSerializer,
    DefaultPermissionSerializer, PermissionTemplateSerializer, ApplyTemplateSerializer,
    PermissionHistorySerializer
)
from .permissions import IsAdmin, CanEditFoodcourt

logger = logging.getLogger(__name__)


# =============== AUTHENTICATION VIEWS ===============

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT login. The response carries the user's role and, for owners, the
    foodcourts they own.
    """
    serializer_class = LoginSerializer

    @extend_schema(
        summary="User Login with JWT Token",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                    'role': {'type': 'string', 'description': 'ADMIN, OWNER or CUSTOMER'},
                    'foodcourt_ids': {'type': 'array', 'items': {'type': 'string'}},
                }
            },
            401: {'description': 'Invalid credentials'}
        },
        examples=[
            OpenApiExample(
                'Owner Login',
                value={"email": "owner@foodhall.com", "password": "SecurePassword123!"}
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class MyProfileView(generics.RetrieveAPIView):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


# =============== USER MANAGEMENT ===============

class UserListCreateView(generics.ListCreateAPIView):
    """Admins list and create platform users (owners included)"""
    queryset = CustomUser.objects.all().order_by('email')
    serializer_class = UserSerializer
    permission_classes = [IsAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['role', 'is_active']

    @extend_schema(summary="Create User", request=UserSerializer, responses={201: UserSerializer})
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


# =============== FOODCOURT MANAGEMENT ===============

class FoodcourtListCreateView(generics.ListCreateAPIView):
    queryset = Foodcourt.objects.select_related('owner').order_by('name')
    serializer_class = FoodcourtSerializer
    permission_classes = [IsAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['is_active', 'operating_status', 'owner']

    @extend_schema(summary="List Foodcourts", responses={200: FoodcourtSerializer(many=True)})
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(summary="Create Foodcourt", request=FoodcourtSerializer, responses={201: FoodcourtSerializer})
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class FoodcourtDetailView(generics.RetrieveUpdateDestroyAPIView):
    queryset = Foodcourt.objects.select_related('owner')
    serializer_class = FoodcourtSerializer
    permission_classes = [IsAdmin]
    lookup_url_kwarg = 'foodcourt_id'

    def perform_destroy(self, instance):
        logger.info(f"Foodcourt {instance.pk} deleted by {self.request.user.pk}")
        instance.delete()


@extend_schema(
    summary="Assign Owner",
    description="""
    Make a user with the OWNER role the owner of this foodcourt. The owner's
    permissions are created from the given template, or from the current
    default permissions when no template is given.
    """,
    request=AssignOwnerSerializer,
    responses={
        200: OwnerPermissionSerializer,
        409: {'description': 'User is not an owner or already owns a foodcourt'}
    }
)
@api_view(['POST'])
@permission_classes([IsAdmin])
def assign_owner(request, foodcourt_id):
    foodcourt = get_object_or_404(Foodcourt, pk=foodcourt_id)

    serializer = AssignOwnerSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    permission = services.assign_owner(
        foodcourt,
        serializer.validated_data['owner_id'],
        template=serializer.validated_data.get('template_id'),
    )
    return Response(OwnerPermissionSerializer(permission).data)


@extend_schema(summary="Unassign Owner", request=None, responses={200: FoodcourtSerializer})
@api_view(['POST'])
@permission_classes([IsAdmin])
def unassign_owner(request, foodcourt_id):
    foodcourt = get_object_or_404(Foodcourt, pk=foodcourt_id)
    services.unassign_owner(foodcourt)
    return Response(FoodcourtSerializer(foodcourt).data)


@extend_schema(summary="Toggle Foodcourt Active", request=None, responses={200: FoodcourtSerializer})
@api_view(['POST'])
@permission_classes([IsAdmin])
def toggle_foodcourt_active(request, foodcourt_id):
    foodcourt = get_object_or_404(Foodcourt, pk=foodcourt_id)
    services.toggle_active(foodcourt)
    logger.info(f"Foodcourt {foodcourt.pk} active={foodcourt.is_active} set by {request.user.pk}")
    return Response(FoodcourtSerializer(foodcourt).data)


@extend_schema(
    summary="Set Operating Status",
    description="Open or close a foodcourt. Only possible while the foodcourt is active.",
    request=OperatingStatusSerializer,
    responses={200: FoodcourtSerializer, 409: {'description': 'Foodcourt is deactivated'}}
)
@api_view(['PATCH'])
@permission_classes([CanEditFoodcourt])
def update_operating_status(request, foodcourt_id):
    serializer = OperatingStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    foodcourt = services.set_operating_status(request.foodcourt, serializer.validated_data['operating_status'])
    return Response(FoodcourtSerializer(foodcourt).data)


# =============== PERMISSIONS ===============

class OwnerPermissionListView(generics.ListAPIView):
    queryset = OwnerPermission.objects.select_related('owner', 'foodcourt').order_by('created_at')
    serializer_class = OwnerPermissionSerializer
    permission_classes = [IsAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['owner', 'foodcourt']


class OwnerPermissionDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: A single owner permission row
    put/patch: Change its flags; every change is recorded in the history
    delete: Remove the row (the owner falls back to no rights on the foodcourt)
    """
    queryset = OwnerPermission.objects.select_related('owner', 'foodcourt')
    serializer_class = OwnerPermissionSerializer
    permission_classes = [IsAdmin]
    lookup_url_kwarg = 'permission_id'

    def get_serializer_class(self):
        if self.request.method in ('PUT', 'PATCH'):
            return PermissionFlagsSerializer
        return OwnerPermissionSerializer

    def update(self, request, *args, **kwargs):
        permission = self.get_object()
        serializer = PermissionFlagsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.update_permission(permission, serializer.validated_data, changed_by=request.user)
        return Response(OwnerPermissionSerializer(permission).data)


@extend_schema(
    summary="Default Permissions",
    description="""
    The flags given to owners assigned without a template. Changing them does
    not affect permissions that already exist.
    """,
    request=DefaultPermissionSerializer,
    responses={200: DefaultPermissionSerializer}
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAdmin])
def default_permissions(request):
    if request.method == 'GET':
        return Response(DefaultPermissionSerializer(services.get_default_permission()).data)

    serializer = PermissionFlagsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    default = services.update_default_permission(serializer.validated_data, updated_by=request.user)
    return Response(DefaultPermissionSerializer(default).data)


class PermissionTemplateListCreateView(generics.ListCreateAPIView):
    queryset = PermissionTemplate.objects.select_related('created_by')
    serializer_class = PermissionTemplateSerializer
    permission_classes = [IsAdmin]

    def perform_create(self, serializer):
        template = serializer.save(created_by=self.request.user)
        logger.info(f"Permission template '{template.name}' created by {self.request.user.pk}")


class PermissionTemplateDetailView(generics.RetrieveUpdateDestroyAPIView):
    queryset = PermissionTemplate.objects.select_related('created_by')
    serializer_class = PermissionTemplateSerializer
    permission_classes = [IsAdmin]
    lookup_url_kwarg = 'template_id'


@extend_schema(
    summary="Apply Permission Template",
    description="""
    Write the template's flags onto every foodcourt of each listed owner.
    Owners are handled independently; the response reports each outcome and
    a summary of successes and failures.
    """,
    request=ApplyTemplateSerializer,
    responses={
        200: {
            'type': 'object',
            'properties': {
                'results': {'type': 'array', 'items': {'type': 'object'}},
                'summary': {
                    'type': 'object',
                    'properties': {
                        'total': {'type': 'integer'},
                        'successful': {'type': 'integer'},
                        'failed': {'type': 'integer'},
                    }
                },
            }
        }
    }
)
@api_view(['POST'])
@permission_classes([IsAdmin])
def apply_template(request, template_id):
    template = get_object_or_404(PermissionTemplate, pk=template_id)

    serializer = ApplyTemplateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    outcome = services.apply_template(template, serializer.validated_data['owner_ids'], applied_by=request.user)
    return Response(outcome, status=status.HTTP_200_OK)


@extend_schema(summary="Owner Permission History", responses={200: PermissionHistorySerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsAdmin])
def owner_permission_history(request, owner_id):
    owner = get_object_or_404(CustomUser, pk=owner_id, role=CustomUser.OWNER)
    history = PermissionHistory.objects.filter(permission__owner=owner).select_related(
        'permission', 'changed_by'
    ).order_by('-changed_at')
    return Response(PermissionHistorySerializer(history, many=True).data)


# =============== SYSTEM ===============

@extend_schema(summary="Health Check", responses={200: {'type': 'object'}, 503: {'type': 'object'}})
@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return Response({
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'connected',
        })
    except DatabaseError as e:
        logger.error(f"Health check failed: {e}")
        return Response({
            'status': 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'disconnected',
            'error': str(e)
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)
