from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from django.shortcuts import get_object_or_404
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
import logging

from authentication.exceptions import NotFound
from authentication.permissions import CanViewOrders, CanUpdateOrders, IsAdmin
from . import services, workflow
from .models import Order, OrderItem, OrderNotification, OwnerNotification, Table
from .serializers import (
    OrderCreateSerializer, OrderReadSerializer, OrderDetailSerializer, ItemStatusUpdateSerializer,
    OrderItemReadSerializer, OrderNotificationSerializer, OwnerNotificationSerializer, TableSerializer,
    AdminTableSerializer
)

logger = logging.getLogger(__name__)


class TableListView(generics.ListAPIView):
    """List tables that can take orders"""
    serializer_class = TableSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return Table.objects.filter(is_available=True)


class TableAdminListCreateView(generics.ListCreateAPIView):
    """All tables with their open session; admins add tables here"""
    serializer_class = AdminTableSerializer
    permission_classes = [IsAdmin]

    def get_queryset(self):
        queryset = Table.objects.prefetch_related('sessions')

        is_available = self.request.query_params.get('is_available')
        if is_available is not None:
            queryset = queryset.filter(is_available=is_available.lower() == 'true')

        table_number = self.request.query_params.get('table_number')
        if table_number:
            queryset = queryset.filter(table_number=table_number)

        return queryset

    def perform_create(self, serializer):
        table = serializer.save()
        logger.info(f"{table} created by {self.request.user.pk}")

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('is_available', openapi.IN_QUERY, description="Filter by availability", type=openapi.TYPE_BOOLEAN),
            openapi.Parameter('table_number', openapi.IN_QUERY, description="Exact table number", type=openapi.TYPE_INTEGER),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class TableAdminDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = AdminTableSerializer
    permission_classes = [IsAdmin]
    lookup_url_kwarg = 'table_id'

    def get_queryset(self):
        return Table.objects.prefetch_related('sessions')

    def perform_update(self, serializer):
        table = serializer.save()
        logger.info(f"{table} updated by {self.request.user.pk}")

    @swagger_auto_schema(
        operation_description="Delete a table. Tables with unfinished orders are refused; "
                              "tables with order history are marked unavailable instead.",
        responses={
            200: openapi.Response(description="Table deleted or taken out of service"),
            404: 'Table not found',
            409: 'Table has active orders'
        }
    )
    def delete(self, request, *args, **kwargs):
        table = self.get_object()
        if services.retire_table(table):
            return Response({'message': 'Table deleted successfully', 'deleted': True})
        return Response({'message': 'Table has order history and was marked unavailable', 'deleted': False})


@swagger_auto_schema(
    method='post',
    operation_description="Close the open session of a table. Its next order starts a new session.",
    responses={200: openapi.Response(description="Number of sessions closed")}
)
@api_view(['POST'])
@permission_classes([IsAdmin])
def close_table_session(request, table_id):
    table = get_object_or_404(Table, pk=table_id)
    closed = services.close_table_sessions(table)
    return Response({'closed': closed})


class PublicOrderCreateView(generics.CreateAPIView):
    """Place an order from a table; items may come from several foodcourts"""
    serializer_class = OrderCreateSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    @swagger_auto_schema(
        operation_description="Place an order for a table. Each item is routed to the foodcourt that sells it.",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            required=['table_id', 'items'],
            properties={
                'table_id': openapi.Schema(type=openapi.TYPE_STRING, format=openapi.FORMAT_UUID),
                'customer_name': openapi.Schema(type=openapi.TYPE_STRING, description='Defaults to the table label'),
                'items': openapi.Schema(
                    type=openapi.TYPE_ARRAY,
                    items=openapi.Schema(
                        type=openapi.TYPE_OBJECT,
                        required=['menu_item_id', 'quantity'],
                        properties={
                            'menu_item_id': openapi.Schema(type=openapi.TYPE_STRING, format=openapi.FORMAT_UUID),
                            'quantity': openapi.Schema(type=openapi.TYPE_INTEGER, minimum=1),
                            'special_instructions': openapi.Schema(type=openapi.TYPE_STRING),
                        }
                    )
                )
            }
        ),
        responses={
            201: OrderReadSerializer,
            400: 'Bad Request',
            404: 'Table not found',
            409: 'Some menu items are not available'
        }
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = serializer.save()

        response_serializer = OrderReadSerializer(order)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='get',
    operation_description="Orders placed at a table during its active session",
    manual_parameters=[
        openapi.Parameter('all', openapi.IN_QUERY, description="Include orders from closed sessions", type=openapi.TYPE_BOOLEAN),
    ],
    responses={200: OrderReadSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([AllowAny])
def table_orders(request, table_id):
    table = get_object_or_404(Table, pk=table_id)

    orders = Order.objects.filter(table=table).prefetch_related('items__menu_item', 'items__foodcourt')
    if request.query_params.get('all', '').lower() != 'true':
        orders = orders.filter(table_session__is_active=True)

    serializer = OrderReadSerializer(orders, many=True)
    return Response(serializer.data)


@swagger_auto_schema(
    method='get',
    operation_description="Customer notifications for an order, newest first",
    manual_parameters=[
        openapi.Parameter('unseen', openapi.IN_QUERY, description="Only notifications not yet displayed", type=openapi.TYPE_BOOLEAN),
    ],
    responses={200: OrderNotificationSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([AllowAny])
def order_notifications(request, order_id):
    order = get_object_or_404(Order, pk=order_id)
    notifications = OrderNotification.objects.filter(order=order)
    if request.query_params.get('unseen', '').lower() == 'true':
        notifications = notifications.filter(is_displayed=False)

    data = OrderNotificationSerializer(notifications, many=True).data
    # Polling marks what it returned as displayed
    OrderNotification.objects.filter(pk__in=[n.pk for n in notifications]).update(is_displayed=True)
    return Response(data)


class FoodcourtOrderListView(generics.ListAPIView):
    """List orders containing at least one item of the foodcourt"""
    serializer_class = OrderReadSerializer
    permission_classes = [IsAuthenticated, CanViewOrders]

    def get_queryset(self):
        foodcourt = self.request.foodcourt
        queryset = Order.objects.filter(items__foodcourt=foodcourt).distinct().select_related(
            'table', 'table_session'
        ).prefetch_related('items__menu_item', 'items__foodcourt')

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        item_status = self.request.query_params.get('item_status')
        if item_status:
            queryset = queryset.filter(items__foodcourt=foodcourt, items__status=item_status).distinct()

        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(created_at__date=date_filter)

        return queryset.order_by('-created_at')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['foodcourt'] = self.request.foodcourt
        return context

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('item_status', openapi.IN_QUERY, description="Filter by status of this foodcourt's items", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class FoodcourtOrderDetailView(generics.RetrieveAPIView):
    """An order as seen by one foodcourt: only its own items, with the audit log"""
    serializer_class = OrderDetailSerializer
    permission_classes = [IsAuthenticated, CanViewOrders]
    lookup_url_kwarg = 'order_id'

    def get_queryset(self):
        return Order.objects.filter(items__foodcourt=self.request.foodcourt).distinct().select_related(
            'table', 'table_session'
        ).prefetch_related('items__menu_item', 'items__foodcourt', 'logs__updated_by')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['foodcourt'] = self.request.foodcourt
        return context


@swagger_auto_schema(
    method='patch',
    operation_description="Move an order item of this foodcourt to a new status",
    request_body=ItemStatusUpdateSerializer,
    responses={
        200: OrderItemReadSerializer,
        400: 'Bad Request',
        404: 'Order item not found',
        409: 'Invalid status transition'
    }
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, CanUpdateOrders])
def update_item_status(request, foodcourt_id, item_id):
    item = OrderItem.objects.select_related('menu_item', 'foodcourt').filter(
        pk=item_id, foodcourt=request.foodcourt
    ).first()
    if item is None:
        raise NotFound('Order item not found.')

    serializer = ItemStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    workflow.transition_item(item, serializer.validated_data['status'], request.user)
    item.refresh_from_db()
    return Response(OrderItemReadSerializer(item).data)


class OwnerNotificationListView(generics.ListAPIView):
    """Notifications for the foodcourt's staff"""
    serializer_class = OwnerNotificationSerializer
    permission_classes = [IsAuthenticated, CanViewOrders]

    def get_queryset(self):
        queryset = OwnerNotification.objects.filter(foodcourt=self.request.foodcourt)
        if self.request.query_params.get('unread', '').lower() == 'true':
            queryset = queryset.filter(is_read=False)
        return queryset

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('unread', openapi.IN_QUERY, description="Only unread notifications", type=openapi.TYPE_BOOLEAN),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


@swagger_auto_schema(
    method='post',
    operation_description="Mark owner notifications as read. Without ids every unread notification is marked.",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'ids': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_STRING, format=openapi.FORMAT_UUID)),
        }
    ),
    responses={200: openapi.Response(description="Number of notifications marked")}
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanViewOrders])
def mark_notifications_read(request, foodcourt_id):
    queryset = OwnerNotification.objects.filter(foodcourt=request.foodcourt, is_read=False)
    ids = request.data.get('ids')
    if ids:
        queryset = queryset.filter(pk__in=ids)

    marked = queryset.update(is_read=True)
    logger.info(f"Marked {marked} notification(s) read for foodcourt {request.foodcourt.pk}")
    return Response({'marked': marked})
