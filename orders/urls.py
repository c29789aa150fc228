from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Tables
    path('tables/', views.TableListView.as_view(), name='table-list'),
    path('admin/tables/', views.TableAdminListCreateView.as_view(), name='admin-table-list'),
    path('admin/tables/<uuid:table_id>/', views.TableAdminDetailView.as_view(), name='admin-table-detail'),
    path('admin/tables/<uuid:table_id>/close-session/', views.close_table_session, name='admin-table-close-session'),

    # Customer facing
    path('public/', views.PublicOrderCreateView.as_view(), name='order-create'),
    path('public/tables/<uuid:table_id>/', views.table_orders, name='table-orders'),
    path('public/<uuid:order_id>/notifications/', views.order_notifications, name='order-notifications'),

    # Foodcourt staff
    path('foodcourt/<uuid:foodcourt_id>/', views.FoodcourtOrderListView.as_view(), name='foodcourt-orders'),
    path('foodcourt/<uuid:foodcourt_id>/<uuid:order_id>/', views.FoodcourtOrderDetailView.as_view(), name='foodcourt-order-detail'),
    path('foodcourt/<uuid:foodcourt_id>/items/<uuid:item_id>/status/', views.update_item_status, name='item-status'),
    path('foodcourt/<uuid:foodcourt_id>/notifications/', views.OwnerNotificationListView.as_view(), name='owner-notifications'),
    path('foodcourt/<uuid:foodcourt_id>/notifications/read/', views.mark_notifications_read, name='owner-notifications-read'),
]
