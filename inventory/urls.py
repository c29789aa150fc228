from django.urls import path
from . import views

app_name = 'inventory'

urlpatterns = [
    # Owner / admin menu management
    path('foodcourt/<uuid:foodcourt_id>/categories/', views.MenuCategoryListCreateView.as_view(), name='category-list-create'),
    path('foodcourt/<uuid:foodcourt_id>/items/', views.MenuItemListCreateView.as_view(), name='menu-list-create'),
    path('foodcourt/<uuid:foodcourt_id>/items/<uuid:menu_id>/', views.MenuItemDetailView.as_view(), name='menu-detail'),
    path('foodcourt/<uuid:foodcourt_id>/items/<uuid:menu_id>/availability/', views.update_menu_availability, name='menu-availability'),

    # Public
    path('public/foodcourt/<uuid:foodcourt_id>/', views.public_menu, name='public-menu'),
]
