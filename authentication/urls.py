from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

from . import views

urlpatterns = [
    # =============== API DOCUMENTATION ===============
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # =============== AUTHENTICATION ===============
    path('auth/login/', views.CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('profile/', views.MyProfileView.as_view(), name='my_profile'),

    # =============== USERS ===============
    path('users/', views.UserListCreateView.as_view(), name='user_list_create'),

    # =============== FOODCOURTS ===============
    path('foodcourts/', views.FoodcourtListCreateView.as_view(), name='foodcourt_list_create'),
    path('foodcourts/<uuid:foodcourt_id>/', views.FoodcourtDetailView.as_view(), name='foodcourt_detail'),
    path('foodcourts/<uuid:foodcourt_id>/assign-owner/', views.assign_owner, name='assign_owner'),
    path('foodcourts/<uuid:foodcourt_id>/unassign-owner/', views.unassign_owner, name='unassign_owner'),
    path('foodcourts/<uuid:foodcourt_id>/toggle-active/', views.toggle_foodcourt_active, name='toggle_foodcourt_active'),
    path('foodcourts/<uuid:foodcourt_id>/operating-status/', views.update_operating_status, name='operating_status'),

    # =============== PERMISSIONS ===============
    path('permissions/', views.OwnerPermissionListView.as_view(), name='permission_list'),
    path('permissions/defaults/', views.default_permissions, name='default_permissions'),
    path('permissions/templates/', views.PermissionTemplateListCreateView.as_view(), name='template_list_create'),
    path('permissions/templates/<uuid:template_id>/', views.PermissionTemplateDetailView.as_view(), name='template_detail'),
    path('permissions/templates/<uuid:template_id>/apply/', views.apply_template, name='apply_template'),
    path('permissions/<uuid:permission_id>/', views.OwnerPermissionDetailView.as_view(), name='permission_detail'),
    path('owners/<uuid:owner_id>/permission-history/', views.owner_permission_history, name='owner_permission_history'),

    # =============== SYSTEM ===============
    path('health/', views.health_check, name='health_check'),
]
