from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework import permissions

# Setup Swagger schema view
schema_view = get_schema_view(
    openapi.Info(
        title='API Documentation FOODHALL',
        default_version='v1',
        description="API for ordering across the food court stalls and managing them",
    ),
    public=True,  # Set public to True for public access
    permission_classes=(permissions.AllowAny,),  # Allow public access
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path("api/", include("authentication.urls")),
    path("api/menu/", include("inventory.urls")),
    path("api/orders/", include('orders.urls')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
]
