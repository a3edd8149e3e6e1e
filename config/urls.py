from django.conf import settings
from django.contrib import admin
from django.urls import include
from django.urls import path
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from drf_spectacular.views import SpectacularAPIView
from drf_spectacular.views import SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.views import TokenVerifyView

from .health import health as health_view

urlpatterns = [
    # Django Admin, use {% url 'admin:index' %}
    path(settings.ADMIN_URL, admin.site.urls),
    path("health/", health_view, name="health"),
]


# Annotated JWT views for proper schema tag grouping
@extend_schema_view(post=extend_schema(tags=["JWT Authentication"]))
class JWTRefreshView(TokenRefreshView):
    pass


@extend_schema_view(post=extend_schema(tags=["JWT Authentication"]))
class JWTVerifyView(TokenVerifyView):
    pass


# API URLS (only version v1 retained)
urlpatterns += [
    # Compatibility prefix for clients that call `/api/...`.
    # Prefer `/api/v1/...` long-term.
    path("api/", include(("config.api_router", "api"), namespace="api")),
    # API v1 (namespace 'api_v1')
    path("api/v1/", include(("config.api_router", "api"), namespace="api_v1")),
    # v1 schema/docs
    path("api/v1/schema/", SpectacularAPIView.as_view(), name="api-schema-v1"),
    path(
        "api/v1/docs/",
        SpectacularSwaggerView.as_view(url_name="api-schema-v1"),
        name="api-docs-v1",
    ),
    # v1 auth: register / login / profile
    path(
        "api/v1/auth/",
        include(("itemchat.users.api.auth_urls", "auth"), namespace="auth_v1"),
    ),
    path("api/v1/auth/jwt/refresh/", JWTRefreshView.as_view(), name="jwt-refresh"),
    path("api/v1/auth/jwt/verify/", JWTVerifyView.as_view(), name="jwt-verify"),
]

handler404 = "config.health.route_not_found"
