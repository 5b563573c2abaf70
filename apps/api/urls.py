"""API URL configuration."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "api"

router = DefaultRouter()
router.register("catalog", views.CatalogViewSet, basename="catalog")
router.register("admin/catalog", views.AdminCatalogViewSet, basename="admin-catalog")
router.register("images", views.ImageViewSet, basename="images")
router.register("inventory", views.InventoryViewSet, basename="inventory")

urlpatterns = [
    path("", include(router.urls)),
]
