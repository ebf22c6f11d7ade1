"""URL routes for the catalog app."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ColorViewSet, ProductViewSet, SizeViewSet

router = SimpleRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"colors", ColorViewSet, basename="color")
router.register(r"sizes", SizeViewSet, basename="size")

urlpatterns = [path("", include(router.urls))]
