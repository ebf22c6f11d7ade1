from django.urls import path

from .views import (
    InventoryHealthView,
    InventoryStatsView,
    InventoryTreeView,
    LocationListCreateView,
    VariantDeleteView,
    VariantResolveView,
    VariantSearchView,
)

urlpatterns = [
    path("health/", InventoryHealthView.as_view(), name="inventory-health"),
    path("tree/", InventoryTreeView.as_view(), name="inventory-tree"),
    path("stats/", InventoryStatsView.as_view(), name="inventory-stats"),
    path("locations/", LocationListCreateView.as_view(), name="location-list"),
    path("variants/search/", VariantSearchView.as_view(), name="variant-search"),
    path("variants/resolve/", VariantResolveView.as_view(), name="variant-resolve"),
    path("variants/<int:variant_id>/", VariantDeleteView.as_view(), name="variant-delete"),
]

# EOF
