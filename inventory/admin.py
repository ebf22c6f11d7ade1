"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import Location, StockBalance, StockMovement


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "name", "is_default", "created_at")
    search_fields = ("code", "name")


@admin.register(StockBalance)
class StockBalanceAdmin(admin.ModelAdmin):
    list_display = ("id", "variant", "location", "quantity_on_hand", "avg_cost", "updated_at")
    list_filter = ("location",)
    search_fields = ("variant__product_color__product__name", "variant__product_color__color__name")
    readonly_fields = ("variant", "location", "quantity_on_hand", "avg_cost", "updated_at")

    # Balances only change through ledger movements
    def has_add_permission(self, request):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "variant", "location", "direction", "reason_code", "quantity", "ref_code", "created_at")
    list_filter = ("direction", "reason_code", "location")
    search_fields = ("ref_code", "note", "variant__product_color__product__name")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# EOF
