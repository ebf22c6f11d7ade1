"""Admin registrations for opname app."""

from django.contrib import admin

from .models import StockOpname, StockOpnameItem


class StockOpnameItemInline(admin.TabularInline):
    model = StockOpnameItem
    extra = 0
    fields = ("variant", "location", "system_qty", "counted_qty", "counted_by", "counted_at", "note")
    readonly_fields = ("variant", "location", "system_qty", "counted_at")
    can_delete = False


@admin.register(StockOpname)
class StockOpnameAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "location", "status", "snapshot_at", "completed_at", "created_by")
    list_filter = ("status", "location")
    search_fields = ("code",)
    readonly_fields = ("status", "snapshot_at", "completed_at")
    inlines = [StockOpnameItemInline]
