"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Color, Product, ProductColor, Size, Variant


class ProductColorInline(admin.TabularInline):
    model = ProductColor
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "created_at")
    search_fields = ("name",)
    inlines = [ProductColorInline]


@admin.register(Color)
class ColorAdmin(admin.ModelAdmin):
    list_display = ("name", "hex_code")
    search_fields = ("name",)


@admin.register(Size)
class SizeAdmin(admin.ModelAdmin):
    list_display = ("name", "sort_order")
    ordering = ("sort_order", "name")


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    list_display = ("id", "product_color", "size", "created_at")
    search_fields = ("product_color__product__name", "product_color__color__name", "size__name")
    list_filter = ("size",)
    list_select_related = ("product_color__product", "product_color__color", "size")
