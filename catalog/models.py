"""Catalog app models.

Defines the variant identity chain for apparel stock: products, colors and
sizes, the product–color pairing, and the product–color–size variant that
the stock ledger is keyed on.
"""

from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """A sellable garment model (e.g. "Poloshirt")."""

    name = models.CharField(max_length=200, unique=True)
    price = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                name="product_price_non_negative",
                condition=models.Q(price__gte=0) | models.Q(price__isnull=True),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Color(TimeStampedModel):
    name = models.CharField(max_length=100, unique=True)
    hex_code = models.CharField(max_length=7, default="#808080")

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Size(TimeStampedModel):
    name = models.CharField(max_length=20, unique=True)
    sort_order = models.IntegerField(default=10)

    class Meta:
        ordering = ["sort_order", "name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class ProductColor(TimeStampedModel):
    """Colors a product is available in."""

    product = models.ForeignKey(Product, related_name="product_colors", on_delete=models.CASCADE)
    color = models.ForeignKey(Color, related_name="product_colors", on_delete=models.CASCADE)

    class Meta:
        ordering = ["product__name", "color__name"]
        constraints = [
            models.UniqueConstraint(fields=["product", "color"], name="unique_product_color"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product.name} / {self.color.name}"


class Variant(TimeStampedModel):
    """Stock-keeping unit: one product + color + size combination."""

    product_color = models.ForeignKey(ProductColor, related_name="variants", on_delete=models.CASCADE)
    size = models.ForeignKey(Size, related_name="variants", on_delete=models.CASCADE)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["product_color", "size"], name="unique_product_color_size"),
        ]
        indexes = [
            models.Index(fields=["size"], name="catalog_var_size_id_idx"),
        ]

    @property
    def product(self) -> Product:
        return self.product_color.product

    @property
    def color(self) -> Color:
        return self.product_color.color

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product_color.product.name} / {self.product_color.color.name} / {self.size.name}"
