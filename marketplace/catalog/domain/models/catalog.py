import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.text import slugify

from marketplace.vendors.domain.models import Business

from .category import Category, Subcategory


class Product(models.Model):
    # Basic Information
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    description = models.TextField(blank=True)
    brand = models.CharField(max_length=100, blank=True)
    # Copied from the owning business when the product is created
    minority_type = models.CharField(max_length=60, blank=True)

    # Owner and taxonomy
    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name="products")
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="products")
    subcategory = models.ForeignKey(
        Subcategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="products"
    )

    # Status and Visibility
    is_published = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        app_label = "marketplace"
        indexes = [
            # Listing scans: newest first inside a taxonomy node
            models.Index(fields=["is_published", "is_deleted", "-created_at"], name="product_listing_idx"),
            models.Index(
                fields=["category", "is_published", "is_deleted", "-created_at"], name="product_category_listing_idx"
            ),
            models.Index(
                fields=["subcategory", "is_published", "is_deleted", "-created_at"], name="product_subcat_listing_idx"
            ),
            models.Index(fields=["business", "is_published"], name="product_business_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(f"{self.title}-{str(self.id)[:8]}")
        if not self.minority_type and self.business_id:
            self.minority_type = self.business.minority_type
        super().save(*args, **kwargs)

    def __str__(self):
        return self.title


class ProductVariant(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    label = models.CharField(max_length=120, blank=True)
    color = models.CharField(max_length=60, blank=True)
    images = models.JSONField(default=list, blank=True)

    is_published = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    allow_backorder = models.BooleanField(default=False)

    # Rating rollups maintained by the review flow
    average_rating = models.FloatField(default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "id"]
        app_label = "marketplace"
        indexes = [models.Index(fields=["product", "is_published", "is_deleted"], name="variant_product_state_idx")]

    def save(self, *args, **kwargs):
        self.color = (self.color or "").strip().lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product.title} ({self.label or self.color or self.pk})"


class ProductSize(models.Model):
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name="sizes")
    size = models.CharField(max_length=20)
    sku = models.CharField(max_length=64, unique=True)
    stock = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    sale_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    discount_end_date = models.DateTimeField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]
        app_label = "marketplace"

    def save(self, *args, **kwargs):
        self.size = (self.size or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.sku} [{self.size}]"
