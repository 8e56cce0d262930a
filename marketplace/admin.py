from django.contrib import admin

from .models import (
    Business, Category, Product, ProductSize, ProductVariant,
    Subcategory, Subscription, SubscriptionPlan
)


class SubcategoryInline(admin.TabularInline):
    model = Subcategory
    extra = 0
    fields = ('name', 'slug', 'is_active')


class ProductSizeInline(admin.TabularInline):
    model = ProductSize
    extra = 0
    fields = ('size', 'sku', 'stock', 'price', 'sale_price', 'discount_end_date', 'position')


class ProductVariantInline(admin.StackedInline):
    model = ProductVariant
    extra = 0
    fields = ('label', 'color', 'is_published', 'is_deleted', 'allow_backorder', 'position')
    readonly_fields = ('average_rating', 'total_reviews')
    show_change_link = True


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'is_active', 'product_count', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('name', 'description')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [SubcategoryInline]

    def product_count(self, obj):
        return obj.products.filter(is_published=True, is_deleted=False).count()
    product_count.short_description = "Published Products"


@admin.register(Subcategory)
class SubcategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'slug', 'is_active')
    list_filter = ('is_active', 'category')
    search_fields = ('name', 'slug')
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('title', 'business', 'category', 'subcategory', 'brand',
                    'is_published', 'is_deleted', 'created_at')
    list_filter = ('is_published', 'is_deleted', 'category', 'created_at')
    search_fields = ('title', 'description', 'brand', 'business__name')
    readonly_fields = ('id', 'created_at', 'updated_at')

    inlines = [ProductVariantInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'title', 'slug', 'description', 'brand', 'minority_type')
        }),
        ('Business & Taxonomy', {
            'fields': ('business', 'category', 'subcategory')
        }),
        ('Status & Visibility', {
            'fields': ('is_published', 'is_deleted')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('business', 'category', 'subcategory')

    actions = ['publish_products', 'unpublish_products']

    def publish_products(self, request, queryset):
        updated = queryset.update(is_published=True)
        self.message_user(request, f"{updated} products published.")
    publish_products.short_description = "Publish selected products"

    def unpublish_products(self, request, queryset):
        updated = queryset.update(is_published=False)
        self.message_user(request, f"{updated} products unpublished.")
    unpublish_products.short_description = "Unpublish selected products"


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ('product', 'label', 'color', 'is_published', 'is_deleted',
                    'allow_backorder', 'average_rating', 'total_reviews')
    list_filter = ('is_published', 'is_deleted', 'allow_backorder')
    search_fields = ('product__title', 'label', 'color')
    inlines = [ProductSizeInline]


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ('name', 'price', 'stripe_price_id', 'created_at')
    search_fields = ('name', 'stripe_price_id')


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ('business', 'plan', 'status', 'start_date', 'end_date')
    list_filter = ('status', 'plan')
    search_fields = ('business__name', 'stripe_subscription_id')
    raw_id_fields = ('business',)


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'is_active', 'subscription', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'owner__username')
    raw_id_fields = ('owner', 'subscription')
