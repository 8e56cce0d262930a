"""
Serializers for ranked listing responses.

They read the service layer's dataclasses directly; field names follow the
camelCase query parameters of the listing endpoints.
"""

from rest_framework import serializers


class FirstEligibleSerializer(serializers.Serializer):
    """First sellable variant/size pair shown on the product card"""

    variantId = serializers.CharField(source="variant_id")
    label = serializers.CharField()
    color = serializers.CharField()
    images = serializers.ListField(child=serializers.CharField())
    averageRating = serializers.FloatField(source="average_rating", allow_null=True)
    totalReviews = serializers.IntegerField(source="total_reviews", allow_null=True)
    allowBackorder = serializers.BooleanField(source="allow_backorder")
    totalStock = serializers.IntegerField(source="total_stock")
    size = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    salePrice = serializers.DecimalField(source="sale_price", max_digits=10, decimal_places=2, allow_null=True)
    discountEndDate = serializers.DateTimeField(source="discount_end_date", allow_null=True)
    onSale = serializers.BooleanField(source="on_sale")
    effectivePrice = serializers.DecimalField(source="effective_price", max_digits=10, decimal_places=2)


class RankedItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField(source="item.title")
    slug = serializers.CharField(source="item.slug")
    businessId = serializers.CharField(source="business_id")
    businessName = serializers.CharField(source="item.business_name")
    planId = serializers.CharField(source="plan_id")
    score = serializers.FloatField()
    capRelaxed = serializers.BooleanField(source="cap_relaxed")
    createdAt = serializers.DateTimeField(source="item.created_at", allow_null=True)
    ratingAverage = serializers.FloatField(source="item.rating_average")
    ratingCount = serializers.IntegerField(source="item.rating_count")
    firstEligible = FirstEligibleSerializer(source="item.first_eligible")


class VariantIssueSerializer(serializers.Serializer):
    variantId = serializers.CharField(source="variant_id")
    reasons = serializers.ListField(child=serializers.CharField())


class RemovalLogSerializer(serializers.Serializer):
    """Product dropped before ranking, with every reason that applies"""

    productId = serializers.CharField(source="product_id")
    productTitle = serializers.CharField(source="product_title")
    businessId = serializers.CharField(source="business_id", allow_null=True)
    businessName = serializers.CharField(source="business_name", allow_null=True)
    planId = serializers.CharField(source="plan_id", allow_null=True)
    removalReasons = serializers.ListField(source="removal_reasons", child=serializers.CharField())
    variantIssues = VariantIssueSerializer(source="variant_issues", many=True)


class CapRemovalSerializer(serializers.Serializer):
    productId = serializers.CharField(source="product_id")
    businessId = serializers.CharField(source="business_id")
    businessName = serializers.CharField(source="business_name")
    planId = serializers.CharField(source="plan_id")
    reason = serializers.CharField()


class NotOnPageSerializer(serializers.Serializer):
    productId = serializers.CharField()
    businessId = serializers.CharField()
    planId = serializers.CharField()
    reason = serializers.CharField()
    capRelaxed = serializers.BooleanField()


class ListingDebugSerializer(serializers.Serializer):
    removedAtAggregation = RemovalLogSerializer(source="removed_at_aggregation", many=True)
    removedByCap = CapRemovalSerializer(source="removed_by_cap", many=True)
    notOnPage = NotOnPageSerializer(source="not_on_page", many=True)
    timings = serializers.DictField(child=serializers.FloatField())


class ListingPageSerializer(serializers.Serializer):
    """One page of a ranked listing; ``debug`` only when requested and computed"""

    items = RankedItemSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    pageSize = serializers.IntegerField(source="page_size")
    totalPages = serializers.IntegerField(source="total_pages")
    mix = serializers.DictField(child=serializers.IntegerField())
    debug = ListingDebugSerializer(required=False)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if data.get("debug") is None:
            data.pop("debug", None)
        return data
