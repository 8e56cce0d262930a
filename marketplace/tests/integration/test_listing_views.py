from collections import Counter
from contextlib import contextmanager
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError, OperationalError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from marketplace.listing.infra.repositories import DjangoCatalogRepository
from marketplace.tests.factories import (
    BusinessFactory,
    CategoryFactory,
    SubcategoryFactory,
    SubscriptionPlanFactory,
    create_listed_product,
)


@pytest.mark.integration
class RankedListingViewIntegrationTest(TestCase):
    def setUp(self):
        container.reset()
        container.billing("database")
        self.client = APIClient()

        self.category = CategoryFactory(name="Shoes", slug="shoes")
        self.subcategory = SubcategoryFactory(category=self.category, name="Sneakers", slug="sneakers")
        self.free = SubscriptionPlanFactory(name="Free", price=Decimal("0.00"))
        self.pro = SubscriptionPlanFactory(name="Pro", price=Decimal("10.00"))
        self.premium = SubscriptionPlanFactory(name="Premium", price=Decimal("50.00"))

        created_at = timezone.now() - timedelta(days=3)
        for plan in (self.free, self.pro, self.premium):
            for _ in range(2):
                business = BusinessFactory(plan=plan)
                for _ in range(4):
                    create_listed_product(business, self.category, created_at=created_at)

        # Using the router names from urls.py with app namespace
        self.list_url = reverse("marketplace:listing-product-list")

    def tearDown(self):
        container.reset()

    def similar_url(self, product_id):
        return reverse("marketplace:listing-product-similar", kwargs={"pk": product_id})

    def test_first_page_mixes_plans_by_weight(self):
        response = self.client.get(self.list_url, {"categorySlug": "shoes", "pageSize": 6, "maxPerVendor": 2})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(set(data), {"items", "total", "page", "pageSize", "totalPages", "mix"})
        self.assertEqual(len(data["items"]), 6)
        self.assertEqual(data["items"][0]["planId"], str(self.premium.id))
        self.assertEqual(data["mix"], {str(self.premium.id): 4, str(self.pro.id): 2})
        self.assertLessEqual(max(Counter(item["businessId"] for item in data["items"]).values()), 2)
        self.assertFalse(any(item["capRelaxed"] for item in data["items"]))

    def test_item_shape(self):
        response = self.client.get(self.list_url, {"categorySlug": "shoes", "pageSize": 1})

        item = response.json()["items"][0]
        self.assertEqual(item["firstEligible"]["size"], "M")
        self.assertEqual(item["firstEligible"]["price"], "49.90")
        self.assertEqual(item["firstEligible"]["effectivePrice"], "49.90")
        self.assertFalse(item["firstEligible"]["onSale"])
        self.assertEqual(item["ratingCount"], 10)

    def test_adjacent_pages_do_not_overlap(self):
        params = {"categoryId": str(self.category.id), "pageSize": 5, "maxPerVendor": 0}

        first = self.client.get(self.list_url, {**params, "page": 1}).json()
        second = self.client.get(self.list_url, {**params, "page": 2}).json()

        self.assertEqual(first["total"], 24)
        self.assertEqual(first["totalPages"], 5)
        self.assertFalse({i["id"] for i in first["items"]} & {i["id"] for i in second["items"]})

    def test_unknown_category_slug_returns_404(self):
        response = self.client.get(self.list_url, {"categorySlug": "nonexistent"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "category_not_found")

    def test_unknown_subcategory_slug_returns_404(self):
        response = self.client.get(self.list_url, {"subcategorySlug": "sandals"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "subcategory_not_found")

    def test_subcategory_slug(self):
        inside = create_listed_product(BusinessFactory(plan=self.pro), self.category, subcategory=self.subcategory)

        response = self.client.get(self.list_url, {"subcategorySlug": "sneakers"})

        self.assertEqual([item["id"] for item in response.json()["items"]], [str(inside.id)])

    def test_expired_subscription_is_not_listed(self):
        expired = BusinessFactory(plan=self.premium, plan__end_date=timezone.now() - timedelta(days=1))
        product = create_listed_product(expired, self.category)

        response = self.client.get(self.list_url, {"categorySlug": "shoes", "pageSize": 60, "maxPerVendor": 0})

        self.assertNotIn(str(product.id), {item["id"] for item in response.json()["items"]})

    def test_debug_block_is_not_cacheable(self):
        hidden = create_listed_product(BusinessFactory(plan=self.pro), self.category, is_published=False)

        response = self.client.get(self.list_url, {"categorySlug": "shoes", "debug": "1"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Cache-Control"], "no-store")
        debug = response.json()["debug"]
        self.assertEqual(set(debug), {"removedAtAggregation", "removedByCap", "notOnPage", "timings"})
        removed = {log["productId"]: log for log in debug["removedAtAggregation"]}
        self.assertIn("product_unpublished", removed[str(hidden.id)]["removalReasons"])

    def test_store_failure_returns_generic_500(self):
        with patch.object(
            DjangoCatalogRepository,
            "find_eligible_catalog_items",
            side_effect=DatabaseError('relation "secret_table" does not exist'),
        ):
            response = self.client.get(self.list_url, {"categorySlug": "shoes"})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "internal_error", "message": "Internal server error"})
        self.assertNotIn(b"secret_table", response.content)

    def test_minority_type_filter(self):
        owned = BusinessFactory(plan=self.free, minority_type="Indigenous-owned")
        expected = {str(create_listed_product(owned, self.category).id) for _ in range(2)}

        response = self.client.get(self.list_url, {"categorySlug": "shoes", "minorityType": "indigenous"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({item["id"] for item in response.json()["items"]}, expected)

    def test_statement_timeout_returns_generic_500(self):
        @contextmanager
        def cancelled(timeout_ms):
            raise OperationalError("canceling statement due to statement timeout")
            yield

        with patch("marketplace.listing.infra.repositories.django_repository.statement_timeout", cancelled):
            response = self.client.get(self.list_url, {"categorySlug": "shoes"})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "internal_error", "message": "Internal server error"})
        self.assertNotIn(b"statement timeout", response.content)

    def test_similar_excludes_seed(self):
        business = BusinessFactory(plan=self.premium)
        seed = create_listed_product(business, self.category, subcategory=self.subcategory)
        sibling = create_listed_product(BusinessFactory(plan=self.pro), self.category, subcategory=self.subcategory)

        response = self.client.get(self.similar_url(seed.id))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.json()["items"]], [str(sibling.id)])
        self.assertEqual(response.json()["pageSize"], 8)

    def test_similar_invalid_and_unknown_ids(self):
        self.assertEqual(self.client.get(self.similar_url("not-a-uuid")).status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(self.similar_url("6f1c2b9e-4a55-4a8e-9a3e-2f0d4c1b7a10"))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "product_not_found")

    def test_similar_unknown_strategy_uses_category(self):
        seed = create_listed_product(BusinessFactory(plan=self.pro), self.category, subcategory=self.subcategory)

        response = self.client.get(self.similar_url(seed.id), {"strategy": "brand"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [item["id"] for item in response.json()["items"]]
        self.assertNotIn(str(seed.id), ids)
        # the 24 setUp products have no subcategory and are reached only through the category
        self.assertEqual(response.json()["total"], 24)

    def test_metrics_endpoint(self):
        self.client.get(self.list_url, {"categorySlug": "shoes"})

        response = self.client.get(reverse("marketplace:marketplace-metrics"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b"marketplace_listing_requests_total", response.content)
