from datetime import timedelta
from decimal import Decimal

import pytest

from marketplace.listing.domain import policy
from marketplace.listing.domain.eligibility import evaluate_product, normalize_catalog_item, project_first_eligible
from marketplace.listing.domain.explain import ExplainPipeline
from marketplace.listing.domain.snapshots import ListingFilter
from marketplace.listing.infra.repositories import InMemoryCatalogRepository
from marketplace.tests.builders import CATEGORY_ID, NOW, business, product, size, variant


def fixture_catalog():
    """One product per removal reason, plus combinations and two eligible products."""
    return {
        "eligible": product(),
        "eligible_backorder": product(variants=[variant(sizes=[size(stock=0)], allow_backorder=True)]),
        "unpublished": product(is_published=False),
        "deleted": product(is_deleted=True),
        "variant_unpublished": product(variants=[variant(is_published=False)]),
        "variant_deleted": product(variants=[variant(is_deleted=True)]),
        "no_inventory": product(variants=[variant(sizes=[size(stock=0)])]),
        "no_variants": product(variants=[]),
        "business_inactive": product(owner=business(is_active=False)),
        "business_missing": product(owner=None, business_id=None),
        "subscription_cancelled": product(owner=business(status="cancelled")),
        "subscription_expired": product(owner=business(end_date=NOW - timedelta(hours=1))),
        "subscription_missing": product(owner=business(status=None, plan_id=None)),
        "everything_wrong": product(
            owner=business(is_active=False, status="expired"),
            is_published=False,
            is_deleted=True,
            variants=[variant(is_published=False, is_deleted=True, sizes=[size(stock=0)])],
        ),
    }


@pytest.mark.unit
class TestEvaluateProductUnit:
    def test_eligible_product_has_no_reasons(self):
        verdict = evaluate_product(product(), NOW)
        assert verdict.eligible
        assert verdict.reasons == []
        assert len(verdict.eligible_variants) == 1

    def test_backorder_makes_out_of_stock_variant_eligible(self):
        verdict = evaluate_product(
            product(variants=[variant(sizes=[size(stock=0)], allow_backorder=True)]), NOW
        )
        assert verdict.eligible

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("unpublished", [policy.REASON_PRODUCT_UNPUBLISHED]),
            ("deleted", [policy.REASON_PRODUCT_DELETED]),
            ("variant_unpublished", [policy.REASON_NO_ELIGIBLE_VARIANTS]),
            ("variant_deleted", [policy.REASON_NO_ELIGIBLE_VARIANTS]),
            ("no_inventory", [policy.REASON_NO_ELIGIBLE_VARIANTS]),
            ("no_variants", [policy.REASON_NO_ELIGIBLE_VARIANTS]),
            ("business_inactive", [policy.REASON_BUSINESS_INACTIVE]),
            ("business_missing", [policy.REASON_BUSINESS_INACTIVE, policy.REASON_NO_ACTIVE_SUBSCRIPTION]),
            ("subscription_cancelled", [policy.REASON_NO_ACTIVE_SUBSCRIPTION]),
            ("subscription_expired", [policy.REASON_NO_ACTIVE_SUBSCRIPTION]),
            ("subscription_missing", [policy.REASON_NO_ACTIVE_SUBSCRIPTION]),
        ],
    )
    def test_single_reason(self, name, expected):
        verdict = evaluate_product(fixture_catalog()[name], NOW)
        assert not verdict.eligible
        assert verdict.reasons == expected

    def test_reasons_accumulate(self):
        verdict = evaluate_product(fixture_catalog()["everything_wrong"], NOW)
        assert verdict.reasons == [
            policy.REASON_PRODUCT_UNPUBLISHED,
            policy.REASON_PRODUCT_DELETED,
            policy.REASON_NO_ELIGIBLE_VARIANTS,
            policy.REASON_BUSINESS_INACTIVE,
            policy.REASON_NO_ACTIVE_SUBSCRIPTION,
        ]
        assert verdict.variant_issues[0].reasons == [
            policy.REASON_VARIANT_UNPUBLISHED,
            policy.REASON_VARIANT_DELETED,
            policy.REASON_VARIANT_NO_INVENTORY,
        ]

    def test_future_end_date_is_active(self):
        verdict = evaluate_product(product(owner=business(end_date=NOW + timedelta(days=1))), NOW)
        assert verdict.eligible

    def test_size_filter_requires_matching_eligible_size(self):
        item = product(variants=[variant(sizes=[size(label="S", stock=0), size(label="L", stock=3)])])

        assert evaluate_product(item, NOW, size_label="L").eligible
        small = evaluate_product(item, NOW, size_label="S")
        assert small.reasons == [policy.REASON_NO_ELIGIBLE_VARIANTS]
        assert small.variant_issues[0].reasons == [policy.REASON_VARIANT_NO_INVENTORY]


@pytest.mark.unit
class TestFilterExplainEquivalenceUnit:
    """The listing scan and the explain output must agree on every fixture."""

    def setup_method(self):
        self.catalog = fixture_catalog()
        self.repository = InMemoryCatalogRepository(self.catalog.values())
        self.listing_filter = ListingFilter(category_id=CATEGORY_ID)

    def test_every_product_is_either_listed_or_explained(self):
        listed = {
            item.id
            for item in self.repository.find_eligible_catalog_items(self.listing_filter, scan_limit=1000, now=NOW)
        }
        explained = {log.product_id for log in ExplainPipeline(self.repository).explain(self.listing_filter, NOW)}

        assert listed == {self.catalog["eligible"].id, self.catalog["eligible_backorder"].id}
        assert listed.isdisjoint(explained)
        assert listed | explained == {snapshot.id for snapshot in self.catalog.values()}

    def test_explained_reasons_match_shared_decision(self):
        logs = ExplainPipeline(self.repository).explain(self.listing_filter, NOW)

        for log in logs:
            snapshot = next(item for item in self.catalog.values() if item.id == log.product_id)
            assert log.removal_reasons == evaluate_product(snapshot, NOW).reasons

    def test_explain_honours_result_bound(self):
        for _ in range(150):
            self.repository.add_product(product(is_published=False))

        logs = ExplainPipeline(self.repository).explain(self.listing_filter, NOW, result_limit=1)

        # Lower bound of the explain result cap
        assert len(logs) == policy.EXPLAIN_RESULT_BOUNDS[0]

    def test_invalid_scope_explains_nothing(self):
        logs = ExplainPipeline(self.repository).explain(ListingFilter(category_id="not-a-uuid"), NOW)
        assert logs == []
        assert self.repository.explain_scans == 0


@pytest.mark.unit
class TestNormalizationUnit:
    def test_first_eligible_skips_ineligible_variants_in_stored_order(self):
        first_variant = variant(variant_id="v1", sizes=[size(stock=0)])
        second_variant = variant(variant_id="v2", sizes=[size(label="XL", price="35.00")])

        first = project_first_eligible([first_variant, second_variant], NOW)

        assert first.variant_id == "v2"
        assert first.size == "XL"
        assert first.effective_price == Decimal("35.00")

    def test_sale_price_applies_only_before_expiry(self):
        on_sale = size(price="50.00", sale_price="40.00", discount_end_date=NOW + timedelta(days=1))
        expired = size(price="50.00", sale_price="40.00", discount_end_date=NOW - timedelta(seconds=1))
        no_expiry = size(price="50.00", sale_price="40.00")

        assert project_first_eligible([variant(sizes=[on_sale])], NOW).effective_price == Decimal("40.00")
        assert project_first_eligible([variant(sizes=[on_sale])], NOW).on_sale is True
        assert project_first_eligible([variant(sizes=[expired])], NOW).effective_price == Decimal("50.00")
        assert project_first_eligible([variant(sizes=[no_expiry])], NOW).on_sale is False

    def test_item_without_priced_size_is_dropped(self):
        verdict = evaluate_product(product(variants=[variant(sizes=[size(price=None)])]), NOW)

        assert verdict.eligible
        assert normalize_catalog_item(verdict, NOW) is None

    def test_rating_rollup_over_eligible_variants(self):
        item = product(
            variants=[
                variant(rating=4.0, reviews=10),
                variant(rating=2.0, reviews=4),
                variant(rating=5.0, reviews=100, is_published=False),
            ]
        )

        normalized = normalize_catalog_item(evaluate_product(item, NOW), NOW)

        assert normalized.rating_average == pytest.approx(3.0)
        assert normalized.rating_count == 14
        assert normalized.plan_id == "plan-basic"
