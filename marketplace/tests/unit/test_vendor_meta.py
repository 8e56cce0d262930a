import threading
import time

import pytest

from infrastructure.billing import MockBillingProvider, PlanRecord
from marketplace.listing.domain import policy
from marketplace.listing.domain.interleave import normalize_weights
from marketplace.listing.domain.vendor_meta import PlanMetaCache, VendorMetadataResolver, build_plan_meta


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def billing():
    provider = MockBillingProvider()
    provider.add_plan("free", "0", name="Free")
    provider.add_plan("pro", "10", name="Pro")
    provider.add_plan("premium", "50", name="Premium")
    return provider


@pytest.mark.unit
class TestBuildPlanMetaUnit:
    def test_priorities_and_weights(self, billing):
        meta = build_plan_meta(billing.plans)

        assert {plan_id: m.priority for plan_id, m in meta.items()} == {"premium": 3, "pro": 2, "free": 1}
        assert meta["premium"].weight == pytest.approx(1.0)
        assert meta["pro"].weight == pytest.approx(0.2)
        assert meta["free"].weight == pytest.approx(policy.MIN_WEIGHT_EPS)

    def test_equal_prices_keep_store_order(self):
        plans = [PlanRecord("a", "A", 10), PlanRecord("b", "B", 10), PlanRecord("c", "C", 5)]

        meta = build_plan_meta(plans)

        assert (meta["a"].priority, meta["b"].priority, meta["c"].priority) == (3, 2, 1)

    def test_all_free_plans_interleave_equally(self):
        meta = build_plan_meta([PlanRecord("a", "A", 0), PlanRecord("b", "B", 0)])

        assert {m.weight for m in meta.values()} == {policy.MIN_WEIGHT_EPS}
        assert normalize_weights(["a", "b"], {k: m.weight for k, m in meta.items()}) == {"a": 1.0, "b": 1.0}

    def test_no_plans(self):
        assert build_plan_meta([]) == {}
        assert build_plan_meta(None) == {}


@pytest.mark.unit
class TestPlanMetaCacheUnit:
    def test_reloads_only_after_ttl(self, billing):
        clock = FakeClock()
        resolver = VendorMetadataResolver(billing, PlanMetaCache(ttl_seconds=300, clock=clock))

        resolver.plan_meta()
        clock.advance(299)
        resolver.plan_meta()
        assert billing.plan_loads == 1

        clock.advance(2)
        resolver.plan_meta()
        assert billing.plan_loads == 2

    def test_invalidate(self, billing):
        cache = PlanMetaCache(ttl_seconds=300, clock=FakeClock())
        resolver = VendorMetadataResolver(billing, cache)

        resolver.plan_meta()
        cache.invalidate()
        resolver.plan_meta()

        assert billing.plan_loads == 2

    def test_failed_refresh_is_not_cached(self, billing):
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        billing.fail_plans = True
        assert resolver.plan_meta() == {}

        billing.fail_plans = False
        assert set(resolver.plan_meta()) == {"free", "pro", "premium"}

    def test_concurrent_callers_share_one_refresh(self):
        clock = FakeClock()
        cache = PlanMetaCache(ttl_seconds=300, clock=clock)
        cache.get_or_refresh(lambda: {})
        clock.advance(301)

        loads = []

        def slow_loader():
            loads.append(1)
            time.sleep(0.05)
            return {"pro": "meta"}

        barrier = threading.Barrier(8)
        results = []

        def call():
            barrier.wait()
            results.append(cache.get_or_refresh(slow_loader))

        threads = [threading.Thread(target=call) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(loads) == 1
        assert len(results) == 8
        assert all(result is results[0] for result in results)


@pytest.mark.unit
class TestVendorMetadataResolverUnit:
    def test_resolves_vendor_plan(self, billing):
        billing.subscribe("b-1", "premium")
        billing.subscribe("b-2", "free")
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        result = resolver.resolve(["b-1", "b-2", "b-3"])

        assert set(result.vendor_by_business) == {"b-1", "b-2"}
        assert result.vendor_by_business["b-1"].priority == 3
        assert result.vendor_by_business["b-2"].weight == pytest.approx(policy.MIN_WEIGHT_EPS)
        # every known plan is weighted, not only the ones in this result set
        assert set(result.weight_by_plan) == {"free", "pro", "premium"}

    def test_deduplicates_and_skips_blank_ids(self, billing):
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        resolver.resolve(["b-1", "b-1", None, "", "  ", " b-2 "])

        assert billing.subscription_queries == [["b-1", "b-2"]]

    def test_chunks_lookups(self, billing):
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        resolver.resolve([f"b-{i}" for i in range(2500)])

        assert [len(chunk) for chunk in billing.subscription_queries] == [1000, 1000, 500]

    def test_bounds_total_lookups(self, billing):
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        resolver.resolve([f"b-{i}" for i in range(policy.MAX_BUSINESS_IDS + 500)])

        assert sum(len(chunk) for chunk in billing.subscription_queries) == policy.MAX_BUSINESS_IDS

    def test_subscription_on_unknown_plan_is_ignored(self, billing):
        billing.subscribe("b-1", "retired")
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        assert resolver.resolve(["b-1"]).vendor_by_business == {}

    def test_plan_store_failure_degrades_to_equal_weights(self, billing):
        billing.subscribe("b-1", "premium")
        billing.fail_plans = True
        resolver = VendorMetadataResolver(billing, PlanMetaCache(clock=FakeClock()))

        result = resolver.resolve(["b-1"])

        assert result.vendor_by_business == {}
        assert result.weight_by_plan == {}
        assert billing.subscription_queries == []
