"""
Vendor metadata for ranking: plan priority and exposure weight per business.

Plan-level derivations are cached for a short TTL because plans change
rarely. Business -> plan lookups are never cached since subscriptions move
with billing events.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from infrastructure.billing import BillingProviderInterface, PlanRecord
from marketplace.infra.observability.metrics import plan_meta_refresh_total
from marketplace.listing.domain import policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanMeta:
    plan_id: str
    name: str
    price: float
    priority: int
    weight: float


@dataclass(frozen=True)
class VendorMeta:
    business_id: str
    plan_id: str
    plan_name: str
    plan_price: float
    priority: int
    weight: float


@dataclass
class VendorMetadata:
    vendor_by_business: Dict[str, VendorMeta] = field(default_factory=dict)
    # Every known plan, not only those present in the current result set
    weight_by_plan: Dict[str, float] = field(default_factory=dict)


def build_plan_meta(plans: Iterable[PlanRecord]) -> Dict[str, PlanMeta]:
    """
    Derive priority and weight for every plan.

    Highest price gets priority == len(plans); weight is price / max price,
    clamped to MIN_WEIGHT_EPS so the cheapest tier still makes progress.
    """
    plans = list(plans or [])
    if not plans:
        return {}

    # sorted() is stable, so equal prices keep store order
    ordered = sorted(plans, key=lambda plan: float(plan.price or 0), reverse=True)
    max_price = max(1.0, max(float(plan.price or 0) for plan in ordered))

    meta = {}
    for index, plan in enumerate(ordered):
        price = float(plan.price or 0)
        meta[str(plan.plan_id)] = PlanMeta(
            plan_id=str(plan.plan_id),
            name=plan.name,
            price=price,
            priority=len(ordered) - index,
            weight=max(policy.MIN_WEIGHT_EPS, price / max_price),
        )
    return meta


class PlanMetaCache:
    """
    Time-bounded holder for derived plan metadata.

    Concurrent callers hitting an expired entry share a single refresh. The
    clock is injectable so tests can force expiry.
    """

    def __init__(self, ttl_seconds: float = policy.PLAN_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, PlanMeta]] = None
        self._refreshed_at = 0.0

    def _is_fresh(self, now: float) -> bool:
        return self._data is not None and (now - self._refreshed_at) < self.ttl_seconds

    def get_or_refresh(self, loader: Callable[[], Dict[str, PlanMeta]]) -> Dict[str, PlanMeta]:
        if self._is_fresh(self._clock()):
            return self._data

        with self._lock:
            now = self._clock()
            if self._is_fresh(now):
                return self._data
            fresh = loader()
            self._data = fresh
            self._refreshed_at = now
            logger.debug(f"Plan metadata refreshed: {len(fresh)} plans")
            return fresh

    def invalidate(self) -> None:
        with self._lock:
            self._data = None
            self._refreshed_at = 0.0


def chunked(ids: List[str], size: int):
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


class VendorMetadataResolver:
    """Maps businesses to their plan priority/weight using the billing provider."""

    def __init__(self, billing: BillingProviderInterface, cache: Optional[PlanMetaCache] = None):
        self.billing = billing
        self.cache = cache or PlanMetaCache()

    def _load_plan_meta(self) -> Dict[str, PlanMeta]:
        return build_plan_meta(self.billing.list_plans())

    def plan_meta(self) -> Dict[str, PlanMeta]:
        """Cached plan metadata; an unreadable plan store degrades to equal weighting."""
        try:
            meta = self.cache.get_or_refresh(self._load_plan_meta)
            plan_meta_refresh_total.labels(outcome="success").inc()
            return meta
        except Exception as e:
            plan_meta_refresh_total.labels(outcome="error").inc()
            logger.warning(f"Plan metadata unavailable, falling back to equal weights: {e}")
            return {}

    def resolve(self, business_ids: Iterable[str]) -> VendorMetadata:
        ids = [str(business_id).strip() for business_id in (business_ids or []) if business_id]
        ids = [business_id for business_id in dict.fromkeys(ids) if business_id][: policy.MAX_BUSINESS_IDS]

        plan_meta = self.plan_meta()
        result = VendorMetadata(weight_by_plan={plan_id: meta.weight for plan_id, meta in plan_meta.items()})

        if not ids or not plan_meta:
            return result

        for chunk in chunked(ids, policy.MAX_IDS_PER_CHUNK):
            for subscription in self.billing.active_subscriptions(chunk):
                meta = plan_meta.get(str(subscription.plan_id))
                if meta is None:
                    continue
                result.vendor_by_business[str(subscription.business_id)] = VendorMeta(
                    business_id=str(subscription.business_id),
                    plan_id=meta.plan_id,
                    plan_name=meta.name,
                    plan_price=meta.price,
                    priority=meta.priority,
                    weight=meta.weight,
                )

        return result
