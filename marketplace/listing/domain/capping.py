"""
Soft per-vendor cap with overflow backfill.

Items beyond a vendor's cap are deferred to an overflow pool. When the capped
sequence cannot fill the requested page, overflow items are pulled back in
their original order and flagged ``cap_relaxed``.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from marketplace.listing.domain import policy
from marketplace.listing.domain.scoring import RankedItem


@dataclass(frozen=True)
class CapRemoval:
    product_id: str
    business_id: str
    business_name: str
    plan_id: str
    reason: str = policy.REASON_PER_VENDOR_CAP


@dataclass
class CapResult:
    items: List[RankedItem] = field(default_factory=list)
    removed_by_cap: List[CapRemoval] = field(default_factory=list)
    relaxed_count: int = 0
    overflow_count: int = 0


def apply_vendor_cap(
    sequence: Sequence[RankedItem],
    max_per_vendor: int,
    fill_through: Optional[int] = None,
    record_removals: bool = False,
) -> CapResult:
    """
    Enforce ``max_per_vendor`` over ``sequence`` (0 disables the cap).

    Args:
        sequence: Interleaved items, best first
        max_per_vendor: Soft cap per business
        fill_through: Length the result must reach if overflow allows (end of the requested page)
        record_removals: Keep a per-item record of cap removals (debug responses)
    """
    if max_per_vendor <= 0:
        return CapResult(items=list(sequence))

    per_vendor: Dict[str, int] = {}
    capped: List[RankedItem] = []
    overflow: List[RankedItem] = []

    for ranked in sequence:
        count = per_vendor.get(ranked.business_id, 0) + 1
        if count > max_per_vendor:
            overflow.append(ranked)
            continue
        per_vendor[ranked.business_id] = count
        capped.append(ranked)

    relaxed_ids = set()
    if fill_through is not None and len(capped) < fill_through and overflow:
        refill = overflow[: fill_through - len(capped)]
        relaxed_ids = {ranked.id for ranked in refill}
        capped.extend(replace(ranked, cap_relaxed=True) for ranked in refill)

    removed = []
    if record_removals:
        removed = [
            CapRemoval(
                product_id=ranked.id,
                business_id=ranked.business_id,
                business_name=ranked.item.business_name,
                plan_id=ranked.plan_id,
            )
            for ranked in overflow
            if ranked.id not in relaxed_ids
        ]

    return CapResult(
        items=capped,
        removed_by_cap=removed,
        relaxed_count=len(relaxed_ids),
        overflow_count=len(overflow) - len(relaxed_ids),
    )
