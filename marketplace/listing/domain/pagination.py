"""Request clamping and page slicing for ranked listings."""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from marketplace.listing.domain import policy
from marketplace.listing.domain.scoring import RankedItem


@dataclass(frozen=True)
class ListingParams:
    page: int = policy.PAGE_BOUNDS[2]
    page_size: int = policy.PAGE_SIZE_BOUNDS[2]
    max_per_vendor: int = policy.MAX_PER_VENDOR_BOUNDS[2]
    debug: bool = False

    @classmethod
    def clamp(
        cls,
        page=None,
        page_size=None,
        max_per_vendor=None,
        debug=None,
        page_size_default=None,
        max_per_vendor_default=None,
    ):
        """Clamp raw query values; anything unparsable falls back to the default."""
        size_low, size_high, size_default = policy.PAGE_SIZE_BOUNDS
        cap_low, cap_high, cap_default = policy.MAX_PER_VENDOR_BOUNDS
        if max_per_vendor_default is not None:
            cap_default = max_per_vendor_default
        return cls(
            page=policy.clip(page, *policy.PAGE_BOUNDS),
            page_size=policy.clip(page_size, size_low, size_high, page_size_default or size_default),
            max_per_vendor=policy.clip(max_per_vendor, cap_low, cap_high, cap_default),
            debug=parse_debug_flag(debug),
        )

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        return self.start + self.page_size


def parse_debug_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true")


@dataclass
class Page:
    items: List[RankedItem] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = policy.PAGE_SIZE_BOUNDS[2]
    total_pages: int = 0
    mix: Dict[str, int] = field(default_factory=dict)


def plan_mix(items: Sequence[RankedItem]) -> Dict[str, int]:
    return dict(Counter(str(ranked.plan_id or policy.UNKNOWN_PLAN) for ranked in items))


def paginate(sequence: Sequence[RankedItem], page: int, page_size: int) -> Page:
    total = len(sequence)
    start = (page - 1) * page_size
    items = list(sequence[start : start + page_size])
    return Page(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if page_size else 0,
        mix=plan_mix(items),
    )
