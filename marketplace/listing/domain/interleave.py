"""
Weighted deficit round robin over pre-sorted plan buckets.

Each round every non-empty bucket earns its weight in credit and emits one
item per whole credit. Higher weight means proportionally more frequent
appearance; intra-bucket order is preserved.
"""

import math
from collections import deque
from typing import Dict, List, Mapping, Optional, Sequence, TypeVar

from marketplace.listing.domain import policy

T = TypeVar("T")


def normalize_weights(keys: Sequence[str], weights: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """
    Clamp every weight to MIN_WEIGHT_EPS, then scale so the heaviest present bucket is 1.0.

    Missing, zero, negative or unparseable weights clamp to MIN_WEIGHT_EPS
    before scaling, so an unknown bucket keeps the same ratio to a known one
    that it would have against raw plan weights.
    """
    clamped = {}
    for key in keys:
        try:
            value = float((weights or {}).get(key) or 0)
        except (TypeError, ValueError):
            value = 0.0
        if not math.isfinite(value):
            value = 0.0
        clamped[key] = max(policy.MIN_WEIGHT_EPS, value)

    heaviest = max(clamped.values(), default=policy.MIN_WEIGHT_EPS)
    return {key: value / heaviest for key, value in clamped.items()}


def interleave_weighted(
    buckets: Mapping[str, Sequence[T]],
    weights: Optional[Mapping[str, float]],
    limit: Optional[int] = None,
) -> List[T]:
    """
    Merge ``buckets`` (each sorted best-first) into one fair order.

    Buckets are visited heaviest first within a round, ties by key, so the
    output depends only on bucket contents and weights. A round that emits
    nothing keeps its credit; only exhaustion, ``limit`` or the step ceiling
    ends the loop.
    """
    present = [key for key, items in buckets.items() if items]
    if not present:
        return []

    normalized = normalize_weights(present, weights)
    keys = sorted(present, key=lambda key: (-normalized[key], str(key)))

    remaining = {key: deque(buckets[key]) for key in keys}
    credit = {key: 0.0 for key in keys}
    left = sum(len(queue) for queue in remaining.values())

    # Enough rounds for the lightest bucket to drain everything alone
    max_steps = 100000 + math.ceil(left / min(normalized.values())) + 1
    steps = 0
    out: List[T] = []

    while left > 0 and steps < max_steps:
        if limit and len(out) >= limit:
            break
        steps += 1

        for key in keys:
            queue = remaining[key]
            if not queue:
                continue

            credit[key] += normalized[key]
            while credit[key] >= 1 and queue:
                out.append(queue.popleft())
                credit[key] -= 1
                left -= 1
                if limit and len(out) >= limit:
                    return out

    return out
