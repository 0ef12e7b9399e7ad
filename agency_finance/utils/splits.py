"""
Sharing an amount across departments.

Every allocation is rounded to cents and the last share takes the rounding
remainder, so the shares always add back up to the original amount.
"""

from decimal import Decimal
from typing import Any, Dict, List

from agency_finance.utils.fee_calculator import HUNDRED, ZERO, round_cents, to_decimal

SPLIT_TOLERANCE = Decimal("0.01")


def splits_total(splits: List[Dict[str, Any]]) -> Decimal:
    return sum(
        (to_decimal(s.get("split_percentage")) for s in splits), ZERO
    )


def splits_sum_to_100(splits: List[Dict[str, Any]]) -> bool:
    return abs(splits_total(splits) - HUNDRED) < SPLIT_TOLERANCE


def allocate(amount: Any, splits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    splits: [{department_id, split_percentage, ...}]
    Returns a copy of each split with split_amount set.
    """
    total = round_cents(amount)
    out: List[Dict[str, Any]] = []
    running = ZERO
    for i, s in enumerate(splits):
        if i == len(splits) - 1:
            share = total - running
        else:
            share = round_cents(total * to_decimal(s.get("split_percentage")) / HUNDRED)
        running += share
        out.append({**s, "split_amount": share})
    return out


def prorate_by_weight(amount: Any, weights: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Share amount by non-negative weights keyed by department id.
    All-zero weights share equally.
    """
    if not weights:
        return []
    dec_weights = {k: to_decimal(v) for k, v in weights.items()}
    if any(w < 0 for w in dec_weights.values()):
        raise ValueError("weights must be >= 0")
    total_weight = sum(dec_weights.values(), ZERO)
    n = len(dec_weights)
    splits = []
    for dept_id, w in dec_weights.items():
        pct = (w / total_weight * HUNDRED) if total_weight > 0 else HUNDRED / n
        splits.append({"department_id": dept_id, "split_percentage": pct})
    allocated = allocate(amount, splits)
    for s in allocated:
        s["split_percentage"] = round_cents(s["split_percentage"])
    return allocated
