"""
Split calculator.

Turns an expense total plus a split method into one owed amount per member.
Equal, percentage and itemized shares are rounded down to cents and the
leftover cents go to the payer's row (or the first row when the payer holds
no share), so the rows always add up to the exact target and none goes
negative. Exact shares are returned as given.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Sequence
from settleup.core.errors import ValidationError
from settleup.core.utils import qfloor, qround, to_decimal, close_to, ZERO
from settleup.schemas.expense import (
    EqualSplit, PercentageSplit, ExactSplit, ItemizedSplit,
    PercentageShare, ExactShare, ItemInput, SplitParams,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

class SplitShare(NamedTuple):
    member_id: int
    amount: Decimal
    percentage: Decimal | None
    paid_amount: Decimal
    settled: bool

def build_split(method: str, custom_splits=None, items=None) -> SplitParams:
    """Build the split variant for ``method`` from a flat request payload."""
    if method == "equal":
        return EqualSplit()

    if method == "percentage":
        if not custom_splits:
            raise ValidationError("custom splits required for percentage split")
        if any(s.percentage is None for s in custom_splits):
            raise ValidationError("every custom split needs a percentage")
        return PercentageSplit(shares=[
            PercentageShare(user_id=s.user_id, percentage=s.percentage)
            for s in custom_splits
        ])

    if method == "exact":
        if not custom_splits:
            raise ValidationError("custom splits required for exact split")
        if any(s.amount is None for s in custom_splits):
            raise ValidationError("every custom split needs an amount")
        return ExactSplit(shares=[
            ExactShare(user_id=s.user_id, amount=s.amount)
            for s in custom_splits
        ])

    if method == "itemized":
        if not items:
            raise ValidationError("items required for itemized split")
        return ItemizedSplit(items=list(items))

    raise ValidationError("unsupported split method")

def check_items_total(total_amount, items: Iterable[ItemInput]) -> None:
    total = to_decimal(total_amount)
    items_total = sum((to_decimal(i.amount) for i in items), ZERO)

    if not close_to(items_total, total):
        raise ValidationError("items total must equal expense amount")

def _check_members(total: Decimal, members: Sequence[int], payer_id: int) -> None:
    if total <= 0:
        raise ValidationError("amount must be greater than 0")

    if not members:
        raise ValidationError("no members to split among")

    if len(members) != len(set(members)):
        raise ValidationError("duplicate members")

    if payer_id not in members:
        raise ValidationError("payer must be one of the members")

def _check_shares(user_ids: List[int], members: Sequence[int]) -> None:
    if len(user_ids) != len(set(user_ids)):
        raise ValidationError("duplicate users in split")

    unknown = [uid for uid in user_ids if uid not in members]
    if unknown:
        raise ValidationError(f"users {unknown} are not members of this expense")

def _round_to_target(raw: Dict[int, Decimal], target: Decimal, payer_id: int) -> Dict[int, Decimal]:
    # Rounding down keeps the leftover non-negative
    rounded = {uid: qfloor(amt) for uid, amt in raw.items()}
    leftover = qround(target) - sum(rounded.values(), ZERO)

    if leftover:
        # Leftover cents land on the payer, who never owes their own row
        holder = payer_id if payer_id in rounded else next(iter(rounded))
        rounded[holder] += leftover

    return rounded

def _equal(total, members, payer_id, split: EqualSplit):
    each = total / len(members)
    amounts = _round_to_target({uid: each for uid in members}, total, payer_id)
    return [(uid, amounts[uid], None) for uid in members]

def _percentage(total, members, payer_id, split: PercentageSplit):
    user_ids = [s.user_id for s in split.shares]
    _check_shares(user_ids, members)

    pcts = {s.user_id: to_decimal(s.percentage) for s in split.shares}
    if any(p < 0 for p in pcts.values()):
        raise ValidationError("percentages must be non-negative")

    pct_total = sum(pcts.values(), ZERO)
    if not close_to(pct_total, HUNDRED):
        raise ValidationError(f"percentages must sum to 100 (got {pct_total})")

    # Scaled by the actual sum so shares never overshoot the total
    raw = {uid: total * pct / pct_total for uid, pct in pcts.items()}
    amounts = _round_to_target(raw, total, payer_id)
    return [(uid, amounts[uid], pcts[uid]) for uid in user_ids]

def _exact(total, members, payer_id, split: ExactSplit):
    user_ids = [s.user_id for s in split.shares]
    _check_shares(user_ids, members)

    amounts = [(s.user_id, to_decimal(s.amount)) for s in split.shares]
    if any(amt < 0 for _, amt in amounts):
        raise ValidationError("split amounts must be non-negative")

    split_total = sum((amt for _, amt in amounts), ZERO)
    if not close_to(split_total, total):
        raise ValidationError(f"amounts must equal total ({split_total} != {total})")

    return [(uid, amt, None) for uid, amt in amounts]

def _itemized(total, members, payer_id, split: ItemizedSplit):
    raw: Dict[int, Decimal] = {}
    target = ZERO

    for item in split.items:
        if not item.shared_by:
            raise ValidationError(f"item '{item.name}' is not shared by anyone")
        _check_shares(list(item.shared_by), members)

        amount = to_decimal(item.amount)
        if amount < 0:
            raise ValidationError(f"item '{item.name}' has a negative amount")

        target += amount
        each = amount / len(item.shared_by)
        for uid in item.shared_by:
            raw[uid] = raw.get(uid, ZERO) + each

    if not raw:
        raise ValidationError("items required for itemized split")

    amounts = _round_to_target(raw, target, payer_id)
    return [(uid, amounts[uid], None) for uid in raw]

_CALCULATORS = {
    "equal": _equal,
    "percentage": _percentage,
    "exact": _exact,
    "itemized": _itemized,
}

def calculate_splits(total_amount, members: Sequence[int], payer_id: int, split: SplitParams) -> List[SplitShare]:
    total = to_decimal(total_amount)
    members = list(members)
    _check_members(total, members, payer_id)

    calc = _CALCULATORS.get(getattr(split, "method", None))
    if calc is None:
        raise ValidationError("unsupported split method")

    rows = calc(total, members, payer_id, split)
    logger.debug("split %s of %s among %d rows", split.method, total, len(rows))

    return [
        SplitShare(
            member_id=uid,
            amount=amt,
            percentage=pct,
            paid_amount=amt if uid == payer_id else ZERO,
            settled=uid == payer_id,
        )
        for uid, amt, pct in rows
    ]
