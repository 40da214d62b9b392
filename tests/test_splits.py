from decimal import Decimal, ROUND_DOWN
import pytest
from settleup.core.errors import ValidationError
from settleup.core.splits import build_split, calculate_splits, check_items_total
from settleup.schemas.expense import (
    EqualSplit, PercentageSplit, ExactSplit, ItemizedSplit,
    PercentageShare, ExactShare, ItemInput, CustomSplitInput,
)

A, B, C = 1, 2, 3
D = Decimal


def amounts(shares):
    return {s.member_id: s.amount for s in shares}


def test_equal_split_divides_evenly():
    shares = calculate_splits(D("90.00"), [A, B, C], A, EqualSplit())

    assert amounts(shares) == {A: D("30.00"), B: D("30.00"), C: D("30.00")}
    assert [s.member_id for s in shares] == [A, B, C]


def test_equal_split_leftover_cent_goes_to_payer():
    shares = calculate_splits(D("100"), [A, B, C], B, EqualSplit())

    assert amounts(shares) == {A: D("33.33"), B: D("33.34"), C: D("33.33")}


@pytest.mark.parametrize("total", ["0.01", "1", "10", "99.99", "100", "1234.57"])
@pytest.mark.parametrize("count", [1, 2, 3, 6, 7])
def test_equal_split_sums_to_total(total, count):
    members = list(range(1, count + 1))
    shares = calculate_splits(D(total), members, 1, EqualSplit())

    assert sum(s.amount for s in shares) == D(total)
    assert sorted(s.member_id for s in shares) == members


def test_payer_row_is_paid_and_settled():
    shares = calculate_splits(D("60"), [A, B, C], C, EqualSplit())
    by_member = {s.member_id: s for s in shares}

    assert by_member[C].paid_amount == by_member[C].amount
    assert by_member[C].settled is True
    assert by_member[A].paid_amount == 0
    assert by_member[A].settled is False
    assert by_member[B].settled is False


def test_percentage_split():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("50")),
        PercentageShare(user_id=B, percentage=D("30")),
        PercentageShare(user_id=C, percentage=D("20")),
    ])
    shares = calculate_splits(D("200.00"), [A, B, C], A, split)

    assert amounts(shares) == {A: D("100.00"), B: D("60.00"), C: D("40.00")}
    assert [s.percentage for s in shares] == [D("50"), D("30"), D("20")]


def test_percentage_split_rounds_to_total():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("33.33")),
        PercentageShare(user_id=B, percentage=D("33.33")),
        PercentageShare(user_id=C, percentage=D("33.34")),
    ])
    shares = calculate_splits(D("10.00"), [A, B, C], A, split)

    assert sum(s.amount for s in shares) == D("10.00")


def test_percentage_split_must_sum_to_100():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("50")),
        PercentageShare(user_id=B, percentage=D("49.5")),
    ])

    with pytest.raises(ValidationError, match="percentages must sum to 100"):
        calculate_splits(D("100"), [A, B], A, split)


def test_percentage_within_tolerance_is_accepted():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("33.333")),
        PercentageShare(user_id=B, percentage=D("33.333")),
        PercentageShare(user_id=C, percentage=D("33.333")),
    ])
    shares = calculate_splits(D("30"), [A, B, C], A, split)

    assert sum(s.amount for s in shares) == D("30.00")


def test_negative_percentage_rejected():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("120")),
        PercentageShare(user_id=B, percentage=D("-20")),
    ])

    with pytest.raises(ValidationError, match="non-negative"):
        calculate_splits(D("100"), [A, B], A, split)


def test_exact_split_returns_amounts_unchanged():
    split = ExactSplit(shares=[
        ExactShare(user_id=A, amount=D("12.50")),
        ExactShare(user_id=B, amount=D("7.25")),
        ExactShare(user_id=C, amount=D("0.25")),
    ])
    shares = calculate_splits(D("20.00"), [A, B, C], B, split)

    assert [(s.member_id, s.amount) for s in shares] == [
        (A, D("12.50")), (B, D("7.25")), (C, D("0.25"))
    ]


def test_exact_split_must_match_total():
    split = ExactSplit(shares=[
        ExactShare(user_id=A, amount=D("10")),
        ExactShare(user_id=B, amount=D("5")),
    ])

    with pytest.raises(ValidationError, match="amounts must equal total"):
        calculate_splits(D("20"), [A, B], A, split)


def test_itemized_split_accumulates_per_member():
    split = ItemizedSplit(items=[
        ItemInput(name="pizza", amount=D("30"), shared_by=[A, B, C]),
        ItemInput(name="wine", amount=D("20"), shared_by=[B, A]),
    ])
    shares = calculate_splits(D("50"), [A, B, C], A, split)

    assert amounts(shares) == {A: D("20.00"), B: D("20.00"), C: D("10.00")}
    assert [s.member_id for s in shares] == [A, B, C]


def test_itemized_split_sums_to_item_total():
    split = ItemizedSplit(items=[
        ItemInput(name="cake", amount=D("10"), shared_by=[A, B, C]),
        ItemInput(name="tea", amount=D("5"), shared_by=[B, C]),
        ItemInput(name="coffee", amount=D("3.10"), shared_by=[C]),
    ])
    shares = calculate_splits(D("18.10"), [A, B, C], A, split)

    assert sum(s.amount for s in shares) == D("18.10")
    assert amounts(shares)[A] == D("3.34")


def test_itemized_leftover_goes_to_first_row_without_payer():
    split = ItemizedSplit(items=[
        ItemInput(name="snacks", amount=D("1"), shared_by=[B, C, A]),
    ])
    shares = calculate_splits(D("1"), [A, B, C, 4], 4, split)

    assert amounts(shares) == {B: D("0.34"), C: D("0.33"), A: D("0.33")}
    assert not any(s.settled for s in shares)


def test_itemized_item_needs_sharers():
    split = ItemizedSplit(items=[ItemInput(name="ghost", amount=D("5"), shared_by=[])])

    with pytest.raises(ValidationError, match="not shared by anyone"):
        calculate_splits(D("5"), [A, B], A, split)


def test_check_items_total():
    items = [
        ItemInput(name="a", amount=D("10"), shared_by=[A]),
        ItemInput(name="b", amount=D("5"), shared_by=[B]),
    ]

    check_items_total(D("15.00"), items)
    check_items_total(D("15.01"), items)
    with pytest.raises(ValidationError, match="items total must equal expense amount"):
        check_items_total(D("16"), items)


@pytest.mark.parametrize("members,payer,message", [
    ([], A, "no members to split among"),
    ([A, A, B], A, "duplicate members"),
    ([A, B], C, "payer must be one of the members"),
])
def test_member_preconditions(members, payer, message):
    with pytest.raises(ValidationError, match=message):
        calculate_splits(D("10"), members, payer, EqualSplit())


def test_amount_must_be_positive():
    with pytest.raises(ValidationError, match="greater than 0"):
        calculate_splits(D("0"), [A, B], A, EqualSplit())


def test_shares_must_reference_members():
    split = ExactSplit(shares=[
        ExactShare(user_id=A, amount=D("5")),
        ExactShare(user_id=9, amount=D("5")),
    ])

    with pytest.raises(ValidationError, match="not members"):
        calculate_splits(D("10"), [A, B], A, split)


def test_duplicate_share_rejected():
    split = ExactSplit(shares=[
        ExactShare(user_id=A, amount=D("5")),
        ExactShare(user_id=A, amount=D("5")),
    ])

    with pytest.raises(ValidationError, match="duplicate"):
        calculate_splits(D("10"), [A, B], A, split)


def test_unknown_method_object_rejected():
    class Barter:
        method = "barter"

    with pytest.raises(ValidationError, match="unsupported split method"):
        calculate_splits(D("10"), [A, B], A, Barter())


def test_build_split_variants():
    custom = [
        CustomSplitInput(user_id=A, percentage=D("60"), amount=D("6")),
        CustomSplitInput(user_id=B, percentage=D("40"), amount=D("4")),
    ]
    items = [ItemInput(name="x", amount=D("1"), shared_by=[A])]

    assert isinstance(build_split("equal"), EqualSplit)
    assert isinstance(build_split("percentage", custom), PercentageSplit)
    assert isinstance(build_split("exact", custom), ExactSplit)
    assert isinstance(build_split("itemized", items=items), ItemizedSplit)


@pytest.mark.parametrize("method,custom,items,message", [
    ("shares", None, None, "unsupported split method"),
    ("percentage", None, None, "custom splits required for percentage split"),
    ("exact", [], None, "custom splits required for exact split"),
    ("itemized", None, [], "items required for itemized split"),
    ("percentage", [CustomSplitInput(user_id=1, amount=D("3"))], None, "needs a percentage"),
    ("exact", [CustomSplitInput(user_id=1, percentage=D("3"))], None, "needs an amount"),
])
def test_build_split_missing_inputs(method, custom, items, message):
    with pytest.raises(ValidationError, match=message):
        build_split(method, custom, items)


def test_tiny_equal_split_never_charges_payer_negative():
    members = [1, 2, 3, 4, 5, 6]
    shares = calculate_splits(D("0.04"), members, 1, EqualSplit())

    assert amounts(shares) == {1: D("0.04"), 2: D("0"), 3: D("0"), 4: D("0"), 5: D("0"), 6: D("0")}
    assert all(s.amount >= 0 for s in shares)


def test_others_owe_rounded_down_share():
    members = [1, 2, 3, 4, 5, 6]
    shares = calculate_splits(D("10.00"), members, 1, EqualSplit())
    by_member = amounts(shares)

    assert by_member[1] == D("1.70")
    assert all(by_member[uid] == D("1.66") for uid in members[1:])


@pytest.mark.parametrize("total", ["0.01", "0.04", "0.05", "1", "10.00", "100", "99.98"])
@pytest.mark.parametrize("count", [3, 4, 5, 6, 7])
@pytest.mark.parametrize("payer", [1, 3])
def test_equal_split_never_overshoots(total, count, payer):
    members = list(range(1, count + 1))
    shares = calculate_splits(D(total), members, payer, EqualSplit())
    floor_share = (D(total) / count).quantize(D("0.01"), rounding=ROUND_DOWN)

    assert all(s.amount >= 0 for s in shares)
    assert all(s.amount == floor_share for s in shares if s.member_id != payer)
    assert sum(s.amount for s in shares) == D(total)


def test_uneven_percentages_never_overshoot():
    split = PercentageSplit(shares=[
        PercentageShare(user_id=A, percentage=D("33.335")),
        PercentageShare(user_id=B, percentage=D("33.335")),
        PercentageShare(user_id=C, percentage=D("33.335")),
    ])
    shares = calculate_splits(D("0.02"), [A, B, C], A, split)

    assert amounts(shares) == {A: D("0.02"), B: D("0"), C: D("0")}
