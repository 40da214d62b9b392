import logging
from decimal import Decimal
from typing import Dict, Hashable, Iterable, List, NamedTuple, Tuple
from settleup.core.errors import InvariantError
from settleup.core.utils import qround, to_decimal, TOLERANCE, ZERO

logger = logging.getLogger(__name__)

# (payer_id, member_id, amount, settled) for one split row
SplitRow = Tuple[Hashable, Hashable, Decimal, bool]

class Transfer(NamedTuple):
    from_id: Hashable
    to_id: Hashable
    amount: Decimal

def _outstanding(rows: Iterable[SplitRow]):
    for payer_id, member_id, amount, settled in rows:
        if settled or payer_id == member_id:
            continue
        yield payer_id, member_id, to_decimal(amount)

def compute_net_balances(rows: Iterable[SplitRow]) -> Dict[Hashable, Decimal]:
    """
    Net every unsettled split into one signed balance per party.

    The payer of an expense gains what each member owes on it and the member
    loses the same amount. Positive means the party is owed money.
    """
    net: Dict[Hashable, Decimal] = {}

    for payer_id, member_id, amount in _outstanding(rows):
        net[payer_id] = net.get(payer_id, ZERO) + amount
        net[member_id] = net.get(member_id, ZERO) - amount

    return {uid: qround(amt) for uid, amt in net.items()}

def pair_balance(rows: Iterable[SplitRow], user_id, other_id) -> Decimal:
    """Direct balance between two parties. Positive means ``other_id`` owes ``user_id``."""
    bal = ZERO

    for payer_id, member_id, amount in _outstanding(rows):
        if payer_id == user_id and member_id == other_id:
            bal += amount
        elif payer_id == other_id and member_id == user_id:
            bal -= amount

    return qround(bal)

def counterparty_balances(rows: Iterable[SplitRow], user_id) -> Dict[Hashable, Decimal]:
    balances: Dict[Hashable, Decimal] = {}

    for payer_id, member_id, amount in _outstanding(rows):
        if payer_id == user_id:
            balances[member_id] = balances.get(member_id, ZERO) + amount
        elif member_id == user_id:
            balances[payer_id] = balances.get(payer_id, ZERO) - amount

    return {uid: qround(amt) for uid, amt in balances.items()}

def simplify_debts(net_map: Dict[Hashable, Decimal]) -> List[Transfer]:
    """
    Reduce a net-balance mapping to a short list of pairwise transfers.

    Creditors and debtors are matched greedily in the order they appear in
    ``net_map``. Balances within one cent of zero count as settled. Raises
    InvariantError when credits and debts do not cancel out.
    """
    balances = [(uid, qround(to_decimal(bal))) for uid, bal in net_map.items()]

    # Checked before near-zero parties are dropped
    residual = sum((bal for _, bal in balances), ZERO)
    if abs(residual) > TOLERANCE:
        logger.error("unbalanced net map: residual %s", residual)
        raise InvariantError(f"balances do not net to zero: residual {residual}")

    creditors = []
    debtors = []

    for uid, bal in balances:
        if bal > TOLERANCE:
            creditors.append([uid, bal])
        elif bal < -TOLERANCE:
            debtors.append([uid, -bal])

    transfers: List[Transfer] = []
    i = j = 0

    while i < len(debtors) and j < len(creditors):
        debt_id, debt_amt = debtors[i]
        cred_id, cred_amt = creditors[j]

        pay_amt = min(debt_amt, cred_amt)
        transfers.append(Transfer(debt_id, cred_id, pay_amt))

        debtors[i][1] = debt_amt - pay_amt
        creditors[j][1] = cred_amt - pay_amt

        if debtors[i][1] <= TOLERANCE:
            i += 1
        if creditors[j][1] <= TOLERANCE:
            j += 1

    logger.debug("simplified %d balances into %d transfers", len(net_map), len(transfers))
    return transfers

def apply_transfers(net_map: Dict[Hashable, Decimal], transfers: Iterable[Transfer]) -> Dict[Hashable, Decimal]:
    after = {uid: to_decimal(bal) for uid, bal in net_map.items()}

    for f, t, amt in transfers:
        after[f] = after.get(f, ZERO) + amt
        after[t] = after.get(t, ZERO) - amt

    return after
