from decimal import Decimal
from typing import Dict, List
from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.core.debts import compute_net_balances, counterparty_balances, pair_balance, simplify_debts
from settleup.core.dependencies import check_group_membership
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.user import User

def _unsettled_rows_query():
    return (
        select(
            Expense.created_by,
            ExpenseSplit.user_id,
            ExpenseSplit.amount,
            ExpenseSplit.settled
        )
        .join(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.settled == False,
            ExpenseSplit.user_id != Expense.created_by
        )
        .order_by(Expense.date, Expense.id, ExpenseSplit.id)
    )

async def get_group_rows(db: AsyncSession, group_id: int):
    q = _unsettled_rows_query().where(Expense.group_id == group_id)
    res = await db.execute(q)
    return [tuple(r) for r in res.all()]

async def get_friend_rows(db: AsyncSession, user_id: int, friend_id: int):
    q = _unsettled_rows_query().where(
        Expense.group_id.is_(None),
        or_(
            and_(Expense.created_by == user_id, ExpenseSplit.user_id == friend_id),
            and_(Expense.created_by == friend_id, ExpenseSplit.user_id == user_id),
        )
    )
    res = await db.execute(q)
    return [tuple(r) for r in res.all()]

async def _user_names(db: AsyncSession, user_ids) -> Dict[int, str]:
    if not user_ids:
        return {}

    q = select(User.id, User.name).where(User.id.in_(list(user_ids)))
    res = await db.execute(q)
    return {uid: name for uid, name in res.all()}

def _plan(transfers, users: Dict[int, str]) -> List[dict]:
    return [
        {
            "from_id": f, "from_name": users.get(f),
            "to_id": t, "to_name": users.get(t),
            "amount": str(a)
        }
        for f, t, a in transfers
    ]

async def get_group_balances(db: AsyncSession, group_id: int, user_id: int):
    await check_group_membership(db, group_id, user_id)

    rows = await get_group_rows(db, group_id)
    net = compute_net_balances(rows)

    # Drop near-zero balances
    net = {uid: amt for uid, amt in net.items() if abs(amt) >= Decimal("0.01")}

    transfers = simplify_debts(net)
    users = await _user_names(db, set(net))

    return {
        "net": {uid: str(amt) for uid, amt in net.items()},
        "settlements": _plan(transfers, users)
    }

async def get_friend_balance(db: AsyncSession, user_id: int, friend_id: int):
    rows = await get_friend_rows(db, user_id, friend_id)
    balance = pair_balance(rows, user_id, friend_id)

    transfers = simplify_debts({user_id: balance, friend_id: -balance})
    users = await _user_names(db, {user_id, friend_id})

    return {
        "friend_id": friend_id,
        "friend_name": users.get(friend_id),
        # Positive: the friend owes the caller
        "balance": str(balance),
        "settlements": _plan(transfers, users)
    }

async def get_my_balances(db: AsyncSession, user_id: int):
    q = _unsettled_rows_query().where(
        or_(Expense.created_by == user_id, ExpenseSplit.user_id == user_id)
    )
    res = await db.execute(q)
    balances = counterparty_balances([tuple(r) for r in res.all()], user_id)

    users = await _user_names(db, set(balances))
    owed = sum((b for b in balances.values() if b > 0), Decimal("0"))
    owing = sum((-b for b in balances.values() if b < 0), Decimal("0"))

    return {
        "total_owed_to_me": str(owed),
        "total_i_owe": str(owing),
        "balances": [
            {"user_id": uid, "name": users.get(uid), "balance": str(amt)}
            for uid, amt in balances.items()
            if amt != 0
        ]
    }
