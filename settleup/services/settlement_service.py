import logging
from sqlalchemy import select, update, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException
from settleup.core.debts import pair_balance
from settleup.core.dependencies import check_group_membership
from settleup.core.errors import ValidationError
from settleup.core.utils import close_to, TOLERANCE
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.group_member import GroupMember
from settleup.models.settlement import Settlement

logger = logging.getLogger(__name__)

async def _lock_pair_splits(db: AsyncSession, group_id: int | None, a: int, b: int):
    q = (
        select(
            ExpenseSplit.id,
            Expense.created_by,
            ExpenseSplit.user_id,
            ExpenseSplit.amount,
            ExpenseSplit.settled
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(
            ExpenseSplit.settled == False,
            or_(
                and_(Expense.created_by == a, ExpenseSplit.user_id == b),
                and_(Expense.created_by == b, ExpenseSplit.user_id == a),
            )
        )
        .order_by(ExpenseSplit.id)
        # Concurrent settlements of the same pair wait here
        .with_for_update(of=ExpenseSplit)
    )

    if group_id is None:
        q = q.where(Expense.group_id.is_(None))
    else:
        q = q.where(Expense.group_id == group_id)

    res = await db.execute(q)
    return res.all()

async def record_settlement(db: AsyncSession, data, group_id: int | None = None):
    rows = await _lock_pair_splits(db, group_id, data.from_user_id, data.to_user_id)

    # Positive when from_user owes to_user
    owed = pair_balance(
        [(payer, member, amt, settled) for _, payer, member, amt, settled in rows],
        data.to_user_id,
        data.from_user_id
    )

    if owed <= TOLERANCE:
        raise ValidationError("nothing to settle between these users")

    if not close_to(owed, data.amount):
        logger.warning(
            "settlement mismatch %s -> %s: expected %s, got %s",
            data.from_user_id, data.to_user_id, owed, data.amount
        )
        raise ValidationError(
            f"settlement amount mismatch: expected {owed}, got {data.amount}"
        )

    settlement = Settlement(
        group_id=group_id,
        from_user_id=data.from_user_id,
        to_user_id=data.to_user_id,
        amount=data.amount
    )
    db.add(settlement)

    split_ids = [row[0] for row in rows]
    await db.execute(
        update(ExpenseSplit)
        .where(ExpenseSplit.id.in_(split_ids))
        .values(settled=True)
    )

    await db.commit()
    await db.refresh(settlement)

    logger.info(
        "settlement %s: user %s paid user %s %s, %d splits settled",
        settlement.id, data.from_user_id, data.to_user_id, data.amount, len(split_ids)
    )
    return settlement

async def add_group_settlement(db: AsyncSession, group_id: int, user_id: int, data):
    await check_group_membership(db, group_id, user_id)

    q = select(GroupMember.user_id).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id.in_([data.from_user_id, data.to_user_id])
    )
    res = await db.execute(q)

    if len(set(res.scalars().all())) != 2:
        raise HTTPException(404, "Users not found in group")

    return await record_settlement(db, data, group_id=group_id)

async def add_friend_settlement(db: AsyncSession, friend_id: int, user_id: int, data):
    if {data.from_user_id, data.to_user_id} != {user_id, friend_id}:
        raise HTTPException(403, "You can only settle your own balance with this friend")

    return await record_settlement(db, data)

async def get_settlement_history(db: AsyncSession, group_id: int, user_id: int):
    await check_group_membership(db, group_id, user_id)

    q = (
        select(Settlement)
        .where(Settlement.group_id == group_id)
        .order_by(Settlement.settled_at.desc(), Settlement.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()

async def get_friend_settlement_history(db: AsyncSession, user_id: int, friend_id: int):
    q = (
        select(Settlement)
        .where(
            Settlement.group_id.is_(None),
            or_(
                and_(Settlement.from_user_id == user_id, Settlement.to_user_id == friend_id),
                and_(Settlement.from_user_id == friend_id, Settlement.to_user_id == user_id),
            )
        )
        .order_by(Settlement.settled_at.desc(), Settlement.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()
