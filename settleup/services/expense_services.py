import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload
from fastapi import HTTPException
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.expense_item import ExpenseItem
from settleup.models.group_member import GroupMember
from settleup.models.user import User
from settleup.core.dependencies import check_group_membership
from settleup.core.splits import build_split, calculate_splits, check_items_total
from settleup.core.utils import to_decimal

logger = logging.getLogger(__name__)

async def _group_member_ids(db: AsyncSession, group_id: int):
    q = (
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
    )
    res = await db.execute(q)
    return list(res.scalars().all())

async def _load_expense(db: AsyncSession, expense_id: int):
    q = (
        select(Expense)
        .options(selectinload(Expense.splits), selectinload(Expense.items))
        .where(Expense.id == expense_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    return expense

def _build_rows(amount, members, payer_id, method, custom_splits, items):
    split = build_split(method, custom_splits, items)

    if split.method == "itemized":
        check_items_total(amount, split.items)

    shares = calculate_splits(amount, members, payer_id, split)

    splits = [
        ExpenseSplit(
            user_id=s.member_id,
            amount=s.amount,
            percentage=s.percentage,
            paid_amount=s.paid_amount,
            settled=s.settled
        )
        for s in shares
    ]

    expense_items = []
    if split.method == "itemized":
        expense_items = [
            ExpenseItem(name=i.name, amount=i.amount, shared_by=list(i.shared_by))
            for i in split.items
        ]

    return splits, expense_items

async def create_expense(db: AsyncSession, data, paid_by: int):
    # 1. Work out who shares the expense
    if data.group_id is not None:
        await check_group_membership(db, data.group_id, paid_by)
        members = await _group_member_ids(db, data.group_id)
    else:
        if data.friend_id == paid_by:
            raise HTTPException(400, "Cannot split an expense with yourself")

        friend = await db.execute(select(User.id).where(User.id == data.friend_id))
        if not friend.scalar_one_or_none():
            raise HTTPException(404, "Friend not found")

        members = [paid_by, data.friend_id]

    # 2. Compute splits (raises ValidationError on bad input)
    splits, items = _build_rows(
        data.amount, members, paid_by,
        data.split_method, data.custom_splits, data.items
    )

    # 3. Expense, splits and items go in together
    expense = Expense(
        group_id=data.group_id,
        created_by=paid_by,
        amount=data.amount,
        description=data.description.strip(),
        category=data.category or "general",
        split_method=data.split_method,
        splits=splits,
        items=items
    )
    if data.date is not None:
        expense.date = data.date

    db.add(expense)
    await db.commit()

    logger.info(
        "expense %s created by user %s: %s split %s ways",
        expense.id, paid_by, data.split_method, len(splits)
    )
    return await _load_expense(db, expense.id)

async def edit_expense(db: AsyncSession, data, expense_id: int, user_id: int):
    expense = await _load_expense(db, expense_id)

    if expense.created_by != user_id:
        raise HTTPException(403, "Not authorized to edit this expense")

    if expense.locked_for(user_id):
        raise HTTPException(400, "Cannot edit expense with settled splits")

    if expense.group_id is not None:
        members = await _group_member_ids(db, expense.group_id)
    else:
        # Friend expense: the creator plus whoever already holds a split
        members = [user_id] + [s.user_id for s in expense.splits if s.user_id != user_id]

    amount = data.amount if data.amount is not None else to_decimal(expense.amount)
    method = data.split_method or expense.split_method

    splits, items = _build_rows(
        amount, members, user_id,
        method, data.custom_splits, data.items
    )

    expense.amount = amount
    expense.split_method = method
    if data.description:
        expense.description = data.description.strip()
    if data.category:
        expense.category = data.category
    if data.date is not None:
        expense.date = data.date

    # delete-orphan drops the old rows when the collections are replaced
    expense.splits = splits
    expense.items = items

    await db.commit()

    logger.info("expense %s edited by user %s: %s split", expense_id, user_id, method)
    return await _load_expense(db, expense_id)

async def delete_expense(db: AsyncSession, user_id: int, expense_id: int):
    expense = await _load_expense(db, expense_id)

    # Authorization: only payer can delete
    if expense.created_by != user_id:
        raise HTTPException(403, "Not authorized to delete this expense")

    if expense.locked_for(user_id):
        raise HTTPException(400, "Cannot delete expense with settled splits")

    await db.delete(expense)
    await db.commit()

    logger.info("expense %s deleted by user %s", expense_id, user_id)
    return {"status": "deleted"}

async def get_expense_by_id(db: AsyncSession, expense_id: int, user_id: int):
    expense = await _load_expense(db, expense_id)

    involved = expense.created_by == user_id or any(s.user_id == user_id for s in expense.splits)

    if not involved:
        raise HTTPException(403, "Unauthorized access")

    return expense

async def list_group_expenses(db: AsyncSession, user_id: int, group_id: int):
    await check_group_membership(db, group_id, user_id)

    q = (
        select(Expense)
        .options(selectinload(Expense.splits), selectinload(Expense.items))
        .where(Expense.group_id == group_id)
        .order_by(Expense.date.desc(), Expense.id.desc())
    )

    res = await db.execute(q)
    return res.scalars().all()

async def list_friend_expenses(db: AsyncSession, user_id: int, friend_id: int):
    q = (
        select(Expense)
        .options(selectinload(Expense.splits), selectinload(Expense.items))
        .join(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
        .where(
            Expense.group_id.is_(None),
            or_(
                (Expense.created_by == user_id) & (ExpenseSplit.user_id == friend_id),
                (Expense.created_by == friend_id) & (ExpenseSplit.user_id == user_id),
            )
        )
        .order_by(Expense.date.desc(), Expense.id.desc())
        .distinct()
    )

    res = await db.execute(q)
    return res.scalars().all()
