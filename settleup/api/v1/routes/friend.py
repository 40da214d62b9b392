from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.dependencies import get_current_user
from settleup.schemas.balances import FriendBalanceOut
from settleup.schemas.expense import ExpenseOut
from settleup.schemas.settlements import SettlementCreate, SettlementOut
from settleup.services.balance_services import get_friend_balance
from settleup.services.expense_services import list_friend_expenses
from settleup.services.settlement_service import add_friend_settlement, get_friend_settlement_history

router = APIRouter()

@router.get("/{friend_id}/balance", response_model=FriendBalanceOut)
async def friend_balance(friend_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_friend_balance(db, user_id=current_user.id, friend_id=friend_id)

@router.get("/{friend_id}/expenses", response_model=list[ExpenseOut])
async def friend_expenses(friend_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_friend_expenses(db, user_id=current_user.id, friend_id=friend_id)

@router.post("/{friend_id}/settle", response_model=SettlementOut)
async def settle_with_friend(
    friend_id: int,
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await add_friend_settlement(db, friend_id, current_user.id, data)

@router.get("/{friend_id}/settlements", response_model=list[SettlementOut])
async def friend_history(friend_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_friend_settlement_history(db, user_id=current_user.id, friend_id=friend_id)
