from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.dependencies import get_current_user
from settleup.schemas.balances import GroupBalanceOut
from settleup.schemas.expense import ExpenseOut
from settleup.schemas.settlements import SettlementCreate, SettlementOut
from settleup.services.balance_services import get_group_balances
from settleup.services.expense_services import list_group_expenses
from settleup.services.settlement_service import add_group_settlement, get_settlement_history

router = APIRouter()

@router.get("/{group_id}/balances", response_model=GroupBalanceOut)
async def group_balances(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_group_balances(db, group_id=group_id, user_id=current_user.id)

@router.post("/{group_id}/settlements", response_model=SettlementOut)
async def settle_up(
    group_id: int,
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await add_group_settlement(db, group_id, user.id, data)

@router.get("/{group_id}/settlements", response_model=list[SettlementOut])
async def fetch_history(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await get_settlement_history(db, group_id, user.id)

@router.get("/{group_id}/expenses", response_model=list[ExpenseOut], description="get all expenses of the group")
async def fetch_expenses(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await list_group_expenses(db, user.id, group_id)
