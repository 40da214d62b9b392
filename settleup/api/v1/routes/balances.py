from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.dependencies import get_current_user
from settleup.schemas.balances import MyBalancesOut
from settleup.services.balance_services import get_my_balances

router = APIRouter()

@router.get("/me", response_model=MyBalancesOut)
async def my_balances(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await get_my_balances(db, current_user.id)
