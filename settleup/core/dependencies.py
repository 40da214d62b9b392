from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.jwt_config import decode_token, get_token_from_cookie
from settleup.models.user import User
from settleup.models.group import Group
from settleup.models.group_member import GroupMember

async def get_user_by_id(db: AsyncSession, id: int):
    result = await db.execute(select(User).where(User.id == id))
    return result.scalar_one_or_none()

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_token_from_cookie(request=request)
    payload = decode_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    group = await db.execute(select(Group.id).where(Group.id == group_id))
    if not group.scalar_one_or_none():
        raise HTTPException(404, "Group not found")

    q = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )
    res = await db.execute(q)

    if not res.scalar_one_or_none():
        raise HTTPException(403, "Not a member of this group")
