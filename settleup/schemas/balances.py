from typing import Dict, List
from pydantic import BaseModel

class Transfer(BaseModel):
    from_id: int
    from_name: str | None = None
    to_id: int
    to_name: str | None = None
    amount: str

class GroupBalanceOut(BaseModel):
    net: Dict[int, str]
    settlements: List[Transfer]

class FriendBalanceOut(BaseModel):
    friend_id: int
    friend_name: str | None = None
    balance: str
    settlements: List[Transfer]

class CounterpartyBalance(BaseModel):
    user_id: int
    name: str | None = None
    balance: str

class MyBalancesOut(BaseModel):
    total_owed_to_me: str
    total_i_owe: str
    balances: List[CounterpartyBalance]
