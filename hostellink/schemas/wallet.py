from pydantic import BaseModel
from typing import List, Optional

class WithdrawRequest(BaseModel):
    amount: int

class WalletTransactionOut(BaseModel):
    id: str
    type: str
    amount: int
    description: Optional[str] = None
    createdAt: Optional[str] = None

class WalletOut(BaseModel):
    id: str
    balance: int
    totalEarned: int
    totalWithdrawn: int
    currency: str = "KSh"
    transactions: List[WalletTransactionOut] = []
