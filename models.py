from typing import Optional
from uuid import uuid4
from sqlmodel import SQLModel, Field
from datetime import datetime, date
from decimal import Decimal

from compute import SplitType


def new_id() -> str:
    return str(uuid4())

# ============== Groups ==============
class GroupBase(SQLModel):
    name: str

class Group(GroupBase, table=True):
    __tablename__ = "groups"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

# ============== Members ==============
class MemberBase(SQLModel):
    name: str
    position: int  # declared order; the last member absorbs equal split rounding

class Member(MemberBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)

# ============== Expenses ==============
class ExpenseBase(SQLModel):
    description: str
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    paid_by: str  # participant name, not null
    event_date: date
    split_type: SplitType = SplitType.EQUAL

class Expense(ExpenseBase, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

# ============== Contributions (who owes what for an expense) ==============
class ContributionBase(SQLModel):
    participant: str
    amount: Decimal = Field(max_digits=12, decimal_places=2)

class Contribution(ContributionBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    expense_id: str = Field(foreign_key="expense.id", index=True)
